"""Unit tests for the resolution functions."""

import pytest

from src.matrix.builder import merge_local_skills
from src.matrix.models import ExtractedSkillMetadata, SelectionErrorType, SelectionWarningType
from src.matrix.resolver import (
    ResolveOptions,
    get_available_skills,
    get_disable_reason,
    get_discourage_reason,
    get_recommend_reason,
    get_skills_by_category,
    get_subcategories,
    get_top_level_categories,
    get_top_level_category,
    is_category_all_disabled,
    is_disabled,
    is_discouraged,
    is_recommended,
    resolve_alias,
    short_reason,
    validate_selection,
)

REACT = "frontend/react (@vince)"
VUE = "frontend/vue (@vince)"
REDUX = "frontend/redux (@vince)"
ZUSTAND = "frontend/zustand (@vince)"
PINIA = "frontend/pinia (@vince)"
TAILWIND = "frontend/tailwind (@vince)"
SCSS = "frontend/scss-modules (@vince)"
HONO = "backend/hono (@vince)"
EXPRESS = "backend/express (@vince)"
POSTHOG_SETUP = "backend/posthog-setup (@vince)"
POSTHOG_ANALYTICS = "backend/posthog-analytics (@vince)"

EXPERT = ResolveOptions(expert_mode=True)


@pytest.fixture
def abc_matrix(build_matrix):
    """Three skills in one leaf category, with no relationships."""

    def _build(relationships=None, a_requires=None):
        return build_matrix(
            skills=[
                {"id": "a", "name": "A", "category": "leaf", "requires": a_requires or []},
                {"id": "b", "name": "B", "category": "leaf"},
                {"id": "c", "name": "C", "category": "leaf"},
            ],
            relationships=relationships,
        )

    return _build


@pytest.fixture
def local_matrix(matrix):
    """The sample matrix with one project-local skill."""
    local = ExtractedSkillMetadata(
        id="test-custom (@local)",
        name="test-custom @local",
        category="local",
        local=True,
        path=".claude/skills/test-custom/",
    )
    return merge_local_skills(matrix, [local])


class TestResolveAlias:
    """Test resolve_alias."""

    def test_alias_resolved(self, matrix):
        assert resolve_alias("react", matrix) == REACT

    @pytest.mark.parametrize("reference", ["react", REACT, "unknown-skill"])
    def test_idempotent(self, matrix, reference):
        once = resolve_alias(reference, matrix)
        assert resolve_alias(once, matrix) == once


class TestIsDisabled:
    """Test is_disabled and get_disable_reason."""

    def test_conflict_is_bidirectional(self, matrix):
        assert is_disabled(SCSS, [TAILWIND], matrix)
        assert is_disabled(TAILWIND, [SCSS], matrix)
        assert not is_disabled(SCSS, [], matrix)

    def test_expert_mode_disables_enforcement(self, matrix):
        assert not is_disabled(SCSS, [TAILWIND], matrix, EXPERT)
        assert not is_disabled(TAILWIND, [SCSS], matrix, EXPERT)
        assert not is_disabled(REDUX, [], matrix, EXPERT)
        assert get_disable_reason(REDUX, [], matrix, EXPERT) is None

    def test_aliases_accepted(self, matrix):
        assert is_disabled("scss-modules", ["tailwind"], matrix)
        assert not is_disabled("redux", ["react"], matrix)

    def test_conflict_reason(self, matrix):
        assert (
            get_disable_reason(SCSS, [TAILWIND], matrix)
            == "Choose one styling approach (conflicts with Tailwind)"
        )

    @pytest.mark.parametrize("selection", [[], ["b"], ["c"]])
    def test_all_requirement_unmet(self, abc_matrix, selection):
        matrix = abc_matrix(a_requires=["b", "c"])
        assert is_disabled("a", selection, matrix)

    def test_all_requirement_met(self, abc_matrix):
        matrix = abc_matrix(a_requires=["b", "c"])
        assert not is_disabled("a", ["b", "c"], matrix)

    def test_all_requirement_reason_names_missing_only(self, abc_matrix):
        matrix = abc_matrix(a_requires=["b", "c"])
        assert get_disable_reason("a", ["b"], matrix) == "Defined in skill metadata (requires C)"

    @pytest.mark.parametrize("selection", [["b"], ["c"], ["b", "c"]])
    def test_any_requirement_met(self, abc_matrix, selection):
        matrix = abc_matrix(
            relationships={
                "requires": [{"skill": "a", "needs": ["b", "c"], "needs_any": True, "reason": "R"}]
            }
        )
        assert not is_disabled("a", selection, matrix)

    def test_any_requirement_unmet(self, abc_matrix):
        matrix = abc_matrix(
            relationships={
                "requires": [{"skill": "a", "needs": ["b", "c"], "needs_any": True, "reason": "R"}]
            }
        )
        assert is_disabled("a", [], matrix)
        assert get_disable_reason("a", [], matrix) == "R (requires B or C)"

    def test_sample_requirement_reasons(self, matrix):
        assert (
            get_disable_reason(ZUSTAND, [], matrix)
            == "Select a framework first (requires React or Vue)"
        )
        assert get_disable_reason(PINIA, [REACT], matrix) == "Pinia is for Vue (requires Vue)"
        assert get_disable_reason(PINIA, [VUE], matrix) is None

    def test_conflict_reported_before_requirement(self, abc_matrix):
        matrix = abc_matrix(
            relationships={"conflicts": [{"skills": ["a", "b"], "reason": "Clash"}]},
            a_requires=["c"],
        )
        assert get_disable_reason("a", ["b"], matrix) == "Clash (conflicts with B)"

    def test_not_disabled_returns_none(self, matrix):
        assert get_disable_reason(REACT, [], matrix) is None

    def test_unknown_skill_never_disabled(self, matrix):
        assert not is_disabled("ghost (@nobody)", [TAILWIND], matrix)

    def test_unknown_selected_ids_ignored(self, matrix):
        assert not is_disabled(REACT, ["ghost (@nobody)"], matrix)

    def test_local_skill_never_disabled(self, local_matrix):
        for selection in ([], [TAILWIND, SCSS], [REDUX]):
            assert not is_disabled("test-custom (@local)", selection, local_matrix)


class TestDiscouraged:
    """Test is_discouraged and get_discourage_reason."""

    def test_bidirectional(self, matrix):
        assert is_discouraged(SCSS, [HONO], matrix)
        assert is_discouraged(HONO, [SCSS], matrix)
        assert get_discourage_reason(HONO, [SCSS], matrix) == "Unusual pairing"

    def test_not_discouraged(self, matrix):
        assert not is_discouraged(SCSS, [EXPRESS], matrix)
        assert get_discourage_reason(SCSS, [], matrix) is None

    def test_independent_of_disabled(self, matrix):
        """A skill can be disabled and discouraged at the same time."""
        selection = [TAILWIND, HONO]

        assert is_disabled(SCSS, selection, matrix)
        assert is_discouraged(SCSS, selection, matrix)


class TestRecommended:
    """Test is_recommended and get_recommend_reason."""

    def test_recommended_by_selection(self, matrix):
        assert is_recommended(ZUSTAND, [REACT], matrix)
        assert (
            get_recommend_reason(TAILWIND, [REACT], matrix)
            == "Works great with React (recommended by React)"
        )

    def test_unidirectional(self, matrix):
        assert not is_recommended(REACT, [ZUSTAND], matrix)

    def test_nothing_selected(self, matrix):
        assert get_recommend_reason(ZUSTAND, [], matrix) is None


class TestValidateSelection:
    """Test validate_selection."""

    def test_empty_selection_is_valid(self, matrix):
        validation = validate_selection([], matrix)

        assert validation.valid is True
        assert validation.errors == []
        assert validation.warnings == []

    def test_valid_stack(self, matrix):
        validation = validate_selection([REACT, ZUSTAND, TAILWIND, HONO], matrix)

        assert validation.valid
        assert validation.warnings == []

    def test_conflict_reported_once_per_pair(self, matrix):
        validation = validate_selection([TAILWIND, SCSS], matrix)

        conflicts = [e for e in validation.errors if e.type == SelectionErrorType.CONFLICT]
        assert len(conflicts) == 1
        assert conflicts[0].skills == [TAILWIND, SCSS]
        assert "Tailwind conflicts with SCSS Modules" in conflicts[0].message
        assert not validation.valid

    def test_missing_requirement(self, matrix):
        validation = validate_selection([REDUX], matrix)

        assert [e.type for e in validation.errors] == [SelectionErrorType.MISSING_REQUIREMENT]
        assert validation.errors[0].skills == [REDUX, REACT]
        assert validation.errors[0].message == "Redux requires: React"

    def test_missing_any_requirement(self, matrix):
        validation = validate_selection([ZUSTAND], matrix)

        assert validation.errors[0].message == "Zustand requires one of: React, Vue"
        assert validation.errors[0].skills == [ZUSTAND, REACT, VUE]

    def test_exclusive_category_single_error(self, matrix):
        """Two skills in an exclusive category give one error naming both."""
        validation = validate_selection([REACT, VUE], matrix)

        exclusive = [
            e for e in validation.errors if e.type == SelectionErrorType.CATEGORY_EXCLUSIVE
        ]
        assert len(exclusive) == 1
        assert exclusive[0].skills == [REACT, VUE]
        assert 'Category "Framework" only allows one selection' in exclusive[0].message

    def test_non_exclusive_category_allows_many(self, matrix):
        validation = validate_selection([POSTHOG_SETUP, POSTHOG_ANALYTICS], matrix)

        assert validation.valid
        assert validation.warnings == []

    def test_missing_recommendation_warning(self, matrix):
        validation = validate_selection([REACT], matrix)

        assert validation.valid
        assert [w.type for w in validation.warnings] == [
            SelectionWarningType.MISSING_RECOMMENDATION,
            SelectionWarningType.MISSING_RECOMMENDATION,
        ]
        assert validation.warnings[0].skills == [REACT, ZUSTAND]

    def test_conflicting_recommendation_not_warned(self, matrix):
        """Tailwind is not suggested when SCSS Modules is already selected."""
        validation = validate_selection([REACT, SCSS], matrix)

        warned = [w.skills[1] for w in validation.warnings]
        assert warned == [ZUSTAND]

    def test_unused_setup_warning(self, matrix):
        validation = validate_selection([POSTHOG_SETUP], matrix)

        assert validation.valid
        assert len(validation.warnings) == 1
        assert validation.warnings[0].type == SelectionWarningType.UNUSED_SETUP
        assert validation.warnings[0].skills == [POSTHOG_SETUP, POSTHOG_ANALYTICS]

    def test_aliases_and_duplicates(self, matrix):
        validation = validate_selection(["react", REACT, "vue"], matrix)

        assert len(validation.errors) == 1
        assert validation.errors[0].skills == [REACT, VUE]

    def test_unknown_skills_ignored(self, matrix):
        assert validate_selection(["ghost (@nobody)"], matrix).valid

    def test_local_skill_never_reported(self, local_matrix):
        validation = validate_selection(
            ["test-custom (@local)", TAILWIND, SCSS, REDUX], local_matrix
        )

        for issue in validation.errors + validation.warnings:
            assert "test-custom (@local)" not in issue.skills
        assert validate_selection(["test-custom (@local)"], local_matrix).valid


class TestAvailableSkills:
    """Test get_available_skills and category helpers."""

    def test_redux_requires_react(self, matrix):
        """Redux is disabled until React is selected."""
        options = {o.id: o for o in get_available_skills("state", ["redux"], matrix)}
        assert options[REDUX].disabled is True
        assert options[REDUX].selected is True

        options = {o.id: o for o in get_available_skills("state", ["redux", "react"], matrix)}
        assert options[REDUX].disabled is False

    def test_declaration_order_preserved(self, matrix):
        options = get_available_skills("state", [REACT], matrix)

        assert [o.id for o in options] == [REDUX, ZUSTAND, PINIA]

    def test_display_state(self, matrix):
        options = {o.id: o for o in get_available_skills("state", [REACT], matrix)}

        assert options[ZUSTAND].recommended is True
        assert options[ZUSTAND].recommended_reason == "Works great with React (recommended by React)"
        assert options[ZUSTAND].alternatives == [REDUX]
        assert options[PINIA].disabled is True
        assert options[PINIA].recommended is False
        assert options[REDUX].alias == "redux"

    def test_disabled_outranks_discouraged(self, matrix):
        options = {o.id: o for o in get_available_skills("styling", [TAILWIND, HONO], matrix)}

        assert options[SCSS].disabled is True
        assert options[SCSS].discouraged is False
        assert options[TAILWIND].selected is True

    def test_discouraged_outranks_recommended(self, build_matrix):
        matrix = build_matrix(
            skills=[
                {"id": "a", "name": "A", "category": "leaf"},
                {"id": "b", "name": "B", "category": "leaf"},
            ],
            relationships={
                "discourages": [{"skills": ["a", "b"], "reason": "Meh"}],
                "recommends": [{"when": "a", "suggest": ["b"], "reason": "Nice"}],
            },
        )

        option = get_available_skills("leaf", ["a"], matrix)[1]
        assert option.discouraged is True
        assert option.discouraged_reason == "Meh"
        assert option.recommended is False

    def test_expert_mode(self, matrix):
        options = get_available_skills("state", [], matrix, EXPERT)

        assert not any(o.disabled for o in options)

    def test_unknown_category(self, matrix):
        assert get_available_skills("nope", [], matrix) == []
        assert get_skills_by_category("nope", matrix) == []


class TestCategoryHelpers:
    """Test category navigation helpers."""

    def test_all_disabled(self, build_matrix):
        matrix = build_matrix(
            skills=[
                {"id": "a", "name": "A", "category": "leaf", "requires": ["x"]},
                {"id": "b", "name": "B", "category": "leaf", "requires": ["x"]},
                {"id": "x", "name": "X", "category": "other"},
            ],
        )

        state = is_category_all_disabled("leaf", [], matrix)
        assert state.disabled is True
        assert state.reason == "Defined in skill metadata"

        assert is_category_all_disabled("leaf", ["x"], matrix).disabled is False
        assert is_category_all_disabled("leaf", [], matrix, EXPERT).disabled is False

    def test_partially_disabled(self, matrix):
        assert is_category_all_disabled("state", [], matrix).disabled is True
        assert is_category_all_disabled("state", [VUE], matrix).disabled is False

    def test_empty_category_not_disabled(self, matrix):
        assert is_category_all_disabled("tooling", [], matrix).disabled is False

    @pytest.mark.parametrize(
        "reason,expected",
        [
            ("Choose one styling approach (conflicts with Tailwind)", "Choose one styling approach"),
            ("No parenthetical", "No parenthetical"),
            (None, "requirements not met"),
            ("", "requirements not met"),
        ],
    )
    def test_short_reason(self, reason, expected):
        assert short_reason(reason) == expected

    def test_top_level_categories_sorted(self, matrix):
        assert get_top_level_categories(matrix) == ["frontend", "backend", "tooling"]

    def test_subcategories_sorted(self, matrix):
        assert get_subcategories("frontend", matrix) == ["framework", "state", "styling"]
        assert get_subcategories("backend", matrix) == ["api", "analytics"]
        assert get_subcategories("tooling", matrix) == []

    def test_top_level_category(self, matrix):
        assert get_top_level_category("state", matrix) == "frontend"
        assert get_top_level_category("frontend", matrix) == "frontend"
        assert get_top_level_category("nope", matrix) == "nope"
