"""
Resolution functions - pure queries over a skills matrix and a selection.

Every function takes the current selection and the matrix explicitly and
never mutates either. Unknown skill ids are treated as absent rather than
raising.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .builder import follow_aliases
from .models import (
    CategoryDisabledState,
    ResolvedSkill,
    SelectionError,
    SelectionErrorType,
    SelectionValidation,
    SelectionWarning,
    SelectionWarningType,
    SkillOption,
    SkillRequirement,
    SkillsMatrix,
)

DEFAULT_DISABLED_REASON = "requirements not met"


@dataclass(frozen=True)
class ResolveOptions:
    """Options shared by the resolution functions."""

    expert_mode: bool = False


_DEFAULT_OPTIONS = ResolveOptions()


def resolve_alias(alias_or_id: str, matrix: SkillsMatrix) -> str:
    """Resolve an alias to a canonical skill id; other input is returned unchanged."""
    return follow_aliases(alias_or_id, matrix.aliases)


def _resolve_selection(selection: Sequence[str], matrix: SkillsMatrix) -> List[str]:
    """Resolve aliases and drop duplicates, keeping first occurrence order."""
    return list(dict.fromkeys(resolve_alias(s, matrix) for s in selection))


def _is_local(skill_id: str, matrix: SkillsMatrix) -> bool:
    skill = matrix.skills.get(skill_id)
    return skill is not None and skill.local


def _enforced_selection(selection: Sequence[str], matrix: SkillsMatrix) -> List[str]:
    """Selected ids that take part in relationship checks (local skills excluded)."""
    return [s for s in _resolve_selection(selection, matrix) if not _is_local(s, matrix)]


def _requirement_met(requirement: SkillRequirement, selected: Sequence[str]) -> bool:
    if requirement.needs_any:
        return any(req_id in selected for req_id in requirement.skill_ids)
    return all(req_id in selected for req_id in requirement.skill_ids)


def _checked_skill(
    skill_id: str, matrix: SkillsMatrix, options: Optional[ResolveOptions]
) -> Optional[ResolvedSkill]:
    """The skill to enforce rules for, or None when enforcement does not apply."""
    if (options or _DEFAULT_OPTIONS).expert_mode:
        return None
    skill = matrix.skills.get(resolve_alias(skill_id, matrix))
    if skill is None or skill.local:
        return None
    return skill


def _names(skill_ids: Sequence[str], matrix: SkillsMatrix, separator: str) -> str:
    return separator.join(matrix.skill_name(skill_id) for skill_id in skill_ids)


def is_disabled(
    skill_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> bool:
    """
    Check whether a skill can currently not be selected.

    A skill is disabled when a selected skill conflicts with it (in either
    direction) or when one of its requirement groups is unmet. Expert mode,
    local skills and unknown ids are never disabled.
    """
    return get_disable_reason(skill_id, selection, matrix, options) is not None


def get_disable_reason(
    skill_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> Optional[str]:
    """
    Explain why a skill is disabled.

    Conflicts are reported before requirements. Returns None when the skill
    is not disabled.
    """
    skill = _checked_skill(skill_id, matrix, options)
    if skill is None:
        return None

    enforced = _enforced_selection(selection, matrix)

    conflicting = matrix.conflicts.first_related(skill.id, enforced)
    if conflicting is not None:
        reason = matrix.conflicts.reason(skill.id, conflicting)
        return f"{reason} (conflicts with {matrix.skill_name(conflicting)})"

    resolved = _resolve_selection(selection, matrix)
    for requirement in skill.requires:
        if _requirement_met(requirement, resolved):
            continue
        if requirement.needs_any:
            required_names = _names(requirement.skill_ids, matrix, " or ")
        else:
            missing = [r for r in requirement.skill_ids if r not in resolved]
            required_names = _names(missing, matrix, ", ")
        return f"{requirement.reason} (requires {required_names})"

    return None


def is_discouraged(
    skill_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> bool:
    """Check whether a selected skill discourages this one, or vice versa."""
    return get_discourage_reason(skill_id, selection, matrix, options) is not None


def get_discourage_reason(
    skill_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> Optional[str]:
    """Reason for the first discourage relationship with the selection, or None."""
    full_id = resolve_alias(skill_id, matrix)
    skill = matrix.skills.get(full_id)
    if skill is None or skill.local:
        return None

    other = matrix.discouragements.first_related(full_id, _enforced_selection(selection, matrix))
    if other is None:
        return None
    return matrix.discouragements.reason(other, full_id)


def is_recommended(
    skill_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> bool:
    """Check whether any selected skill recommends this one (one direction only)."""
    return get_recommend_reason(skill_id, selection, matrix, options) is not None


def get_recommend_reason(
    skill_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> Optional[str]:
    """Reason naming the first selected skill that recommends this one, or None."""
    full_id = resolve_alias(skill_id, matrix)
    if full_id not in matrix.skills:
        return None

    for selected_id in _resolve_selection(selection, matrix):
        selected = matrix.skills.get(selected_id)
        if selected is None:
            continue
        for recommendation in selected.recommends:
            if recommendation.skill_id == full_id:
                return f"{recommendation.reason} (recommended by {selected.name})"

    return None


def validate_selection(selection: Sequence[str], matrix: SkillsMatrix) -> SelectionValidation:
    """
    Audit a full selection.

    Errors: conflicting pairs, unmet requirement groups and more than one
    skill in an exclusive category. Warnings: missed recommendations and
    setup skills without any of their usage skills. Local and unknown
    skills are skipped.

    Returns:
        SelectionValidation with valid == (no errors)
    """
    errors: List[SelectionError] = []
    warnings: List[SelectionWarning] = []

    resolved = _resolve_selection(selection, matrix)
    checked = [s for s in resolved if s in matrix.skills and not matrix.skills[s].local]

    for a, b in matrix.conflicts.pairs_within(checked):
        errors.append(
            SelectionError(
                type=SelectionErrorType.CONFLICT,
                message=(
                    f"{matrix.skill_name(a)} conflicts with {matrix.skill_name(b)}: "
                    f"{matrix.conflicts.reason(a, b)}"
                ),
                skills=[a, b],
            )
        )

    for skill_id in checked:
        skill = matrix.skills[skill_id]
        for requirement in skill.requires:
            if _requirement_met(requirement, resolved):
                continue
            if requirement.needs_any:
                errors.append(
                    SelectionError(
                        type=SelectionErrorType.MISSING_REQUIREMENT,
                        message=(
                            f"{skill.name} requires one of: "
                            f"{_names(requirement.skill_ids, matrix, ', ')}"
                        ),
                        skills=[skill_id, *requirement.skill_ids],
                    )
                )
            else:
                missing = [r for r in requirement.skill_ids if r not in resolved]
                errors.append(
                    SelectionError(
                        type=SelectionErrorType.MISSING_REQUIREMENT,
                        message=f"{skill.name} requires: {_names(missing, matrix, ', ')}",
                        skills=[skill_id, *missing],
                    )
                )

    by_category: Dict[str, List[str]] = {}
    for skill_id in checked:
        by_category.setdefault(matrix.skills[skill_id].category, []).append(skill_id)

    for category_id, skill_ids in by_category.items():
        category = matrix.categories.get(category_id)
        if len(skill_ids) > 1 and category is not None and category.exclusive:
            errors.append(
                SelectionError(
                    type=SelectionErrorType.CATEGORY_EXCLUSIVE,
                    message=(
                        f'Category "{category.name}" only allows one selection, but '
                        f"multiple selected: {_names(skill_ids, matrix, ', ')}"
                    ),
                    skills=skill_ids,
                )
            )

    for skill_id in checked:
        skill = matrix.skills[skill_id]
        for recommendation in skill.recommends:
            target_id = recommendation.skill_id
            if target_id in resolved or target_id not in matrix.skills:
                continue
            if matrix.conflicts.first_related(target_id, checked) is not None:
                continue
            warnings.append(
                SelectionWarning(
                    type=SelectionWarningType.MISSING_RECOMMENDATION,
                    message=(
                        f"{skill.name} recommends {matrix.skill_name(target_id)}: "
                        f"{recommendation.reason}"
                    ),
                    skills=[skill_id, target_id],
                )
            )

    for skill_id in checked:
        skill = matrix.skills[skill_id]
        if not skill.provides_setup_for:
            continue
        if any(usage_id in resolved for usage_id in skill.provides_setup_for):
            continue
        warnings.append(
            SelectionWarning(
                type=SelectionWarningType.UNUSED_SETUP,
                message=(
                    f'Setup skill "{skill.name}" selected but no corresponding usage '
                    f"skills: {_names(skill.provides_setup_for, matrix, ', ')}"
                ),
                skills=[skill_id, *skill.provides_setup_for],
            )
        )

    return SelectionValidation(valid=not errors, errors=errors, warnings=warnings)


def get_skills_by_category(category_id: str, matrix: SkillsMatrix) -> List[ResolvedSkill]:
    """Skills whose category is `category_id`, in declaration order."""
    return [skill for skill in matrix.skills.values() if skill.category == category_id]


def get_available_skills(
    category_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> List[SkillOption]:
    """
    Display state for every skill in a category.

    Declaration order is kept. For display, disabled outranks discouraged,
    which outranks recommended.
    """
    resolved = _resolve_selection(selection, matrix)
    result: List[SkillOption] = []

    for skill in get_skills_by_category(category_id, matrix):
        disabled_reason = get_disable_reason(skill.id, selection, matrix, options)
        disabled = disabled_reason is not None

        discouraged_reason = (
            None if disabled else get_discourage_reason(skill.id, selection, matrix, options)
        )
        discouraged = discouraged_reason is not None

        recommended_reason = (
            None
            if disabled or discouraged
            else get_recommend_reason(skill.id, selection, matrix, options)
        )

        result.append(
            SkillOption(
                id=skill.id,
                alias=skill.alias,
                name=skill.name,
                description=skill.description,
                disabled=disabled,
                disabled_reason=disabled_reason,
                discouraged=discouraged,
                discouraged_reason=discouraged_reason,
                recommended=recommended_reason is not None,
                recommended_reason=recommended_reason,
                selected=skill.id in resolved,
                alternatives=[alt.skill_id for alt in skill.alternatives],
            )
        )

    return result


def short_reason(reason: Optional[str]) -> str:
    """The part of a reason before its parenthetical explanation."""
    short = (reason or "").split(" (")[0]
    return short or DEFAULT_DISABLED_REASON


def is_category_all_disabled(
    category_id: str,
    selection: Sequence[str],
    matrix: SkillsMatrix,
    options: Optional[ResolveOptions] = None,
) -> CategoryDisabledState:
    """
    Check whether every skill in a category is disabled.

    Empty categories are not disabled. The reason is the short form of the
    first skill's disable reason.
    """
    skills = get_skills_by_category(category_id, matrix)
    if not skills:
        return CategoryDisabledState(disabled=False)

    reasons = [get_disable_reason(skill.id, selection, matrix, options) for skill in skills]
    if any(reason is None for reason in reasons):
        return CategoryDisabledState(disabled=False)

    return CategoryDisabledState(disabled=True, reason=short_reason(reasons[0]))


def get_subcategories(parent_category_id: str, matrix: SkillsMatrix) -> List[str]:
    """Subcategory ids of a top-level category, sorted by order."""
    children = [c for c in matrix.categories.values() if c.parent == parent_category_id]
    return [c.id for c in sorted(children, key=lambda c: c.order)]


def get_top_level_categories(matrix: SkillsMatrix) -> List[str]:
    """Top-level category ids, sorted by order."""
    top_level = [c for c in matrix.categories.values() if not c.parent]
    return [c.id for c in sorted(top_level, key=lambda c: c.order)]


def get_top_level_category(category_id: str, matrix: SkillsMatrix) -> str:
    """The top-level ancestor of a category (itself when already top-level)."""
    category = matrix.categories.get(category_id)
    if category is not None and category.parent:
        return category.parent
    return category_id
