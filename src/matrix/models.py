"""Pydantic models for the skills matrix: raw configuration, resolved matrix and selection state."""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .relations import SymmetricRelation

# =============================================================================
# Raw configuration (skills-matrix.yaml)
# =============================================================================


class CategoryDefinition(BaseModel):
    """
    A category in the two-level category tree.

    Top-level categories (no parent) group subcategories for navigation;
    skills only ever belong to subcategories.
    """

    id: str = Field(..., description="Unique category identifier")
    name: str = Field(..., description="Human-readable display name")
    description: str = Field(default="", description="Brief description shown in the wizard")
    parent: Optional[str] = Field(None, description="Parent category id for subcategories")
    exclusive: bool = Field(
        default=True, description="Only one skill in this category may be selected"
    )
    required: bool = Field(
        default=False, description="Advisory flag shown in the wizard, not enforced"
    )
    order: int = Field(default=0, description="Display order among siblings")
    icon: Optional[str] = Field(None, description="Optional display icon")


class ConflictRule(BaseModel):
    """Skills that cannot be selected together."""

    skills: List[str] = Field(..., description="Aliases or ids that conflict with each other")
    reason: str = Field(..., description="Explanation shown when an option is disabled")


class DiscourageRule(BaseModel):
    """Skills that may be combined, but with a warning."""

    skills: List[str] = Field(..., description="Aliases or ids that discourage each other")
    reason: str = Field(..., description="Explanation shown as a warning")


class RecommendRule(BaseModel):
    """Selecting `when` highlights the `suggest` skills."""

    when: str = Field(..., description="Alias or id that triggers the recommendation")
    suggest: List[str] = Field(..., description="Aliases or ids to highlight")
    reason: str = Field(..., description="Explanation shown with the recommendation")


class RequireRule(BaseModel):
    """Hard dependency of `skill` on `needs`."""

    skill: str = Field(..., description="Alias or id that has requirements")
    needs: List[str] = Field(..., description="Skills that must be selected first")
    needs_any: bool = Field(
        default=False, description="True for OR semantics, False for AND semantics"
    )
    reason: str = Field(..., description="Explanation shown when the requirement is unmet")


class AlternativeGroup(BaseModel):
    """Interchangeable skills serving the same purpose."""

    purpose: str
    skills: List[str]


class RelationshipDefinitions(BaseModel):
    """All matrix-level relationship rules."""

    conflicts: List[ConflictRule] = Field(default_factory=list)
    discourages: List[DiscourageRule] = Field(default_factory=list)
    recommends: List[RecommendRule] = Field(default_factory=list)
    requires: List[RequireRule] = Field(default_factory=list)
    alternatives: List[AlternativeGroup] = Field(default_factory=list)


class SuggestedStack(BaseModel):
    """A curated starting selection, organised as category -> subcategory -> alias."""

    id: str
    name: str
    description: str = ""
    audience: List[str] = Field(default_factory=list)
    skills: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    philosophy: str = ""


class SkillsMatrixConfig(BaseModel):
    """Root of the matrix configuration document."""

    version: str = Field(..., description="Schema version of the matrix")
    categories: Dict[str, CategoryDefinition] = Field(default_factory=dict)
    relationships: RelationshipDefinitions = Field(default_factory=RelationshipDefinitions)
    suggested_stacks: List[SuggestedStack] = Field(default_factory=list)
    skill_aliases: Dict[str, str] = Field(default_factory=dict)

    @field_validator("categories")
    @classmethod
    def validate_category_tree(
        cls, v: Dict[str, CategoryDefinition]
    ) -> Dict[str, CategoryDefinition]:
        """Ensure every parent exists and is itself top-level (depth <= 2)."""
        for category_id, category in v.items():
            if category.parent is None:
                continue
            parent = v.get(category.parent)
            if parent is None:
                raise ValueError(
                    f"Category '{category_id}' references unknown parent '{category.parent}'"
                )
            if parent.parent is not None:
                raise ValueError(
                    f"Category '{category_id}' is nested too deeply: parent "
                    f"'{parent.id}' already has parent '{parent.parent}'"
                )
        return v


# =============================================================================
# Extracted per-skill metadata
# =============================================================================


def extract_display_name(skill_id: str) -> str:
    """
    Derive a display name from a skill id.

    "frontend/state-zustand (@vince)" -> "State Zustand"
    """
    without_category = skill_id.split("/")[-1] or skill_id
    without_author = re.sub(r"\s*\(@\w+\)$", "", without_category).strip()
    return " ".join(word[:1].upper() + word[1:] for word in without_author.split("-"))


class ExtractedSkillMetadata(BaseModel):
    """Skill record as produced by an external extractor, before merging with the matrix."""

    id: str = Field(..., description="Canonical skill id, e.g. 'react (@vince)'")
    directory_path: str = Field(default="", description="Directory path of the skill")
    name: str = Field(..., description="Display name")
    description: str = Field(default="")
    usage_guidance: Optional[str] = None
    category: str = Field(..., description="Leaf category id")
    category_exclusive: bool = True
    author: str = ""
    version: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    compatible_with: List[str] = Field(default_factory=list)
    conflicts_with: List[str] = Field(default_factory=list)
    requires: List[str] = Field(default_factory=list)
    requires_setup: List[str] = Field(default_factory=list)
    provides_setup_for: List[str] = Field(default_factory=list)
    path: str = ""
    local: bool = False
    local_path: Optional[str] = None

    @classmethod
    def from_raw_metadata(
        cls,
        skill_id: str,
        raw: Dict[str, Any],
        description: str = "",
        skill_dir: str = "",
    ) -> "ExtractedSkillMetadata":
        """
        Build a record from a metadata.yaml mapping.

        Args:
            skill_id: Canonical id (normally the SKILL.md frontmatter name)
            raw: Parsed metadata.yaml content
            description: Fallback description when cli_description is unset
            skill_dir: Skill directory relative to the skills root

        Returns:
            ExtractedSkillMetadata instance
        """
        author = raw.get("author", "")
        cli_name = raw.get("cli_name")
        name = f"{cli_name} {author}".strip() if cli_name else extract_display_name(skill_id)

        return cls(
            id=skill_id,
            directory_path=skill_dir,
            name=name,
            description=raw.get("cli_description") or description,
            usage_guidance=raw.get("usage_guidance"),
            category=raw.get("category", ""),
            category_exclusive=raw.get("category_exclusive", True),
            author=author,
            version=raw.get("version"),
            tags=raw.get("tags") or [],
            compatible_with=raw.get("compatible_with") or [],
            conflicts_with=raw.get("conflicts_with") or [],
            requires=raw.get("requires") or [],
            requires_setup=raw.get("requires_setup") or [],
            provides_setup_for=raw.get("provides_setup_for") or [],
            path=f"skills/{skill_dir}/" if skill_dir else "",
        )


# =============================================================================
# Resolved matrix
# =============================================================================


class SkillRelation(BaseModel):
    """Relationship to another skill with an explanation."""

    model_config = ConfigDict(frozen=True)

    skill_id: str
    reason: str


class SkillRequirement(BaseModel):
    """A requirement group with AND (default) or OR semantics."""

    model_config = ConfigDict(frozen=True)

    skill_ids: List[str]
    needs_any: bool = False
    reason: str


class SkillAlternative(BaseModel):
    """An interchangeable skill and the purpose they share."""

    model_config = ConfigDict(frozen=True)

    skill_id: str
    purpose: str


class ResolvedSkill(BaseModel):
    """A skill with every relationship resolved to canonical ids."""

    model_config = ConfigDict(frozen=True)

    id: str
    alias: Optional[str] = None
    name: str
    description: str = ""
    usage_guidance: Optional[str] = None

    category: str
    category_exclusive: bool = True
    tags: List[str] = Field(default_factory=list)

    author: str = ""
    version: Optional[str] = None

    conflicts_with: List[SkillRelation] = Field(default_factory=list)
    recommends: List[SkillRelation] = Field(default_factory=list)
    recommended_by: List[SkillRelation] = Field(default_factory=list)
    requires: List[SkillRequirement] = Field(default_factory=list)
    required_by: List[SkillRelation] = Field(default_factory=list)
    alternatives: List[SkillAlternative] = Field(default_factory=list)
    discourages: List[SkillRelation] = Field(default_factory=list)

    requires_setup: List[str] = Field(default_factory=list)
    provides_setup_for: List[str] = Field(default_factory=list)

    path: str = ""

    local: bool = False
    local_path: Optional[str] = None


class ResolvedStack(BaseModel):
    """A suggested stack with aliases resolved to canonical ids."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    audience: List[str] = Field(default_factory=list)
    skills: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    all_skill_ids: List[str] = Field(default_factory=list)
    philosophy: str = ""


class SkillsMatrix(BaseModel):
    """
    The query-ready skills matrix.

    Built once per session by `merge_matrix_with_skills` (or
    `build_mvp_matrix`) and read-only afterwards. The symmetric conflict and
    discourage graphs are derived from the skills on construction.
    """

    model_config = ConfigDict(frozen=True)

    version: str = "1.0.0"
    categories: Dict[str, CategoryDefinition] = Field(default_factory=dict)
    skills: Dict[str, ResolvedSkill] = Field(default_factory=dict)
    suggested_stacks: List[ResolvedStack] = Field(default_factory=list)
    aliases: Dict[str, str] = Field(default_factory=dict)
    aliases_reverse: Dict[str, str] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=datetime.now)

    _conflicts: SymmetricRelation = PrivateAttr(default_factory=SymmetricRelation)
    _discouragements: SymmetricRelation = PrivateAttr(default_factory=SymmetricRelation)

    def model_post_init(self, __context: Any) -> None:
        conflicts = SymmetricRelation()
        discouragements = SymmetricRelation()
        for skill in self.skills.values():
            for relation in skill.conflicts_with:
                conflicts.add(skill.id, relation.skill_id, relation.reason)
            for relation in skill.discourages:
                discouragements.add(skill.id, relation.skill_id, relation.reason)
        self._conflicts = conflicts
        self._discouragements = discouragements

    @property
    def conflicts(self) -> SymmetricRelation:
        """Bidirectional conflict graph."""
        return self._conflicts

    @property
    def discouragements(self) -> SymmetricRelation:
        """Bidirectional discourage graph."""
        return self._discouragements

    def get_skill(self, skill_id: str) -> Optional[ResolvedSkill]:
        """Look up a skill by canonical id."""
        return self.skills.get(skill_id)

    def get_stack(self, stack_id: str) -> Optional[ResolvedStack]:
        """Look up a suggested stack by id."""
        for stack in self.suggested_stacks:
            if stack.id == stack_id:
                return stack
        return None

    def skill_name(self, skill_id: str) -> str:
        """Display name for a skill id, falling back to the id itself."""
        skill = self.skills.get(skill_id)
        return skill.name if skill else skill_id

    def __repr__(self) -> str:
        return (
            f"<SkillsMatrix version='{self.version}' categories={len(self.categories)} "
            f"skills={len(self.skills)} stacks={len(self.suggested_stacks)}>"
        )


# =============================================================================
# Runtime display state and validation results
# =============================================================================


class SkillOption(BaseModel):
    """A skill as displayed in the wizard, computed against the current selection."""

    id: str
    alias: Optional[str] = None
    name: str
    description: str = ""
    disabled: bool = False
    disabled_reason: Optional[str] = None
    discouraged: bool = False
    discouraged_reason: Optional[str] = None
    recommended: bool = False
    recommended_reason: Optional[str] = None
    selected: bool = False
    alternatives: List[str] = Field(default_factory=list)


class CategoryDisabledState(BaseModel):
    """Whether every skill in a category is disabled, with a short reason."""

    disabled: bool
    reason: Optional[str] = None


class SelectionErrorType(str, Enum):
    """Kinds of blocking selection problems."""

    CONFLICT = "conflict"
    MISSING_REQUIREMENT = "missing_requirement"
    CATEGORY_EXCLUSIVE = "category_exclusive"


class SelectionWarningType(str, Enum):
    """Kinds of non-blocking selection problems."""

    MISSING_RECOMMENDATION = "missing_recommendation"
    UNUSED_SETUP = "unused_setup"


class SelectionError(BaseModel):
    """A problem that makes a selection invalid."""

    type: SelectionErrorType
    message: str
    skills: List[str]


class SelectionWarning(BaseModel):
    """A caveat about an otherwise valid selection."""

    type: SelectionWarningType
    message: str
    skills: List[str]


class SelectionValidation(BaseModel):
    """Result of auditing a full selection."""

    valid: bool
    errors: List[SelectionError] = Field(default_factory=list)
    warnings: List[SelectionWarning] = Field(default_factory=list)
