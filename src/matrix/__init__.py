"""Skills matrix - compatibility model and resolution engine."""

from .builder import (
    build_mvp_matrix,
    follow_aliases,
    merge_local_skills,
    merge_matrix_with_skills,
)
from .dependents import collect_all_dependents
from .errors import MatrixError, MatrixLoadError, MissingFieldsError, WizardStateError
from .loader import MatrixLoader
from .models import (
    AlternativeGroup,
    CategoryDefinition,
    CategoryDisabledState,
    ConflictRule,
    DiscourageRule,
    ExtractedSkillMetadata,
    RecommendRule,
    RelationshipDefinitions,
    RequireRule,
    ResolvedSkill,
    ResolvedStack,
    SelectionError,
    SelectionErrorType,
    SelectionValidation,
    SelectionWarning,
    SelectionWarningType,
    SkillAlternative,
    SkillOption,
    SkillRelation,
    SkillRequirement,
    SkillsMatrix,
    SkillsMatrixConfig,
    SuggestedStack,
)
from .relations import SymmetricRelation
from .resolver import (
    ResolveOptions,
    get_available_skills,
    get_disable_reason,
    get_discourage_reason,
    get_recommend_reason,
    get_skills_by_category,
    get_subcategories,
    get_top_level_categories,
    is_category_all_disabled,
    is_disabled,
    is_discouraged,
    is_recommended,
    resolve_alias,
    validate_selection,
)

__all__ = [
    "MatrixLoader",
    "MatrixError",
    "MatrixLoadError",
    "MissingFieldsError",
    "WizardStateError",
    "SkillsMatrixConfig",
    "CategoryDefinition",
    "RelationshipDefinitions",
    "ConflictRule",
    "DiscourageRule",
    "RecommendRule",
    "RequireRule",
    "AlternativeGroup",
    "SuggestedStack",
    "ExtractedSkillMetadata",
    "SkillsMatrix",
    "ResolvedSkill",
    "ResolvedStack",
    "SkillRelation",
    "SkillRequirement",
    "SkillAlternative",
    "SkillOption",
    "CategoryDisabledState",
    "SelectionError",
    "SelectionErrorType",
    "SelectionWarning",
    "SelectionWarningType",
    "SelectionValidation",
    "SymmetricRelation",
    "merge_matrix_with_skills",
    "merge_local_skills",
    "build_mvp_matrix",
    "follow_aliases",
    "collect_all_dependents",
    "ResolveOptions",
    "resolve_alias",
    "is_disabled",
    "get_disable_reason",
    "is_discouraged",
    "get_discourage_reason",
    "is_recommended",
    "get_recommend_reason",
    "validate_selection",
    "get_available_skills",
    "get_skills_by_category",
    "is_category_all_disabled",
    "get_subcategories",
    "get_top_level_categories",
]
