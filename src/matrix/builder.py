"""Matrix construction - merges the matrix configuration with extracted skill metadata."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .models import (
    CategoryDefinition,
    ExtractedSkillMetadata,
    ResolvedSkill,
    ResolvedStack,
    SkillsMatrix,
    SkillsMatrixConfig,
    extract_display_name,
)

logger = logging.getLogger(__name__)

METADATA_REASON = "Defined in skill metadata"
COMPATIBLE_REASON = "Compatible with this skill"

LOCAL_CATEGORY_TOP = CategoryDefinition(
    id="local",
    name="Local Skills",
    description="Project-specific skills from .claude/skills/",
    exclusive=False,
    required=False,
    order=0,
)

LOCAL_CATEGORY_CUSTOM = CategoryDefinition(
    id="local/custom",
    name="Custom",
    description="Your project-specific skills",
    exclusive=False,
    required=False,
    order=0,
    parent="local",
)

LOCAL_AUTHOR = "@local"


def follow_aliases(alias_or_id: str, aliases: Dict[str, str]) -> str:
    """
    Resolve an alias to its canonical id.

    Alias chains are followed until a fixed point, so resolving the result
    again returns the same id. Unknown input is returned unchanged.
    """
    seen = {alias_or_id}
    current = alias_or_id
    while current in aliases:
        nxt = aliases[current]
        if nxt in seen:
            break
        seen.add(nxt)
        current = nxt
    return current


class ReferenceResolver:
    """
    Resolves skill references found in configuration to canonical ids.

    A reference may be an alias, a canonical id, or a legacy directory path
    ("frontend/react (@vince)", "skills/frontend/react (@vince)/").
    Anything else is kept as an opaque id.
    """

    def __init__(
        self, aliases: Dict[str, str], skills: Iterable[ExtractedSkillMetadata] = ()
    ) -> None:
        self.aliases = aliases
        self._ids = set()
        self._paths: Dict[str, str] = {}
        for skill in skills:
            self._ids.add(skill.id)
            for path in (skill.directory_path, skill.path, skill.local_path):
                if path:
                    self._paths.setdefault(self._normalise_path(path), skill.id)

    @staticmethod
    def _normalise_path(path: str) -> str:
        path = path.strip().strip("/")
        if path.startswith("skills/"):
            path = path[len("skills/") :]
        return path

    def resolve(self, reference: str) -> str:
        resolved = follow_aliases(reference, self.aliases)
        if resolved in self._ids or resolved != reference:
            return resolved
        return self._paths.get(self._normalise_path(reference), reference)

    def resolve_all(self, references: Iterable[str]) -> List[str]:
        return [self.resolve(ref) for ref in references]


def build_reverse_aliases(aliases: Dict[str, str]) -> Dict[str, str]:
    """Build the canonical id -> alias lookup."""
    return {full_id: alias for alias, full_id in aliases.items()}


def _add_relation(
    relations: List[Dict[str, str]], owner_id: str, target_id: str, reason: str
) -> None:
    """Append a relation unless it points at its owner or duplicates a target."""
    if target_id == owner_id:
        return
    if any(r["skill_id"] == target_id for r in relations):
        return
    relations.append({"skill_id": target_id, "reason": reason})


def _build_skill_fields(
    skill: ExtractedSkillMetadata,
    config: SkillsMatrixConfig,
    resolver: ReferenceResolver,
    aliases_reverse: Dict[str, str],
) -> Dict[str, Any]:
    """Collect every forward relationship of one skill into plain data."""
    relationships = config.relationships
    conflicts_with: List[Dict[str, str]] = []
    recommends: List[Dict[str, str]] = []
    requires: List[Dict[str, Any]] = []
    alternatives: List[Dict[str, str]] = []
    discourages: List[Dict[str, str]] = []

    for ref in skill.conflicts_with:
        _add_relation(conflicts_with, skill.id, resolver.resolve(ref), METADATA_REASON)

    for rule in relationships.conflicts:
        members = resolver.resolve_all(rule.skills)
        if skill.id in members:
            for other in members:
                _add_relation(conflicts_with, skill.id, other, rule.reason)

    for ref in skill.compatible_with:
        _add_relation(recommends, skill.id, resolver.resolve(ref), COMPATIBLE_REASON)

    for rule in relationships.recommends:
        if resolver.resolve(rule.when) == skill.id:
            for suggested in rule.suggest:
                _add_relation(recommends, skill.id, resolver.resolve(suggested), rule.reason)

    # Metadata requirements form a single ALL group; matrix rules are appended
    # as separate groups even when they overlap.
    if skill.requires:
        requires.append(
            {
                "skill_ids": resolver.resolve_all(skill.requires),
                "needs_any": False,
                "reason": METADATA_REASON,
            }
        )

    for rule in relationships.requires:
        if resolver.resolve(rule.skill) == skill.id:
            requires.append(
                {
                    "skill_ids": resolver.resolve_all(rule.needs),
                    "needs_any": rule.needs_any,
                    "reason": rule.reason,
                }
            )

    for group in relationships.alternatives:
        members = resolver.resolve_all(group.skills)
        if skill.id in members:
            for other in members:
                if other != skill.id:
                    alternatives.append({"skill_id": other, "purpose": group.purpose})

    for rule in relationships.discourages:
        members = resolver.resolve_all(rule.skills)
        if skill.id in members:
            for other in members:
                _add_relation(discourages, skill.id, other, rule.reason)

    return {
        "id": skill.id,
        "alias": aliases_reverse.get(skill.id),
        "name": skill.name,
        "description": skill.description,
        "usage_guidance": skill.usage_guidance,
        "category": skill.category,
        "category_exclusive": skill.category_exclusive,
        "tags": list(skill.tags),
        "author": skill.author,
        "version": skill.version,
        "conflicts_with": conflicts_with,
        "recommends": recommends,
        "recommended_by": [],
        "requires": requires,
        "required_by": [],
        "alternatives": alternatives,
        "discourages": discourages,
        "requires_setup": resolver.resolve_all(skill.requires_setup),
        "provides_setup_for": resolver.resolve_all(skill.provides_setup_for),
        "path": skill.path,
        "local": skill.local,
        "local_path": skill.local_path,
    }


def compute_inverse_relationships(skills: Dict[str, Dict[str, Any]]) -> None:
    """Fill `recommended_by` and `required_by` from every skill's forward relations."""
    for skill in skills.values():
        for recommend in skill["recommends"]:
            target = skills.get(recommend["skill_id"])
            if target is not None:
                target["recommended_by"].append(
                    {"skill_id": skill["id"], "reason": recommend["reason"]}
                )

        for requirement in skill["requires"]:
            for required_id in requirement["skill_ids"]:
                target = skills.get(required_id)
                if target is not None:
                    target["required_by"].append(
                        {"skill_id": skill["id"], "reason": requirement["reason"]}
                    )


def resolve_suggested_stacks(
    config: SkillsMatrixConfig, resolver: ReferenceResolver
) -> List[ResolvedStack]:
    """Resolve every stack's aliases and compute its flat skill list."""
    stacks: List[ResolvedStack] = []
    for stack in config.suggested_stacks:
        resolved_map: Dict[str, Dict[str, str]] = {}
        all_skill_ids: List[str] = []

        for category, subcategories in stack.skills.items():
            resolved_map[category] = {}
            for subcategory, reference in subcategories.items():
                full_id = resolver.resolve(reference)
                resolved_map[category][subcategory] = full_id
                all_skill_ids.append(full_id)

        stacks.append(
            ResolvedStack(
                id=stack.id,
                name=stack.name,
                description=stack.description,
                audience=list(stack.audience),
                skills=resolved_map,
                all_skill_ids=all_skill_ids,
                philosophy=stack.philosophy,
            )
        )
    return stacks


def merge_matrix_with_skills(
    config: SkillsMatrixConfig, skills: List[ExtractedSkillMetadata]
) -> SkillsMatrix:
    """
    Merge the matrix configuration with extracted skill metadata.

    Every reference is resolved to a canonical id, per-skill and matrix-level
    relationships are combined, and inverse relationships are computed in a
    single pass. Unresolvable references are kept as opaque ids.

    Args:
        config: Parsed matrix configuration
        skills: Extracted skill records

    Returns:
        Immutable SkillsMatrix
    """
    aliases = dict(config.skill_aliases)
    aliases_reverse = build_reverse_aliases(aliases)
    resolver = ReferenceResolver(aliases, skills)

    skill_fields: Dict[str, Dict[str, Any]] = {}
    for skill in skills:
        if skill.id in skill_fields:
            logger.warning("Duplicate skill id '%s'; keeping the last definition", skill.id)
        skill_fields[skill.id] = _build_skill_fields(skill, config, resolver, aliases_reverse)

    compute_inverse_relationships(skill_fields)

    matrix = SkillsMatrix(
        version=config.version,
        categories=dict(config.categories),
        skills={skill_id: ResolvedSkill(**fields) for skill_id, fields in skill_fields.items()},
        suggested_stacks=resolve_suggested_stacks(config, resolver),
        aliases=aliases,
        aliases_reverse=aliases_reverse,
    )

    logger.debug(
        "Merged skills matrix: %d categories, %d skills, %d stacks",
        len(matrix.categories),
        len(matrix.skills),
        len(matrix.suggested_stacks),
    )
    return matrix


def merge_local_skills(
    matrix: SkillsMatrix, local_skills: List[ExtractedSkillMetadata]
) -> SkillsMatrix:
    """
    Return a new matrix with project-local skills added.

    Local skills go into the "local/custom" subcategory, carry no
    relationships and are exempt from every compatibility check.
    """
    if not local_skills:
        return matrix

    categories = dict(matrix.categories)
    categories.setdefault(LOCAL_CATEGORY_TOP.id, LOCAL_CATEGORY_TOP)
    categories.setdefault(LOCAL_CATEGORY_CUSTOM.id, LOCAL_CATEGORY_CUSTOM)

    skills = dict(matrix.skills)
    for metadata in local_skills:
        skills[metadata.id] = ResolvedSkill(
            id=metadata.id,
            name=metadata.name,
            description=metadata.description,
            usage_guidance=metadata.usage_guidance,
            category=LOCAL_CATEGORY_CUSTOM.id,
            category_exclusive=False,
            tags=list(metadata.tags),
            author=LOCAL_AUTHOR,
            path=metadata.path,
            local=True,
            local_path=metadata.local_path or metadata.path,
        )
        logger.debug("Added local skill: %s", metadata.id)

    return SkillsMatrix(
        version=matrix.version,
        categories=categories,
        skills=skills,
        suggested_stacks=list(matrix.suggested_stacks),
        aliases=dict(matrix.aliases),
        aliases_reverse=dict(matrix.aliases_reverse),
        generated_at=matrix.generated_at,
    )


def _category_from_id(full_id: str, categories: Dict[str, CategoryDefinition]) -> str:
    """
    Guess a leaf category from a path-shaped skill id.

    "frontend/styling/scss-modules (@vince)" -> "styling"
    """
    parts = full_id.split("/")
    for part in reversed(parts[:-1]):
        if part in categories and categories[part].parent:
            return part
    return parts[1] if len(parts) >= 3 else "unknown"


def build_mvp_matrix(config: SkillsMatrixConfig, author: Optional[str] = None) -> SkillsMatrix:
    """
    Build a matrix from the configuration alone.

    One synthetic skill is created for every alias, with the category taken
    from the id path. Useful when no skill records are available.
    """
    records: List[ExtractedSkillMetadata] = []
    for full_id in dict.fromkeys(config.skill_aliases.values()):
        category = _category_from_id(full_id, config.categories)
        category_def = config.categories.get(category)
        name = extract_display_name(full_id)
        records.append(
            ExtractedSkillMetadata(
                id=full_id,
                directory_path=full_id,
                name=name,
                description=f"{name} skill",
                category=category,
                category_exclusive=category_def.exclusive if category_def else True,
                author=author or "",
                path=f"skills/{full_id}/",
            )
        )

    logger.debug("Built MVP matrix with %d synthetic skills", len(records))
    return merge_matrix_with_skills(config, records)
