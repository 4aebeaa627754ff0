"""Dependent closure - which selected skills break when a skill is removed."""

from collections import deque
from typing import Deque, List, Sequence, Set

from .models import SkillsMatrix
from .resolver import resolve_alias


def collect_all_dependents(
    skill_id: str, selection: Sequence[str], matrix: SkillsMatrix
) -> List[str]:
    """
    Collect every selected skill that becomes invalid if `skill_id` is removed.

    A selected skill is a dependent when one of its requirement groups names
    a removed skill and is no longer satisfied by what remains. Dependents
    are removed in turn and the search repeats breadth-first until nothing
    else breaks.

    Args:
        skill_id: Skill about to be removed
        selection: Current selection
        matrix: The skills matrix

    Returns:
        Dependents in traversal order, excluding `skill_id`; empty when
        removing it breaks nothing
    """
    root = resolve_alias(skill_id, matrix)
    selected = list(dict.fromkeys(resolve_alias(s, matrix) for s in selection))

    removed: Set[str] = {root}
    dependents: List[str] = []
    queue: Deque[str] = deque([root])

    while queue:
        current = queue.popleft()

        for candidate_id in selected:
            if candidate_id in removed:
                continue
            candidate = matrix.skills.get(candidate_id)
            if candidate is None or candidate.local:
                continue

            for requirement in candidate.requires:
                if current not in requirement.skill_ids:
                    continue
                if requirement.needs_any and any(
                    r in selected and r not in removed for r in requirement.skill_ids
                ):
                    continue
                removed.add(candidate_id)
                dependents.append(candidate_id)
                queue.append(candidate_id)
                break

    return dependents
