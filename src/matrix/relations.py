"""SymmetricRelation - adjacency structure for bidirectional skill relationships."""

from typing import Dict, Iterable, List, Optional, Tuple


class SymmetricRelation:
    """
    Undirected relationship graph between skill ids.

    Conflicts and discourages are declared on one side but apply to both.
    Each edge keeps the reason declared by each endpoint, so a lookup can
    prefer the reason of the side being asked about.

    Example:
        conflicts = SymmetricRelation()
        conflicts.add("redux", "zustand", "Pick one state manager")

        conflicts.related("zustand", "redux")  # True
        conflicts.reason("zustand", "redux")   # "Pick one state manager"
    """

    def __init__(self) -> None:
        # declared[a][b] is the reason a gave for its relation to b
        self._declared: Dict[str, Dict[str, str]] = {}
        self._neighbours: Dict[str, List[str]] = {}

    def add(self, source: str, target: str, reason: str) -> None:
        """Record that `source` declared a relation to `target`."""
        if source == target:
            return

        declared = self._declared.setdefault(source, {})
        if target not in declared:
            declared[target] = reason

        self._link(source, target)
        self._link(target, source)

    def _link(self, a: str, b: str) -> None:
        neighbours = self._neighbours.setdefault(a, [])
        if b not in neighbours:
            neighbours.append(b)

    def related(self, a: str, b: str) -> bool:
        """True if either side declared a relation to the other."""
        return b in self._neighbours.get(a, ())

    def reason(self, a: str, b: str) -> Optional[str]:
        """
        Reason for the relation between `a` and `b`.

        Prefers the reason `a` declared, then the one `b` declared.
        Returns None when the two are unrelated.
        """
        own = self._declared.get(a, {}).get(b)
        if own is not None:
            return own
        return self._declared.get(b, {}).get(a)

    def neighbours(self, skill_id: str) -> List[str]:
        """All ids related to `skill_id`, in insertion order."""
        return list(self._neighbours.get(skill_id, ()))

    def first_related(self, skill_id: str, others: Iterable[str]) -> Optional[str]:
        """First id in `others` related to `skill_id`, or None."""
        for other in others:
            if self.related(skill_id, other):
                return other
        return None

    def pairs_within(self, ids: Iterable[str]) -> List[Tuple[str, str]]:
        """
        Every related pair among `ids`, each pair reported once.

        Pairs follow the order of `ids`: (earlier, later).
        """
        ordered = list(dict.fromkeys(ids))
        pairs: List[Tuple[str, str]] = []
        for i, a in enumerate(ordered):
            for b in ordered[i + 1 :]:
                if self.related(a, b):
                    pairs.append((a, b))
        return pairs

    def __contains__(self, skill_id: str) -> bool:
        return bool(self._neighbours.get(skill_id))

    def __len__(self) -> int:
        """Number of undirected edges."""
        return sum(len(n) for n in self._neighbours.values()) // 2
