# ==============================================
# BoundedExampleSet
# ==============================================
#
# PURPOSE:
#   A small, capped collection of distinct example values (keys,
#   elements or hash values) kept for human-readable reports.
#
# SEMANTICS:
#   - add() is first-come: once the set holds `cap` members, new
#     members are ignored. Members are kept in insertion order.
#   - union() merges another set in WITHOUT enforcing the cap, so a
#     merged set may temporarily hold more than `cap` members.
#   - trim() produces a new set with at most `cap` members. Reports
#     call it right before rendering.
#
# ==============================================

from typing import Iterable, Iterator, List, Optional


class BoundedExampleSet:
    """
    Insertion-ordered set of strings with a soft size cap.

    The cap is enforced on add() and trim(), never on union().
    """

    def __init__(self, cap: int, members: Optional[Iterable[str]] = None):
        if cap < 0:
            raise ValueError("cap must be >= 0")
        self.cap = cap
        self._members: dict = {}
        for member in members or ():
            self.add(member)

    def add(self, member: str) -> bool:
        """
        Add a member if there is still room for it.

        Args:
            member: The example value to keep

        Returns:
            True if the member was added, False if it was already present
            or the set is full.
        """
        if member in self._members or len(self._members) >= self.cap:
            return False
        self._members[member] = None
        return True

    def union(self, other: Iterable[str]) -> "BoundedExampleSet":
        """
        Add every member of `other` in place, ignoring the cap.

        Returns:
            self, for chaining
        """
        for member in other:
            self._members.setdefault(member, None)
        return self

    def trim(self, n: Optional[int] = None) -> "BoundedExampleSet":
        """
        Return a new set holding the first `n` members (default: the cap).

        This set is left untouched.
        """
        limit = self.cap if n is None else n
        trimmed = BoundedExampleSet(self.cap)
        for member in self._members:
            if len(trimmed) >= limit:
                break
            trimmed._members[member] = None
        return trimmed

    def copy(self) -> "BoundedExampleSet":
        clone = BoundedExampleSet(self.cap)
        clone._members = dict(self._members)
        return clone

    def to_list(self) -> List[str]:
        return list(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __contains__(self, member: object) -> bool:
        return member in self._members

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoundedExampleSet):
            return NotImplemented
        return set(self._members) == set(other._members)

    def __repr__(self) -> str:
        return f"BoundedExampleSet(cap={self.cap}, members={self.to_list()!r})"
