"""A small set of device names that always iterates in sorted order."""

from __future__ import annotations

from typing import Iterable, Iterator


class DevSet:
    """Set of strings with deterministic (sorted) iteration.

    Used for matched devices, exclusions, loopback and point-to-point
    names alike.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[str] = ()):
        self._items: set[str] = set(items)

    def add(self, name: str) -> None:
        self._items.add(name)

    def add_all(self, names: Iterable[str]) -> None:
        self._items.update(names)

    def remove(self, name: str) -> None:
        """Remove name if present; removing an absent name is a no-op."""
        self._items.discard(name)

    def remove_all(self, names: Iterable[str]) -> None:
        for name in names:
            self.remove(name)

    def members(self) -> list[str]:
        return sorted(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self.members())

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, DevSet):
            return self._items == other._items
        if isinstance(other, (set, frozenset)):
            return self._items == other
        return NotImplemented

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"DevSet({self.members()!r})"
