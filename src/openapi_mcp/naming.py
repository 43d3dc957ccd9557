"""Unique operation name allocation."""

from __future__ import annotations

from typing import List, Set


class NameAllocator:
    """Hands out unique names in first-seen order.

    A proposed name is returned unchanged the first time; later collisions get
    ``-2``, ``-3``, ... appended. The same sequence of proposals always yields
    the same names, which keeps tool names stable across restarts.
    """

    def __init__(self) -> None:
        self._used: Set[str] = set()
        self._issued: List[str] = []

    def allocate(self, base: str) -> str:
        name = base
        suffix = 2
        while name in self._used:
            name = f"{base}-{suffix}"
            suffix += 1
        self._used.add(name)
        self._issued.append(name)
        return name

    def __contains__(self, name: object) -> bool:
        return name in self._used

    def __len__(self) -> int:
        return len(self._issued)

    @property
    def issued(self) -> List[str]:
        return list(self._issued)
