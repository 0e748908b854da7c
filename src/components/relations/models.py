from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RelationDiff:
    """Junction rows to insert and delete for one parent and one relation key."""

    to_add: tuple[str, ...]
    to_remove: tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove


@dataclass(frozen=True)
class RelationError:
    """A rejected relation list."""

    key: str
    message: str
