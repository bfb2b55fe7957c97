"""A container that tracks whether its value has changed since last read."""

from __future__ import annotations

import copy
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class DirtyGuard(Generic[T]):
    """Holds a value together with a flag that is set whenever it changes."""

    __slots__ = ("data", "dirty")

    def __init__(self, data: T) -> None:
        self.data = data
        self.dirty = False

    def read(self) -> T:
        """Return the contained value, ignoring the dirty flag."""
        return self.data

    def try_read(self) -> T | None:
        """Return the value and clear the flag if dirty, else return None."""
        if self.dirty:
            self.dirty = False
            return self.data
        return None

    def write(self) -> DirtyGuardRef[T]:
        """Return an editable handle; changes are applied on commit or on exiting a with block."""
        return DirtyGuardRef(self)

    def is_dirty(self) -> bool:
        return self.dirty

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DirtyGuard):
            return NotImplemented
        return self.dirty == other.dirty and self.data == other.data

    def __repr__(self) -> str:
        return f"DirtyGuard(dirty={self.dirty!r}, data={self.data!r})"


class DirtyGuardRef(Generic[T]):
    """Working copy of a guarded value; committing it back marks the guard dirty if it differs."""

    __slots__ = ("guard", "data")

    def __init__(self, guard: DirtyGuard[T]) -> None:
        self.guard = guard
        self.data = copy.deepcopy(guard.data)

    def get(self) -> T:
        return self.data

    def set(self, data: T) -> None:
        self.data = data

    def commit(self) -> None:
        """Store the working copy into the guard, setting the flag if it changed."""
        if self.data != self.guard.data:
            self.guard.data = copy.deepcopy(self.data)
            self.guard.dirty = True

    def __enter__(self) -> DirtyGuardRef[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.commit()

    def __repr__(self) -> str:
        return f"DirtyGuardRef(data={self.data!r})"