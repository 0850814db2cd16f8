"""Storage for modeled objects and references into that storage."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, repr=False)
class Ref:
    """A reference to an entry in a :class:`Store`.

    ``kind`` records the referenced type; ``None`` means the type is unknown.
    Equality only considers the index.
    """

    index: int
    kind: type | None = field(default=None, compare=False)

    def erase(self) -> Ref:
        """Return the same reference without its type marker."""
        return Ref(self.index)

    def ref_eq(self, other: Ref) -> bool:
        """Return True if both references point at the same entry."""
        return self.index == other.index

    def __repr__(self) -> str:
        name = self.kind.__name__ if self.kind is not None else "()"
        return f"Ref<{name}>({self.index})"


class ActionKind(Enum):
    """The family of an action performed on an object."""

    ARC = "arc"
    ATOMIC = "atomic"
    CHANNEL = "channel"
    RWLOCK = "rwlock"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class Action:
    """An action on an object, with its family-specific detail."""

    kind: ActionKind
    detail: Any = None

    def __post_init__(self) -> None:
        if self.kind is ActionKind.OPAQUE and self.detail is not None:
            raise ValueError("an opaque action carries no detail")
        if self.kind is not ActionKind.OPAQUE and self.detail is None:
            raise ValueError(f"a {self.kind.value} action needs a detail")

    @classmethod
    def opaque(cls) -> Action:
        """A generic action with no specialized access dependencies."""
        return cls(ActionKind.OPAQUE)

    def unwrap(self, kind: ActionKind) -> Any:
        """Return the detail, requiring the action to be of ``kind``."""
        if self.kind is not kind:
            raise ValueError(f"expected a {kind.value} action, got {self.kind.value}")
        return self.detail


@dataclass(frozen=True)
class Operation:
    """An operation a thread is about to perform on an object."""

    obj: Ref
    action: Action
    location: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "obj", self.obj.erase())


class Store:
    """An append-only arena of objects addressed by :class:`Ref`."""

    def __init__(self, capacity: int = 0) -> None:
        self._entries: list[Any] = []
        self.capacity = capacity

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Store({self._entries!r})"

    def insert(self, item: Any) -> Ref:
        """Append an object and return a reference to it."""
        self._entries.append(item)
        return Ref(len(self._entries) - 1, type(item))

    def truncate(self, ref: Ref) -> None:
        """Drop every entry stored after ``ref``."""
        self._entries = self._entries[: ref.index + 1]

    def clear(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def get(self, ref: Ref) -> Any:
        """Return the object at ``ref``, checking its type when known."""
        entry = self._entries[ref.index]
        if ref.kind is not None and not isinstance(entry, ref.kind):
            raise TypeError(f"unexpected object stored at reference {ref!r}")
        return entry

    def downcast(self, ref: Ref, kind: type[T]) -> Ref | None:
        """Return a typed reference if the entry at ``ref`` is a ``kind``."""
        if isinstance(self._entries[ref.index], kind):
            return Ref(ref.index, kind)
        return None

    def iter_ref(self, kind: type[T]) -> list[Ref]:
        """Return references to every entry of ``kind``, in insertion order."""
        return [Ref(index, kind) for index, entry in enumerate(self._entries) if isinstance(entry, kind)]

    def iter_objects(self, kind: type[T]) -> Iterator[T]:
        """Yield every entry of ``kind``, in insertion order."""
        return (entry for entry in self._entries if isinstance(entry, kind))