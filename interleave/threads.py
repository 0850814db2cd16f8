"""Modeled threads and the set of threads taking part in one execution."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .objects import Operation
from .vv import MAX_THREADS, VersionVec


@dataclass(frozen=True, repr=False)
class ThreadId:
    """Identifies a modeled thread within one execution."""

    execution_id: Any
    id: int

    def public_id(self) -> int:
        """Return the integer id, unique within the current execution."""
        return self.id

    def as_usize(self) -> int:
        return self.id

    def __index__(self) -> int:
        return self.id

    def __str__(self) -> str:
        return str(self.id)

    def __repr__(self) -> str:
        return f"Id({self.id})"


class _StateKind(Enum):
    RUNNABLE = "runnable"
    BLOCKED = "blocked"
    YIELD = "yield"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class ThreadState:
    """Whether a thread is runnable, blocked, yielding or terminated."""

    kind: _StateKind
    unparked: bool = False
    location: Any = None

    @classmethod
    def runnable(cls, unparked: bool = False) -> ThreadState:
        return cls(_StateKind.RUNNABLE, unparked=unparked)

    @classmethod
    def blocked(cls, location: Any) -> ThreadState:
        return cls(_StateKind.BLOCKED, location=location)

    @classmethod
    def yielding(cls) -> ThreadState:
        return cls(_StateKind.YIELD)

    @classmethod
    def terminated(cls) -> ThreadState:
        return cls(_StateKind.TERMINATED)


class AccessError(Exception):
    """A thread-local value was accessed during or after its destruction."""

    def __init__(self) -> None:
        super().__init__("already destroyed")


class _Destroyed:
    __slots__ = ()


_DESTROYED = _Destroyed()


class Thread:
    """State tracked for one modeled thread."""

    def __init__(self, thread_id: ThreadId, size: int = MAX_THREADS) -> None:
        self.id = thread_id
        self.state = ThreadState.runnable()
        self.critical = False
        self.operation: Operation | None = None
        self.causality = VersionVec(size)
        self.released = VersionVec(size)
        self.dpor_vv = VersionVec(size)
        self.last_yield: int | None = None
        self.yield_count = 0
        self._locals: dict[Any, Any] = {}

    def __repr__(self) -> str:
        return (
            f"Thread(id={self.id!r}, state={self.state!r}, critical={self.critical!r}, "
            f"operation={self.operation!r}, causality={self.causality!r}, "
            f"released={self.released!r}, dpor_vv={self.dpor_vv!r}, "
            f"last_yield={self.last_yield!r}, yield_count={self.yield_count!r}, "
            "locals=[..locals..])"
        )

    def is_runnable(self) -> bool:
        return self.state.kind is _StateKind.RUNNABLE

    def set_runnable(self) -> None:
        self.state = ThreadState.runnable()

    def set_blocked(self, location: Any) -> None:
        self.state = ThreadState.blocked(location)

    def is_blocked(self) -> bool:
        return self.state.kind is _StateKind.BLOCKED

    def is_yield(self) -> bool:
        return self.state.kind is _StateKind.YIELD

    def set_yield(self) -> None:
        self.state = ThreadState.yielding()
        self.last_yield = self.causality[self.id]
        self.yield_count += 1

    def is_terminated(self) -> bool:
        return self.state.kind is _StateKind.TERMINATED

    def set_terminated(self) -> None:
        self.state = ThreadState.terminated()

    def drop_locals(self) -> list[Any]:
        """Destroy every thread-local value and return the values taken out."""
        taken = [value for value in self._locals.values() if value is not _DESTROYED]
        self._locals = dict.fromkeys(self._locals, _DESTROYED)
        return taken

    def unpark(self, unparker: Thread) -> None:
        """Unpark this thread, synchronizing with ``unparker``."""
        self.causality.join(unparker.causality)
        self._set_unparked()

    def _set_unparked(self) -> None:
        if self.is_blocked() or self.is_yield():
            self.set_runnable()
        elif self.is_runnable():
            self.state = ThreadState.runnable(unparked=True)


class ThreadSet:
    """All threads of one execution, with the currently scheduled one."""

    def __init__(self, execution_id: Any, max_threads: int = MAX_THREADS) -> None:
        if max_threads < 1:
            raise ValueError("a thread set holds at least one thread")
        self._max_threads = max_threads
        self._execution_id = execution_id
        self._threads = [Thread(ThreadId(execution_id, 0), max_threads)]
        self._active: int | None = 0
        self.seq_cst_causality = VersionVec(max_threads)
        self.seq_cst_points = 0

    def __repr__(self) -> str:
        return (
            f"ThreadSet(execution_id={self._execution_id!r}, threads={self._threads!r}, "
            f"active={self._active!r})"
        )

    @property
    def execution_id(self) -> Any:
        return self._execution_id

    @property
    def max_threads(self) -> int:
        return self._max_threads

    def __len__(self) -> int:
        return len(self._threads)

    def __getitem__(self, thread_id: ThreadId) -> Thread:
        return self._threads[thread_id.id]

    def __iter__(self) -> Iterator[tuple[ThreadId, Thread]]:
        for index, thread in enumerate(self._threads):
            yield ThreadId(self._execution_id, index), thread

    def new_thread(self) -> ThreadId:
        """Create a new thread and return its id."""
        if len(self._threads) >= self._max_threads:
            raise RuntimeError(
                f"cannot spawn more than {self._max_threads} threads in one execution"
            )
        thread_id = ThreadId(self._execution_id, len(self._threads))
        self._threads.append(Thread(thread_id, self._max_threads))
        return thread_id

    def is_active(self) -> bool:
        return self._active is not None

    def is_complete(self) -> bool:
        """Return True when no thread is active; all must then be terminated."""
        if self._active is not None:
            return False
        for thread in self._threads:
            if not thread.is_terminated():
                raise RuntimeError(f"thread not terminated; {thread!r}")
        return True

    def active_id(self) -> ThreadId:
        return ThreadId(self._execution_id, self._active_index())

    def active(self) -> Thread:
        return self._threads[self._active_index()]

    def set_active(self, thread_id: ThreadId | None) -> None:
        self._active = None if thread_id is None else thread_id.id

    def active_causality_inc(self) -> None:
        thread_id = self.active_id()
        self.active().causality.inc(thread_id)

    def active_atomic_version(self) -> int:
        return self.active().causality[self.active_id()]

    def unpark(self, thread_id: ThreadId) -> None:
        """Unpark ``thread_id`` on behalf of the active thread."""
        active = self.active()
        if thread_id == self.active_id():
            # A thread unparking itself has no causality to join.
            active._set_unparked()
            return
        self._threads[thread_id.id].unpark(active)

    def seq_cst(self) -> None:
        """Record a point of sequential consistency.

        Causality is deliberately left untouched: modeling sequentially
        consistent accesses here was unsound, so only the point is counted.
        Use :meth:`seq_cst_fence` for a real sequentially consistent fence.
        """
        self.seq_cst_points += 1

    def seq_cst_fence(self) -> None:
        active = self.active()
        active.causality.join(self.seq_cst_causality)
        self.seq_cst_causality.join(active.causality)

    def clear(self, execution_id: Any) -> None:
        """Reset to a single runnable thread for a new execution."""
        self._execution_id = execution_id
        self._threads = [Thread(ThreadId(execution_id, 0), self._max_threads)]
        self._active = 0
        self.seq_cst_causality = VersionVec(self._max_threads)
        self.seq_cst_points = 0

    def split_active(self) -> tuple[Thread, Iterator[Thread]]:
        """Return the active thread and an iterator over all the others."""
        index = self._active_index()
        others = (thread for i, thread in enumerate(self._threads) if i != index)
        return self._threads[index], others

    def local(self, key: Any) -> Any:
        """Return the active thread's value for ``key``.

        Raises KeyError if it was never initialized and AccessError if it
        has been destroyed.
        """
        value = self.active()._locals[key]
        if value is _DESTROYED:
            raise AccessError()
        return value

    def local_init(self, key: Any, value: Any) -> None:
        locals_ = self.active()._locals
        if key in locals_:
            raise ValueError(f"thread local {key!r} is already initialized")
        locals_[key] = value

    def _active_index(self) -> int:
        if self._active is None:
            raise RuntimeError("no thread is active")
        return self._active