"""Execution paths: the sequence of branch points explored by the model checker."""

from __future__ import annotations

import operator
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .objects import Ref, Store
from .threads import ThreadId
from .vv import MAX_THREADS

DEFAULT_MAX_ATOMIC_HISTORY = 7

_UNEXPECTED_STATE = (
    "Reached unexpected exploration state. Is the model fully deterministic?"
)
_TOO_MANY_BRANCHES = (
    "Model exceeded maximum number of branches. This is often caused by an "
    "algorithm requiring the processor to make progress, e.g. spin locks."
)


class BranchThread(Enum):
    """Exploration state of one thread at a scheduling branch."""

    DISABLED = "disabled"
    SKIP = "skip"
    YIELD = "yield"
    PENDING = "pending"
    ACTIVE = "active"
    VISITED = "visited"

    def explored(self) -> BranchThread:
        """Return the state after marking this thread for exploration."""
        return BranchThread.PENDING if self is BranchThread.SKIP else self

    @property
    def is_pending(self) -> bool:
        return self is BranchThread.PENDING

    @property
    def is_active(self) -> bool:
        return self is BranchThread.ACTIVE

    @property
    def is_enabled(self) -> bool:
        return self is not BranchThread.DISABLED


@dataclass
class Schedule:
    """A branch point choosing which thread runs next."""

    preemptions: int = 0
    initial_active: int | None = None
    threads: list[BranchThread] = field(
        default_factory=lambda: [BranchThread.DISABLED] * MAX_THREADS
    )
    prev: Ref | None = None
    exploring: bool = True

    def active_thread_index(self) -> int | None:
        """Return the index of the currently active thread, if any."""
        return next(
            (index for index, th in enumerate(self.threads) if th.is_active), None
        )

    def current_preemptions(self) -> int:
        """Number of preemptions counting the current choice at this branch."""
        if (
            self.initial_active is not None
            and self.initial_active != self.active_thread_index()
        ):
            return self.preemptions + 1
        return self.preemptions

    def backtrack(self, thread_id: Any, preemption_bound: int | None) -> None:
        """Mark ``thread_id`` (or every thread, if it is disabled) for exploration."""
        if not self.exploring:
            raise RuntimeError("backtracking into a branch that is not exploring")

        if preemption_bound is not None:
            if self.preemptions > preemption_bound:
                raise RuntimeError(
                    f"preemptions exceed bound: actual = {self.preemptions}, "
                    f"bound = {preemption_bound}"
                )
            if self.preemptions == preemption_bound:
                return

        index = operator.index(thread_id)
        if index >= len(self.threads):
            return

        if self.threads[index].is_enabled:
            self.threads[index] = self.threads[index].explored()
        else:
            self.threads = [th.explored() for th in self.threads]


@dataclass
class Load:
    """A branch point choosing which store an atomic load observes."""

    values: list[int] = field(default_factory=list)
    pos: int = 0
    exploring: bool = True

    @property
    def len(self) -> int:
        return len(self.values)


@dataclass
class Spurious:
    """A branch point choosing whether a wait wakes up spuriously."""

    spur: bool = False
    exploring: bool = True


class Path:
    """The branches of one execution, explored depth first across runs."""

    def __init__(
        self,
        max_branches: int,
        preemption_bound: int | None = None,
        exploring: bool = True,
        max_atomic_history: int = DEFAULT_MAX_ATOMIC_HISTORY,
    ) -> None:
        self.preemption_bound = preemption_bound
        self.max_atomic_history = max_atomic_history
        self._pos = 0
        self._branches = Store(max_branches)
        self.exploring = exploring
        self.skipping = False
        self._exploring_on_start = exploring

    def __repr__(self) -> str:
        return (
            f"Path(pos={self._pos}, branches={self._branches!r}, "
            f"exploring={self.exploring}, skipping={self.skipping})"
        )

    def __len__(self) -> int:
        return len(self._branches)

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def max_branches(self) -> int:
        return self._branches.capacity

    def explore_state(self) -> None:
        """Leave a critical section and resume exploring."""
        if not self.skipping:
            if self.exploring:
                raise RuntimeError("not in critical state")
            self.exploring = True

    def critical(self) -> None:
        """Enter a critical section whose branches are not explored."""
        if not self.skipping:
            if not self.exploring:
                raise RuntimeError("not in exploring state")
            self.exploring = False

    def skip_branch(self) -> None:
        """Stop exploring the rest of the current execution."""
        self.exploring = False
        self.skipping = True

    def set_max_branches(self, max_branches: int) -> None:
        """Allow at least ``max_branches`` branches in total."""
        if max_branches < len(self._branches):
            raise ValueError("max_branches is below the number of recorded branches")
        self._branches.capacity = max(self._branches.capacity, max_branches)

    def is_traversed(self) -> bool:
        """True when the known path is used up and a new branch is reached."""
        return self._pos == len(self._branches)

    def push_load(self, seed: Iterable[int]) -> None:
        """Record a new atomic-load branch over the given store indices."""
        self._check_len()
        values = list(seed)
        for index, store in enumerate(values):
            if not 0 <= store < self.max_atomic_history:
                raise ValueError(
                    f"store = {store}; max = {self.max_atomic_history}"
                )
            if index >= self.max_atomic_history:
                raise ValueError(
                    f"i = {index}; max = {self.max_atomic_history}"
                )
        self._branches.insert(Load(values=values, exploring=self.exploring))

    def branch_load(self) -> int:
        """Return the index of the atomic write the next load reads."""
        if self.is_traversed():
            raise RuntimeError("no load branch recorded at this position")
        load = self._current(Load)
        self._pos += 1
        return load.values[load.pos]

    def branch_spurious(self) -> bool:
        """Return whether the next wait wakes up spuriously."""
        if self.is_traversed():
            self._check_len()
            self._branches.insert(Spurious(exploring=self.exploring))
        spurious = self._current(Spurious)
        self._pos += 1
        return spurious.spur

    def branch_thread(
        self, execution_id: Any, seed: Iterable[BranchThread]
    ) -> ThreadId | None:
        """Return the id of the thread to schedule next, or None."""
        if self.is_traversed():
            self._check_len()
            states = list(seed)
            if len(states) > MAX_THREADS:
                raise ValueError(f"at most {MAX_THREADS} threads can be scheduled")

            prev = self._last_schedule()
            threads = [BranchThread.DISABLED] * MAX_THREADS
            active: int | None = None
            for index, state in enumerate(states):
                threads[index] = state
                if state.is_active:
                    if active is not None:
                        raise ValueError("only one thread should start as active")
                    active = index

            if active is None:
                active = next(
                    (i for i, th in enumerate(threads) if th is BranchThread.YIELD),
                    None,
                )
                if active is not None:
                    threads[active] = BranchThread.ACTIVE

            initial_active = active
            preemptions = 0
            if prev is not None:
                prev_schedule = self._branches.get(prev)
                if initial_active != prev_schedule.active_thread_index():
                    initial_active = None
                preemptions = prev_schedule.current_preemptions()

            if self.preemption_bound is not None and preemptions > self.preemption_bound:
                raise RuntimeError(
                    f"preemptions exceed bound: max = {self.preemption_bound}; "
                    f"curr = {preemptions}"
                )

            self._branches.insert(
                Schedule(
                    preemptions=preemptions,
                    initial_active=initial_active,
                    threads=threads,
                    prev=prev,
                    exploring=self.exploring,
                )
            )

        schedule = self._current(Schedule)
        self._pos += 1
        index = schedule.active_thread_index()
        return None if index is None else ThreadId(execution_id, index)

    def backtrack(self, point: int, thread_id: Any) -> None:
        """Add ``thread_id`` as an alternative at the nearest exploring schedule."""
        schedule: Schedule | None = None
        while schedule is None:
            ref = self._branches.downcast(Ref(point), Schedule)
            if ref is not None:
                candidate = self._branches.get(ref)
                if candidate.exploring:
                    candidate.backtrack(thread_id, self.preemption_bound)
                    schedule = candidate
                    break
            if point == 0:
                return
            point -= 1

        curr = schedule.prev
        if curr is None or self.preemption_bound is None:
            return

        # Bounded search needs an extra conservative backtrack point to cover
        # interleavings the bound would otherwise cut off.
        while True:
            current = self._branches.get(curr)
            if current.prev is None:
                if current.exploring:
                    current.backtrack(thread_id, self.preemption_bound)
                return
            previous = self._branches.get(current.prev)
            if (
                current.active_thread_index() != previous.active_thread_index()
                and current.exploring
            ):
                current.backtrack(thread_id, self.preemption_bound)
                return
            curr = current.prev

    def step(self) -> bool:
        """Prepare the next execution; return False when everything is explored."""
        self._pos = 0
        self.exploring = self._exploring_on_start
        self.skipping = False

        for last in reversed(range(len(self._branches))):
            ref = Ref(last)
            self._branches.truncate(ref)
            entry = self._branches.get(ref)

            if isinstance(entry, Schedule):
                if not entry.exploring:
                    continue
                active = entry.active_thread_index()
                if active is not None:
                    entry.threads[active] = BranchThread.VISITED
                pending = next(
                    (i for i, th in enumerate(entry.threads) if th.is_pending), None
                )
                if pending is not None:
                    entry.threads[pending] = BranchThread.ACTIVE
                    return True
            elif isinstance(entry, Load):
                if not entry.exploring:
                    continue
                entry.pos += 1
                if entry.pos < entry.len:
                    return True
            elif isinstance(entry, Spurious):
                if not entry.exploring:
                    continue
                if not entry.spur:
                    entry.spur = True
                    return True
            else:
                raise RuntimeError(f"unexpected branch {entry!r}")

        return False

    def _current(self, kind: type) -> Any:
        ref = self._branches.downcast(Ref(self._pos), kind)
        if ref is None:
            raise RuntimeError(_UNEXPECTED_STATE)
        return self._branches.get(ref)

    def _check_len(self) -> None:
        if len(self._branches) >= self._branches.capacity:
            raise RuntimeError(_TOO_MANY_BRANCHES)

    def _last_schedule(self) -> Ref | None:
        refs = self._branches.iter_ref(Schedule)
        return refs[-1] if refs else None