"""Synchronization points that transfer causality between threads."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from .vv import MAX_THREADS, VersionVec


class Ordering(Enum):
    """Memory ordering of an atomic access."""

    RELAXED = "relaxed"
    RELEASE = "release"
    ACQUIRE = "acquire"
    ACQ_REL = "acq_rel"
    SEQ_CST = "seq_cst"


class _ThreadLike(Protocol):
    causality: VersionVec
    released: VersionVec


class _ThreadSetLike(Protocol):
    def active(self) -> _ThreadLike: ...

    def seq_cst(self) -> None: ...


def _check_order(order) -> Ordering:
    if not isinstance(order, Ordering):
        raise ValueError(f"unimplemented ordering {order!r}")
    return order


class Synchronize:
    """A synchronization point between threads.

    Loads update the active thread's causality from the stored causality;
    stores update the stored causality from the active thread.
    """

    __slots__ = ("happens_before",)

    def __init__(self, size: int = MAX_THREADS) -> None:
        self.happens_before = VersionVec(size)

    def __repr__(self) -> str:
        return f"Synchronize(happens_before={self.happens_before!r})"

    def sync_load(self, threads: _ThreadSetLike, order: Ordering) -> None:
        """Synchronize the active thread with this point on a load."""
        order = _check_order(order)
        if order in (Ordering.ACQUIRE, Ordering.ACQ_REL):
            self._sync_acq(threads)
        elif order is Ordering.SEQ_CST:
            self._sync_acq(threads)
            threads.seq_cst()

    def sync_store(self, threads: _ThreadSetLike, order: Ordering) -> None:
        """Synchronize this point with the active thread on a store."""
        order = _check_order(order)
        self.happens_before.join(threads.active().released)
        if order in (Ordering.RELEASE, Ordering.ACQ_REL):
            self._sync_rel(threads)
        elif order is Ordering.SEQ_CST:
            self._sync_rel(threads)
            threads.seq_cst()

    def _sync_acq(self, threads: _ThreadSetLike) -> None:
        threads.active().causality.join(self.happens_before)

    def _sync_rel(self, threads: _ThreadSetLike) -> None:
        self.happens_before.join(threads.active().causality)