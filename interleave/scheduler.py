"""Runs modeled threads as cooperatively scheduled coroutines."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

R = TypeVar("R")

_OUTSIDE_MODEL = (
    "cannot access the execution state from outside a model. "
    "are you using a modeled synchronization primitive outside a model run?"
)

_local = threading.local()
_stack_size_lock = threading.Lock()


class _Abort(BaseException):
    """Unwinds a suspended coroutine that will never be resumed."""


@dataclass
class _QueuedSpawn:
    f: Callable[[], Any]
    stack_size: int | None


@dataclass
class _State:
    execution: Any
    queued_spawn: deque


class _Cell:
    """Holds the state visible to coroutines while one of them runs."""

    def __init__(self) -> None:
        self.state: _State | None = None


class _Coroutine:
    """A function run on its own OS thread, but only while resumed."""

    def __init__(self, cell: _Cell, f: Callable[[], Any], stack_size: int | None) -> None:
        self._cell = cell
        self._f = f
        self._stack_size = stack_size
        self._go = threading.Semaphore(0)
        self._back = threading.Semaphore(0)
        self._thread: threading.Thread | None = None
        self._error: BaseException | None = None
        self._aborting = False
        self.done = False

    @property
    def started(self) -> bool:
        return self._thread is not None

    def resume(self) -> None:
        """Run until the coroutine switches out or finishes."""
        if self.done:
            return
        if self._thread is None:
            self._start()
        else:
            self._go.release()
        self._back.acquire()
        if self._error is not None:
            error, self._error = self._error, None
            raise error

    def suspend(self) -> None:
        """Hand control back to the resumer; called on the coroutine's thread."""
        self._back.release()
        self._go.acquire()
        if self._aborting:
            raise _Abort()

    def cancel(self) -> None:
        """Unwind the coroutine if it is suspended part-way through."""
        if self.done:
            return
        if self._thread is None:
            self.done = True
            return
        self._aborting = True
        self._go.release()
        self._back.acquire()
        self._error = None

    def _start(self) -> None:
        thread = threading.Thread(target=self._body, daemon=True)
        if self._stack_size is None:
            thread.start()
        else:
            with _stack_size_lock:
                previous = threading.stack_size(self._stack_size)
                try:
                    thread.start()
                finally:
                    threading.stack_size(previous)
        self._thread = thread

    def _body(self) -> None:
        _local.cell = self._cell
        _local.coroutine = self
        try:
            self._f()
        except _Abort:
            pass
        except BaseException as error:  # handed to the resumer
            self._error = error
        finally:
            self.done = True
            self._back.release()


class Scheduler:
    """Drives the threads of one execution, one step at a time."""

    def __init__(self, capacity: int) -> None:
        self.max_threads = capacity

    def __repr__(self) -> str:
        return f"Scheduler(max_threads={self.max_threads})"

    @staticmethod
    def with_execution(f: Callable[[Any], R]) -> R:
        """Call ``f`` with the execution of the running model."""
        return f(_current_state().execution)

    @staticmethod
    def switch() -> None:
        """Switch from the running modeled thread back to the scheduler."""
        coroutine = getattr(_local, "coroutine", None)
        if coroutine is None:
            raise RuntimeError(_OUTSIDE_MODEL)
        coroutine.suspend()

    @staticmethod
    def spawn(f: Callable[[], Any], stack_size: int | None = None) -> None:
        """Queue ``f`` to start as a new modeled thread."""
        _current_state().queued_spawn.append(_QueuedSpawn(f, stack_size))

    def run(self, execution: Any, f: Callable[[], Any]) -> None:
        """Run ``f`` and every thread it spawns until the execution completes."""
        cell = _Cell()
        threads = [_Coroutine(cell, f, None)]
        try:
            while True:
                if execution.threads.is_complete():
                    for thread in threads:
                        if thread.started:
                            thread.resume()
                        else:
                            thread.cancel()
                        if not thread.done:
                            raise RuntimeError("modeled thread did not finish")
                    return

                active = execution.threads.active_id()
                queued = self._tick(cell, threads[active.as_usize()], execution)

                for spawn in queued:
                    if len(threads) >= self.max_threads:
                        raise RuntimeError(
                            f"cannot run more than {self.max_threads} threads"
                        )
                    threads.append(_Coroutine(cell, spawn.f, spawn.stack_size))
        finally:
            for thread in threads:
                thread.cancel()

    @staticmethod
    def _tick(cell: _Cell, thread: _Coroutine, execution: Any) -> deque:
        queued: deque = deque()
        cell.state = _State(execution, queued)
        try:
            thread.resume()
        finally:
            cell.state = None
        return queued


def _current_state() -> _State:
    cell = getattr(_local, "cell", None)
    if cell is None or cell.state is None:
        raise RuntimeError(_OUTSIDE_MODEL)
    return cell.state