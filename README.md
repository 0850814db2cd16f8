# interleave

`interleave` holds the runtime bookkeeping of a permutation tester for
concurrent code: vector clocks, synchronisation points, an object arena, the
set of modelled threads, a cooperative scheduler for them, and the execution
path that a depth-first search walks to visit every distinct interleaving.

It has no dependencies outside the standard library.

## Modules

### `interleave.vv`

`VersionVec` is a vector clock with one `u16` counter per modelled thread
(five slots by default, `MAX_THREADS`). `inc(thread_id)` bumps one counter,
`join(other)` takes the element-wise maximum in place, `ahead(other)` returns
the first index where `other` is ahead, and `partial_cmp(other)` returns
`-1`, `0` or `1`, or `None` when the two clocks are concurrent. The `<`,
`<=`, `>` and `>=` operators follow `partial_cmp`. `copy()` returns an
independent clock and `versions(execution_id)` yields `(ThreadId, version)`
pairs.

```python
from interleave.vv import VersionVec

a = VersionVec()
a.inc(0)
b = VersionVec()
b.inc(1)
a.partial_cmp(b)   # None: concurrent
a.join(b)
list(a)            # [1, 1, 0, 0, 0]
```

### `interleave.num`

`NumericKind` names the value types an atomic cell can hold (`U8` … `U64`,
`USIZE`, `I8` … `I64`, `ISIZE`, `PTR`, `BOOL`). `into_u64(value)` packs a
value into its 64-bit representation, raising `ValueError` when it is out of
range for the kind; `from_u64(src)` truncates a 64-bit value back to the
kind, sign-extending signed kinds and mapping any non-zero value to `True`
for `BOOL`.

### `interleave.synchronize`

`Ordering` lists the memory orderings (`RELAXED`, `RELEASE`, `ACQUIRE`,
`ACQ_REL`, `SEQ_CST`). `Synchronize` is a synchronisation point:
`sync_store(threads, order)` always folds the active thread's `released`
clock into the point and, for release orderings, its causality as well;
`sync_load(threads, order)` joins the point's clock into the active thread's
causality for acquire orderings. Sequentially consistent accesses also call
`threads.seq_cst()`. Anything that is not an `Ordering` raises `ValueError`.

### `interleave.objects`

`Store` is an append-only arena. `insert(item)` returns a `Ref` carrying the
item's type; `get(ref)` checks that type, `downcast(ref, kind)` returns a
typed `Ref` or `None`, `iter_ref(kind)` and `iter_objects(kind)` list
entries of one type in insertion order, and `truncate(ref)` drops everything
stored after `ref`. `Ref.erase()` drops the type marker; references compare
equal by index only. An `Operation` records the object a thread is about to
touch, the `Action` (with its `ActionKind`) and a location.

### `interleave.threads`

`ThreadSet` holds the `Thread`s of one execution and which one is active.
`new_thread()` adds a thread and raises `RuntimeError` past the thread limit;
`is_complete()` is true once no thread is active, and raises if any thread is
not terminated. Each `Thread` has a `ThreadState` (runnable, blocked,
yielded, terminated), causality, release and DPOR clocks, a pending
`operation`, and thread-local values. `ThreadSet.unpark(thread_id)` joins the
active thread's causality into the target and makes it runnable, or records
the unpark for later if it already is. `local(key)` raises `KeyError` for a
value never set and `AccessError` after `Thread.drop_locals()` has torn the
values down. `seq_cst()` only counts the point and leaves causality alone;
`seq_cst_fence()` synchronises the active thread with a shared clock.

### `interleave.scheduler`

`Scheduler(capacity).run(execution, f)` runs `f` as the first modelled
thread and keeps resuming whichever thread `execution.threads.active_id()`
names until `execution.threads.is_complete()` is true. Each modelled thread
runs on its own OS thread, but only one runs at a time: it gives control back
with `Scheduler.switch()`. Inside a running thread,
`Scheduler.with_execution(f)` calls `f` with the execution and
`Scheduler.spawn(f, stack_size)` queues a new thread, which is added after the
current step and raises `RuntimeError` if it would exceed `capacity`.
Calling these from outside a running model raises `RuntimeError`. An
exception raised in a modelled thread propagates out of `run`.

### `interleave.path`

`Path` records every branch point of one execution: `Schedule` (which thread
runs next, with a `BranchThread` state per thread), `Load` (which earlier
store an atomic load reads) and `Spurious` (whether a wait wakes up without a
notification). `branch_thread`, `push_load`/`branch_load` and
`branch_spurious` replay recorded choices and add new branches at the end.
`step()` advances depth-first to the next unexplored alternative and returns
`False` once everything is covered. `backtrack(point, thread_id)` marks a
thread for exploration at the nearest exploring schedule, honouring an
optional preemption bound. `critical()`, `explore_state()` and
`skip_branch()` switch exploration off and on.

```python
from interleave.path import BranchThread, Path

path = Path(max_branches=100)
path.branch_thread("run", [BranchThread.ACTIVE, BranchThread.PENDING])  # Id(0)
path.step()                                                              # True
path.branch_thread("run", [])                                            # Id(1)
path.step()                                                              # False
```

## Limits

A thread set holds at most `max_threads` threads (five by default, counting
the first), and a load chooses among at most `max_atomic_history` stores
(seven by default). A model that branches more often than its `Path` allows —
typically a spin loop waiting for another thread — raises `RuntimeError`
saying that the maximum number of branches was exceeded. A model whose
replayed run meets a different kind of branch than was recorded raises
`RuntimeError` asking whether the model is fully deterministic.

## What this package does not do

It provides the runtime state only. There is no entry point that runs a model
repeatedly, no execution object tying a `Path`, a `ThreadSet` and a `Store`
together, and no user-facing primitives such as mutexes, condition variables,
channels, atomics or reference-counted pointers built on top of them; the
caller supplies those. There is no command-line tool.