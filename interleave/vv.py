"""Version vectors tracking causality between modeled threads."""

from __future__ import annotations

import operator
from collections.abc import Iterator

MAX_THREADS = 5
_VERSION_MAX = 0xFFFF


class VersionVec:
    """A fixed-size vector of per-thread u16 versions."""

    __slots__ = ("_versions",)

    def __init__(self, size: int = MAX_THREADS) -> None:
        if size < 0:
            raise ValueError("size must not be negative")
        self._versions = [0] * size

    def __len__(self) -> int:
        return len(self._versions)

    def __iter__(self) -> Iterator[int]:
        return iter(self._versions)

    def __getitem__(self, thread_id) -> int:
        return self._versions[operator.index(thread_id)]

    def __setitem__(self, thread_id, version: int) -> None:
        if not 0 <= version <= _VERSION_MAX:
            raise ValueError(f"version {version} does not fit in u16")
        self._versions[operator.index(thread_id)] = version

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionVec):
            return NotImplemented
        return self._versions == other._versions

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"VersionVec({self._versions!r})"

    def copy(self) -> VersionVec:
        """Return an independent copy."""
        clone = VersionVec(0)
        clone._versions = list(self._versions)
        return clone

    def versions(self, execution_id):
        """Yield ``(thread id, version)`` pairs for every slot."""
        from .threads import ThreadId

        for index, version in enumerate(self._versions):
            yield ThreadId(execution_id, index), version

    def inc(self, thread_id) -> None:
        """Increment the version of one thread."""
        index = operator.index(thread_id)
        if self._versions[index] >= _VERSION_MAX:
            raise OverflowError("version counter overflow")
        self._versions[index] += 1

    def join(self, other: VersionVec) -> None:
        """Take the element-wise maximum with ``other`` in place."""
        self._check_size(other)
        self._versions = [max(a, b) for a, b in zip(self._versions, other._versions)]

    def ahead(self, other: VersionVec) -> int | None:
        """Return the first thread index where ``other`` is ahead of this vector."""
        self._check_size(other)
        return next(
            (i for i, (a, b) in enumerate(zip(self._versions, other._versions)) if a < b),
            None,
        )

    def partial_cmp(self, other: VersionVec) -> int | None:
        """Return -1, 0 or 1 for the causal order, or None if concurrent."""
        self._check_size(other)
        result = 0
        for a, b in zip(self._versions, other._versions):
            if a == b:
                continue
            step = -1 if a < b else 1
            if result == -step:
                return None
            result = step
        return result

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionVec):
            return NotImplemented
        return self.partial_cmp(other) == -1

    def __le__(self, other: object) -> bool:
        if not isinstance(other, VersionVec):
            return NotImplemented
        return self.partial_cmp(other) in (-1, 0)

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, VersionVec):
            return NotImplemented
        return self.partial_cmp(other) == 1

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, VersionVec):
            return NotImplemented
        return self.partial_cmp(other) in (1, 0)

    def _check_size(self, other: VersionVec) -> None:
        if len(self._versions) != len(other._versions):
            raise ValueError("version vectors differ in size")