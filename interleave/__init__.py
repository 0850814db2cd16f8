"""Runtime core for permutation testing of concurrent code: version vectors,
synchronisation points, an object store, modelled threads, a cooperative
scheduler and the explored execution path."""

__version__ = "0.7.2"

__all__ = ["num", "vv", "synchronize", "objects", "threads", "scheduler", "path"]