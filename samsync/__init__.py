"""Event-loop synchronisation primitives (barrier, semaphore, condition variable) with cancellation support."""

__version__ = "0.1.0"
__all__ = [
    "barrier",
    "bench",
    "condition_variable",
    "context",
    "errors",
    "oplist",
    "semaphore",
]