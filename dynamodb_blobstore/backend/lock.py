"""Lock stand-in for blobs.

A single PutItem is already atomic per row, so the store hands out a lock
that is always held and releases for free. It provides NO mutual exclusion:
concurrent writers to the same key race and the last PutItem to land wins.
"""

from ..core import dual_mode
from .protocols import BackingLock


class NoOpLock(BackingLock):
    """Always-acquired lock marker."""

    def __bool__(self) -> bool:
        return True

    @dual_mode
    def release(self):
        return None

    def __repr__(self) -> str:
        return "NoOpLock()"


NO_OP_LOCK = NoOpLock()
