"""
Backing store implementation for a generic key-value store layer.

- DynamoDBStore: single-key and multi-key operations over one table
- DynamoDBBlob: per-operation staging/read handle for one row
- NoOpLock: lock stand-in (no mutual exclusion, last writer wins)
- Protocols: the capability interface the generic layer calls
"""

from .blob import BinaryPayload, DynamoDBBlob
from .lock import NO_OP_LOCK, NoOpLock
from .protocols import BackingBlob, BackingLock, BackingStore, MultiKeyBackingStore
from .store import STORE_LAYOUT, DynamoDBStore

__all__ = [
    "BackingBlob",
    "BackingLock",
    "BackingStore",
    "BinaryPayload",
    "DynamoDBBlob",
    "DynamoDBStore",
    "MultiKeyBackingStore",
    "NO_OP_LOCK",
    "NoOpLock",
    "STORE_LAYOUT",
]
