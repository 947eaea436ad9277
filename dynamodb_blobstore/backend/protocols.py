"""
Capability interface between a generic key-value store and its backing storage.

A generic store layer (keyed get/assoc/update, serialization, locking
policy) drives storage exclusively through these methods. Every method takes
an ``opts`` mapping whose ``sync`` flag selects blocking or awaitable
execution; see core.execution.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

Opts = Optional[Mapping[str, Any]]


class BackingLock(ABC):
    """Lock handed out by BackingBlob.get_lock()."""

    @abstractmethod
    def release(self, opts: Opts = None):
        """Release the lock."""


class BackingBlob(ABC):
    """Handle for reading one row, or staging and committing one row."""

    @abstractmethod
    def sync(self, opts: Opts = None):
        """Commit the staged header, meta and value as one row."""

    @abstractmethod
    def close(self, opts: Opts = None):
        """Release resources held by the handle."""

    @abstractmethod
    def get_lock(self, opts: Opts = None) -> BackingLock:
        """Acquire the lock guarding a write."""

    @abstractmethod
    def read_header(self, opts: Opts = None) -> bytes:
        """Return the header bytes."""

    @abstractmethod
    def read_meta(self, meta_size: Optional[int] = None, opts: Opts = None) -> bytes:
        """Return the metadata bytes."""

    @abstractmethod
    def read_value(self, meta_size: Optional[int] = None, opts: Opts = None) -> bytes:
        """Return the value bytes."""

    @abstractmethod
    def read_binary(self, meta_size: Optional[int], locked_cb: Callable[[Any], Any], opts: Opts = None):
        """Expose the value as a stream to locked_cb and return its result."""

    @abstractmethod
    def write_header(self, header: bytes, opts: Opts = None):
        """Stage the header."""

    @abstractmethod
    def write_meta(self, meta: bytes, opts: Opts = None):
        """Stage the metadata."""

    @abstractmethod
    def write_value(self, value: bytes, meta_size: Optional[int] = None, opts: Opts = None):
        """Stage the value."""

    @abstractmethod
    def write_binary(self, meta_size: Optional[int], blob: bytes, opts: Opts = None):
        """Stage a raw binary value."""


class BackingStore(ABC):
    """Single-key operations every backing store provides."""

    @abstractmethod
    def create_blob(self, store_key: str, opts: Opts = None) -> BackingBlob:
        """Return a fresh blob handle for store_key."""

    @abstractmethod
    def delete_blob(self, store_key: str, opts: Opts = None):
        """Remove store_key; absent keys are not an error."""

    @abstractmethod
    def blob_exists(self, store_key: str, opts: Opts = None) -> bool:
        """Return True iff store_key holds a row."""

    @abstractmethod
    def copy(self, from_key: str, to_key: str, opts: Opts = None):
        """Copy the row at from_key to to_key."""

    @abstractmethod
    def atomic_move(self, from_key: str, to_key: str, opts: Opts = None):
        """Move the row at from_key to to_key."""

    @abstractmethod
    def create_store(self, opts: Opts = None):
        """Prepare the storage for use."""

    @abstractmethod
    def sync_store(self, opts: Opts = None):
        """Flush store-level state."""

    @abstractmethod
    def delete_store(self, opts: Opts = None):
        """Tear the storage down."""

    @abstractmethod
    def keys(self, opts: Opts = None) -> List[str]:
        """Return every stored key."""

    @abstractmethod
    def migratable(self, key: Any, store_key: str, opts: Opts = None):
        """Return a migration key if key is stored in a legacy layout."""

    @abstractmethod
    def migrate(self, migration_key: Any, key_vec: Any, serializer: Any,
                read_handlers: Any, write_handlers: Any, opts: Opts = None):
        """Migrate a legacy entry."""


class MultiKeyBackingStore(BackingStore):
    """Optional extension for stores with batched, atomic multi-key operations."""

    @abstractmethod
    def multi_write(self, rows: Mapping[str, Mapping[str, bytes]], opts: Opts = None) -> Dict[str, bool]:
        """Atomically write {key: {header, meta, value}} for every key."""

    @abstractmethod
    def multi_delete(self, store_keys: Iterable[str], opts: Opts = None) -> Dict[str, bool]:
        """Atomically delete every existing key; report which ones existed."""

    @abstractmethod
    def multi_read(self, store_keys: Iterable[str], opts: Opts = None) -> Dict[str, BackingBlob]:
        """Fetch many rows at once; absent keys are omitted."""
