"""
DynamoDB Blob Store

A backing store for generic key-value stores that keeps every entry as one
DynamoDB row (Key, Header, Meta, Value). Provides single-key blob CRUD,
copy/move, key listing and atomic multi-key write/delete/read, each runnable
as a blocking call or as an awaitable.
"""

from .config import BlobStoreConfig
from .exceptions import (
    BatchReadError,
    BlobStoreError,
    ConflictError,
    ConnectionError,
    ItemNotFoundError,
    LimitExceededError,
    RetryableError,
    RowIncompleteError,
    TableNotFoundError,
    TransactionFailedError,
    ValidationError,
)
from .core import (
    MAX_BATCH_ITEMS,
    TableGateway,
    create_table_gateway,
    dual_mode,
)
from .backend import (
    BinaryPayload,
    DynamoDBBlob,
    DynamoDBStore,
    NO_OP_LOCK,
    NoOpLock,
)
from .connection import connect_store, delete_store, release

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "BlobStoreConfig",

    # Exceptions
    "BatchReadError",
    "BlobStoreError",
    "ConflictError",
    "ConnectionError",
    "ItemNotFoundError",
    "LimitExceededError",
    "RetryableError",
    "RowIncompleteError",
    "TableNotFoundError",
    "TransactionFailedError",
    "ValidationError",

    # Gateway and execution
    "MAX_BATCH_ITEMS",
    "TableGateway",
    "create_table_gateway",
    "dual_mode",

    # Backend
    "BinaryPayload",
    "DynamoDBBlob",
    "DynamoDBStore",
    "NO_OP_LOCK",
    "NoOpLock",

    # Lifecycle
    "connect_store",
    "delete_store",
    "release",
]
