# Base exception class
from .base import BlobStoreError

# Domain-specific exceptions
from .domain_exceptions import (
    BatchReadError,
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

__all__ = [
    # Base exception
    "BlobStoreError",

    # Domain exceptions (alphabetically ordered)
    "BatchReadError",
    "ConflictError",
    "ConnectionError",
    "ItemNotFoundError",
    "LimitExceededError",
    "RetryableError",
    "RowIncompleteError",
    "TableNotFoundError",
    "TransactionFailedError",
    "ValidationError",
]
