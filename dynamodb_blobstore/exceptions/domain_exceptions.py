"""
Domain-Specific Exceptions for the DynamoDB Blob Store

Every failure the backend surfaces extends BlobStoreError so callers can
catch the whole family at once, or pick out a single kind.

Organized by category:
1. Caller Errors (rejected locally, never sent to DynamoDB)
2. Resource Not Found Errors
3. Multi-Key Protocol Errors
4. Infrastructure and Retry Errors
"""

from typing import Any, Dict, Iterable, List, Optional

from .base import BlobStoreError


# =============================================================================
# Caller Errors
# =============================================================================

class ValidationError(BlobStoreError):
    """Raised when DynamoDB or the config layer rejects a request as malformed."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        self.errors = errors or {}
        context = {
            'validation_errors': self.errors
        }
        super().__init__(message, original_error, context)


class RowIncompleteError(BlobStoreError):
    """Raised when a blob is committed without header, meta and value all staged.

    No request is issued, so the remote row keeps whatever state it had before.
    """

    def __init__(self, key: str, missing_fields: Iterable[str]):
        """Initialize row incomplete error.

        Args:
            key: Store key of the blob being committed
            missing_fields: Names of the staged fields that were not set
        """
        self.key = key
        self.missing_fields = sorted(missing_fields)
        message = "Updating a row is only possible if header, meta, and value are set"
        context = {
            'key': key,
            'missing_fields': self.missing_fields
        }
        super().__init__(message, None, context)


class LimitExceededError(BlobStoreError):
    """Raised when a multi-key operation is given more keys than DynamoDB accepts.

    This is a caller error detected before any network call; retrying the same
    request can never succeed.
    """

    def __init__(self, operation: str, item_count: int, limit: int):
        """Initialize limit exceeded error.

        Args:
            operation: Name of the multi-key operation (e.g. "multi_write")
            item_count: Number of keys the caller supplied
            limit: Maximum number of keys the operation accepts
        """
        self.operation = operation
        self.item_count = item_count
        self.limit = limit
        message = f"{operation} supports at most {limit} keys, got {item_count}"
        context = {
            'operation': operation,
            'item_count': item_count,
            'limit': limit
        }
        super().__init__(message, None, context)


# =============================================================================
# Resource Not Found Errors
# =============================================================================

class ItemNotFoundError(BlobStoreError):
    """Raised when a blob field is read for a key that has no row."""

    def __init__(self, table_name: str, key: str, original_error: Optional[Exception] = None):
        """Initialize item not found error.

        Args:
            table_name: Name of the DynamoDB table
            key: The store key that was not found
            original_error: The original exception that caused this error
        """
        self.table_name = table_name
        self.key = key
        message = f"Item not found in table '{table_name}' with key: {key}"
        context = {
            'table_name': table_name,
            'key': key
        }
        super().__init__(message, original_error, context)


class TableNotFoundError(BlobStoreError):
    """Raised when the backing table does not exist.

    Absorbed by table_exists() and delete_store(); propagated everywhere else.
    """

    def __init__(self, table_name: str, message: Optional[str] = None, original_error: Optional[Exception] = None):
        self.table_name = table_name
        super().__init__(
            message or f"Table '{table_name}' does not exist",
            original_error,
            {'table_name': table_name}
        )


# =============================================================================
# Multi-Key Protocol Errors
# =============================================================================

class TransactionFailedError(BlobStoreError):
    """Raised when DynamoDB rejects or cancels a TransactWriteItems request.

    The transaction is all-or-nothing, so none of its items were applied.
    """

    def __init__(
        self,
        message: str,
        item_count: int,
        cancellation_reasons: Optional[List[Dict[str, Any]]] = None,
        original_error: Optional[Exception] = None
    ):
        """Initialize transaction failed error.

        Args:
            message: Human-readable error message
            item_count: Number of Put/Delete items in the transaction
            cancellation_reasons: Per-item reasons reported by DynamoDB
            original_error: The ClientError raised by boto3
        """
        self.item_count = item_count
        self.cancellation_reasons = cancellation_reasons or []
        context = {
            'item_count': item_count
        }
        if self.cancellation_reasons:
            context['cancellation_reasons'] = [reason.get('Code') for reason in self.cancellation_reasons]
        super().__init__(message, original_error, context)


class BatchReadError(BlobStoreError):
    """Raised when a BatchGetItem request fails or leaves keys unprocessed."""

    def __init__(
        self,
        message: str,
        item_count: int,
        unprocessed_count: int = 0,
        original_error: Optional[Exception] = None
    ):
        self.item_count = item_count
        self.unprocessed_count = unprocessed_count
        context = {
            'item_count': item_count
        }
        if unprocessed_count:
            context['unprocessed_count'] = unprocessed_count
        super().__init__(message, original_error, context)


class ConflictError(BlobStoreError):
    """Raised when DynamoDB reports a conflicting concurrent request.

    Used for:
    - TransactionConflictException outside a transaction
    - ResourceInUseException on table lifecycle operations
    """

    retryable = True

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


# =============================================================================
# Infrastructure and Retry Errors
# =============================================================================

class ConnectionError(BlobStoreError):
    """Raised when connection to DynamoDB fails.

    Used for:
    - Network connectivity issues
    - Authentication/authorization failures
    - Invalid endpoint configurations
    - Unrecognized service errors
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class RetryableError(BlobStoreError):
    """Raised when DynamoDB throttles or is temporarily unavailable.

    The backend itself never retries; the name tells the caller that a retry
    of its own may succeed.
    """

    retryable = True

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None, original_error: Optional[Exception] = None):
        self.retry_after_seconds = retry_after_seconds
        context = {}
        if retry_after_seconds:
            context['retry_after_seconds'] = retry_after_seconds
        super().__init__(message, original_error, context)
