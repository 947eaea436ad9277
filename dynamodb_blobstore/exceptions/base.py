from typing import Any, Dict, Optional


class BlobStoreError(Exception):
    """Root of every error the blob store raises.

    The store never retries. ``retryable`` tells the caller whether a retry
    of its own is worth attempting:

        try:
            store.multi_write(rows)
        except BlobStoreError as e:
            if not e.retryable:
                raise
            ...  # back off, then issue the same request again

    Attributes:
        message: Human-readable error message
        original_error: Underlying exception (usually a botocore ClientError)
        context: Keys, table names and counts describing the failed request
        retryable: Whether issuing the same request again may succeed
    """

    retryable = False

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        super().__init__(message)

    @property
    def error_code(self) -> Optional[str]:
        """DynamoDB error code of the underlying ClientError, if there is one."""
        response = getattr(self.original_error, 'response', None)
        if not isinstance(response, dict):
            return None
        return response.get('Error', {}).get('Code')

    def __str__(self) -> str:
        parts = [self.message]
        if self.context:
            parts.append("(" + ", ".join(f"{k}={v}" for k, v in sorted(self.context.items())) + ")")
        if self.error_code:
            parts.append(f"[{self.error_code}]")
        return " ".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, context={self.context!r}, cause={self.original_error!r})"
