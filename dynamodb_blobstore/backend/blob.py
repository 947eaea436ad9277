"""
DynamoDB Blob

One blob handle per logical operation. Writes only stage bytes locally;
sync() commits header, meta and value together as a single PutItem, so a
partially written row never reaches the table. Reads fetch the row once and
serve every field from that cached copy.
"""

import io
from typing import Any, Callable, Dict, NamedTuple, Optional

from ..core import dual_mode
from ..core.table_gateway import ROW_FIELDS, encode_row, row_field
from ..exceptions import ItemNotFoundError, RowIncompleteError
from .lock import NO_OP_LOCK
from .protocols import BackingBlob


class BinaryPayload(NamedTuple):
    """What read_binary() hands to its callback."""
    input_stream: io.BytesIO
    size: int


class DynamoDBBlob(BackingBlob):
    """
    Staging and read handle for the row stored under one key.

    Attributes:
        store: Owning DynamoDBStore (borrowed; the blob never closes it)
        key: Store key of the row
        staged: Field name -> bytes written but not yet committed
        fetched: Cached row; None until first read, {} if the key has no row
    """

    def __init__(self, store, key: str, fetched: Optional[Dict[str, Any]] = None):
        self.store = store
        self.key = key
        self.staged: Dict[str, bytes] = {}
        self.fetched = fetched

    def __repr__(self) -> str:
        return f"DynamoDBBlob(key={self.key!r}, staged={sorted(self.staged)}, fetched={self.fetched is not None})"

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    @dual_mode
    def sync(self):
        """Commit the staged fields as one row.

        Raises:
            RowIncompleteError: header, meta or value was never staged
        """
        missing = [field for field in ROW_FIELDS if self.staged.get(field) is None]
        if missing:
            raise RowIncompleteError(self.key, missing)

        row = encode_row(self.key, **self.staged)
        yield lambda: self.store.gateway.put_item(row)
        self.staged = {}

    @dual_mode
    def close(self):
        return None

    @dual_mode
    def get_lock(self):
        return NO_OP_LOCK

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _fetch(self):
        if self.fetched is None:
            row = yield lambda: self.store.gateway.get_item(self.key, self.store.consistent_read)
            self.fetched = row or {}
        return self.fetched

    def _read_field(self, field: str):
        row = yield from self._fetch()
        payload = row_field(row, field)
        if payload is None:
            raise ItemNotFoundError(self.store.table_name, self.key)
        return payload

    @dual_mode
    def read_header(self):
        return (yield from self._read_field('header'))

    @dual_mode
    def read_meta(self, meta_size: Optional[int] = None):
        return (yield from self._read_field('meta'))

    @dual_mode
    def read_value(self, meta_size: Optional[int] = None):
        return (yield from self._read_field('value'))

    @dual_mode
    def read_binary(self, meta_size: Optional[int], locked_cb: Callable[[BinaryPayload], Any]):
        """Call locked_cb once with the value as a stream and return its result."""
        value = yield from self._read_field('value')
        return locked_cb(BinaryPayload(io.BytesIO(value), len(value)))

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    @dual_mode
    def write_header(self, header: bytes):
        self.staged['header'] = header

    @dual_mode
    def write_meta(self, meta: bytes):
        self.staged['meta'] = meta

    @dual_mode
    def write_value(self, value: bytes, meta_size: Optional[int] = None):
        self.staged['value'] = value

    @dual_mode
    def write_binary(self, meta_size: Optional[int], blob: bytes):
        self.staged['value'] = blob
