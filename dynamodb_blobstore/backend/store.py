"""
DynamoDB Backing Store

Translates the generic backing-store capabilities into DynamoDB requests:

    create_blob / delete_blob / blob_exists   -> GetItem, PutItem, DeleteItem
    copy / atomic_move                        -> GetItem + PutItem / TransactWriteItems
    keys                                      -> Scan (Key attribute only)
    multi_write / multi_delete                -> one TransactWriteItems (all-or-nothing)
    multi_read                                -> one BatchGetItem

Multi-key operations accept at most 100 distinct keys (MAX_BATCH_ITEMS).
Larger requests are rejected with LimitExceededError before anything is sent,
since DynamoDB would refuse them anyway. Nothing here retries.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Union

from ..core import MAX_BATCH_ITEMS, TableGateway, dual_mode
from ..core.table_gateway import KEY_ATTRIBUTE, ROW_FIELDS, encode_row, key_attribute, row_key
from ..exceptions import LimitExceededError, RowIncompleteError
from .blob import DynamoDBBlob
from .protocols import MultiKeyBackingStore

logger = logging.getLogger(__name__)

# Storage layout the generic store layer should assume for this backend
STORE_LAYOUT = {
    'sync_blob': True,
    'in_place': False,
    'lock_blob': True,
    'buffer_size': 1024 * 1024,
}

RowFields = Union[Mapping[str, bytes], DynamoDBBlob]


def _check_limit(operation: str, item_count: int) -> None:
    if item_count > MAX_BATCH_ITEMS:
        raise LimitExceededError(operation, item_count, MAX_BATCH_ITEMS)


def _distinct(store_keys: Iterable[str]) -> List[str]:
    # BatchGetItem rejects duplicate keys; keep first-seen order
    # (the 100 key ceiling is checked on the raw input, before this)
    return list(dict.fromkeys(store_keys))


class DynamoDBStore(MultiKeyBackingStore):
    """
    Backing store over a single DynamoDB table.

    One row per store key: Key (S) plus Header, Meta and Value (B).
    The gateway's client is shared by every operation issued through this
    store and must not be used after release().
    """

    layout = STORE_LAYOUT

    def __init__(self, gateway: TableGateway, consistent_read: bool = False):
        """Initialize the store.

        Args:
            gateway: Gateway for the backing table (owned by this store)
            consistent_read: Use strongly consistent reads for get, batch-get and scan
        """
        self.gateway = gateway
        self.consistent_read = consistent_read

    @property
    def table_name(self) -> str:
        return self.gateway.table_name

    def __repr__(self) -> str:
        return f"DynamoDBStore(table={self.table_name!r}, consistent_read={self.consistent_read})"

    # ------------------------------------------------------------------
    # Single-key operations
    # ------------------------------------------------------------------

    @dual_mode
    def create_blob(self, store_key: str) -> DynamoDBBlob:
        return DynamoDBBlob(self, store_key)

    @dual_mode
    def delete_blob(self, store_key: str):
        yield lambda: self.gateway.delete_item(store_key)

    @dual_mode
    def blob_exists(self, store_key: str):
        row = yield lambda: self.gateway.get_item(store_key, self.consistent_read)
        return bool(row)

    @dual_mode
    def copy(self, from_key: str, to_key: str):
        """Write a full copy of from_key's row under to_key; no-op if from_key is absent."""
        row = yield lambda: self.gateway.get_item(from_key, self.consistent_read)
        if not row:
            return
        copied = dict(row, **key_attribute(to_key))
        yield lambda: self.gateway.put_item(copied)

    @dual_mode
    def atomic_move(self, from_key: str, to_key: str):
        """
        Move from_key's row to to_key; no-op if from_key is absent.

        The Put of the new key and the Delete of the old one run as one
        transaction, so a failure never leaves both keys populated.
        """
        if from_key == to_key:
            return
        row = yield lambda: self.gateway.get_item(from_key, self.consistent_read)
        if not row:
            return
        moved = dict(row, **key_attribute(to_key))
        yield lambda: self.gateway.transact_write([
            self.gateway.put_action(moved),
            self.gateway.delete_action(from_key),
        ])
        logger.info(f"Moved {from_key} to {to_key} in {self.table_name}")

    @dual_mode
    def keys(self):
        """Return every key in the table (unordered, full scan snapshot)."""
        rows = yield lambda: self.gateway.scan_all(self.consistent_read, projection=[KEY_ATTRIBUTE])
        return [row_key(row) for row in rows]

    # ------------------------------------------------------------------
    # Store lifecycle
    # ------------------------------------------------------------------

    @dual_mode
    def create_store(self):
        # The table was already created (or found) by connect_store
        logger.info("DynamoDB table setup complete.")

    @dual_mode
    def sync_store(self):
        return None

    @dual_mode
    def delete_store(self):
        """Delete the backing table; a missing table counts as success."""
        deleted = yield self.gateway.delete_table
        if deleted:
            logger.info("DynamoDB store deleted.")

    @dual_mode
    def migratable(self, key: Any, store_key: str):
        # Only one row layout has ever existed for this backend
        return None

    @dual_mode
    def migrate(self, migration_key: Any, key_vec: Any, serializer: Any, read_handlers: Any, write_handlers: Any):
        return None

    @dual_mode
    def release(self):
        """Close the DynamoDB client."""
        yield self.gateway.close

    # ------------------------------------------------------------------
    # Multi-key operations
    # ------------------------------------------------------------------

    @dual_mode
    def multi_write(self, rows: Mapping[str, RowFields]):
        """
        Write many rows in one all-or-nothing transaction.

        Args:
            rows: key -> {'header', 'meta', 'value'} bytes, or a blob whose
                fields are staged

        Returns:
            {key: True} for every key once the transaction has committed; blobs
            passed in have their staged fields cleared, as after sync()

        Raises:
            LimitExceededError: More than 100 keys (nothing is sent)
            RowIncompleteError: A key lacks header, meta or value (nothing is sent)
            TransactionFailedError: DynamoDB rejected the transaction (nothing was written)
        """
        _check_limit("multi_write", len(rows))
        if not rows:
            return {}

        transact_items = []
        blobs = []
        for key, fields in rows.items():
            if isinstance(fields, DynamoDBBlob):
                blobs.append(fields)
                fields = fields.staged
            missing = [field for field in ROW_FIELDS if fields.get(field) is None]
            if missing:
                raise RowIncompleteError(key, missing)
            row = encode_row(key, fields['header'], fields['meta'], fields['value'])
            transact_items.append(self.gateway.put_action(row))

        yield lambda: self.gateway.transact_write(transact_items)
        for blob in blobs:
            blob.staged = {}
        logger.info(f"Multi-write of {len(transact_items)} keys committed to {self.table_name}")
        return {key: True for key in rows}

    @dual_mode
    def multi_delete(self, store_keys: Iterable[str]):
        """
        Delete every existing key among store_keys in one transaction.

        Existence is checked first with a single BatchGetItem; only keys that
        exist are deleted, so the result tells which keys were removed.

        Returns:
            {key: existed} for every distinct input key

        Raises:
            LimitExceededError: More than 100 keys, duplicates included (nothing is sent)
        """
        store_keys = list(store_keys)
        _check_limit("multi_delete", len(store_keys))
        keys = _distinct(store_keys)
        if not keys:
            return {}

        existing = yield lambda: self.gateway.batch_get(keys, self.consistent_read, projection=[KEY_ATTRIBUTE])
        to_delete = [key for key in keys if key in existing]
        if to_delete:
            yield lambda: self.gateway.transact_write([self.gateway.delete_action(key) for key in to_delete])
            logger.info(f"Multi-delete removed {len(to_delete)}/{len(keys)} keys from {self.table_name}")

        return {key: key in existing for key in keys}

    @dual_mode
    def multi_read(self, store_keys: Iterable[str]):
        """
        Fetch many rows with one BatchGetItem.

        Returns:
            Sparse {key: blob} for the keys that exist; each blob already
            holds its row, so reading its fields costs no further request

        Raises:
            LimitExceededError: More than 100 keys, duplicates included (nothing is sent)
        """
        store_keys = list(store_keys)
        _check_limit("multi_read", len(store_keys))
        keys = _distinct(store_keys)
        if not keys:
            return {}

        rows = yield lambda: self.gateway.batch_get(keys, self.consistent_read)
        return {key: DynamoDBBlob(self, key, fetched=row) for key, row in rows.items()}
