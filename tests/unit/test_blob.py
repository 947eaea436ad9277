"""
Tests for DynamoDBBlob (backend/blob.py)
"""

from unittest.mock import patch

import pytest

from dynamodb_blobstore.backend import NO_OP_LOCK, BinaryPayload, DynamoDBBlob, DynamoDBStore
from dynamodb_blobstore.core.table_gateway import encode_row
from dynamodb_blobstore.exceptions import ItemNotFoundError, RowIncompleteError
from tests.helpers import read_row, write_row


class TestBlobWrites:
    """Test staging and committing rows."""

    def test_write_then_read(self, store):
        write_row(store, "k1", b"h", b"m", b"v")
        assert read_row(store, "k1") == (b"h", b"m", b"v")

    def test_sync_overwrites_whole_row(self, store):
        write_row(store, "k1", b"h1", b"m1", b"v1")
        write_row(store, "k1", b"h2", b"m2", b"v2")

        assert read_row(store, "k1") == (b"h2", b"m2", b"v2")

    def test_writes_are_staged_until_sync(self, store):
        blob = store.create_blob("k1")
        blob.write_header(b"h")
        blob.write_meta(b"m")
        blob.write_value(b"v")

        assert store.blob_exists("k1") is False
        blob.sync()
        assert store.blob_exists("k1") is True

    def test_sync_clears_staged_fields(self, store):
        blob = write_row(store, "k1", b"h", b"m", b"v")
        assert blob.staged == {}

    def test_write_binary_stages_value(self, store):
        blob = store.create_blob("k1")
        blob.write_header(b"h")
        blob.write_meta(b"m")
        blob.write_binary(None, b"\x00\x01\x02")
        blob.sync()

        assert read_row(store, "k1")[2] == b"\x00\x01\x02"

    def test_empty_value_is_a_value(self, store):
        write_row(store, "k1", b"h", b"m", b"")
        assert read_row(store, "k1") == (b"h", b"m", b"")

    def test_large_value(self, store):
        payload = bytes(range(256)) * 1024
        write_row(store, "big", b"h", b"m", payload)
        assert read_row(store, "big")[2] == payload


class TestIncompleteRows:
    """A row is only written when header, meta and value are all staged."""

    def test_missing_value_rejected(self, store):
        blob = store.create_blob("k1")
        blob.write_header(b"h")
        blob.write_meta(b"m")

        with pytest.raises(RowIncompleteError) as exc_info:
            blob.sync()

        assert exc_info.value.key == "k1"
        assert exc_info.value.missing_fields == ["value"]
        assert "header, meta, and value are set" in str(exc_info.value)

    def test_existing_row_left_unchanged(self, store):
        write_row(store, "k1", b"h", b"m", b"v")

        blob = store.create_blob("k1")
        blob.write_value(b"new")
        with pytest.raises(RowIncompleteError):
            blob.sync()

        assert read_row(store, "k1") == (b"h", b"m", b"v")

    def test_no_request_is_sent(self, mock_gateway):
        blob = DynamoDBBlob(DynamoDBStore(mock_gateway), "k1")
        blob.write_header(b"h")

        with pytest.raises(RowIncompleteError) as exc_info:
            blob.sync()

        assert exc_info.value.missing_fields == ["meta", "value"]
        mock_gateway.put_item.assert_not_called()

    def test_staged_fields_survive_failed_sync(self, mock_gateway):
        blob = DynamoDBBlob(DynamoDBStore(mock_gateway), "k1")
        blob.write_header(b"h")
        blob.write_meta(b"m")
        with pytest.raises(RowIncompleteError):
            blob.sync()

        blob.write_value(b"v")
        blob.sync()

        mock_gateway.put_item.assert_called_once_with(encode_row("k1", b"h", b"m", b"v"))


class TestBlobReads:
    """Test cached reads."""

    def test_row_fetched_at_most_once(self, mock_gateway):
        mock_gateway.get_item.return_value = encode_row("k1", b"h", b"m", b"v")
        blob = DynamoDBBlob(DynamoDBStore(mock_gateway, consistent_read=True), "k1")

        assert blob.read_header() == b"h"
        assert blob.read_meta() == b"m"
        assert blob.read_value() == b"v"

        mock_gateway.get_item.assert_called_once_with("k1", True)

    def test_absent_key_raises_item_not_found(self, store):
        blob = store.create_blob("missing")

        with pytest.raises(ItemNotFoundError) as exc_info:
            blob.read_header()

        assert exc_info.value.key == "missing"
        assert exc_info.value.table_name == "t1"

    def test_absent_key_fetched_once(self, mock_gateway):
        mock_gateway.get_item.return_value = None
        blob = DynamoDBBlob(DynamoDBStore(mock_gateway), "missing")

        for read in (blob.read_header, blob.read_meta, blob.read_value):
            with pytest.raises(ItemNotFoundError):
                read()

        assert blob.fetched == {}
        mock_gateway.get_item.assert_called_once()

    def test_read_is_a_snapshot(self, store):
        write_row(store, "k1", b"h", b"m", b"v1")
        blob = store.create_blob("k1")
        assert blob.read_value() == b"v1"

        write_row(store, "k1", b"h", b"m", b"v2")

        assert blob.read_value() == b"v1"
        assert store.create_blob("k1").read_value() == b"v2"

    def test_read_binary_calls_back_once(self, store):
        write_row(store, "k1", b"h", b"m", b"binary-value")
        blob = store.create_blob("k1")
        calls = []

        def consume(payload):
            calls.append(payload)
            return payload.input_stream.read()

        assert blob.read_binary(None, consume) == b"binary-value"
        assert len(calls) == 1
        assert isinstance(calls[0], BinaryPayload)
        assert calls[0].size == len(b"binary-value")

    def test_read_binary_absent_key_skips_callback(self, store):
        blob = store.create_blob("missing")
        calls = []

        with pytest.raises(ItemNotFoundError):
            blob.read_binary(None, calls.append)
        assert calls == []

    def test_get_item_errors_propagate(self, store):
        blob = store.create_blob("k1")
        with patch.object(store.gateway, 'get_item', side_effect=RuntimeError("network down")):
            with pytest.raises(RuntimeError, match="network down"):
                blob.read_value()
        assert blob.fetched is None


class TestBlobLifecycle:
    def test_lock_is_always_held(self, store):
        blob = store.create_blob("k1")
        lock = blob.get_lock()

        assert lock is NO_OP_LOCK
        assert bool(lock) is True
        assert lock.release() is None

    def test_close_is_noop(self, store):
        assert store.create_blob("k1").close() is None

    def test_repr(self, mock_gateway):
        blob = DynamoDBBlob(DynamoDBStore(mock_gateway), "k1")
        blob.write_header(b"h")
        assert repr(blob) == "DynamoDBBlob(key='k1', staged=['header'], fetched=False)"
