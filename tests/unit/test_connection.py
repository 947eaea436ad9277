"""
Tests for connect_store / delete_store / release (connection.py)
"""

import logging
from unittest.mock import patch

import pytest

from dynamodb_blobstore import DynamoDBStore, connect_store, delete_store, release
from dynamodb_blobstore.core import create_table_gateway
from dynamodb_blobstore.exceptions import TableNotFoundError
from tests.helpers import ASYNC, read_row, write_row


class TestConnectStore:
    def test_creates_missing_table(self, mock_dynamodb, blobstore_config):
        store = connect_store(blobstore_config)
        try:
            assert isinstance(store, DynamoDBStore)
            assert store.table_name == "t1"
            assert store.consistent_read is True
            assert store.gateway.table_exists() is True
        finally:
            release(store)

    def test_capacity_from_config(self, mock_dynamodb, blobstore_config):
        store = connect_store(blobstore_config)
        try:
            throughput = store.gateway.client.describe_table(TableName="t1")['Table']['ProvisionedThroughput']
            assert throughput['ReadCapacityUnits'] == 5
            assert throughput['WriteCapacityUnits'] == 5
        finally:
            release(store)

    def test_capacity_overrides_from_opts(self, mock_dynamodb, blobstore_config):
        store = connect_store(blobstore_config, opts={'read_capacity': 7, 'write_capacity': 3})
        try:
            throughput = store.gateway.client.describe_table(TableName="t1")['Table']['ProvisionedThroughput']
            assert throughput['ReadCapacityUnits'] == 7
            assert throughput['WriteCapacityUnits'] == 3
        finally:
            release(store)

    def test_reuses_existing_table(self, mock_dynamodb, blobstore_config):
        first = connect_store(blobstore_config)
        write_row(first, "k1", b"h", b"m", b"v")
        release(first)

        with patch('dynamodb_blobstore.core.table_gateway.TableGateway.create_table') as create_table:
            second = connect_store(blobstore_config)

        create_table.assert_not_called()
        assert read_row(second, "k1") == (b"h", b"m", b"v")
        release(second)

    def test_prefixed_table(self, mock_dynamodb, blobstore_config):
        config = blobstore_config.model_copy(update={'table_prefix': "test"})
        store = connect_store(config)
        try:
            assert store.table_name == "test_t1"
        finally:
            release(store)

    def test_debug_logging_flag(self, mock_dynamodb, blobstore_config):
        config = blobstore_config.model_copy(update={'enable_debug_logging': True})
        package_logger = logging.getLogger("dynamodb_blobstore")
        previous = package_logger.level
        try:
            release(connect_store(config))
            assert package_logger.level == logging.DEBUG
        finally:
            package_logger.setLevel(previous)

    @pytest.mark.asyncio
    async def test_async_connect(self, mock_dynamodb, blobstore_config):
        store = await connect_store(blobstore_config, opts=ASYNC)

        assert isinstance(store, DynamoDBStore)
        assert await store.blob_exists("k1", opts=ASYNC) is False

        await release(store, opts=ASYNC)


class TestDeleteStore:
    def test_deletes_table(self, mock_dynamodb, blobstore_config, caplog):
        release(connect_store(blobstore_config))

        with caplog.at_level("INFO", logger="dynamodb_blobstore"):
            delete_store(blobstore_config)

        assert "DynamoDB store deleted." in caplog.text
        assert create_table_gateway(blobstore_config).table_exists() is False

    def test_missing_table_is_not_an_error(self, mock_dynamodb, blobstore_config):
        delete_store(blobstore_config)
        delete_store(blobstore_config)

    def test_closes_its_client(self, mock_dynamodb, blobstore_config):
        with patch('dynamodb_blobstore.core.table_gateway.TableGateway.close') as close:
            delete_store(blobstore_config)
        close.assert_called_once()

    @pytest.mark.asyncio
    async def test_async_delete(self, mock_dynamodb, blobstore_config):
        release(connect_store(blobstore_config))

        await delete_store(blobstore_config, opts=ASYNC)

        assert create_table_gateway(blobstore_config).table_exists() is False

    def test_operations_after_delete_fail(self, mock_dynamodb, blobstore_config):
        store = connect_store(blobstore_config)
        delete_store(blobstore_config)

        with pytest.raises(TableNotFoundError):
            store.keys()
        release(store)


class TestRelease:
    def test_release_closes_client(self, mock_dynamodb, blobstore_config):
        store = connect_store(blobstore_config)
        with patch.object(store.gateway.client, 'close') as close:
            release(store)
        close.assert_called_once()

    @pytest.mark.asyncio
    async def test_async_release(self, mock_dynamodb, blobstore_config):
        store = connect_store(blobstore_config)
        pending = release(store, opts=ASYNC)
        assert await pending is None
