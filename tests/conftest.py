"""
Test configuration and fixtures for the DynamoDB blob store.

Behavioural tests run against moto's in-process DynamoDB; protocol tests that
need to count or fail requests use a Mock TableGateway instead.
"""

from unittest.mock import Mock

import pytest
from moto import mock_aws

from dynamodb_blobstore import BlobStoreConfig, connect_store, release
from dynamodb_blobstore.core import TableGateway
from dynamodb_blobstore.core.table_gateway import key_attribute


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches for real ones."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def blobstore_config():
    """Store configuration for mocked testing."""
    return BlobStoreConfig(
        aws_access_key_id="test_key",
        aws_secret_access_key="test_secret",
        region_name="us-east-1",
        endpoint_url=None,  # Use default AWS endpoint for moto
        table_name="t1",
        table_prefix="",
        consistent_read=True,
        read_capacity=5,
        write_capacity=5
    )


@pytest.fixture
def mock_dynamodb(aws_credentials):
    """Activate moto for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def store(mock_dynamodb, blobstore_config):
    """Connected store backed by a fresh moto table."""
    connected = connect_store(blobstore_config)
    yield connected
    release(connected)


@pytest.fixture
def mock_gateway():
    """Mock TableGateway for counting and failing requests."""
    gateway = Mock(spec=TableGateway)
    gateway.table_name = "t1"
    gateway.put_action.side_effect = lambda row: {'Put': {'TableName': 't1', 'Item': row}}
    gateway.delete_action.side_effect = lambda key: {'Delete': {'TableName': 't1', 'Key': key_attribute(key)}}
    return gateway

