"""
Thin DynamoDB Table Gateway

This module wraps the handful of DynamoDB primitives the blob store is built
from: table describe/create/delete, PutItem, GetItem, DeleteItem, Scan,
BatchGetItem and TransactWriteItems.

The gateway:
- Builds one low-level boto3 client per store (clients are thread-safe, so
  async-mode operations may share it from executor threads)
- Maps botocore ClientErrors to the store's exception hierarchy
- Enforces the 100 item ceiling of BatchGetItem and TransactWriteItems
- Never retries; UnprocessedKeys and cancelled transactions are raised

Rows use the low-level attribute value format:
    {'Key': {'S': key}, 'Header': {'B': ...}, 'Meta': {'B': ...}, 'Value': {'B': ...}}
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError, WaiterError

from ..config import BlobStoreConfig
from ..exceptions import (
    BatchReadError,
    ConflictError,
    ConnectionError,
    LimitExceededError,
    RetryableError,
    TableNotFoundError,
    TransactionFailedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# DynamoDB hard limit for both BatchGetItem and TransactWriteItems
MAX_BATCH_ITEMS = 100

KEY_ATTRIBUTE = "Key"
FIELD_ATTRIBUTES = {
    'header': "Header",
    'meta': "Meta",
    'value': "Value",
}

ROW_FIELDS = tuple(FIELD_ATTRIBUTES)


def key_attribute(key: str) -> Dict[str, Any]:
    """Build the primary key map for a store key."""
    return {KEY_ATTRIBUTE: {'S': key}}


def encode_row(key: str, header: bytes, meta: bytes, value: bytes) -> Dict[str, Any]:
    """Build a complete row for PutItem / transactional Put."""
    row = key_attribute(key)
    for field, payload in (('header', header), ('meta', meta), ('value', value)):
        row[FIELD_ATTRIBUTES[field]] = {'B': bytes(payload)}
    return row


def row_key(row: Dict[str, Any]) -> str:
    return row[KEY_ATTRIBUTE]['S']


def row_field(row: Dict[str, Any], field: str) -> Optional[bytes]:
    """Return the bytes stored for field ('header', 'meta' or 'value'), or None."""
    attribute = row.get(FIELD_ATTRIBUTES[field])
    if attribute is None:
        return None
    return bytes(attribute['B'])


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Map DynamoDB ClientError to store exceptions.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "GetItem", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional store key for context

    Returns:
        Appropriate store exception
    """
    error_code = error.response['Error']['Code']
    error_message = error.response['Error'].get('Message', '')

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (key: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code in ['ResourceNotFoundException', 'TableNotFoundException']:
        return TableNotFoundError(table_name, f"Table not found - {full_message}", original_error=error)

    elif error_code == 'ValidationException':
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code in ['ConditionalCheckFailedException', 'TransactionConflictException', 'ResourceInUseException']:
        return ConflictError(f"Conflict - {full_message}", resource_id, original_error=error)

    elif error_code in [
        'ProvisionedThroughputExceededException', 'RequestLimitExceeded',
        'ThrottlingException', 'LimitExceededException'
    ]:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in ['InternalServerError', 'ServiceUnavailable', 'RequestTimeoutException']:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code in ['UnrecognizedClientException', 'AccessDeniedException']:
        return ConnectionError(f"Authentication/authorization failed - {full_message}", original_error=error)

    elif error_code in ['ExpiredTokenException', 'InvalidSignatureException']:
        return ConnectionError(f"Invalid or expired credentials - {full_message}", original_error=error)

    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)


class TableGateway:
    """
    Thin gateway over one DynamoDB table.

    Every method is a single blocking request (or a polling wait for table
    lifecycle changes). Execution mode is decided by the caller; see
    core.execution.
    """

    def __init__(self, config: BlobStoreConfig, table_name: str):
        """Initialize table gateway.

        Args:
            config: Store configuration
            table_name: Name of the DynamoDB table
        """
        self.config = config
        self.table_name = table_name
        self._client = None
        self._client_lock = threading.Lock()

    @property
    def client(self):
        """Lazy initialization of the low-level DynamoDB client.

        Built at most once even when first used from several executor threads.
        """
        if self._client is not None:
            return self._client
        with self._client_lock:
            if self._client is not None:
                return self._client
            try:
                session = boto3.Session(
                    aws_access_key_id=self.config.aws_access_key_id,
                    aws_secret_access_key=self.config.aws_secret_access_key,
                    region_name=self.config.region_name
                )

                client_config = {
                    'region_name': self.config.region_name
                }

                if self.config.endpoint_url:
                    client_config['endpoint_url'] = self.config.endpoint_url

                boto_config = Config(
                    retries={'max_attempts': self.config.retries},
                    max_pool_connections=self.config.max_pool_connections,
                    read_timeout=self.config.timeout_seconds,
                    connect_timeout=self.config.timeout_seconds
                )
                client_config['config'] = boto_config

                self._client = session.client('dynamodb', **client_config)
            except Exception as e:
                logger.error(f"Failed to create DynamoDB client: {e}")
                raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e
        return self._client

    # ------------------------------------------------------------------
    # Table lifecycle
    # ------------------------------------------------------------------

    def table_status(self) -> Optional[str]:
        """Return the table's TableStatus, or None if there is no such table."""
        try:
            response = self.client.describe_table(TableName=self.table_name)
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                return None
            raise map_dynamodb_error(e, "DescribeTable", self.table_name) from e
        return response['Table']['TableStatus']

    def table_exists(self) -> bool:
        """Return True iff the table exists and is usable (ACTIVE or UPDATING)."""
        return self.table_status() in ('ACTIVE', 'UPDATING')

    def create_table(self, read_capacity: int, write_capacity: int) -> None:
        """
        Create the table and block until it is ACTIVE.

        Schema: a single string hash key named Key. Header, Meta and Value
        are non-key attributes and need no definition.

        A table that is still being deleted is waited out first, since
        DynamoDB refuses to create a table under a name that is in use.

        Args:
            read_capacity: Provisioned read capacity units
            write_capacity: Provisioned write capacity units
        """
        if self.table_status() == 'DELETING':
            logger.info(f"Table {self.table_name} is being deleted, waiting before re-creating it")
            self._wait('table_not_exists')

        try:
            self.client.create_table(
                TableName=self.table_name,
                KeySchema=[{'AttributeName': KEY_ATTRIBUTE, 'KeyType': 'HASH'}],
                AttributeDefinitions=[{'AttributeName': KEY_ATTRIBUTE, 'AttributeType': 'S'}],
                ProvisionedThroughput={
                    'ReadCapacityUnits': read_capacity,
                    'WriteCapacityUnits': write_capacity
                }
            )
            logger.info(f"Creating table {self.table_name} (rcu={read_capacity}, wcu={write_capacity})")
        except ClientError as e:
            # Another client is already creating it; waiting is enough
            if e.response['Error']['Code'] != 'ResourceInUseException':
                raise map_dynamodb_error(e, "CreateTable", self.table_name) from e
            logger.info(f"Table {self.table_name} is already being created")

        self._wait('table_exists')
        logger.info(f"Table {self.table_name} is active")

    def delete_table(self) -> bool:
        """
        Delete the table and block until it is gone.

        Returns:
            True if a table was deleted, False if it did not exist
        """
        try:
            self.client.delete_table(TableName=self.table_name)
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                logger.info(f"Table {self.table_name} does not exist")
                return False
            raise map_dynamodb_error(e, "DeleteTable", self.table_name) from e

        self._wait('table_not_exists')
        logger.info(f"Table {self.table_name} deleted")
        return True

    def _wait(self, waiter_name: str) -> None:
        try:
            self.client.get_waiter(waiter_name).wait(
                TableName=self.table_name,
                WaiterConfig={
                    'Delay': self.config.table_wait_delay_seconds,
                    'MaxAttempts': self.config.table_wait_max_attempts
                }
            )
        except WaiterError as e:
            raise ConnectionError(
                f"Gave up waiting for {waiter_name} on {self.table_name}: {e}",
                e,
                {'table_name': self.table_name}
            ) from e

    # ------------------------------------------------------------------
    # Single item operations
    # ------------------------------------------------------------------

    def put_item(self, row: Dict[str, Any]) -> None:
        """Write a complete row, replacing any existing row with the same key."""
        key = row_key(row)
        try:
            self.client.put_item(TableName=self.table_name, Item=row)
            logger.info(f"Put item in {self.table_name}: {key}")
        except ClientError as e:
            raise map_dynamodb_error(e, "PutItem", self.table_name, key) from e

    def get_item(self, key: str, consistent_read: bool = False) -> Optional[Dict[str, Any]]:
        """
        Fetch the row stored under key.

        Returns:
            The row, or None if the key has no row
        """
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key=key_attribute(key),
                ConsistentRead=consistent_read
            )
        except ClientError as e:
            raise map_dynamodb_error(e, "GetItem", self.table_name, key) from e
        logger.debug(f"Got item from {self.table_name}: {key} (found={'Item' in response})")
        return response.get('Item')

    def delete_item(self, key: str) -> None:
        """Delete the row stored under key; deleting an absent key succeeds."""
        try:
            self.client.delete_item(TableName=self.table_name, Key=key_attribute(key))
            logger.info(f"Deleted item from {self.table_name}: {key}")
        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteItem", self.table_name, key) from e

    def scan_all(self, consistent_read: bool = False, projection: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """
        Scan the whole table, following LastEvaluatedKey until exhausted.

        Args:
            consistent_read: Use strongly consistent reads
            projection: Attribute names to fetch (all attributes if None)

        Returns:
            Every row in the table, in DynamoDB's scan order
        """
        scan_kwargs = {
            'TableName': self.table_name,
            'ConsistentRead': consistent_read
        }
        if projection:
            scan_kwargs.update(_projection(projection))

        items = []
        pages = 0
        while True:
            try:
                response = self.client.scan(**scan_kwargs)
            except ClientError as e:
                raise map_dynamodb_error(e, "Scan", self.table_name) from e
            items.extend(response.get('Items', []))
            pages += 1

            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                break
            scan_kwargs['ExclusiveStartKey'] = last_key

        logger.debug(f"Scanned {len(items)} items from {self.table_name} in {pages} page(s)")
        return items

    # ------------------------------------------------------------------
    # Multi item operations
    # ------------------------------------------------------------------

    def batch_get(
        self,
        keys: Sequence[str],
        consistent_read: bool = False,
        projection: Optional[Sequence[str]] = None
    ) -> Dict[str, Dict[str, Any]]:
        """
        Fetch up to 100 rows in one BatchGetItem request.

        Args:
            keys: Distinct store keys
            consistent_read: Use strongly consistent reads
            projection: Attribute names to fetch (all attributes if None)

        Returns:
            Sparse mapping of key -> row; keys without a row are absent

        Raises:
            LimitExceededError: More than 100 keys
            BatchReadError: The request failed or left keys unprocessed
        """
        if not keys:
            return {}
        if len(keys) > MAX_BATCH_ITEMS:
            raise LimitExceededError("batch_get", len(keys), MAX_BATCH_ITEMS)

        request = {
            'Keys': [key_attribute(key) for key in keys],
            'ConsistentRead': consistent_read
        }
        if projection:
            request.update(_projection(projection))

        try:
            response = self.client.batch_get_item(RequestItems={self.table_name: request})
        except ClientError as e:
            raise BatchReadError(
                f"BatchGetItem on {self.table_name} failed: {e.response['Error'].get('Message', '')}",
                len(keys),
                original_error=e
            ) from e

        unprocessed = response.get('UnprocessedKeys', {}).get(self.table_name, {}).get('Keys', [])
        if unprocessed:
            raise BatchReadError(
                f"BatchGetItem on {self.table_name} left {len(unprocessed)} keys unprocessed",
                len(keys),
                unprocessed_count=len(unprocessed)
            )

        rows = response.get('Responses', {}).get(self.table_name, [])
        logger.debug(f"Batch get on {self.table_name}: {len(rows)}/{len(keys)} keys found")
        return {row_key(row): row for row in rows}

    def put_action(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Build a transactional Put for this table."""
        return {'Put': {'TableName': self.table_name, 'Item': row}}

    def delete_action(self, key: str) -> Dict[str, Any]:
        """Build a transactional Delete for this table."""
        return {'Delete': {'TableName': self.table_name, 'Key': key_attribute(key)}}

    def transact_write(self, transact_items: List[Dict[str, Any]]) -> None:
        """
        Execute up to 100 Put/Delete items as one all-or-nothing transaction.

        Args:
            transact_items: Items built with put_action() / delete_action()

        Raises:
            LimitExceededError: More than 100 items
            TransactionFailedError: DynamoDB rejected or cancelled the transaction;
                no item was applied
        """
        if len(transact_items) > MAX_BATCH_ITEMS:
            raise LimitExceededError("transact_write", len(transact_items), MAX_BATCH_ITEMS)

        try:
            self.client.transact_write_items(TransactItems=transact_items)
        except ClientError as e:
            error = e.response['Error']
            reasons = e.response.get('CancellationReasons') or error.get('CancellationReasons') or []
            raise TransactionFailedError(
                f"TransactWriteItems on {self.table_name} failed ({error['Code']}): {error.get('Message', '')}",
                len(transact_items),
                cancellation_reasons=reasons,
                original_error=e
            ) from e
        logger.info(f"Transaction of {len(transact_items)} items completed on {self.table_name}")

    def close(self) -> None:
        """Close the underlying HTTP connections; the gateway is unusable afterwards."""
        if self._client is not None:
            self._client.close()
            logger.info(f"Closed DynamoDB client for {self.table_name}")


def _projection(attributes: Iterable[str]) -> Dict[str, Any]:
    # Key is a DynamoDB reserved word, so every name goes through a placeholder
    names = {f"#p{i}": name for i, name in enumerate(attributes)}
    return {
        'ProjectionExpression': ", ".join(names),
        'ExpressionAttributeNames': names
    }


def create_table_gateway(config: BlobStoreConfig) -> TableGateway:
    """
    Factory function to create a TableGateway for the configured table.

    Args:
        config: Store configuration

    Returns:
        Configured TableGateway instance
    """
    return TableGateway(config, config.get_table_name())
