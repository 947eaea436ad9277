"""
Store lifecycle: connect, release and delete.

    store = connect_store(BlobStoreConfig.with_table("sessions"))
    blob = store.create_blob("user-1")
    ...
    release(store)

Pass ``opts={"sync": False}`` to get awaitables instead:

    store = await connect_store(config, opts={"sync": False})
    await release(store, opts={"sync": False})
"""

import logging
from typing import Any, Mapping, Optional

from .config import BlobStoreConfig
from .core import DEFAULT_OPTS, create_table_gateway, execute
from .backend import DynamoDBStore

logger = logging.getLogger(__name__)


def _complete_opts(config: BlobStoreConfig, opts: Optional[Mapping[str, Any]]) -> dict:
    complete = dict(
        DEFAULT_OPTS,
        read_capacity=config.read_capacity,
        write_capacity=config.write_capacity
    )
    complete.update(opts or {})
    return complete


def _connect(config: BlobStoreConfig, opts: dict):
    gateway = create_table_gateway(config)
    exists = yield gateway.table_exists
    if not exists:
        logger.info(f"Table {gateway.table_name} not found, creating it")
        yield lambda: gateway.create_table(opts['read_capacity'], opts['write_capacity'])
    logger.info(f"Connected to DynamoDB table {gateway.table_name}")
    return DynamoDBStore(gateway, consistent_read=config.consistent_read)


def connect_store(config: Optional[BlobStoreConfig] = None, opts: Optional[Mapping[str, Any]] = None):
    """
    Connect to (and if necessary create) the table backing a store.

    Table creation blocks, polling every ``table_wait_delay_seconds``, until
    the table is ACTIVE, so writes may be issued as soon as this returns.

    Args:
        config: Store configuration (read from the environment if None)
        opts: Per-call options: ``sync`` (default True) and
            ``read_capacity``/``write_capacity`` overrides for table creation

    Returns:
        DynamoDBStore, or an awaitable resolving to it in async mode
    """
    config = config or BlobStoreConfig.from_env()
    complete_opts = _complete_opts(config, opts)
    if config.enable_debug_logging:
        logging.getLogger(__package__).setLevel(logging.DEBUG)
    return execute(_connect(config, complete_opts), complete_opts)


def _delete(config: BlobStoreConfig):
    gateway = create_table_gateway(config)
    try:
        deleted = yield gateway.delete_table
        if deleted:
            logger.info("DynamoDB store deleted.")
    finally:
        gateway.close()


def delete_store(config: Optional[BlobStoreConfig] = None, opts: Optional[Mapping[str, Any]] = None):
    """
    Delete the table backing a store, without connecting to it first.

    Deleting a table that does not exist succeeds.
    """
    config = config or BlobStoreConfig.from_env()
    return execute(_delete(config), _complete_opts(config, opts))


def release(store: DynamoDBStore, opts: Optional[Mapping[str, Any]] = None):
    """Release the store connection."""
    return store.release(opts=opts)
