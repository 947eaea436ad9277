"""
Core infrastructure components for the blob store.

This module contains the foundational components used by the backend:
- TableGateway: Thin wrapper over the boto3 DynamoDB client
- Execution helpers that run one operation body in sync or async mode
"""

from .execution import DEFAULT_OPTS, dual_mode, execute, is_sync, run_async, run_sync
from .table_gateway import MAX_BATCH_ITEMS, TableGateway, create_table_gateway

__all__ = [
    "DEFAULT_OPTS",
    "MAX_BATCH_ITEMS",
    "TableGateway",
    "create_table_gateway",
    "dual_mode",
    "execute",
    "is_sync",
    "run_async",
    "run_sync",
]
