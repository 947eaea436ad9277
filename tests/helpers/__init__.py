"""
Test helpers for the DynamoDB blob store.

Shortcuts for committing and reading whole rows through blob handles, plus
the per-call option mappings for each execution mode.
"""

from .rows import ASYNC, SYNC, awrite_row, read_row, write_row

__all__ = [
    'ASYNC',
    'SYNC',
    'awrite_row',
    'read_row',
    'write_row',
]
