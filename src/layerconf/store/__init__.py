"""
SQLite Configuration Store Package

Public API:
- SQLiteConfiguration: Main facade for configuration operations
- ValueIterator: Cursor over resolved values
- ValueType, TransactionType

Internal Modules:
- schema: Table definitions and overlay queries
- persistence: Connection, lock, transactions
- codec: Value kinds and their storage representation
- resolver: Host-then-default resolution and mutation
- cursor: Value iterator
- tags: Snapshots of the host layer
- dump: SQL script export, import and merge
- config: Configuration constants
"""

from layerconf.store.facade import SQLiteConfiguration
from layerconf.store.codec import ValueType
from layerconf.store.cursor import ValueIterator
from layerconf.store.persistence import TransactionType

__all__ = ['SQLiteConfiguration', 'ValueIterator', 'ValueType', 'TransactionType']
