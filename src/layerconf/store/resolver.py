"""
Overlay Resolver

Resolves paths against the host table first and the default table second,
and implements update-or-insert mutation and erasure for both layers.
"""

from typing import Any, Optional

from layerconf.exceptions import EntryNotFoundError
from layerconf.handlers import ChangeHandlerRegistry
from layerconf.logging_config import logger
from layerconf.store import schema
from layerconf.store.codec import ValueType, decode, encode, tag_type
from layerconf.store.cursor import ValueIterator
from layerconf.store.persistence import SQLitePersistence


class SQLiteResolverOperations:
    """
    Typed reads, writes and erasure over the two configuration layers.

    Every method holds the instance lock while it touches the database.
    Change handlers are notified after the lock has been released.
    """

    def __init__(self, persistence: SQLitePersistence, handlers: ChangeHandlerRegistry):
        self._persistence = persistence
        self._handlers = handlers

    # ========== LOOKUP ==========

    def _lookup(self, path: str):
        """Fetch the resolved row for path or None. Caller holds the lock."""
        cursor = self._persistence.execute("get_value", schema.SELECT_VALUE_TYPE, (path, path))
        try:
            return cursor.fetchone()
        finally:
            cursor.close()

    def exists(self, path: str) -> bool:
        with self._persistence.locked():
            return self._lookup(path) is not None

    def get_type(self, path: str) -> ValueType:
        """
        Get the type of the resolved value.

        Raises:
            EntryNotFoundError: If path is in neither layer
            TypeMismatchError: If the stored tag is not a known type
        """
        with self._persistence.locked():
            row = self._lookup(path)
        if row is None:
            raise EntryNotFoundError(path)
        return tag_type(path, row["type"])

    def is_type(self, path: str, value_type: ValueType) -> bool:
        return self.get_type(path) == value_type

    def is_default(self, path: str) -> bool:
        """True iff the resolved value comes from the default layer."""
        with self._persistence.locked():
            row = self._lookup(path)
        return row is not None and row["is_default"] == 1

    def get(self, path: str, value_type: ValueType) -> Any:
        """
        Get the resolved value of path as value_type.

        Raises:
            EntryNotFoundError: If path is in neither layer
            TypeMismatchError: If the stored type differs from value_type
        """
        with self._persistence.locked():
            row = self._lookup(path)
        if row is None:
            raise EntryNotFoundError(path)
        return decode(path, row["type"], value_type, row["value"])

    def get_comment(self, path: str) -> Optional[str]:
        with self._persistence.locked():
            row = self._lookup(path)
        if row is None:
            raise EntryNotFoundError(path)
        return row["comment"]

    def get_value(self, path: str) -> ValueIterator:
        """Iterator over the single resolved entry for path (zero or one rows)."""
        with self._persistence.locked():
            cursor = self._persistence.execute(
                "get_value", schema.SELECT_VALUE_TYPE, (path, path)
            )
            return ValueIterator(cursor, self._persistence)

    def iterator(self) -> ValueIterator:
        """Iterator over all resolved entries ordered by path."""
        with self._persistence.locked():
            cursor = self._persistence.execute("iterator", schema.SELECT_ALL)
            return ValueIterator(cursor, self._persistence)

    def search(self, prefix: str) -> ValueIterator:
        """Iterator over resolved entries whose path starts with prefix."""
        length = len(prefix)
        with self._persistence.locked():
            cursor = self._persistence.execute(
                "search", schema.SELECT_PREFIX, (length, prefix, length, prefix)
            )
            return ValueIterator(cursor, self._persistence)

    # ========== MUTATION ==========

    def _set(self, table: str, path: str, value_type: ValueType, value: Any):
        stored = encode(path, value_type, value)
        operation = "set_default" if table == schema.DEFAULT else "set"

        with self._persistence.locked():
            with self._persistence.savepoint():
                cursor = self._persistence.execute(
                    f"{operation}_{value_type.name.lower()}/update",
                    schema.UPDATE_VALUE.format(table=table),
                    (value_type.value, stored, path),
                )
                if cursor.rowcount == 0:
                    # value did not exist, insert
                    self._persistence.execute(
                        f"{operation}_{value_type.name.lower()}/insert",
                        schema.INSERT_VALUE.format(table=table),
                        (path, value_type.value, stored),
                    )
            logger.debug(f"{operation} {path} = {value!r} ({value_type.value})")

        self._handlers.notify_changed(path, value)

    def set(self, path: str, value_type: ValueType, value: Any):
        """
        Set a host value. Updates the existing row (value and type tag) or
        inserts a new one.

        Raises:
            TypeMismatchError: If value cannot be represented as value_type
            StatementError: If the database rejects the write
        """
        self._set(schema.HOST, path, ValueType(value_type), value)

    def set_default(self, path: str, value_type: ValueType, value: Any):
        """Set a default value. Reported to change handlers like a host value."""
        self._set(schema.DEFAULT, path, ValueType(value_type), value)

    def _erase(self, table: str, path: str):
        operation = "erase_default" if table == schema.DEFAULT else "erase"
        with self._persistence.locked():
            cursor = self._persistence.execute(
                operation, schema.DELETE_VALUE.format(table=table), (path,)
            )
            logger.debug(f"{operation} {path} ({cursor.rowcount} row(s))")

        # erasure is reported even if nothing was deleted
        self._handlers.notify_erased(path)

    def erase(self, path: str):
        """Erase the host value of path. Not an error if there is none."""
        self._erase(schema.HOST, path)

    def erase_default(self, path: str):
        """Erase the default value of path. Not an error if there is none."""
        self._erase(schema.DEFAULT, path)

    def _set_comment(self, table: str, path: str, comment: Optional[str]):
        with self._persistence.locked():
            cursor = self._persistence.execute(
                "set_comment", schema.UPDATE_COMMENT.format(table=table), (comment, path)
            )
            if cursor.rowcount == 0:
                raise EntryNotFoundError(path)

    def set_comment(self, path: str, comment: Optional[str]):
        """
        Set the comment of an existing host value.

        Raises:
            EntryNotFoundError: If there is no host row for path
        """
        self._set_comment(schema.HOST, path, comment)

    def set_default_comment(self, path: str, comment: Optional[str]):
        self._set_comment(schema.DEFAULT, path, comment)
