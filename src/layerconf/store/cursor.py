"""
Value Iterator

Lazy, forward-only, single-use sequence over a resolved result set.
"""

import sqlite3
from typing import Optional

from layerconf.exceptions import StatementError
from layerconf.schemas import ConfigValue


class ValueIterator:
    """
    Iterator over resolved configuration values.

    Owns its sqlite3 cursor and releases it on exhaustion, on close() or when
    leaving a with-block. Supports both the Python iterator protocol and an
    explicit advance()/valid/current interface:

        with config.search("/hardware/") as it:
            for value in it:
                print(value.path, value.typed_value(), value.is_default)

        it = config.iterator()
        while it.advance():
            print(it.current.path)

    Not synchronized: iterating while another thread mutates the store is
    undefined unless the caller holds the configuration lock.
    """

    def __init__(self, cursor: sqlite3.Cursor, owner=None):
        """
        Args:
            cursor: Executed cursor yielding (path, type, value, comment, is_default)
            owner: Persistence layer tracking live iterators, if any
        """
        self._cursor: Optional[sqlite3.Cursor] = cursor
        self._owner = owner
        self._current: Optional[ConfigValue] = None
        if owner is not None:
            owner.register_iterator(self)

    @property
    def valid(self) -> bool:
        """True until the iterator is exhausted or closed."""
        return self._cursor is not None

    @property
    def current(self) -> Optional[ConfigValue]:
        """Row reached by the last successful advance()."""
        return self._current

    def advance(self) -> bool:
        """
        Move to the next row.

        Returns:
            True if another row was reached, False once exhausted
        """
        if self._cursor is None:
            return False
        try:
            row = self._cursor.fetchone()
        except sqlite3.Error as e:
            self.close()
            raise StatementError("iterator/next", str(e)) from e
        if row is None:
            self.close()
            self._current = None
            return False
        self._current = ConfigValue(
            path=row["path"],
            type=row["type"],
            value=row["value"],
            comment=row["comment"],
            is_default=bool(row["is_default"]),
        )
        return True

    def close(self):
        """Release the underlying cursor. Safe to call repeatedly."""
        if self._cursor is not None:
            try:
                self._cursor.close()
            finally:
                self._cursor = None
                if self._owner is not None:
                    self._owner.unregister_iterator(self)

    def __iter__(self):
        return self

    def __next__(self) -> ConfigValue:
        if not self.advance():
            raise StopIteration
        return self._current

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
