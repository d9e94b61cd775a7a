"""
SQLite Persistence Layer

Owns the single session connection (host database with the default database
attached), the instance lock and explicit transaction control.
"""

import sqlite3
import threading
import weakref
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from layerconf.logging_config import logger
from layerconf.exceptions import (
    ConfigError,
    ConstraintViolationError,
    CouldNotOpenConfigError,
    StatementError,
)
from layerconf.paths import is_memory
from layerconf.store.config import DEFAULT_TIMEOUT, DEFAULTS_SCHEMA
from layerconf.store.schema import init_schema


class TransactionType(str, Enum):
    """SQLite transaction behaviours."""

    DEFERRED = "DEFERRED"
    IMMEDIATE = "IMMEDIATE"
    EXCLUSIVE = "EXCLUSIVE"


def connect(location: Union[str, Path]) -> sqlite3.Connection:
    """
    Open a connection in autocommit mode; transactions are issued explicitly.

    File databases get their parent directory created first.
    """
    if not is_memory(location):
        Path(location).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(
        str(location),
        timeout=DEFAULT_TIMEOUT,
        isolation_level=None,
        check_same_thread=False,
    )
    conn.row_factory = sqlite3.Row
    return conn


class SQLitePersistence:
    """
    Manages the session connection and the instance lock.

    Responsibilities:
    - Opening the host database and attaching the default database
    - Schema creation
    - Mutual exclusion (one re-entrant lock per instance)
    - Explicit transactions and write savepoints
    - Tracking live value iterators
    """

    def __init__(self):
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._failed = False
        self._iterators = weakref.WeakSet()

    # ========== LIFECYCLE ==========

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def failed(self) -> bool:
        """True after a fatal load error."""
        return self._failed

    @property
    def connection(self) -> sqlite3.Connection:
        """
        The open session connection.

        Raises:
            ConfigError: If the store was never loaded, failed to load or is closed
        """
        if self._conn is None:
            if self._failed:
                raise ConfigError("Configuration failed to load and must not be used")
            raise ConfigError("Configuration has not been loaded")
        return self._conn

    def open(self, host_file: Union[str, Path], default_file: Union[str, Path]):
        """
        Open the host database, attach the default database and ensure schema.

        Args:
            host_file: Host database location or ':memory:'
            default_file: Default database location or ':memory:'

        Raises:
            CouldNotOpenConfigError: On any failure; the instance is unusable afterwards
        """
        conn = None
        try:
            conn = connect(host_file)
            conn.execute(f"ATTACH DATABASE ? AS {DEFAULTS_SCHEMA}", (str(default_file),))
            init_schema(conn)
        except (sqlite3.Error, OSError) as e:
            self._failed = True
            if conn is not None:
                conn.close()
            raise CouldNotOpenConfigError(
                f"Failed to open host file '{host_file}' or attaching default file "
                f"'{default_file}': {e}"
            ) from e

        self._conn = conn
        logger.info(f"Opened configuration host={host_file} default={default_file}")

    def mark_failed(self):
        """Flag the store as unusable after a fatal load error."""
        self._failed = True

    def close(self) -> bool:
        """
        Close the session connection.

        The close is aborted while value iterators are still open.

        Returns:
            True if the connection was closed (or was not open), False if aborted
        """
        if self._conn is None:
            return True

        live = len(self._iterators)
        if live:
            logger.error(
                f"Configuration database cannot be closed, {live} value iterator(s) still open"
            )
            return False

        if self._conn.in_transaction:
            logger.warning("Closing configuration with an open transaction, rolling back")
        try:
            self._conn.close()
        except sqlite3.Error as e:
            logger.error(f"Failed to close configuration database: {e}")
            return False
        self._conn = None
        return True

    def register_iterator(self, iterator):
        self._iterators.add(iterator)

    def unregister_iterator(self, iterator):
        self._iterators.discard(iterator)

    # ========== LOCKING ==========

    def lock(self):
        """Block until the instance lock is acquired."""
        self._lock.acquire()

    def try_lock(self) -> bool:
        """Acquire the instance lock without blocking."""
        return self._lock.acquire(blocking=False)

    def unlock(self):
        """Release the instance lock."""
        self._lock.release()

    @contextmanager
    def locked(self):
        """
        Hold the instance lock for the duration of a block.

        Usage:
            with persistence.locked():
                # several operations that must not interleave with other threads
        """
        with self._lock:
            yield self

    # ========== STATEMENTS ==========

    def execute(self, operation: str, sql: str, params: Iterable[Any] = ()) -> sqlite3.Cursor:
        """
        Execute one statement, translating backend errors.

        Raises:
            ConstraintViolationError: On a uniqueness violation
            StatementError: On any other backend failure
        """
        try:
            return self.connection.execute(sql, tuple(params))
        except sqlite3.IntegrityError as e:
            raise ConstraintViolationError(operation, str(e)) from e
        except sqlite3.Error as e:
            raise StatementError(operation, str(e)) from e

    @contextmanager
    def savepoint(self, name: str = "layerconf_write"):
        """
        Make a group of statements atomic.

        Works both inside and outside an explicit transaction. Rolls back to
        the savepoint on any exception.
        """
        self.execute("savepoint", f"SAVEPOINT {name}")
        try:
            yield self.connection
        except Exception as e:
            logger.debug(f"Rolling back savepoint {name}: {e}")
            self.execute("savepoint/rollback", f"ROLLBACK TO SAVEPOINT {name}")
            self.execute("savepoint/release", f"RELEASE SAVEPOINT {name}")
            raise
        else:
            self.execute("savepoint/release", f"RELEASE SAVEPOINT {name}")

    # ========== TRANSACTIONS ==========

    def transaction_begin(self, ttype: TransactionType = TransactionType.DEFERRED):
        """
        Begin an explicit transaction. Transactions cannot be nested.

        Raises:
            StatementError: If the transaction could not be started
        """
        ttype = TransactionType(ttype)
        self.execute("transaction_begin", f"BEGIN {ttype.value} TRANSACTION")
        logger.debug(f"Began {ttype.value.lower()} transaction")

    def transaction_commit(self):
        """Commit the current transaction."""
        self.execute("transaction_commit", "COMMIT TRANSACTION")
        logger.debug("Transaction committed")

    def transaction_rollback(self):
        """Roll back the current transaction."""
        self.execute("transaction_rollback", "ROLLBACK TRANSACTION")
        logger.debug("Transaction rolled back")

    @contextmanager
    def transaction(self, ttype: TransactionType = TransactionType.DEFERRED):
        """
        Context manager for an explicit transaction.

        Commits on success, rolls back on exception. Does not take the
        instance lock.
        """
        self.transaction_begin(ttype)
        try:
            yield self.connection
        except Exception as e:
            logger.error(f"Transaction rolled back due to error: {e}")
            self.transaction_rollback()
            raise
        self.transaction_commit()
