"""
SQLite Configuration Facade

Public API of the layered configuration store. Delegates to specialized
modules:
- persistence: session connection, lock, transactions
- resolver: typed reads/writes over host and default layers
- tags: snapshots of the host layer
- dump: SQL script export/import/merge
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Set, Union

from layerconf.exceptions import ConfigError, CouldNotOpenConfigError
from layerconf.handlers import ChangeHandler, ChangeHandlerRegistry
from layerconf.logging_config import logger
from layerconf.paths import ConfigPaths
from layerconf.schemas import TaggedEntry
from layerconf.store import dump as sqldump
from layerconf.store.codec import ValueType, tag_type
from layerconf.store.config import DEFAULTS_SCHEMA
from layerconf.store.cursor import ValueIterator
from layerconf.store.persistence import SQLitePersistence, TransactionType, connect
from layerconf.store.resolver import SQLiteResolverOperations
from layerconf.store.tags import SQLiteTagOperations


class SQLiteConfiguration:
    """
    Configuration stored in two SQLite databases.

    The host database holds instance-specific values and the tag history,
    the default database holds baseline values and is attached to the same
    session. Reads resolve the host value first and fall back to the default
    value. Only the default database is meant to be versioned, as the SQL
    script written next to it on close().

    All public operations are serialized by one re-entrant lock per
    instance; lock()/try_lock()/unlock() and locked() let a caller hold it
    across several operations.

    Usage:
        with SQLiteConfiguration(conf_dir) as config:
            config.load()
            config.set_int("/hardware/motor/max_speed", 3)
            speed = config.get_int("/hardware/motor/max_speed")

    Args:
        conf_dir: Directory relative database names are resolved in
        handlers: Registry for change handlers (a new one by default)
    """

    def __init__(
        self,
        conf_dir: Optional[Union[str, Path]] = None,
        handlers: Optional[ChangeHandlerRegistry] = None,
    ):
        self.paths = ConfigPaths(Path(conf_dir) if conf_dir is not None else None)
        self.handlers = handlers if handlers is not None else ChangeHandlerRegistry()

        self.persistence = SQLitePersistence()
        self.resolver = SQLiteResolverOperations(self.persistence, self.handlers)
        self.tagging = SQLiteTagOperations(self.persistence)

        self.host_file: Optional[Union[str, Path]] = None
        self.default_file: Optional[Union[str, Path]] = None
        self.default_script: Optional[Path] = None

    # ========== LIFECYCLE ==========

    def load(
        self,
        host_file: Optional[Union[str, Path]] = None,
        default_file: Optional[Union[str, Path]] = None,
    ):
        """
        Resolve, merge and open the configuration databases.

        Args:
            host_file: Host database; defaults to '<short hostname>.db'
            default_file: Default database; defaults to 'default.db'.
                          The script is the same name with a '.sql' suffix.
                          ':memory:' selects a non-persistent database.

        Raises:
            CouldNotOpenConfigError: If a database cannot be opened, attached or
                initialized. The instance must not be used afterwards.
            ConfigError: If already loaded, or if an earlier load failed
        """
        with self.persistence.locked():
            if self.persistence.is_open:
                raise ConfigError("Configuration has already been loaded")
            if self.persistence.failed:
                raise ConfigError("Configuration failed to load and must not be used")

            self.host_file = self.paths.host_file(host_file)
            self.default_file = self.paths.default_file(default_file)
            self.default_script = self.paths.default_script(self.default_file)

            if self.default_script is not None and os.access(self.default_script, os.R_OK):
                try:
                    sqldump.merge_default(self.default_file, self.default_script)
                except CouldNotOpenConfigError:
                    self.persistence.mark_failed()
                    raise

            self.persistence.open(self.host_file, self.default_file)

    def close(self):
        """
        Close the store and write the default database back to its script.

        Never raises. If value iterators are still open the close is aborted
        and reported; the script export is attempted either way and failures
        are only logged.
        """
        with self.persistence.locked():
            if not self.persistence.is_open:
                return
            self.persistence.close()

            if self.default_script is None:
                return
            try:
                conn = connect(self.default_file)
                try:
                    sqldump.export(conn, self.default_script)
                finally:
                    conn.close()
            except Exception as e:
                logger.error(f"Failed to dump default configuration to {self.default_script}: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ========== LOCKING ==========

    def lock(self):
        """Lock the configuration; other threads block until unlock()."""
        self.persistence.lock()

    def try_lock(self) -> bool:
        """Try to lock the configuration without blocking."""
        return self.persistence.try_lock()

    def unlock(self):
        self.persistence.unlock()

    def locked(self):
        """Context manager holding the configuration lock."""
        return self.persistence.locked()

    # ========== TRANSACTIONS ==========

    def transaction_begin(self, ttype: TransactionType = TransactionType.DEFERRED):
        return self.persistence.transaction_begin(ttype)

    def transaction_commit(self):
        return self.persistence.transaction_commit()

    def transaction_rollback(self):
        return self.persistence.transaction_rollback()

    def transaction(self, ttype: TransactionType = TransactionType.DEFERRED):
        """Context manager for atomic transactions (does not take the lock)."""
        return self.persistence.transaction(ttype)

    # ========== CHANGE HANDLERS ==========

    def add_change_handler(self, handler: ChangeHandler):
        self.handlers.add(handler)

    def rem_change_handler(self, handler: ChangeHandler):
        self.handlers.remove(handler)

    # ========== INTROSPECTION ==========

    def exists(self, path: str) -> bool:
        return self.resolver.exists(path)

    def get_type(self, path: str) -> ValueType:
        return self.resolver.get_type(path)

    def is_float(self, path: str) -> bool:
        return self.resolver.is_type(path, ValueType.FLOAT)

    def is_int(self, path: str) -> bool:
        return self.resolver.is_type(path, ValueType.INT)

    def is_uint(self, path: str) -> bool:
        return self.resolver.is_type(path, ValueType.UINT)

    def is_bool(self, path: str) -> bool:
        return self.resolver.is_type(path, ValueType.BOOL)

    def is_string(self, path: str) -> bool:
        return self.resolver.is_type(path, ValueType.STRING)

    def is_default(self, path: str) -> bool:
        return self.resolver.is_default(path)

    def get_comment(self, path: str) -> Optional[str]:
        return self.resolver.get_comment(path)

    # ========== TYPED GETTERS ==========

    def get(self, path: str, value_type: ValueType) -> Any:
        return self.resolver.get(path, ValueType(value_type))

    def get_float(self, path: str) -> float:
        return self.resolver.get(path, ValueType.FLOAT)

    def get_int(self, path: str) -> int:
        return self.resolver.get(path, ValueType.INT)

    def get_uint(self, path: str) -> int:
        return self.resolver.get(path, ValueType.UINT)

    def get_bool(self, path: str) -> bool:
        return self.resolver.get(path, ValueType.BOOL)

    def get_string(self, path: str) -> str:
        return self.resolver.get(path, ValueType.STRING)

    # ========== HOST SETTERS ==========

    def set(self, path: str, value_type: ValueType, value: Any):
        self.resolver.set(path, value_type, value)

    def set_float(self, path: str, value: float):
        self.resolver.set(path, ValueType.FLOAT, value)

    def set_int(self, path: str, value: int):
        self.resolver.set(path, ValueType.INT, value)

    def set_uint(self, path: str, value: int):
        self.resolver.set(path, ValueType.UINT, value)

    def set_bool(self, path: str, value: bool):
        self.resolver.set(path, ValueType.BOOL, value)

    def set_string(self, path: str, value: str):
        self.resolver.set(path, ValueType.STRING, value)

    def set_comment(self, path: str, comment: Optional[str]):
        self.resolver.set_comment(path, comment)

    def erase(self, path: str):
        self.resolver.erase(path)

    # ========== DEFAULT SETTERS ==========

    def set_default(self, path: str, value_type: ValueType, value: Any):
        self.resolver.set_default(path, value_type, value)

    def set_default_float(self, path: str, value: float):
        self.resolver.set_default(path, ValueType.FLOAT, value)

    def set_default_int(self, path: str, value: int):
        self.resolver.set_default(path, ValueType.INT, value)

    def set_default_uint(self, path: str, value: int):
        self.resolver.set_default(path, ValueType.UINT, value)

    def set_default_bool(self, path: str, value: bool):
        self.resolver.set_default(path, ValueType.BOOL, value)

    def set_default_string(self, path: str, value: str):
        self.resolver.set_default(path, ValueType.STRING, value)

    def set_default_comment(self, path: str, comment: Optional[str]):
        self.resolver.set_default_comment(path, comment)

    def erase_default(self, path: str):
        self.resolver.erase_default(path)

    # ========== ITERATION ==========

    def iterator(self) -> ValueIterator:
        return self.resolver.iterator()

    def search(self, prefix: str) -> ValueIterator:
        return self.resolver.search(prefix)

    def get_value(self, path: str) -> ValueIterator:
        return self.resolver.get_value(path)

    # ========== TAGS ==========

    def tag(self, name: str):
        self.tagging.tag(name)

    def tags(self) -> Set[str]:
        return self.tagging.tags()

    def tagged_entries(self, name: str) -> List[TaggedEntry]:
        return self.tagging.tagged_entries(name)

    # ========== BULK & DUMP ==========

    def copy_from(self, other: "SQLiteConfiguration"):
        """
        Copy every resolved value of another configuration into the host layer.

        Both configurations stay locked for the whole copy. Locks are taken in
        id() order so that crossed copies between two instances cannot deadlock.
        """
        first, second = sorted((self, other), key=id)
        with first.locked(), second.locked():
            with other.iterator() as values:
                entries = list(values)
            for entry in entries:
                self.set(entry.path, tag_type(entry.path, entry.type), entry.typed_value())
        logger.info(f"Copied {len(entries)} value(s) into configuration")

    def dump(self, script_path: Union[str, Path]):
        """Export the host database (values and tag history) to an SQL script."""
        with self.persistence.locked():
            sqldump.export(self.persistence.connection, script_path)

    def dump_defaults(self, script_path: Optional[Union[str, Path]] = None):
        """
        Export the default database, to its own script unless a path is given.

        Raises:
            ConfigError: If no path is given and the default database is in memory
        """
        with self.persistence.locked():
            target = script_path if script_path is not None else self.default_script
            if target is None:
                raise ConfigError("In-memory default database has no script")
            sqldump.export(self.persistence.connection, target, DEFAULTS_SCHEMA)
