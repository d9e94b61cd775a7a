"""
layerconf: layered configuration store.

Typed key-value configuration resolved against a host (override) database
and a default database, with tags and SQL script export.
"""

from layerconf.store import SQLiteConfiguration, TransactionType, ValueIterator, ValueType
from layerconf.handlers import ChangeHandler, ChangeHandlerRegistry
from layerconf.schemas import ConfigValue, TaggedEntry
from layerconf.exceptions import (
    ConfigError,
    ConstraintViolationError,
    CouldNotOpenConfigError,
    EntryNotFoundError,
    ScriptIOError,
    StatementError,
    TypeMismatchError,
)

__version__ = "0.1.0"

__all__ = [
    "SQLiteConfiguration",
    "TransactionType",
    "ValueIterator",
    "ValueType",
    "ChangeHandler",
    "ChangeHandlerRegistry",
    "ConfigValue",
    "TaggedEntry",
    "ConfigError",
    "ConstraintViolationError",
    "CouldNotOpenConfigError",
    "EntryNotFoundError",
    "ScriptIOError",
    "StatementError",
    "TypeMismatchError",
]
