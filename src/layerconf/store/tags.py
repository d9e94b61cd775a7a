"""
Tag Manager

Copies the host layer into the append-only tag history under a name.
"""

from typing import List, Set

from layerconf.logging_config import logger
from layerconf.schemas import TaggedEntry
from layerconf.store import schema
from layerconf.store.persistence import SQLitePersistence


class SQLiteTagOperations:
    """Snapshots of the host table. There is no restore operation."""

    def __init__(self, persistence: SQLitePersistence):
        self._persistence = persistence

    def tag(self, name: str):
        """
        Record every current host value under name.

        A single INSERT ... SELECT, so either all rows are copied or none.

        Raises:
            ConstraintViolationError: If name was already used for one of the copied paths
        """
        with self._persistence.locked():
            cursor = self._persistence.execute("tag", schema.INSERT_TAG, (name,))
            logger.debug(f"Tagged {cursor.rowcount} value(s) as '{name}'")

    def tags(self) -> Set[str]:
        """Distinct tag names ever recorded."""
        with self._persistence.locked():
            cursor = self._persistence.execute("tags", schema.SELECT_TAGS)
            try:
                return {row["tag"] for row in cursor.fetchall()}
            finally:
                cursor.close()

    def tagged_entries(self, name: str) -> List[TaggedEntry]:
        """Rows recorded under name, ordered by path."""
        with self._persistence.locked():
            cursor = self._persistence.execute("tagged_entries", schema.SELECT_TAGGED, (name,))
            try:
                return [TaggedEntry(**dict(row)) for row in cursor.fetchall()]
            finally:
                cursor.close()
