"""
SQLite Schema Definitions

Table definitions and the overlay queries that resolve a path against the
host table first and the attached default table second.
"""

import sqlite3
from typing import Optional

from layerconf.logging_config import logger
from layerconf.store.config import CONFIG_TABLE, DEFAULTS_SCHEMA, TAGGED_TABLE


def config_table_sql(schema: Optional[str] = None) -> str:
    """CREATE statement for a config table, optionally in an attached schema."""
    table = f"{schema}.{CONFIG_TABLE}" if schema else CONFIG_TABLE
    return f"""CREATE TABLE IF NOT EXISTS {table} (
  path      TEXT NOT NULL,
  type      TEXT NOT NULL,
  value     NOT NULL,
  comment   TEXT,
  PRIMARY KEY (path)
)"""


TAGGED_TABLE_SQL = f"""CREATE TABLE IF NOT EXISTS {TAGGED_TABLE} (
  tag       TEXT NOT NULL,
  path      TEXT NOT NULL,
  type      TEXT NOT NULL,
  value     NOT NULL,
  comment   TEXT,
  PRIMARY KEY (tag, path)
)"""

HOST = CONFIG_TABLE
DEFAULT = f"{DEFAULTS_SCHEMA}.{CONFIG_TABLE}"

# Resolution: a default row is only visible if no host row shadows it
SELECT_VALUE_TYPE = f"""
    SELECT path, type, value, comment, 0 AS is_default FROM {HOST} WHERE path = ?
    UNION ALL
    SELECT path, type, value, comment, 1 AS is_default FROM {DEFAULT} AS dc
    WHERE path = ? AND NOT EXISTS (SELECT path FROM {HOST} WHERE dc.path = path)
"""

SELECT_ALL = f"""
    SELECT path, type, value, comment, 0 AS is_default FROM {HOST}
    UNION ALL
    SELECT path, type, value, comment, 1 AS is_default FROM {DEFAULT} AS dc
    WHERE NOT EXISTS (SELECT path FROM {HOST} WHERE dc.path = path)
    ORDER BY path
"""

# Prefix match via substr() so '%' and '_' in the prefix are literal
SELECT_PREFIX = f"""
    SELECT path, type, value, comment, 0 AS is_default FROM {HOST}
    WHERE substr(path, 1, ?) = ?
    UNION ALL
    SELECT path, type, value, comment, 1 AS is_default FROM {DEFAULT} AS dc
    WHERE substr(path, 1, ?) = ?
      AND NOT EXISTS (SELECT path FROM {HOST} WHERE dc.path = path)
    ORDER BY path
"""

UPDATE_VALUE = "UPDATE {table} SET type = ?, value = ? WHERE path = ?"
INSERT_VALUE = "INSERT INTO {table} (path, type, value) VALUES (?, ?, ?)"
UPDATE_COMMENT = "UPDATE {table} SET comment = ? WHERE path = ?"
DELETE_VALUE = "DELETE FROM {table} WHERE path = ?"

SELECT_TAGS = f"SELECT tag FROM {TAGGED_TABLE} GROUP BY tag"
INSERT_TAG = (
    f"INSERT INTO {TAGGED_TABLE} (tag, path, type, value, comment) "
    f"SELECT ?, path, type, value, comment FROM {HOST}"
)
SELECT_TAGGED = (
    f"SELECT tag, path, type, value, comment FROM {TAGGED_TABLE} "
    f"WHERE tag = ? ORDER BY path"
)

# Copy rows of an attached scratch database into a live default database
MERGE_SCRATCH = f"""
    INSERT INTO {CONFIG_TABLE} (path, type, value, comment)
    SELECT path, type, value, comment FROM scratch.{CONFIG_TABLE} AS sc
    WHERE NOT EXISTS (SELECT path FROM {CONFIG_TABLE} WHERE path = sc.path)
"""


def init_schema(conn: sqlite3.Connection):
    """
    Create host, default and tag tables if missing.

    Expects the default database to be attached as DEFAULTS_SCHEMA.
    """
    conn.execute(config_table_sql())
    conn.execute(config_table_sql(DEFAULTS_SCHEMA))
    conn.execute(TAGGED_TABLE_SQL)
    logger.debug("Configuration schema ensured")


def init_default_schema(conn: sqlite3.Connection):
    """Create the config table of a standalone default database."""
    conn.execute(config_table_sql())
