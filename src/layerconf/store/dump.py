"""
SQL Dump, Import and Merge

Serializes a database into a re-executable SQL script and back, and merges
a versioned default script into a live default database without
overwriting values that already exist there.

Script format: one statement per line (string literals may span lines),
each terminated by ';' and a newline, wrapped in BEGIN TRANSACTION/COMMIT.
"""

import os
import sqlite3
import tempfile
from pathlib import Path
from typing import Iterator, Union

from layerconf.logging_config import logger
from layerconf.exceptions import (
    ConfigError,
    CouldNotOpenConfigError,
    ScriptIOError,
    StatementError,
)
from layerconf.store.config import SCRATCH_PREFIX
from layerconf.store.persistence import connect
from layerconf.store.schema import MERGE_SCRATCH, init_default_schema


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _table_inserts(conn: sqlite3.Connection, schema_name: str, table: str) -> Iterator[str]:
    """
    Yield one INSERT statement per row of table.

    Values are rendered by SQLite's quote() so that re-executing the
    statements reproduces them exactly.
    """
    qschema = _quote_identifier(schema_name)
    qtable = _quote_identifier(table)
    columns = [row[1] for row in conn.execute(f"PRAGMA {qschema}.table_info({qtable})")]
    if not columns:
        return

    rendered = " || ',' || ".join(f"quote({_quote_identifier(c)})" for c in columns)
    literal_table = qtable.replace("'", "''")
    query = (
        f"SELECT 'INSERT INTO ' || '{literal_table}' || ' VALUES(' || {rendered} || ')' "
        f"FROM {qschema}.{qtable}"
    )
    cursor = conn.execute(query)
    try:
        for row in cursor:
            yield row[0]
    finally:
        cursor.close()


def export(conn: sqlite3.Connection, script_path: Union[str, Path], schema_name: str = "main"):
    """
    Dump every table of a database schema to an SQL script.

    The script is written to a temporary file next to script_path and moved
    into place once complete.

    Args:
        conn: Connection the schema is reachable from
        script_path: Destination file
        schema_name: "main" or the name of an attached database

    Raises:
        ScriptIOError: If the script cannot be written
        StatementError: If reading the database fails
    """
    script_path = Path(script_path)
    tmp_path = script_path.with_name(script_path.name + ".tmp")
    qschema = _quote_identifier(schema_name)
    rows = 0

    try:
        f = open(tmp_path, "w", encoding="utf-8", newline="\n")
    except OSError as e:
        raise ScriptIOError(script_path, str(e)) from e

    try:
        with f:
            f.write("BEGIN TRANSACTION;\n")
            tables = conn.execute(
                f"SELECT name, sql FROM {qschema}.sqlite_master "
                f"WHERE sql NOT NULL AND type == 'table' AND name NOT LIKE 'sqlite_%' "
                f"ORDER BY name"
            ).fetchall()
            for name, sql in tables:
                f.write(f"{sql};\n")
                for statement in _table_inserts(conn, schema_name, name):
                    f.write(f"{statement};\n")
                    rows += 1
            f.write("COMMIT;\n")
        os.replace(tmp_path, script_path)
    except sqlite3.Error as e:
        tmp_path.unlink(missing_ok=True)
        raise StatementError("export", str(e)) from e
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise ScriptIOError(script_path, str(e)) from e

    logger.info(f"Exported {rows} row(s) of schema '{schema_name}' to {script_path}")


def iter_statements(script_path: Union[str, Path]) -> Iterator[str]:
    """
    Stream complete SQL statements from a script.

    Lines are accumulated until they form a complete statement, so string
    literals containing ';' or newlines are handled.

    Raises:
        ScriptIOError: If the script cannot be opened or read
    """
    try:
        f = open(script_path, "r", encoding="utf-8", newline="")
    except OSError as e:
        raise ScriptIOError(script_path, str(e)) from e

    with f:
        buffer = ""
        try:
            for line in f:
                buffer += line
                if sqlite3.complete_statement(buffer):
                    yield buffer
                    buffer = ""
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptIOError(script_path, str(e)) from e
        if buffer.strip():
            yield buffer


def import_script(conn: sqlite3.Connection, script_path: Union[str, Path]) -> int:
    """
    Execute an SQL script statement by statement.

    Aborts on the first failing statement; a transaction opened by the
    script is rolled back.

    Returns:
        Number of statements executed

    Raises:
        ScriptIOError: If the script cannot be read
        StatementError: If a statement fails
    """
    count = 0
    try:
        for statement in iter_statements(script_path):
            conn.execute(statement)
            count += 1
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.rollback()
        raise StatementError("import", str(e)) from e
    except ScriptIOError:
        if conn.in_transaction:
            conn.rollback()
        raise

    logger.debug(f"Imported {count} statement(s) from {script_path}")
    return count


def merge_default(default_file: Union[str, Path], script_path: Union[str, Path]):
    """
    Merge a default SQL script into the default database.

    If the default database does not exist yet the script is imported into
    it directly. Otherwise the script is imported into a scratch database and
    only values whose path is missing from the default database are copied;
    existing default values are never overwritten.

    Raises:
        CouldNotOpenConfigError: If import or merge fails
    """
    default_file = Path(default_file)

    if not default_file.exists():
        default_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = connect(default_file)
            try:
                import_script(conn, script_path)
                init_default_schema(conn)
            finally:
                conn.close()
        except (ConfigError, sqlite3.Error) as e:
            default_file.unlink(missing_ok=True)
            raise CouldNotOpenConfigError(f"Failed to import dump file into default DB: {e}") from e
        logger.info(f"Created default database {default_file} from {script_path}")
        return

    fd, scratch = tempfile.mkstemp(prefix=SCRATCH_PREFIX, suffix=".db", dir=default_file.parent)
    os.close(fd)
    try:
        scratch_conn = connect(scratch)
        try:
            import_script(scratch_conn, script_path)
            init_default_schema(scratch_conn)
        finally:
            scratch_conn.close()

        conn = connect(default_file)
        try:
            init_default_schema(conn)
            conn.execute("ATTACH DATABASE ? AS scratch", (scratch,))
            added = conn.execute(MERGE_SCRATCH).rowcount
            conn.execute("DETACH DATABASE scratch")
        finally:
            conn.close()
    except (ConfigError, sqlite3.Error, OSError) as e:
        raise CouldNotOpenConfigError(f"Failed to merge dump into default DB: {e}") from e
    finally:
        Path(scratch).unlink(missing_ok=True)

    logger.info(f"Merged {added} new default value(s) from {script_path} into {default_file}")
