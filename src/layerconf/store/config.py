"""
SQLite Store Configuration

Centralized configuration for the configuration store subsystem.
"""

# Reserved location selecting a non-persistent in-memory database
MEMORY_LOCATION = ":memory:"

# File naming
DEFAULT_FILE_NAME = "default.db"
HOST_FILE_SUFFIX = ".db"
SCRIPT_SUFFIX = ".sql"
SCRATCH_PREFIX = "tmp_default_"

# Schema name the default database is attached under
DEFAULTS_SCHEMA = "defaults"

# Table names
CONFIG_TABLE = "config"
TAGGED_TABLE = "tagged_config"

# Connection settings
DEFAULT_TIMEOUT = 30.0
