"""
layerconf Path Configuration

Resolves the locations of the host (override) database, the default
database and the default SQL script.

Directory Structure (conf_dir):
<conf_dir>/
├── <hostname>.db        # Host-specific overrides and tag history
├── default.db           # Default values
├── default.sql          # Versioned dump of default.db
└── logs/                # Log files (opt-in)
"""

import os
import socket
from pathlib import Path
from typing import Optional, Union

from layerconf.store.config import (
    DEFAULT_FILE_NAME,
    HOST_FILE_SUFFIX,
    MEMORY_LOCATION,
    SCRIPT_SUFFIX,
)


def get_short_hostname() -> str:
    """
    Host identity used to name the host database.

    LAYERCONF_HOSTNAME takes precedence over the system host name.
    Domain parts are stripped ("robot1.example.org" -> "robot1").
    """
    name = os.getenv("LAYERCONF_HOSTNAME") or socket.gethostname()
    short = name.split(".")[0]
    return short or "localhost"


def is_memory(location: Union[str, Path, None]) -> bool:
    """Check whether a location is the reserved in-memory token."""
    return location is not None and str(location) == MEMORY_LOCATION


class ConfigPaths:
    """
    Centralized path configuration for a configuration directory.

    Relative file names are looked up relative to the current working
    directory first and fall back to conf_dir if no such file exists there.
    """

    LOGS_DIR = "logs"

    def __init__(self, conf_dir: Optional[Path] = None):
        """
        Args:
            conf_dir: Configuration directory. Defaults to LAYERCONF_CONF_DIR or CWD.
        """
        self._conf_dir = Path(conf_dir) if conf_dir is not None else None

    @property
    def conf_dir(self) -> Path:
        """Get the configuration directory."""
        if self._conf_dir is not None:
            return self._conf_dir
        env_dir = os.getenv("LAYERCONF_CONF_DIR")
        if env_dir:
            return Path(env_dir)
        return Path.cwd()

    @property
    def logs_dir(self) -> Path:
        """Get the logs directory path."""
        return self.conf_dir / self.LOGS_DIR

    def resolve(self, name: Union[str, Path]) -> Union[str, Path]:
        """
        Resolve a database or script name.

        The in-memory token is returned unchanged. Absolute paths and names
        that exist relative to the CWD are used as given, anything else is
        placed in conf_dir.
        """
        if is_memory(name):
            return MEMORY_LOCATION
        path = Path(name)
        if path.is_absolute() or path.exists():
            return path
        return self.conf_dir / path

    def host_file(self, name: Optional[Union[str, Path]] = None) -> Union[str, Path]:
        """Host database location; defaults to '<short hostname>.db'."""
        if name is None:
            name = f"{get_short_hostname()}{HOST_FILE_SUFFIX}"
        return self.resolve(name)

    def default_file(self, name: Optional[Union[str, Path]] = None) -> Union[str, Path]:
        """Default database location; defaults to 'default.db'."""
        return self.resolve(name if name is not None else DEFAULT_FILE_NAME)

    def default_script(self, default_file: Union[str, Path]) -> Optional[Path]:
        """
        SQL script belonging to a default database.

        Returns:
            The default file with its suffix replaced by '.sql', or None for
            an in-memory default database.
        """
        if is_memory(default_file):
            return None
        return Path(default_file).with_suffix(SCRIPT_SUFFIX)

    def ensure_dirs(self) -> None:
        """Create the configuration and logs directories if they don't exist."""
        self.conf_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(exist_ok=True)


# Global singleton
_paths: Optional[ConfigPaths] = None


def get_paths(conf_dir: Optional[Path] = None) -> ConfigPaths:
    """
    Get the path configuration.

    Args:
        conf_dir: Optional explicit configuration directory (not cached)

    Returns:
        ConfigPaths instance
    """
    global _paths
    if conf_dir is not None:
        return ConfigPaths(conf_dir)
    if _paths is None:
        _paths = ConfigPaths()
    return _paths
