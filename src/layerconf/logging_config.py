"""
Logging setup for layerconf.

Console output goes to stderr unless machine mode is active. A rotating log
file in <conf_dir>/logs/ is opt-in. Environment:

  LAYERCONF_MACHINE_MODE  suppress console output
  LAYERCONF_FILE_LOGGING  also log to <conf_dir>/logs/layerconf.log
  LAYERCONF_LOG_LEVEL     console level (default INFO)
"""

import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
LOG_FILE_NAME = "layerconf.log"

_logging_configured = False


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def setup_logging(level=None, suppress_console=None, enable_file_logging=None):
    """
    Configure the global loguru logger. Only the first call has an effect
    until reset_logging() is called.

    Args:
        level: Console level; None reads LAYERCONF_LOG_LEVEL, falling back to INFO
        suppress_console: None reads LAYERCONF_MACHINE_MODE
        enable_file_logging: None reads LAYERCONF_FILE_LOGGING
    """
    global _logging_configured

    if _logging_configured:
        return
    _logging_configured = True

    logger.remove()

    if level is None:
        level = os.getenv("LAYERCONF_LOG_LEVEL", "INFO").upper()
    if suppress_console is None:
        suppress_console = _env_flag("LAYERCONF_MACHINE_MODE")
    if enable_file_logging is None:
        enable_file_logging = _env_flag("LAYERCONF_FILE_LOGGING")

    if not suppress_console:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if enable_file_logging:
        from layerconf.paths import get_paths
        paths = get_paths()
        paths.ensure_dirs()

        # store mutations are logged at DEBUG; the file keeps load/merge/export history
        logger.add(
            paths.logs_dir / LOG_FILE_NAME,
            level="INFO",
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            catch=True,
        )


def reset_logging():
    """Allow setup_logging() to reconfigure sinks (for testing)."""
    global _logging_configured
    _logging_configured = False


setup_logging()
