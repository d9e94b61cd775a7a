"""
CLI Configuration

Centralized configuration for the layerconf CLI.
"""

import os
from typing import Optional


class CLIConfig:
    """Configuration for CLI commands"""

    # Machine mode (plain, parseable output)
    _machine_mode: Optional[bool] = None

    @classmethod
    def set_machine_mode(cls, enabled: bool) -> None:
        """Set machine mode (pure data output, no presentation)"""
        cls._machine_mode = enabled

    @classmethod
    def is_machine_mode(cls) -> bool:
        """
        Check if machine mode is active.

        Machine mode is the default. Returns False only if human mode is
        requested via --human or LAYERCONF_HUMAN_MODE.
        """
        if cls._machine_mode is not None:
            return cls._machine_mode
        if os.getenv("LAYERCONF_HUMAN_MODE", "").lower() in ("1", "true", "yes"):
            return False
        return True

    @classmethod
    def reset(cls) -> None:
        """Forget an explicit mode (for testing)."""
        cls._machine_mode = None
