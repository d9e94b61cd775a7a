# Custom exceptions for layerconf

class ConfigError(Exception):
    """Base exception for all configuration store errors."""
    pass

class EntryNotFoundError(ConfigError):
    """Raised when a path exists in neither the host nor the default layer."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Config value for '{path}' not found")

class TypeMismatchError(ConfigError):
    """Raised when the stored type of a value differs from the requested type."""
    def __init__(self, path: str, actual: str, requested: str):
        self.path = path
        self.actual = actual
        self.requested = requested
        super().__init__(
            f"Config value for '{path}' is not of type '{requested}', but of type '{actual}'"
        )

class CouldNotOpenConfigError(ConfigError):
    """Raised if a configuration database cannot be opened, attached or initialized."""
    pass

class StatementError(ConfigError):
    """Raised when a database statement fails. Carries the backend diagnostic."""
    def __init__(self, operation: str, message: str):
        self.operation = operation
        self.message = message
        super().__init__(f"{operation}: {message}")

class ConstraintViolationError(StatementError):
    """Raised when a tag would duplicate an existing (tag, path) pair."""
    pass


class ScriptIOError(ConfigError):
    """Raised when an SQL dump script cannot be opened, read or written."""

    def __init__(self, path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Could not access SQL script '{path}': {message}")
