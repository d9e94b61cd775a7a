"""
Value Codec

Maps the five value kinds onto their SQLite storage representation and
enforces the type tag invariant on reads.
"""

from enum import Enum
from typing import Any, Union

from layerconf.exceptions import TypeMismatchError


class ValueType(str, Enum):
    """Type tags as stored in the 'type' column."""

    FLOAT = "float"
    INT = "int"
    UINT = "unsigned int"
    BOOL = "bool"
    STRING = "string"

    @classmethod
    def parse(cls, text: Union[str, "ValueType"]) -> "ValueType":
        """
        Parse a stored tag or a short name (float, int, uint, bool, string).

        Raises:
            ValueError: If the text names no known type
        """
        if isinstance(text, ValueType):
            return text
        lowered = text.strip().lower()
        if lowered in _SHORT_NAMES:
            return _SHORT_NAMES[lowered]
        return cls(lowered)


_SHORT_NAMES = {
    "float": ValueType.FLOAT,
    "double": ValueType.FLOAT,
    "int": ValueType.INT,
    "uint": ValueType.UINT,
    "unsigned int": ValueType.UINT,
    "bool": ValueType.BOOL,
    "string": ValueType.STRING,
    "str": ValueType.STRING,
}

# SQLite INTEGER is a signed 64-bit value
INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1

_TRUE_LITERALS = ("true", "yes", "on", "1")
_FALSE_LITERALS = ("false", "no", "off", "0")


def encode(path: str, value_type: ValueType, value: Any) -> Union[float, int, str]:
    """
    Convert a Python value into the representation bound to the 'value' column.

    Args:
        path: Path the value is written to (for error messages)
        value_type: Requested value kind
        value: Python value

    Returns:
        float for FLOAT, int for INT/UINT/BOOL (bool as 1/0), str for STRING

    Raises:
        TypeMismatchError: If value cannot be represented as value_type
    """
    actual = type(value).__name__

    if value_type == ValueType.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeMismatchError(path, actual, value_type.value)
        try:
            return float(value)
        except OverflowError as e:
            raise TypeMismatchError(path, f"{actual} out of float range", value_type.value) from e

    if value_type in (ValueType.INT, ValueType.UINT):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeMismatchError(path, actual, value_type.value)
        if value_type == ValueType.UINT and value < 0:
            raise TypeMismatchError(path, ValueType.INT.value, ValueType.UINT.value)
        if not INT_MIN <= value <= INT_MAX:
            raise TypeMismatchError(path, f"{actual} out of 64-bit range", value_type.value)
        return int(value)

    if value_type == ValueType.BOOL:
        if not isinstance(value, bool):
            raise TypeMismatchError(path, actual, value_type.value)
        return 1 if value else 0

    if not isinstance(value, str):
        raise TypeMismatchError(path, actual, value_type.value)
    return value


def decode(path: str, stored_type: str, requested: ValueType, raw: Any) -> Any:
    """
    Convert a stored value into a Python value of the requested kind.

    A negative integer requested as UINT counts as a type error, not a
    value error.

    Raises:
        TypeMismatchError: If stored_type differs from requested or raw cannot
            be read as the requested kind
    """
    if stored_type != requested.value:
        raise TypeMismatchError(path, stored_type, requested.value)

    try:
        if requested == ValueType.FLOAT:
            return float(raw)
        if requested == ValueType.INT:
            return int(raw)
        if requested == ValueType.UINT:
            number = int(raw)
            if number < 0:
                raise TypeMismatchError(path, ValueType.INT.value, ValueType.UINT.value)
            return number
        if requested == ValueType.BOOL:
            return int(raw) != 0
    except (TypeError, ValueError) as e:
        # the stored value does not fit its tag, e.g. rows from a foreign script
        raise TypeMismatchError(path, type(raw).__name__, requested.value) from e
    return str(raw)


def tag_type(path: str, stored_type: str) -> ValueType:
    """
    Map a stored type tag to its ValueType.

    Raises:
        TypeMismatchError: If the tag names none of the five kinds
    """
    try:
        return ValueType(stored_type)
    except ValueError as e:
        raise TypeMismatchError(path, stored_type, "one of " + ", ".join(t.value for t in ValueType)) from e


def decode_any(path: str, stored_type: str, raw: Any) -> Any:
    """Decode a stored value according to its own type tag."""
    value_type = tag_type(path, stored_type)
    if value_type == ValueType.UINT:
        # untyped reads report the stored integer as is
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise TypeMismatchError(path, type(raw).__name__, value_type.value) from e
    return decode(path, stored_type, value_type, raw)


def parse_literal(value_type: ValueType, text: str) -> Any:
    """
    Convert command-line text into a typed value.

    Raises:
        ValueError: If text is not a valid literal for value_type
    """
    if value_type == ValueType.FLOAT:
        return float(text)
    if value_type in (ValueType.INT, ValueType.UINT):
        return int(text, 0)
    if value_type == ValueType.BOOL:
        lowered = text.strip().lower()
        if lowered in _TRUE_LITERALS:
            return True
        if lowered in _FALSE_LITERALS:
            return False
        raise ValueError(f"Not a boolean literal: {text!r}")
    return text
