from pydantic import BaseModel
from typing import Any, Optional

from layerconf.store.codec import ValueType, decode, decode_any


class ConfigValue(BaseModel):
    """
    A resolved configuration entry as yielded by value iterators.

    is_default is True if the row came from the default layer, i.e. no
    host row shadows it.
    """
    path: str
    type: str
    value: Any
    comment: Optional[str] = None
    is_default: bool = False

    def is_float(self) -> bool:
        return self.type == ValueType.FLOAT.value

    def is_int(self) -> bool:
        return self.type == ValueType.INT.value

    def is_uint(self) -> bool:
        return self.type == ValueType.UINT.value

    def is_bool(self) -> bool:
        return self.type == ValueType.BOOL.value

    def is_string(self) -> bool:
        return self.type == ValueType.STRING.value

    def get_float(self) -> float:
        return decode(self.path, self.type, ValueType.FLOAT, self.value)

    def get_int(self) -> int:
        return decode(self.path, self.type, ValueType.INT, self.value)

    def get_uint(self) -> int:
        return decode(self.path, self.type, ValueType.UINT, self.value)

    def get_bool(self) -> bool:
        return decode(self.path, self.type, ValueType.BOOL, self.value)

    def get_string(self) -> str:
        return decode(self.path, self.type, ValueType.STRING, self.value)

    def typed_value(self) -> Any:
        """Value decoded according to its own type tag."""
        return decode_any(self.path, self.type, self.value)


class TaggedEntry(BaseModel):
    """
    A row of the tag history table.
    """
    tag: str
    path: str
    type: str
    value: Any
    comment: Optional[str] = None
