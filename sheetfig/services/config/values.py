"""
Configuration Values

Closed set of value shapes a snapshot can hold:
- Absent: key present with no value (empty cell, JSON null)
- Text:   string cell
- Number: JSON number (int or float)
- Flag:   JSON boolean

Coercion rules work on these shapes rather than on raw Python types.
"""

from dataclasses import dataclass
from typing import Any


class _Absent:
    """Singleton marker for a missing value"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class Text:
    value: str

    def as_text(self) -> str:
        return self.value


@dataclass(frozen=True)
class Number:
    value: int | float

    def as_text(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class Flag:
    value: bool

    def as_text(self) -> str:
        return "true" if self.value else "false"


ConfigValue = _Absent | Text | Number | Flag


def from_raw(raw: Any) -> ConfigValue:
    """
    Wrap a raw decoded value.

    Raises:
        TypeError: if raw is not None, str, bool, int or float
    """
    if raw is None:
        return ABSENT
    # bool first: bool is a subclass of int
    if isinstance(raw, bool):
        return Flag(raw)
    if isinstance(raw, (int, float)):
        return Number(raw)
    if isinstance(raw, str):
        return Text(raw)
    raise TypeError(f"Unsupported config value type: {type(raw).__name__}")


def to_raw(value: ConfigValue) -> Any:
    """Unwrap a value back to its plain Python form"""
    if value is ABSENT:
        return None
    return value.value
