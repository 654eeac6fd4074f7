"""
Value Coercion

Best-effort conversion from a stored value to the type a caller asks for.
Every function returns the caller's default instead of raising, so a
badly typed sheet cell can never crash the reading application.
"""

import math
import re

from .values import ABSENT, ConfigValue, Flag, Number

# Plain decimal or scientific notation; no "nan", "inf" or "1_000"
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")

INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1


def parse_decimal(text: str) -> float | None:
    """Parse decimal/scientific text, None if not a finite number"""
    text = text.strip()
    if not _DECIMAL_RE.fullmatch(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return number


def round_half_up(number: float) -> int:
    # number + 0.5 can round up in float arithmetic (0.49999999999999994)
    floor = math.floor(number)
    return floor + (1 if number - floor >= 0.5 else 0)


def _as_number(value: ConfigValue) -> float | None:
    if isinstance(value, Number):
        try:
            number = float(value.value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, Flag):
        return None
    return parse_decimal(value.as_text())


def coerce_string(value: ConfigValue, default: str | None = None) -> str | None:
    if value is ABSENT:
        return default
    return value.as_text()


def _coerce_integral(
    value: ConfigValue,
    default: int | None,
    lower: int,
    upper: int,
) -> int | None:
    if value is ABSENT:
        return default
    if isinstance(value, Number) and isinstance(value.value, int):
        rounded = value.value
    else:
        # Spreadsheets often store 25 as "25.0"
        number = _as_number(value)
        if number is None:
            return default
        rounded = round_half_up(number)
    if rounded < lower or rounded > upper:
        return default
    return rounded


def coerce_int(value: ConfigValue, default: int | None = None) -> int | None:
    return _coerce_integral(value, default, INT32_MIN, INT32_MAX)


def coerce_long(value: ConfigValue, default: int | None = None) -> int | None:
    return _coerce_integral(value, default, INT64_MIN, INT64_MAX)


def coerce_double(value: ConfigValue, default: float | None = None) -> float | None:
    if value is ABSENT:
        return default
    number = _as_number(value)
    return default if number is None else number


# Python floats are double precision; float and double share one rule.
coerce_float = coerce_double


def coerce_boolean(value: ConfigValue, default: bool | None = None) -> bool | None:
    """Strict "true"/"false" match, case-insensitive. "1" or "yes" -> default."""
    if value is ABSENT:
        return default
    if isinstance(value, Flag):
        return value.value
    if isinstance(value, Number):
        return default

    text = value.as_text().lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return default
