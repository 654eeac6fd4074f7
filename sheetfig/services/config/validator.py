"""
Configuration Validator

Validates decoded fallback/import payloads before they become a snapshot.
"""

import math
from typing import Any

from sheetfig.common.logging_setup import get_service_logger

logger = get_service_logger("config.validator")

SCALAR_TYPES = (str, int, float, bool)


class ConfigValidator:
    """Validates a decoded key/value payload"""

    def validate(self, payload: Any) -> tuple[bool, list[str]]:
        """
        Validate a payload.

        A valid payload is a JSON object whose keys are non-empty strings
        and whose values are strings, numbers, booleans or null.

        Args:
            payload: Decoded JSON document

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors: list[str] = []

        if not isinstance(payload, dict):
            errors.append(
                f"Expected a JSON object of key/value pairs, got {type(payload).__name__}"
            )
        else:
            for key, value in payload.items():
                errors.extend(self._validate_entry(key, value))

        is_valid = len(errors) == 0

        if not is_valid:
            logger.warning(
                f"Config payload validation failed: {len(errors)} errors",
                extra={"errors": errors},
            )
        else:
            logger.debug("Config payload validation passed")

        return is_valid, errors

    def _validate_entry(self, key: Any, value: Any) -> list[str]:
        """Validate one key/value pair"""
        errors = []

        if not isinstance(key, str) or not key:
            errors.append(f"Invalid key {key!r}: must be a non-empty string")

        if value is not None and not isinstance(value, SCALAR_TYPES):
            errors.append(
                f"{key}: unsupported value type {type(value).__name__} "
                "(use string, number, boolean or null)"
            )
        elif isinstance(value, float) and not math.isfinite(value):
            errors.append(f"{key}: number {value!r} is out of range")

        return errors
