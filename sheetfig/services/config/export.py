"""
Snapshot Export

JSON codec for snapshots and the local file used both as export target
and as a fallback source. Export and fallback share one schema:

    {
      "app_name": "Fallback App",
      "version_code": 123,
      "is_enabled": true,
      "timeout": 45.5
    }
"""

import json
from pathlib import Path
from typing import Any

from sheetfig.common.exceptions import ExportError, FallbackFileError
from sheetfig.common.logging_setup import get_service_logger

from .cache import Snapshot
from .validator import ConfigValidator

logger = get_service_logger("config.export")

_validator = ConfigValidator()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} is not allowed")


def encode_snapshot(snapshot: Snapshot) -> bytes:
    """Serialize a snapshot to UTF-8 JSON bytes"""
    return json.dumps(
        snapshot.to_dict(),
        indent=2,
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def decode_payload(data: bytes | str) -> dict[str, Any]:
    """
    Decode and validate JSON key/value bytes.

    Raises:
        ValueError: malformed JSON or a payload that fails validation
    """
    if isinstance(data, bytes):
        data = data.decode("utf-8")

    payload = json.loads(data, parse_constant=_reject_constant)

    is_valid, errors = _validator.validate(payload)
    if not is_valid:
        raise ValueError("; ".join(errors))

    return payload


def decode_snapshot(data: bytes | str) -> Snapshot:
    """Inverse of encode_snapshot"""
    return Snapshot.from_dict(decode_payload(data))


class LocalConfigFile:
    """
    Local JSON file holding a key/value mapping.

    Read failures name the path; writes create parent directories.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> dict[str, Any]:
        """
        Read and validate the file.

        Raises:
            FallbackFileError: missing, unreadable or malformed file
        """
        if not self.path.exists():
            raise FallbackFileError(
                f"Local fallback file not found: {self.path}", str(self.path)
            )

        try:
            payload = decode_payload(self.path.read_bytes())
        except (OSError, ValueError) as e:
            raise FallbackFileError(
                f"Failed to parse local fallback file {self.path}: {e}", str(self.path)
            ) from e

        logger.info(
            f"Loaded {len(payload)} configuration values from local file: {self.path}",
            extra={"path": str(self.path), "value_count": len(payload)},
        )
        return payload

    def read_snapshot(self) -> Snapshot:
        return Snapshot.from_dict(self.read())

    def write(self, snapshot: Snapshot) -> None:
        """
        Write a snapshot to the file.

        Raises:
            ExportError: serialization or file system failure
        """
        try:
            content = encode_snapshot(snapshot)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(content)
        except (OSError, ValueError) as e:
            raise ExportError(
                f"Failed to export configuration to {self.path}: {e}", str(self.path)
            ) from e

        logger.info(
            f"Exported {len(snapshot)} configuration values to {self.path}",
            extra={"path": str(self.path), "value_count": len(snapshot)},
        )
