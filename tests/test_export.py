import json

import pytest

from sheetfig.common.exceptions import ExportError, FallbackFileError
from sheetfig.services.config.cache import Snapshot
from sheetfig.services.config.export import (
    LocalConfigFile,
    decode_snapshot,
    encode_snapshot,
)
from sheetfig.services.config.validator import ConfigValidator


def test_round_trip_preserves_values():
    snapshot = Snapshot.from_dict({
        "name": "Ünïcode app",
        "count": 789,
        "ratio": 0.75,
        "enabled": False,
        "unset": None,
    })

    restored = decode_snapshot(encode_snapshot(snapshot))

    assert restored == snapshot
    assert restored.to_dict() == snapshot.to_dict()


def test_export_is_plain_json_object():
    data = json.loads(encode_snapshot(Snapshot.from_dict({"a": "1", "b": 2})))

    assert data == {"a": "1", "b": 2}


def test_write_creates_parent_directories(tmp_path):
    path = tmp_path / "nested" / "dir" / "config.json"

    LocalConfigFile(path).write(Snapshot.from_dict({"export_test": "original"}))

    assert json.loads(path.read_text()) == {"export_test": "original"}


def test_write_failure_raises_export_error(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")

    with pytest.raises(ExportError) as exc_info:
        LocalConfigFile(blocker / "config.json").write(Snapshot.from_dict({"a": 1}))

    assert exc_info.value.path == str(blocker / "config.json")


def test_read_missing_file_names_path(tmp_path):
    path = tmp_path / "missing.json"

    with pytest.raises(FallbackFileError) as exc_info:
        LocalConfigFile(path).read()

    assert str(path) in str(exc_info.value)


@pytest.mark.parametrize("content", [
    "{not json",
    "[1, 2, 3]",
    '{"nested": {"a": 1}}',
    '{"bad": NaN}',
    '{"big": 1e400}',
])
def test_read_malformed_file_names_path(tmp_path, content):
    path = tmp_path / "broken.json"
    path.write_text(content)

    with pytest.raises(FallbackFileError) as exc_info:
        LocalConfigFile(path).read()

    assert exc_info.value.path == str(path)
    assert str(path) in str(exc_info.value)


def test_validator_reports_every_problem():
    is_valid, errors = ConfigValidator().validate({"": 1, "list": [1], "ok": "x"})

    assert is_valid is False
    assert len(errors) == 2


def test_validator_rejects_out_of_range_numbers():
    is_valid, errors = ConfigValidator().validate({"big": float("inf"), "ok": 1.5})

    assert is_valid is False
    assert errors == ["big: number inf is out of range"]
