"""
Configuration Dataclasses

Settings for a Fig engine: where the sheet lives, which local files
to fall back to and how to talk to the sheet endpoint.

Settings come from a YAML file, with environment variable overrides:

    sheet:
      url: https://docs.google.com/spreadsheets/d/<id>/edit?usp=sharing
      name: Sheet1
      timeout_s: 30
    fallback:
      paths:
        - /etc/myapp/config-backup.json
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .logging_setup import get_service_logger

logger = get_service_logger("settings")

DEFAULT_SETTINGS_PATH = "sheetfig.yaml"
ENV_SETTINGS_PATH = "SHEETFIG_CONFIG"
ENV_SHEET_URL = "SHEETFIG_SHEET_URL"
ENV_FALLBACK_PATH = "SHEETFIG_FALLBACK_PATH"


@dataclass
class FigSettings:
    """Engine configuration"""
    sheet_url: str | None = None
    fallback_paths: list[str] = field(default_factory=list)
    sheet_name: str = "Sheet1"
    key_column: str = "key"
    value_column: str = "value"
    request_timeout_s: float = 30.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FigSettings":
        """Load FigSettings from a nested dictionary (e.g., parsed YAML)"""
        sheet = data.get("sheet") or {}
        fallback = data.get("fallback") or {}

        paths = fallback.get("paths") or []
        if isinstance(paths, str):
            paths = [paths]
        single_path = fallback.get("path")
        if single_path:
            paths = [single_path, *paths]

        return cls(
            sheet_url=sheet.get("url"),
            fallback_paths=[str(p) for p in paths],
            sheet_name=sheet.get("name", "Sheet1"),
            key_column=sheet.get("key_column", "key"),
            value_column=sheet.get("value_column", "value"),
            request_timeout_s=float(sheet.get("timeout_s", 30.0)),
        )

    def apply_env(self, environ: dict[str, str] | None = None) -> "FigSettings":
        """Override fields from SHEETFIG_* environment variables"""
        env = os.environ if environ is None else environ

        sheet_url = env.get(ENV_SHEET_URL)
        if sheet_url:
            self.sheet_url = sheet_url

        fallback = env.get(ENV_FALLBACK_PATH)
        if fallback:
            self.fallback_paths = [p for p in fallback.split(os.pathsep) if p]

        return self


def load_settings(
    path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> FigSettings:
    """
    Load settings from YAML file plus environment.

    A missing or broken file is not fatal: defaults are used and the
    problem is logged.

    Args:
        path: YAML file path (defaults to $SHEETFIG_CONFIG or sheetfig.yaml)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        FigSettings instance
    """
    env = os.environ if environ is None else environ
    config_path = Path(path or env.get(ENV_SETTINGS_PATH) or DEFAULT_SETTINGS_PATH)

    data: dict[str, Any] = {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning(f"Settings file not found: {config_path}")
    except yaml.YAMLError as e:
        logger.error(f"Error parsing settings: {e}")

    if not isinstance(data, dict):
        logger.error(f"Settings file must contain a mapping: {config_path}")
        data = {}

    return FigSettings.from_dict(data).apply_env(env)
