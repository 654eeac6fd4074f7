"""
Config Service - Remote Configuration

Responsibilities:
- Load key/value configuration from a shared sheet
- Fall back to local JSON files in order
- Cache the snapshot in memory and serve typed reads
- Refresh in the background when TTL reads expire
- Export snapshots for reuse as fallbacks
"""

from .service import Fig
from .cache import ConfigCache, Snapshot
from .loader import ConfigSource, LocalFileSource, SheetSource, SourceLoader
from .sync import SheetSync, normalize_sheet_url

__all__ = [
    "Fig",
    "ConfigCache",
    "Snapshot",
    "ConfigSource",
    "LocalFileSource",
    "SheetSource",
    "SourceLoader",
    "SheetSync",
    "normalize_sheet_url",
]
