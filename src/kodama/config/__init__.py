"""設定管理モジュール。"""

from kodama.config._resolver import resolve_config
from kodama.config._sources import (
    ConfigSource,
    SourceKind,
    discover_sources,
    find_project_root,
)

__all__ = [
    "ConfigSource",
    "SourceKind",
    "discover_sources",
    "find_project_root",
    "resolve_config",
]
