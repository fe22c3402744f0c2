"""設定ソースの探索と読み込み。

ソースは優先度の低い順に 3 つ:
    user      ~/.config/kodama/config.toml（$XDG_CONFIG_HOME があればその配下）
    pyproject 最も近い pyproject.toml の [tool.kodama]
    project   最も近い .kodama/config.toml
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Final

PROJECT_DIR_NAME: Final[str] = ".kodama"
CONFIG_FILE_NAME: Final[str] = "config.toml"
PYPROJECT_FILE_NAME: Final[str] = "pyproject.toml"
PYPROJECT_TABLE: Final[tuple[str, ...]] = ("tool", "kodama")


class SourceKind(StrEnum):
    """設定ソースの種別。"""

    USER = "user"
    PYPROJECT = "pyproject"
    PROJECT = "project"


@dataclass(frozen=True)
class ConfigSource:
    """1 つの TOML 設定ソース。

    Attributes:
        kind: ソース種別。
        path: TOML ファイルのパス。存在しなくてもよい。
        table: 設定を格納したテーブルのキー列。空ならファイル全体。
    """

    kind: SourceKind
    path: Path
    table: tuple[str, ...] = ()

    def read(self) -> dict[str, object] | None:
        """設定テーブルを読み込む。

        ファイルまたはテーブルが存在しない場合は None を返す。

        Raises:
            tomllib.TOMLDecodeError: TOML 構文エラーの場合。
            PermissionError: 読み取り権限がない場合。
        """
        try:
            with self.path.open("rb") as f:
                data: object = tomllib.load(f)
        except FileNotFoundError:
            return None
        for key in self.table:
            if not isinstance(data, dict):
                return None
            data = data.get(key)
        return data if isinstance(data, dict) else None


def user_config_path() -> Path:
    """ユーザーグローバル設定ファイルのパス（存在チェックは行わない）。"""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "kodama" / CONFIG_FILE_NAME


def _ancestors(start: Path) -> Iterator[Path]:
    current = start.resolve()
    yield current
    yield from current.parents


def find_project_root(start: Path) -> Path | None:
    """start から親方向に .kodama/ を持つディレクトリを探す。"""
    for directory in _ancestors(start):
        if (directory / PROJECT_DIR_NAME).is_dir():
            return directory
    return None


def find_pyproject_toml(start: Path) -> Path | None:
    """start から親方向に最も近い pyproject.toml を探す。"""
    for directory in _ancestors(start):
        candidate = directory / PYPROJECT_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def discover_sources(start: Path) -> list[ConfigSource]:
    """start を起点に、存在し得る設定ソースを優先度の低い順に返す。"""
    sources = [ConfigSource(SourceKind.USER, user_config_path())]

    pyproject = find_pyproject_toml(start)
    if pyproject is not None:
        sources.append(ConfigSource(SourceKind.PYPROJECT, pyproject, PYPROJECT_TABLE))

    project_root = find_project_root(start)
    if project_root is not None:
        # .kodama/ はあるが config.toml が未作成でも read() が None を返す
        sources.append(
            ConfigSource(
                SourceKind.PROJECT,
                project_root / PROJECT_DIR_NAME / CONFIG_FILE_NAME,
            )
        )
    return sources
