"""設定リゾルバー。

CLI > .kodama/config.toml > pyproject.toml [tool.kodama]
> ユーザーグローバル設定 > KodamaConfig のデフォルト値
の順で項目単位に上書きし、KodamaConfig を構築する。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from kodama.config._sources import discover_sources
from kodama.models.config import KodamaConfig

logger = logging.getLogger(__name__)


def resolve_config(
    start_dir: Path | None = None,
    cli_overrides: Mapping[str, object] | None = None,
) -> KodamaConfig:
    """設定ソースと CLI オプションを統合して KodamaConfig を返す。

    Args:
        start_dir: 設定ファイル探索の起点。None の場合はカレントディレクトリ。
        cli_overrides: CLI オプション。値が None の項目は未指定として無視する。

    Raises:
        pydantic.ValidationError: 統合後の設定が不正な場合（未知のキーを含む）。
        tomllib.TOMLDecodeError: 設定ファイルの TOML 構文が不正な場合。
        PermissionError: 設定ファイルの読み取り権限がない場合。
    """
    start = start_dir if start_dir is not None else Path.cwd()

    values: dict[str, object] = {}
    for source in discover_sources(start):
        table = source.read()
        if table is None:
            continue
        logger.debug("Loaded %s config from %s", source.kind.value, source.path)
        values.update(table)

    if cli_overrides:
        values.update({k: v for k, v in cli_overrides.items() if v is not None})

    return KodamaConfig.model_validate(values)
