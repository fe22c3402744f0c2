"""InitHandler -- init サブコマンドのビジネスロジック。

.kodama/config.toml をコメント付きテンプレートで生成する。
既存ファイルは --force 指定時のみ上書きする。
"""

from __future__ import annotations

from pathlib import Path

from kodama.config._sources import CONFIG_FILE_NAME, PROJECT_DIR_NAME
from kodama.models._base import KodamaBaseModel
from kodama.models.config import (
    DEFAULT_HOST,
    DEFAULT_MAX_LINE_BYTES,
    DEFAULT_PORT,
    DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
)


class InitError(Exception):
    """init コマンドのエラー。

    エラーメッセージは解決方法のヒントを含む。
    """


class InitResult(KodamaBaseModel):
    """init コマンドの実行結果。

    Attributes:
        created: 新規作成されたファイルのパスタプル。
        skipped: 既存のためスキップされたファイルのパスタプル。
    """

    created: tuple[Path, ...] = ()
    skipped: tuple[Path, ...] = ()


_CONFIG_TEMPLATE: str = """\
# kodama configuration
# Uncomment and modify settings as needed.

# --- Listener Settings ---

# Address to bind
# host = "{host}"

# TCP port (0 = pick a free port)
# port = {port}

# --- Handler Settings ---

# Echo mode: "plain" or "accumulate"
# mode = "plain"

# Maximum bytes per line before the session is closed
# max_line_bytes = {max_line_bytes}

# --- Shutdown Settings ---

# Seconds to wait for active sessions after SIGINT/SIGTERM
# shutdown_timeout = {shutdown_timeout}

# --- Output Settings ---

# Log level: "debug", "info", "warning" or "error"
# log_level = "warning"

# Show session progress on stderr
# report_sessions = true
"""


def _generate_config_template() -> str:
    """コメント付き config.toml テンプレートを生成する。

    全設定項目をコメントとして記載し、デフォルト値を示す。
    """
    return _CONFIG_TEMPLATE.format(
        host=DEFAULT_HOST,
        port=DEFAULT_PORT,
        max_line_bytes=DEFAULT_MAX_LINE_BYTES,
        shutdown_timeout=DEFAULT_SHUTDOWN_TIMEOUT_SECONDS,
    )


def run_init(project_root: Path, *, force: bool = False) -> InitResult:
    """init コマンドのビジネスロジックを実行する。

    手順:
    1. .kodama/ ディレクトリ作成
    2. .kodama/config.toml 生成（コメント付きテンプレート）

    Args:
        project_root: プロジェクトルートディレクトリ。
        force: True の場合、既存ファイルを上書きする。

    Returns:
        InitResult: 作成・スキップされたファイル情報。

    Raises:
        InitError: ファイルシステム操作エラー等。
    """
    kodama_dir = project_root / PROJECT_DIR_NAME
    config_path = kodama_dir / CONFIG_FILE_NAME

    created: list[Path] = []
    skipped: list[Path] = []

    try:
        kodama_dir.mkdir(parents=True, exist_ok=True)

        if config_path.exists() and not force:
            skipped.append(config_path)
        else:
            config_path.write_text(_generate_config_template(), encoding="utf-8")
            created.append(config_path)
    except OSError as e:
        raise InitError(
            f"Failed to initialize {PROJECT_DIR_NAME}/: {e}\n"
            "Check directory permissions and available disk space."
        ) from e

    return InitResult(created=tuple(created), skipped=tuple(skipped))
