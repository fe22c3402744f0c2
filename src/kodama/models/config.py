"""設定管理モデル。

サーバー設定項目の定義とバリデーション。
全項目にデフォルト値があり、設定ファイルなしでも有効なインスタンスを構築できる。
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

from pydantic import Field, StrictBool, field_validator

from kodama.models._base import KodamaBaseModel, normalize_enum_value

DEFAULT_HOST: Final[str] = "127.0.0.1"
DEFAULT_PORT: Final[int] = 7007
DEFAULT_MAX_LINE_BYTES: Final[int] = 64 * 1024

# SIGINT/SIGTERM 受信後、残りのセッションをキャンセルするまでの猶予時間（秒）
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS: Final[float] = 3.0


class EchoMode(StrEnum):
    """エコーハンドラの動作モード。

    plain: 行ごとに書き戻すのみ。
    accumulate: 書き戻しに加えて受信行をバッファに蓄積し、セッション結果として返す。
    """

    PLAIN = "plain"
    ACCUMULATE = "accumulate"


class LogLevel(StrEnum):
    """ルートロガーに設定するログレベル。"""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class KodamaConfig(KodamaBaseModel):
    """全設定項目を統合した不変モデル。

    デフォルト値のみで有効なインスタンスを構築可能。
    """

    # 待ち受け設定
    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)

    # ハンドラ設定
    mode: EchoMode = EchoMode.PLAIN
    max_line_bytes: int = Field(default=DEFAULT_MAX_LINE_BYTES, gt=0)

    # シャットダウン設定
    shutdown_timeout: float = Field(default=DEFAULT_SHUTDOWN_TIMEOUT_SECONDS, gt=0)

    # 出力設定
    log_level: LogLevel = LogLevel.WARNING
    report_sessions: StrictBool = True

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: object) -> object:
        """mode の大文字小文字を正規化する。"""
        return normalize_enum_value(v, EchoMode)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """log_level の大文字小文字を正規化する。"""
        return normalize_enum_value(v, LogLevel)
