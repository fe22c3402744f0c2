"""kodama ドメインモデルパッケージ。"""

from kodama.models._base import KodamaBaseModel
from kodama.models.config import EchoMode, KodamaConfig, LogLevel
from kodama.models.exit_code import ExitCode
from kodama.models.session import CloseReason, ServeSummary, SessionResult

__all__ = [
    "CloseReason",
    "EchoMode",
    "ExitCode",
    "KodamaBaseModel",
    "KodamaConfig",
    "LogLevel",
    "ServeSummary",
    "SessionResult",
]
