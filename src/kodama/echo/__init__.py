"""行エコーサーバー。

改行区切りの行を受け取り、そのまま書き戻す。
1. FrameReader: ストリームから 1 フレーム（1 行）ずつ読み出す
2. handle_echo: 1 接続分のエコー処理（ストリームは必ず 1 回だけ閉じる）
3. EchoServer / run_server: 接続ごとのタスク管理とシャットダウン
"""

from kodama.echo._framing import (
    FrameError,
    FrameReader,
    FrameTooLargeError,
    LineFrameReader,
)
from kodama.echo._handler import handle_echo
from kodama.echo._reporter import SessionReporter, create_session_reporter
from kodama.echo._server import EchoServer, run_server

__all__ = [
    "EchoServer",
    "FrameError",
    "FrameReader",
    "FrameTooLargeError",
    "LineFrameReader",
    "SessionReporter",
    "create_session_reporter",
    "handle_echo",
    "run_server",
]
