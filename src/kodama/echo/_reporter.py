"""SessionReporter — stderr へのセッション進捗表示。

TTY 時は Rich Live テーブル、非 TTY 時はプレーンテキストで自動切替する。
進捗表示は全て stderr に出力する。
"""

from __future__ import annotations

import sys
from typing import Protocol, runtime_checkable

from kodama.models.session import ServeSummary, SessionResult


# =============================================================================
# SessionReporter Protocol
# =============================================================================


@runtime_checkable
class SessionReporter(Protocol):
    """サーバーのセッション進捗を報告するプロトコル。"""

    def on_listening(self, host: str, port: int) -> None:
        """待ち受け開始を通知する。"""
        ...

    def on_session_open(self, session_id: int, peer: str | None) -> None:
        """セッション開始を通知する。"""
        ...

    def on_session_closed(self, session_id: int, result: SessionResult) -> None:
        """セッション終了を通知する。"""
        ...

    def on_session_cancelled(self, session_id: int) -> None:
        """シャットダウン猶予時間超過によるセッションのキャンセルを通知する。"""
        ...

    def on_shutdown(self, summary: ServeSummary) -> None:
        """サーバー停止を通知する。"""
        ...

    def start(self) -> None:
        """進捗表示を開始する。"""
        ...

    def stop(self) -> None:
        """進捗表示を停止する。"""
        ...


# =============================================================================
# NullSessionReporter / PlainSessionReporter
# =============================================================================


class NullSessionReporter:
    """何も表示しないレポーター。report_sessions = false 時に使用する。"""

    def on_listening(self, host: str, port: int) -> None:
        pass

    def on_session_open(self, session_id: int, peer: str | None) -> None:
        pass

    def on_session_closed(self, session_id: int, result: SessionResult) -> None:
        pass

    def on_session_cancelled(self, session_id: int) -> None:
        pass

    def on_shutdown(self, summary: ServeSummary) -> None:
        pass

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass


class PlainSessionReporter:
    """非 TTY 環境向けプレーンテキストレポーター。"""

    def on_listening(self, host: str, port: int) -> None:
        report_listening(host, port)

    def on_session_open(self, session_id: int, peer: str | None) -> None:
        print(f"Session #{session_id} opened ({peer or 'unknown'})", file=sys.stderr)

    def on_session_closed(self, session_id: int, result: SessionResult) -> None:
        print(f"Session #{session_id}: {format_session(result)}", file=sys.stderr)

    def on_session_cancelled(self, session_id: int) -> None:
        print(f"Session #{session_id} cancelled", file=sys.stderr)

    def on_shutdown(self, summary: ServeSummary) -> None:
        report_summary(summary)

    def start(self) -> None:
        """プレーンテキストでは開始処理なし。"""

    def stop(self) -> None:
        """プレーンテキストでは停止処理なし。"""


# =============================================================================
# ファクトリ関数・出力ヘルパー
# =============================================================================


def create_session_reporter(enabled: bool = True) -> SessionReporter:
    """stderr の TTY 状態に基づいて適切な SessionReporter を生成する。

    enabled が False の場合は NullSessionReporter、TTY の場合は
    RichSessionReporter、非 TTY の場合は PlainSessionReporter を返す。
    """
    if not enabled:
        return NullSessionReporter()
    if sys.stderr.isatty():
        from kodama.echo._live_reporter import RichSessionReporter

        return RichSessionReporter()
    return PlainSessionReporter()


def format_session(result: SessionResult) -> str:
    """SessionResult を 1 行の要約に整形する。

    出力フォーマット:
        "{reason} ({N} lines, {M} bytes echoed)"
        断片破棄時は末尾に ", {K} bytes discarded" を付加する。
    """
    msg = (
        f"{result.close_reason.value} "
        f"({result.lines_echoed} lines, {result.bytes_echoed} bytes echoed"
    )
    if result.discarded:
        msg += f", {len(result.discarded)} bytes discarded"
    return msg + ")"


def report_listening(host: str, port: int) -> None:
    """待ち受けアドレスを stderr に表示する。

    出力フォーマット:
        "Listening on {host}:{port}"
    """
    print(f"Listening on {host}:{port}", file=sys.stderr)


def report_summary(summary: ServeSummary) -> None:
    """停止時のサマリーを stderr に表示する。

    出力フォーマット:
        "Server stopped: {N} sessions ({L} lines echoed, {C} cancelled)"
    """
    print(
        f"Server stopped: {summary.sessions} sessions "
        f"({summary.total_lines} lines echoed, {summary.cancelled} cancelled)",
        file=sys.stderr,
    )
