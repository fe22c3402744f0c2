"""RichSessionReporter — TTY 環境向け Rich Live テーブル表示。

サーバー稼働中のセッション一覧をリアルタイムに stderr へ表示する。
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Final

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from kodama.echo._reporter import report_listening, report_summary
from kodama.models.session import CloseReason, ServeSummary, SessionResult

MAX_VISIBLE_ROWS: Final[int] = 20
"""テーブルに表示する最新セッション数の上限。"""


@dataclass
class SessionRow:
    """テーブル行の状態。"""

    peer: str
    lines: int = 0
    status: str = "open"


class RichSessionReporter:
    """TTY 環境向け Rich Live テーブルレポーター。

    テーブル列: # | Peer | Lines | Status
    行順序: セッション ID 順。MAX_VISIBLE_ROWS を超えた古い行は破棄する。
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console: Console = console or Console(file=sys.stderr)
        self._live: Live | None = None
        self.sessions: dict[int, SessionRow] = {}

    def on_listening(self, host: str, port: int) -> None:
        report_listening(host, port)

    def on_session_open(self, session_id: int, peer: str | None) -> None:
        """セッションを open 状態として登録する。"""
        self.sessions[session_id] = SessionRow(peer=peer or "unknown")
        self._prune()
        self._refresh()

    def on_session_closed(self, session_id: int, result: SessionResult) -> None:
        """セッションのステータスを終了理由に応じて更新する。"""
        row = self.sessions.get(session_id)
        if row is None:
            row = self.sessions[session_id] = SessionRow(peer=result.peer or "unknown")
        row.lines = result.lines_echoed
        row.status = result.close_reason.value
        self._prune()
        self._refresh()

    def on_session_cancelled(self, session_id: int) -> None:
        """キャンセルされたセッションのステータスを cancelled にする。"""
        row = self.sessions.get(session_id)
        if row is not None:
            row.status = "cancelled"
            self._refresh()

    def on_shutdown(self, summary: ServeSummary) -> None:
        report_summary(summary)

    def start(self) -> None:
        """Rich Live 表示を開始する。"""
        live = Live(
            self.build_table(),
            console=self._console,
            refresh_per_second=4,
        )
        live.__enter__()
        self._live = live

    def stop(self) -> None:
        """Rich Live 表示を停止する。"""
        if self._live is not None:
            live, self._live = self._live, None
            live.__exit__(None, None, None)

    def build_table(self) -> Table:
        """現在の状態からテーブルを構築する。"""
        table = Table(title="Sessions")
        table.add_column("#", justify="right")
        table.add_column("Peer")
        table.add_column("Lines", justify="right")
        table.add_column("Status")

        for session_id in sorted(self.sessions):
            row = self.sessions[session_id]
            table.add_row(
                str(session_id), row.peer, str(row.lines), _render_status(row.status)
            )

        return table

    def _prune(self) -> None:
        while len(self.sessions) > MAX_VISIBLE_ROWS:
            del self.sessions[min(self.sessions)]

    def _refresh(self) -> None:
        """Live 表示を更新する（Live がアクティブな場合のみ）。"""
        if self._live is not None:
            self._live.update(self.build_table())


def _render_status(status: str) -> Text | Spinner:
    """ステータス文字列を Rich レンダラブルに変換する。"""
    if status == "open":
        return Spinner("dots", text="open", style="cyan")
    if status == CloseReason.EOF:
        return Text(f"✓ {status}", style="green")
    if status == CloseReason.PARTIAL_LINE:
        return Text(f"⚠ {status}", style="yellow")
    return Text(f"✗ {status}", style="red")
