"""EchoServer — TCP 接続ごとに EchoHandler を実行するサーバー。

1 接続につき 1 タスクで handle_echo() を実行する。完了したセッションは集計値と
直近 RECENT_RESULTS_LIMIT 件の結果（accumulated は除去）のみを保持する。
停止時は新規接続の受け付けを止めたのち、稼働中のセッションを猶予時間だけ待ち、
残りをキャンセルする。
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Final

from anyio import fail_after

from kodama.echo._framing import LineFrameReader
from kodama.echo._handler import format_peer, handle_echo
from kodama.echo._reporter import NullSessionReporter, SessionReporter
from kodama.models.config import KodamaConfig
from kodama.models.session import ServeSummary, SessionResult
from kodama.notify import (
    install_signal_handlers,
    poll_signal,
    uninstall_signal_handlers,
)

logger = logging.getLogger(__name__)

RECENT_RESULTS_LIMIT: Final[int] = 100
"""EchoServer.results に保持する直近セッション結果の上限。"""


class EchoServer:
    """行エコーサーバー。

    Attributes:
        results: 直近に完了したセッションの結果（完了順、最大 RECENT_RESULTS_LIMIT 件）。
            accumulated は除去して保持する。
    """

    def __init__(
        self,
        config: KodamaConfig,
        *,
        reporter: SessionReporter | None = None,
    ) -> None:
        self._config = config
        self._reporter: SessionReporter = (
            reporter if reporter is not None else NullSessionReporter()
        )
        self._server: asyncio.Server | None = None
        self._sessions: set[asyncio.Task[object]] = set()
        self._next_session_id = 0
        self._closed = False
        self._completed = 0
        self._total_lines = 0
        self._total_bytes = 0
        self.results: deque[SessionResult] = deque(maxlen=RECENT_RESULTS_LIMIT)

    @property
    def address(self) -> tuple[str, int]:
        """待ち受け中のアドレス (host, port)。port=0 指定時は実際の割当ポート。

        Raises:
            RuntimeError: start() 前、またはソケットが存在しない場合。
        """
        if self._server is None or not self._server.sockets:
            raise RuntimeError("Server is not listening")
        sockname = self._server.sockets[0].getsockname()
        return sockname[0], sockname[1]

    @property
    def is_accepting(self) -> bool:
        """新規接続を受け付けているかどうか。"""
        return self._server is not None and self._server.is_serving()

    @property
    def active_sessions(self) -> int:
        """稼働中のセッション数。"""
        return len(self._sessions)

    @property
    def completed_sessions(self) -> int:
        """完了したセッションの累計数。results の上限とは無関係に数える。"""
        return self._completed

    async def start(self) -> None:
        """config.host:config.port で待ち受けを開始する。

        Raises:
            RuntimeError: 既に開始済みの場合。
            OSError: bind に失敗した場合。
        """
        if self._server is not None:
            raise RuntimeError("Server already started")
        self._server = await asyncio.start_server(
            self._on_connection,
            self._config.host,
            self._config.port,
            limit=self._config.max_line_bytes,
        )
        host, port = self.address
        logger.info("Listening on %s:%d (mode=%s)", host, port, self._config.mode.value)
        self._reporter.on_listening(host, port)

    def stop_accepting(self) -> None:
        """新規接続の受け付けを停止する。稼働中のセッションはそのまま継続する。"""
        if self._server is not None and self._server.is_serving():
            self._server.close()
            logger.info(
                "Stopped accepting connections (%d active)", len(self._sessions)
            )

    async def drain(self, timeout: float) -> int:
        """稼働中のセッションの完了を待つ。

        timeout 秒以内に完了しなかったセッションはキャンセルする。
        キャンセルされたセッションもハンドラ内でストリームが閉じられる。

        Args:
            timeout: 待機する猶予時間（秒）。

        Returns:
            キャンセルしたセッション数。
        """
        pending = set(self._sessions)
        if not pending:
            return 0

        try:
            with fail_after(timeout):
                await asyncio.wait(pending)
        except TimeoutError:
            unfinished = [task for task in pending if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.wait(unfinished)
            logger.warning(
                "Shutdown timeout (%ss) expired, cancelled %d session(s)",
                timeout,
                len(unfinished),
            )
            return len(unfinished)
        return 0

    async def close(self) -> int:
        """受け付けを停止し、セッションを drain してからリスナーを閉じる。

        2 回目以降の呼び出しは何もせず 0 を返す。

        Returns:
            シャットダウン猶予時間を超えてキャンセルしたセッション数。
        """
        if self._closed:
            return 0
        self._closed = True

        self.stop_accepting()
        cancelled = await self.drain(self._config.shutdown_timeout)
        if self._server is not None:
            await self._server.wait_closed()
        return cancelled

    async def __aenter__(self) -> EchoServer:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _on_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._sessions.add(task)
        self._next_session_id += 1
        session_id = self._next_session_id
        self._reporter.on_session_open(
            session_id, format_peer(writer.get_extra_info("peername"))
        )

        frames = LineFrameReader(reader, limit=self._config.max_line_bytes)
        try:
            result = await handle_echo(
                reader, writer, mode=self._config.mode, frame_reader=frames
            )
        except asyncio.CancelledError:
            self._reporter.on_session_cancelled(session_id)
            raise
        finally:
            if task is not None:
                self._sessions.discard(task)

        self._record(result)
        self._reporter.on_session_closed(session_id, result)

    def _record(self, result: SessionResult) -> None:
        self._completed += 1
        self._total_lines += result.lines_echoed
        self._total_bytes += result.bytes_echoed
        if result.accumulated is not None:
            result = result.model_copy(update={"accumulated": None})
        self.results.append(result)

    def summary(self, cancelled: int = 0) -> ServeSummary:
        """完了セッションの集計から ServeSummary を構築する。"""
        return ServeSummary(
            sessions=self._completed,
            total_lines=self._total_lines,
            total_bytes=self._total_bytes,
            cancelled=cancelled,
            recent=tuple(self.results),
        )


async def run_server(
    config: KodamaConfig,
    *,
    shutdown_event: asyncio.Event | None = None,
    reporter: SessionReporter | None = None,
) -> ServeSummary:
    """シャットダウン要求までサーバーを稼働させ、停止時のサマリーを返す。

    フロー:
        1. EchoServer で待ち受け開始
        2. SIGINT/SIGTERM → shutdown_event のハンドラを登録
        3. poll_signal() で shutdown_event 発火時に新規受け付けを停止
        4. 稼働中のセッションを config.shutdown_timeout 以内に drain
        5. シグナルハンドラ解除

    Args:
        config: サーバー設定。
        shutdown_event: 停止を通知するイベント。None の場合は内部で生成し、
            OS シグナルのみが停止契機となる。
        reporter: 進捗レポーター。None の場合は何も表示しない。

    Returns:
        ServeSummary: 完了セッションの結果とキャンセル数。

    Raises:
        OSError: bind に失敗した場合。
    """
    event = shutdown_event if shutdown_event is not None else asyncio.Event()
    session_reporter: SessionReporter = (
        reporter if reporter is not None else NullSessionReporter()
    )
    loop = asyncio.get_running_loop()

    server = EchoServer(config, reporter=session_reporter)
    await server.start()
    watch = poll_signal(event, server.stop_accepting)

    try:
        install_signal_handlers(event, loop)
        session_reporter.start()
        await watch.wait()
    finally:
        watch.stop()
        try:
            cancelled = await server.close()
        finally:
            try:
                session_reporter.stop()
            finally:
                uninstall_signal_handlers(loop)

    summary = server.summary(cancelled)
    session_reporter.on_shutdown(summary)
    return summary
