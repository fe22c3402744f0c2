"""SignalHandler — SIGINT/SIGTERM ハンドリング。

シグナル受信時に shutdown_event をセットし、poll_signal() の待機タスクへ
停止を通知する。
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable
from typing import Final

logger = logging.getLogger(__name__)

HANDLED_SIGNALS: Final[tuple[signal.Signals, ...]] = (signal.SIGINT, signal.SIGTERM)


def _make_handler(
    shutdown_event: asyncio.Event, sig: signal.Signals
) -> Callable[[], None]:
    def _handler() -> None:
        logger.info("Received %s, shutting down", sig.name)
        shutdown_event.set()

    return _handler


def install_signal_handlers(
    shutdown_event: asyncio.Event,
    loop: asyncio.AbstractEventLoop,
) -> None:
    """SIGINT/SIGTERM シグナルハンドラを登録する。

    Args:
        shutdown_event: 停止を通知するイベント。
        loop: 現在の asyncio イベントループ。
    """
    for sig in HANDLED_SIGNALS:
        loop.add_signal_handler(sig, _make_handler(shutdown_event, sig))


def uninstall_signal_handlers(
    loop: asyncio.AbstractEventLoop,
) -> None:
    """シグナルハンドラを解除する。サーバー停止後にクリーンアップする。

    Args:
        loop: 現在の asyncio イベントループ。
    """
    for sig in HANDLED_SIGNALS:
        loop.remove_signal_handler(sig)
