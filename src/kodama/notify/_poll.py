"""SignalWatch — 通知イベント発火時にコールバックを 1 回だけ呼び出す。

poll_signal() は待機タスクを 1 つだけ生成し、通知イベントがセットされるまで
ブロックしたのち、そのタスク上でコールバックを同期的に呼び出す。
cancel イベントまたは SignalWatch.stop() で待機を打ち切れるため、
通知が来ない場合でも待機タスクは必ず終了させられる。
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress

logger = logging.getLogger(__name__)


class SignalWatch:
    """poll_signal() が生成する待機タスクのハンドル。

    Attributes:
        task: 待機タスク。コールバックを呼び出した場合 True で完了する。
        error: コールバックが送出した例外。送出しなかった場合は None。
    """

    def __init__(
        self,
        signal: asyncio.Event,
        on_signal: Callable[[], object],
        cancel: asyncio.Event | None,
    ) -> None:
        self._signal = signal
        self._on_signal = on_signal
        self._cancel = cancel
        self._called = False
        self.error: Exception | None = None
        self.task: asyncio.Task[bool] = asyncio.create_task(self._run())

    @property
    def called(self) -> bool:
        """コールバックが呼び出されたかどうか。"""
        return self._called

    @property
    def done(self) -> bool:
        """待機タスクが終了したかどうか（呼び出し済み・キャンセル済みを含む）。"""
        return self.task.done()

    def stop(self) -> bool:
        """待機を打ち切る。

        Returns:
            コールバックの呼び出しを阻止した場合 True。
            既に呼び出し済み、または待機が終了していた場合 False。
        """
        if self.task.done():
            return False
        self.task.cancel()
        return True

    async def wait(self) -> bool:
        """待機タスクの終了を待ち、コールバックが呼び出されたかどうかを返す。

        stop() で打ち切られた場合も例外は送出せず False を返す。
        """
        await asyncio.wait({self.task})
        return self._called

    async def _run(self) -> bool:
        if not await self._wait_for_signal():
            logger.debug("Signal watch cancelled before signal")
            return False

        self._called = True
        try:
            self._on_signal()
        except Exception as exc:
            logger.warning(
                "Signal callback %r failed with %s: %s",
                self._on_signal,
                type(exc).__name__,
                exc,
                exc_info=True,
            )
            self.error = exc
        return True

    async def _wait_for_signal(self) -> bool:
        """signal と cancel のうち先に発火した方を判定する。signal なら True。"""
        if self._cancel is None:
            await self._signal.wait()
            return True

        signal_waiter = asyncio.create_task(self._signal.wait())
        cancel_waiter = asyncio.create_task(self._cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {signal_waiter, cancel_waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in (signal_waiter, cancel_waiter):
                waiter.cancel()
                with suppress(asyncio.CancelledError):
                    await waiter

        return signal_waiter in done


def poll_signal(
    signal: asyncio.Event,
    on_signal: Callable[[], object],
    *,
    cancel: asyncio.Event | None = None,
) -> SignalWatch:
    """signal がセットされたら on_signal を 1 回だけ呼び出す待機タスクを生成する。

    実行中のイベントループ内から呼び出すこと。

    保証:
        - on_signal は高々 1 回しか呼び出されない（signal の再セットは無視される）。
        - signal がセットされる前に on_signal が呼び出されることはない。
        - on_signal は待機タスク上で同期的に呼び出される。

    cancel が先にセットされた場合、on_signal は呼び出されずに待機タスクが終了する。
    on_signal が送出した例外はログに記録し SignalWatch.error に保持する。

    Args:
        signal: 1 回限りの通知として扱うイベント。
        on_signal: 引数なしのコールバック。
        cancel: 待機を打ち切るイベント。None の場合は signal が来るまで待ち続ける。

    Returns:
        SignalWatch: 待機タスクのハンドル。
    """
    return SignalWatch(signal, on_signal, cancel)
