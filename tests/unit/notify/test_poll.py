"""poll_signal / SignalWatch のテスト。

通知前にコールバックが呼ばれないこと、通知後に 1 回だけ呼ばれること、
cancel / stop() で待機タスクが必ず終了することを検証する。
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import pytest

from kodama.notify import SignalWatch, poll_signal

Settle = Callable[..., Awaitable[None]]


class _Recorder:
    """コールバック呼び出しを記録する。"""

    def __init__(self) -> None:
        self.calls = 0
        self.tasks: list[asyncio.Task[object] | None] = []

    def __call__(self) -> None:
        self.calls += 1
        self.tasks.append(asyncio.current_task())


# =============================================================================
# 通知とコールバック
# =============================================================================


class TestPollSignal:
    """poll_signal の基本動作。"""

    async def test_not_called_before_signal(self, settle: Settle) -> None:
        """通知前はイベントループを回してもコールバックが呼ばれない。"""
        signal = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder)
        await settle()

        assert recorder.calls == 0
        assert not watch.called
        assert not watch.done
        watch.stop()

    async def test_called_after_signal(self, settle: Settle) -> None:
        """通知後、静止状態に達した時点でコールバックが呼ばれている。"""
        signal = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder)
        await settle()
        signal.set()
        await settle()

        assert recorder.calls == 1
        assert watch.called
        assert watch.done

    async def test_second_signal_does_not_reinvoke(self, settle: Settle) -> None:
        """通知を再度セットしてもコールバックは 1 回だけ。"""
        signal = asyncio.Event()
        recorder = _Recorder()

        poll_signal(signal, recorder)
        signal.set()
        await settle()
        signal.clear()
        signal.set()
        await settle()

        assert recorder.calls == 1

    async def test_called_flag_stays_true(self, settle: Settle) -> None:
        signal = asyncio.Event()
        watch = poll_signal(signal, _Recorder())
        signal.set()
        await settle()
        await settle()
        assert watch.called

    async def test_already_set_signal_invokes_callback(self, settle: Settle) -> None:
        """登録時点で通知済みならすぐにコールバックが呼ばれる。"""
        signal = asyncio.Event()
        signal.set()
        recorder = _Recorder()

        poll_signal(signal, recorder)
        assert recorder.calls == 0  # 登録呼び出し中には呼ばれない
        await settle()

        assert recorder.calls == 1

    async def test_callback_runs_on_watch_task(self, settle: Settle) -> None:
        """コールバックは待機タスク上で同期的に呼ばれる。"""
        signal = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder)
        signal.set()
        await settle()

        assert recorder.tasks == [watch.task]

    async def test_wait_returns_true_after_signal(self) -> None:
        signal = asyncio.Event()
        watch = poll_signal(signal, _Recorder())
        signal.set()
        assert await watch.wait() is True

    async def test_returns_signal_watch(self) -> None:
        watch = poll_signal(asyncio.Event(), _Recorder())
        assert isinstance(watch, SignalWatch)
        watch.stop()


# =============================================================================
# cancel イベント
# =============================================================================


class TestPollSignalCancel:
    """cancel イベントによる待機打ち切り。"""

    async def test_cancel_ends_watch_without_callback(self, settle: Settle) -> None:
        signal = asyncio.Event()
        cancel = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder, cancel=cancel)
        await settle()
        cancel.set()

        assert await watch.wait() is False
        assert recorder.calls == 0
        assert watch.done

    async def test_signal_after_cancel_is_ignored(self, settle: Settle) -> None:
        signal = asyncio.Event()
        cancel = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder, cancel=cancel)
        cancel.set()
        await watch.wait()
        signal.set()
        await settle()

        assert recorder.calls == 0

    async def test_signal_with_cancel_event_invokes_callback(
        self, settle: Settle
    ) -> None:
        """cancel を渡していても signal が先ならコールバックが呼ばれる。"""
        signal = asyncio.Event()
        cancel = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder, cancel=cancel)
        await settle()
        signal.set()

        assert await watch.wait() is True
        assert recorder.calls == 1

    async def test_signal_wins_when_both_already_set(self) -> None:
        """signal と cancel が同時に成立している場合は signal を優先する。"""
        signal = asyncio.Event()
        cancel = asyncio.Event()
        signal.set()
        cancel.set()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder, cancel=cancel)

        assert await watch.wait() is True
        assert recorder.calls == 1

    async def test_cancel_leaves_no_pending_tasks(self, settle: Settle) -> None:
        """打ち切り後に内部の待機タスクが残らない。"""
        before = asyncio.all_tasks()
        signal = asyncio.Event()
        cancel = asyncio.Event()

        watch = poll_signal(signal, _Recorder(), cancel=cancel)
        await settle()
        cancel.set()
        await watch.wait()
        await settle()

        assert asyncio.all_tasks() == before


# =============================================================================
# stop()
# =============================================================================


class TestSignalWatchStop:
    """SignalWatch.stop() のテスト。"""

    async def test_stop_before_signal_prevents_callback(self, settle: Settle) -> None:
        signal = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder)
        await settle()

        assert watch.stop() is True
        signal.set()
        await settle()

        assert recorder.calls == 0
        assert watch.done
        assert await watch.wait() is False

    async def test_stop_after_callback_returns_false(self, settle: Settle) -> None:
        signal = asyncio.Event()
        watch = poll_signal(signal, _Recorder())
        signal.set()
        await settle()

        assert watch.stop() is False

    async def test_stop_between_signal_and_resume(self, settle: Settle) -> None:
        """通知後、待機タスクが再開する前に stop() すればコールバックは呼ばれない。"""
        signal = asyncio.Event()
        recorder = _Recorder()

        watch = poll_signal(signal, recorder)
        await settle()
        signal.set()

        assert watch.stop() is True
        await settle()
        assert recorder.calls == 0

    async def test_stop_twice(self, settle: Settle) -> None:
        watch = poll_signal(asyncio.Event(), _Recorder())
        assert watch.stop() is True
        await settle()
        assert watch.stop() is False


# =============================================================================
# コールバック例外
# =============================================================================


class TestSignalCallbackError:
    """コールバックが例外を送出した場合。"""

    async def test_error_recorded_and_logged(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        def _boom() -> None:
            raise ValueError("boom")

        signal = asyncio.Event()
        watch = poll_signal(signal, _boom)
        signal.set()

        with caplog.at_level(logging.WARNING, logger="kodama.notify._poll"):
            assert await watch.wait() is True

        assert isinstance(watch.error, ValueError)
        assert watch.called
        assert "boom" in caplog.text

    async def test_task_completes_without_exception(self) -> None:
        """例外はタスクの外に漏れない。"""

        def _boom() -> None:
            raise RuntimeError("boom")

        signal = asyncio.Event()
        watch = poll_signal(signal, _boom)
        signal.set()
        await watch.wait()

        assert watch.task.exception() is None
        assert watch.task.result() is True
