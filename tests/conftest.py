"""テスト共通フィクスチャ。

並行処理の観測は「全タスクがブロック中」になるまでイベントループを回して行う。
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import pytest
from anyio import fail_after

_SETTLE_ROUNDS = 10
_POLL_INTERVAL_SECONDS = 0.01


async def _settle(rounds: int = _SETTLE_ROUNDS) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    with fail_after(timeout):
        while not predicate():
            await asyncio.sleep(_POLL_INTERVAL_SECONDS)


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    """イベントループを数周回し、I/O を伴わないタスクを静止状態まで進める。"""
    return _settle


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    """実ソケットを伴うテスト向けに、条件が真になるまでポーリングする。"""
    return _wait_until
