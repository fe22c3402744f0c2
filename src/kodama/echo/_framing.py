"""FrameReader — ストリームから 1 フレームずつ読み出す抽象。

ハンドラの制御構造を変えずにフレーミング方式を差し替えられるよう、
「1 フレーム読む → バイト列か終端」という能力だけを Protocol として定義する。
現在の実装は改行区切りの LineFrameReader のみ。
"""

from __future__ import annotations

import asyncio
from typing import Final, Protocol, runtime_checkable

LINE_DELIMITER: Final[bytes] = b"\n"


class FrameError(Exception):
    """フレーム読み取りの失敗。トランスポート層の OSError とは区別する。"""


class FrameTooLargeError(FrameError):
    """区切り文字が見つかる前にストリームのバッファ上限を超えた。

    Attributes:
        limit: 超過したバッファ上限（バイト）。不明な場合は None。
    """

    def __init__(self, limit: int | None = None) -> None:
        if limit is None:
            message = "Frame exceeds the stream buffer limit without delimiter"
        else:
            message = f"Frame exceeds {limit} bytes without delimiter"
        super().__init__(message)
        self.limit = limit


@runtime_checkable
class FrameReader(Protocol):
    """1 フレームずつ読み出すプロトコル。"""

    @property
    def remainder(self) -> bytes:
        """終端到達時に残った未区切りのバイト列。"""
        ...

    async def read_frame(self) -> bytes | None:
        """1 フレームを読み出す。終端に達した場合は None を返す。"""
        ...


class LineFrameReader:
    """区切り文字（デフォルト: 改行）でフレームを切り出す FrameReader。

    返すフレームは区切り文字を含む。区切り文字のない末尾断片はフレームとして
    返さず、remainder に保持する。

    Args:
        reader: 読み取り元。バッファ上限は reader 生成時の limit で決まる。
        delimiter: フレームの区切り文字。
        limit: reader に設定したバッファ上限。FrameTooLargeError の報告にのみ使う。
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        delimiter: bytes = LINE_DELIMITER,
        *,
        limit: int | None = None,
    ) -> None:
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self._reader = reader
        self._delimiter = delimiter
        self._remainder = b""
        self._limit = limit

    @property
    def remainder(self) -> bytes:
        return self._remainder

    async def read_frame(self) -> bytes | None:
        """次の区切り文字までを読み出す。

        Returns:
            区切り文字を含むフレーム。終端に達した場合は None。

        Raises:
            FrameTooLargeError: フレームが StreamReader の limit を超えた場合。
            OSError: トランスポートの読み取りエラー。
        """
        try:
            return await self._reader.readuntil(self._delimiter)
        except asyncio.IncompleteReadError as exc:
            self._remainder = exc.partial
            return None
        except asyncio.LimitOverrunError as exc:
            raise FrameTooLargeError(self._limit) from exc
