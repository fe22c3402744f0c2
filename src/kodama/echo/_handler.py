"""EchoHandler — 1 接続分の行エコー処理。

1 行読むごとに同じバイト列を書き戻し、即座に drain する（バッチングなし）。
読み取り・書き込みエラーは呼び出し元へ伝播させず、close_reason として
SessionResult に記録する。ストリームは終了経路に関わらず 1 回だけ閉じる。
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from kodama.echo._framing import FrameError, FrameReader, LineFrameReader
from kodama.models.config import EchoMode
from kodama.models.session import CloseReason, SessionResult

logger = logging.getLogger(__name__)


def format_peer(peername: object) -> str | None:
    """get_extra_info("peername") の値を "host:port" 形式に整形する。

    IPv6 アドレスは "[host]:port" とする。タプル以外（UNIX ソケットのパス等）は
    str() で表現する。
    """
    if peername is None:
        return None
    if isinstance(peername, tuple) and len(peername) >= 2:
        host, port = peername[0], peername[1]
        if ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    return str(peername)


async def _close_stream(writer: asyncio.StreamWriter, peer: str | None) -> None:
    """ストリームを閉じる。close 後のトランスポートエラーは無視する。"""
    writer.close()
    with suppress(OSError):
        await writer.wait_closed()
    logger.debug("Closed stream for %s", peer)


async def handle_echo(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    *,
    mode: EchoMode = EchoMode.PLAIN,
    frame_reader: FrameReader | None = None,
) -> SessionResult:
    """ストリームから読んだ行をそのまま書き戻す。

    終了条件:
        - 終端到達 → CloseReason.EOF（未区切りの断片が残った場合は PARTIAL_LINE）
        - 読み取り失敗（FrameError, OSError）→ CloseReason.READ_ERROR
        - 書き込み/drain 失敗（OSError）→ CloseReason.WRITE_ERROR

    タスクがキャンセルされた場合もストリームを閉じてから CancelledError を再送出する。

    Args:
        reader: 接続の読み取り側。
        writer: 接続の書き込み側。ハンドラ終了時に必ず閉じられる。
        mode: EchoMode.ACCUMULATE の場合、読み取った行を蓄積して結果に含める。
        frame_reader: フレーム読み取り方式。None の場合は LineFrameReader(reader)。

    Returns:
        SessionResult: 書き戻した行数・バイト数と終了理由。
    """
    frames = frame_reader if frame_reader is not None else LineFrameReader(reader)
    peer = format_peer(writer.get_extra_info("peername"))
    accumulated = bytearray() if mode is EchoMode.ACCUMULATE else None
    lines_echoed = 0
    bytes_echoed = 0
    close_reason = CloseReason.EOF

    logger.debug("Session started for %s (mode=%s)", peer, mode.value)
    try:
        while True:
            try:
                frame = await frames.read_frame()
            except (FrameError, OSError) as exc:
                logger.warning("Read from %s failed: %s", peer, exc)
                close_reason = CloseReason.READ_ERROR
                break

            if frame is None:
                if frames.remainder:
                    close_reason = CloseReason.PARTIAL_LINE
                    logger.debug(
                        "Discarding %d undelimited byte(s) from %s",
                        len(frames.remainder),
                        peer,
                    )
                break

            if accumulated is not None:
                accumulated += frame

            try:
                writer.write(frame)
                await writer.drain()
            except OSError as exc:
                logger.warning("Write to %s failed: %s", peer, exc)
                close_reason = CloseReason.WRITE_ERROR
                break

            lines_echoed += 1
            bytes_echoed += len(frame)
    finally:
        await _close_stream(writer, peer)

    return SessionResult(
        peer=peer,
        lines_echoed=lines_echoed,
        bytes_echoed=bytes_echoed,
        close_reason=close_reason,
        discarded=frames.remainder,
        accumulated=bytes(accumulated) if accumulated is not None else None,
    )
