"""セッション結果の定義。

1 接続分のエコー処理結果と、サーバー停止時のサマリーを表す。
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from kodama.models._base import KodamaBaseModel


class CloseReason(StrEnum):
    """ハンドラがストリームを閉じた理由。

    eof: 区切り文字で終わる状態でストリームが終端に達した。
    partial_line: 区切り文字のない断片を残して終端に達した（断片はエコーしない）。
    read_error: 読み取りに失敗した（フレーム長超過を含む）。
    write_error: 書き戻しまたは drain に失敗した。
    """

    EOF = "eof"
    PARTIAL_LINE = "partial_line"
    READ_ERROR = "read_error"
    WRITE_ERROR = "write_error"


class SessionResult(KodamaBaseModel):
    """1 接続分のエコー処理結果。

    Attributes:
        peer: 接続元アドレス（"host:port" 形式）。取得できない場合は None。
        lines_echoed: 書き戻しに成功した行数（非負）。
        bytes_echoed: 書き戻しに成功したバイト数（区切り文字を含む、非負）。
        close_reason: ストリームを閉じた理由。
        discarded: 区切り文字がないまま終端に達した断片。エコーされない。
        accumulated: accumulate モードで読み取った全行の連結。plain モードでは None。
    """

    peer: str | None = None
    lines_echoed: int = Field(default=0, ge=0)
    bytes_echoed: int = Field(default=0, ge=0)
    close_reason: CloseReason
    discarded: bytes = b""
    accumulated: bytes | None = None


class ServeSummary(KodamaBaseModel):
    """サーバー停止時のサマリー。

    長時間稼働しても保持量が増えないよう、全セッション分は集計値のみを持つ。

    Attributes:
        sessions: 完了したセッション数。
        total_lines: 全セッションで書き戻した行数の合計。
        total_bytes: 全セッションで書き戻したバイト数の合計。
        cancelled: シャットダウン猶予時間を超えてキャンセルされたセッション数。
        recent: 直近に完了したセッションの結果（完了順、件数上限あり、
            accumulated は除去済み）。
    """

    sessions: int = Field(default=0, ge=0)
    total_lines: int = Field(default=0, ge=0)
    total_bytes: int = Field(default=0, ge=0)
    cancelled: int = Field(default=0, ge=0)
    recent: tuple[SessionResult, ...] = ()
