"""ExitCode — 終了コードの定義。"""

from enum import IntEnum


class ExitCode(IntEnum):
    """プロセス終了コード。

    0 は正常終了。
    3 はサーバー実行時エラー（bind 失敗等）、4 は CLI 層固有の入力エラー。
    """

    SUCCESS = 0
    EXECUTION_ERROR = 3
    INPUT_ERROR = 4
