"""通知イベントとコールバックの結び付け。

poll_signal: 通知イベント発火時にコールバックを 1 回だけ呼び出す。
install_signal_handlers / uninstall_signal_handlers: OS シグナルを通知イベントに変換する。
"""

from kodama.notify._poll import SignalWatch, poll_signal
from kodama.notify._signal import install_signal_handlers, uninstall_signal_handlers

__all__ = [
    "SignalWatch",
    "install_signal_handlers",
    "poll_signal",
    "uninstall_signal_handlers",
]
