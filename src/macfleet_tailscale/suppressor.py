"""ブラウザ抑止バックグラウンドタスク"""

from __future__ import annotations

import threading
from types import TracebackType

import structlog

from macfleet_command import CommandRunner

logger = structlog.stdlib.get_logger(__name__)


class BrowserSuppressor:
    """登録中にブラウザのログイン画面が開かないよう、ブラウザを終了させ続ける。

    interval 秒ごとに `pgrep -x <browser>` で起動を確認し、起動していれば
    `pkill -x <browser>` で終了させる。stop() で停止シグナルを送り、
    スレッドの終了を待つ。with 文で使えば成功・失敗どちらでも必ず停止する。

    Usage:
        with BrowserSuppressor("Google Chrome", runner):
            ...
    """

    def __init__(
        self,
        browser: str,
        runner: CommandRunner,
        interval: float = 2.0,
    ) -> None:
        self.browser = browser
        self.interval = interval
        self._runner = runner
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.kills = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> bool:
        """ブラウザが起動していれば終了させる。終了させた場合 True。"""
        if not self._runner.run(["pgrep", "-x", self.browser]).ok:
            return False
        logger.info("killing browser to suppress auth prompt", browser=self.browser)
        self._runner.run(["pkill", "-x", self.browser])
        self.kills += 1
        return True

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll_once()
            except Exception as e:
                logger.warning("browser suppression poll failed", error=str(e))
            self._stop.wait(self.interval)

    def start(self) -> None:
        """バックグラウンドスレッドを開始する。"""
        if self.running:
            logger.warning("browser suppressor already running")
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name="browser-suppressor",
        )
        self._thread.start()
        logger.debug("browser suppressor started", browser=self.browser, interval=self.interval)

    def stop(self, timeout: float | None = None) -> None:
        """停止シグナルを送り、スレッドの終了を待つ。"""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.debug("browser suppressor stopped", kills=self.kills)

    def __enter__(self) -> BrowserSuppressor:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.stop()
