"""StatusProbe / Corrector 抽象基底クラス"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .models import WorkCounts


class StatusProbe(ABC):
    """未完了作業の件数を読み取る読み取り専用プローブ。"""

    @abstractmethod
    def probe(self) -> WorkCounts:
        """現在の pending / failed 件数を返す。"""
        ...


class Corrector(ABC):
    """未完了作業を完了に向けて促すベストエフォートの是正処理。

    どちらのメソッドも失敗時に例外を送出してよい。収束ループは例外を
    ログに記録して処理を継続する。
    """

    @abstractmethod
    def correct(self) -> None:
        """通常の是正処理。"""
        ...

    @abstractmethod
    def force_correct(self) -> None:
        """強制モードの是正処理。"""
        ...
