"""収束リトライループ"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from macfleet_telemetry.metrics import (
    convergence_attempts_total,
    convergence_backoff_seconds,
    convergence_correction_failures_total,
    convergence_corrections_total,
)

from .client import Corrector, StatusProbe
from .exceptions import ConvergenceError, ConvergenceErrorCodes
from .models import ConvergenceResult, LoopState, RetryConfig, RetryState, WorkCounts

logger = structlog.stdlib.get_logger(__name__)


class ConvergenceLoop:
    """是正処理とプローブを繰り返し、未完了作業が 0 件になるまで待つ。

    1 回の試行は「プローブ → 是正 → 待機 → プローブ」で構成される。
    試行の間は指数バックオフで待機し、max_attempts 回で打ち切る。
    是正処理の例外はログに記録するだけでループは止めない。
    プローブの例外はそのまま呼び出し元へ伝播する。
    """

    def __init__(
        self,
        config: RetryConfig,
        probe: StatusProbe,
        corrector: Corrector,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._probe = probe
        self._corrector = corrector
        self._sleep = sleep
        self._state = LoopState.IDLE
        self.history: list[LoopState] = [LoopState.IDLE]

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def state(self) -> LoopState:
        return self._state

    def _transition(self, state: LoopState) -> None:
        self._state = state
        self.history.append(state)

    def _read(self) -> WorkCounts:
        self._transition(LoopState.PROBING)
        counts = self._probe.probe()
        self._transition(LoopState.DECIDING)
        return counts

    def _correct(self, result: ConvergenceResult, log: structlog.stdlib.BoundLogger) -> None:
        self._transition(LoopState.CORRECTING)
        result.corrections += 1
        convergence_corrections_total.add(1, {"force": self._config.force})
        try:
            if self._config.force:
                log.info("forcing comprehensive refresh")
                self._corrector.force_correct()
            else:
                log.info("triggering refresh")
                self._corrector.correct()
        except Exception as e:
            result.correction_failures += 1
            convergence_correction_failures_total.add(1, {"force": self._config.force})
            log.warning(
                "corrective action failed",
                code=ConvergenceErrorCodes.CORRECTION_FAILED,
                error=str(e),
            )

    def run(self) -> ConvergenceResult:
        """ループを実行して結果を返す。"""
        if self._state is not LoopState.IDLE:
            raise RuntimeError("ConvergenceLoop instances are single-use")

        config = self._config
        state = RetryState.initial(config)
        result = ConvergenceResult(succeeded=False, attempts=0)

        while True:
            log = logger.bind(attempt=state.attempt, max_attempts=config.max_attempts)
            log.info("starting attempt")
            result.attempts = state.attempt
            convergence_attempts_total.add(1)

            before = self._read()
            state.last_counts = before
            log.debug("status before correction", pending=before.pending, failed=before.failed)

            if before.is_clear and not config.force:
                log.info("nothing pending or failed, refresh not needed")
                result.already_converged = True
                return self._finish(result, state, succeeded=True)

            self._correct(result, log)

            self._transition(LoopState.SETTLING)
            log.info("waiting for work to settle", seconds=config.check_interval)
            self._sleep(config.check_interval)

            after = self._read()
            state.last_counts = after
            log.debug("status after correction", pending=after.pending, failed=after.failed)

            if after.is_clear:
                log.info("all work applied")
                return self._finish(result, state, succeeded=True)
            if after.improved_from(before):
                log.info(
                    "progress made, continuing",
                    pending=after.pending,
                    failed=after.failed,
                )
            else:
                log.debug("no improvement detected", pending=after.pending, failed=after.failed)

            if state.attempt == config.max_attempts:
                break
            log.info("backing off before next attempt", seconds=state.delay)
            result.delays.append(state.delay)
            convergence_backoff_seconds.record(state.delay)
            self._sleep(state.delay)
            state.advance(config)

        logger.error(
            "retry budget exhausted",
            attempts=config.max_attempts,
            code=ConvergenceErrorCodes.BUDGET_EXHAUSTED,
        )
        return self._finish(result, state, succeeded=False)

    def _finish(
        self, result: ConvergenceResult, state: RetryState, *, succeeded: bool
    ) -> ConvergenceResult:
        result.succeeded = succeeded
        result.last_counts = state.last_counts
        self._transition(LoopState.SUCCEEDED if succeeded else LoopState.FAILED)
        return result


def with_convergence(
    config: RetryConfig,
    probe: StatusProbe,
    corrector: Corrector,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> ConvergenceResult:
    """収束ループを実行する。収束しなかった場合は ConvergenceError を送出する。"""
    result = ConvergenceLoop(config, probe, corrector, sleep=sleep).run()
    if not result.succeeded:
        raise ConvergenceError(attempts=result.attempts, last_counts=result.last_counts)
    return result
