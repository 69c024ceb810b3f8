"""Per-pass background rotation while a holder is displaying their code.

Each displayed pass gets a daemon thread that rotates its credential every rotation interval.
The threads live in an explicit registry keyed by pass id. `stop` is synchronous: once it
returns, no further rotation of that pass happens.
"""

import threading
import typing as t
from uuid import UUID

import structlog
from django.conf import settings
from django.db import connection

from live.service import publish_rotation_stopped
from passes.exceptions import (
    PassAlreadyRedeemed,
    PassAlreadyTransferred,
    PassExpired,
    PassNotFound,
    StoreUnavailable,
)
from passes.models import Pass

from . import rotation

logger = structlog.get_logger(__name__)

RotateFn = t.Callable[[UUID], t.Any]

_TERMINAL_ERRORS: dict[type[Exception], str] = {
    PassAlreadyRedeemed: "redeemed",
    PassAlreadyTransferred: "transferred",
    PassExpired: "expired",
    PassNotFound: "not_found",
}


class _Ticker:
    def __init__(
        self,
        scheduler: "RotationScheduler",
        pass_id: UUID,
        venue_id: UUID | None,
        interval: float,
        rotate: RotateFn,
    ) -> None:
        self.scheduler = scheduler
        self.pass_id = pass_id
        self.venue_id = venue_id
        self.interval = interval
        self.rotate = rotate
        self.stopped = threading.Event()
        # Held for the whole of a tick, so stop() waits out an in-flight rotation.
        self.tick_lock = threading.RLock()
        self.thread = threading.Thread(target=self.run, name=f"rotation-{pass_id}", daemon=True)

    def run(self) -> None:
        try:
            while not self.stopped.wait(self.interval):
                if not self.tick():
                    break
        finally:
            connection.close()

    def tick(self) -> bool:
        """Rotate once. Returns False when the ticker should end."""
        with self.tick_lock:
            if self.stopped.is_set():
                return False
            try:
                self.rotate(self.pass_id)
            except tuple(_TERMINAL_ERRORS) as e:
                reason = _TERMINAL_ERRORS[type(e)]
                logger.info("rotation_stopped", pass_id=str(self.pass_id), reason=reason)
                self.scheduler.discard(self)
                self.stopped.set()
                self.notify_stopped(reason)
                return False
            except StoreUnavailable:
                logger.warning("rotation_tick_store_unavailable", pass_id=str(self.pass_id))
            except Exception:
                logger.exception("rotation_tick_failed", pass_id=str(self.pass_id))
            return True

    def notify_stopped(self, reason: str) -> None:
        venue_id = self.venue_id
        if venue_id is None:
            venue_id = Pass.objects.filter(pk=self.pass_id).values_list("venue_id", flat=True).first()
        if venue_id is not None:
            publish_rotation_stopped(self.pass_id, venue_id, reason)

    def cancel(self) -> None:
        self.stopped.set()
        with self.tick_lock:
            pass
        if threading.current_thread() is not self.thread and self.thread.is_alive():
            self.thread.join(timeout=self.interval + 5)


class RotationScheduler:
    """Registry of rotation tickers, one per pass."""

    def __init__(self, rotate: RotateFn | None = None, interval: float | None = None) -> None:
        self._rotate = rotate
        self._interval = interval
        self._tickers: dict[UUID, _Ticker] = {}
        # Tickers replaced by a restart that are still being joined.
        self._retiring: set[_Ticker] = set()
        self._lock = threading.Lock()
        self._shutting_down = False

    @property
    def interval(self) -> float:
        return self._interval if self._interval is not None else settings.CREDENTIAL_ROTATION_INTERVAL_SECONDS

    def start(self, pass_id: UUID, venue_id: UUID | None = None) -> bool:
        """(Re)start rotating a pass. Returns False once shutdown has begun.

        The swap of the registry entry happens under the registry lock, so concurrent starts
        for the same pass always leave exactly one ticker registered.
        """
        with self._lock:
            if self._shutting_down:
                logger.warning("rotation_start_refused", pass_id=str(pass_id), reason="shutting_down")
                return False
            previous = self._tickers.pop(pass_id, None)
            if previous is not None:
                previous.stopped.set()
                self._retiring.add(previous)
            ticker = _Ticker(self, pass_id, venue_id, self.interval, self._rotate or rotation.rotate_credential)
            self._tickers[pass_id] = ticker
            ticker.thread.start()
        if previous is not None:
            self._retire(previous)
        logger.debug("rotation_started", pass_id=str(pass_id), interval=ticker.interval)
        return True

    def _retire(self, ticker: _Ticker) -> None:
        ticker.cancel()
        with self._lock:
            self._retiring.discard(ticker)

    def stop(self, pass_id: UUID) -> bool:
        """Stop rotating a pass. Returns whether a ticker was running."""
        with self._lock:
            ticker = self._tickers.pop(pass_id, None)
            retiring = [r for r in self._retiring if r.pass_id == pass_id]
        for replaced in retiring:
            replaced.cancel()
        if ticker is None:
            return False
        ticker.cancel()
        logger.debug("rotation_cancelled", pass_id=str(pass_id))
        return True

    def discard(self, ticker: _Ticker) -> None:
        with self._lock:
            if self._tickers.get(ticker.pass_id) is ticker:
                del self._tickers[ticker.pass_id]

    def is_running(self, pass_id: UUID) -> bool:
        with self._lock:
            return pass_id in self._tickers

    def running(self) -> list[UUID]:
        with self._lock:
            return list(self._tickers)

    def stop_all(self) -> int:
        with self._lock:
            tickers = list(self._tickers.values())
            retiring = list(self._retiring)
            self._tickers.clear()
        for ticker in [*tickers, *retiring]:
            ticker.cancel()
        return len(tickers)

    def shutdown_all(self) -> None:
        """Stop every ticker and refuse new ones."""
        with self._lock:
            self._shutting_down = True
        stopped = self.stop_all()
        logger.info("rotation_scheduler_shutdown", stopped=stopped)


_scheduler: RotationScheduler | None = None
_scheduler_lock = threading.Lock()


def get_scheduler() -> RotationScheduler:
    global _scheduler
    with _scheduler_lock:
        if _scheduler is None:
            _scheduler = RotationScheduler()
        return _scheduler


def shutdown_scheduler() -> None:
    if _scheduler is not None:
        _scheduler.shutdown_all()
