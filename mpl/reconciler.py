from __future__ import annotations

import logging
from threading import Event, Lock, Thread

from .errors import LabelerError
from .labeler import PrimaryLabeler
from .mongo import PrimaryResolver


class Reconciler:
    """Periodically resolves the primary and syncs pod labels.

    Cycles never overlap: a cycle requested while another is running is skipped.
    Cycle failures are logged and retried on the next tick; they never stop the loop.
    """

    def __init__(
        self,
        resolver: PrimaryResolver,
        labeler: PrimaryLabeler,
        interval_s: float = 5.0,
        logger: logging.Logger | None = None,
    ):
        self.resolver = resolver
        self.labeler = labeler
        self.interval_s = max(0.01, float(interval_s))
        self.log = logger or logging.getLogger(__name__)
        self._stop = Event()
        self._busy = Lock()
        self._thr: Thread | None = None

    def start(self) -> None:
        if self._thr and self._thr.is_alive():
            return
        self._stop.clear()
        self._thr = Thread(target=self.run, name="reconciler", daemon=True)
        self._thr.start()

    def stop(self) -> None:
        self._stop.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thr:
            self._thr.join(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self) -> None:
        """Run cycles until stop() is called. The first cycle runs immediately."""
        self.log.info("Reconciler started (interval %.1fs)", self.interval_s)
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.interval_s)
        self.log.info("Reconciler stopped")

    def run_once(self) -> bool:
        """Run one resolve+sync cycle. Returns True when labels were converged."""
        if not self._busy.acquire(blocking=False):
            self.log.warning("Previous reconcile cycle still running; skipping this tick")
            return False
        try:
            return self._tick()
        finally:
            self._busy.release()

    def _tick(self) -> bool:
        try:
            primary = self.resolver.resolve()
        except LabelerError as e:
            self.log.error("failed to set primary label: resolve primary pod name: %s", e)
            return False
        except Exception:
            self.log.exception("failed to set primary label: unexpected error resolving primary")
            return False

        try:
            self.labeler.sync(primary)
        except LabelerError as e:
            self.log.error("failed to set primary label: %s", e)
            return False
        except Exception:
            self.log.exception("failed to set primary label: unexpected error syncing labels")
            return False
        return True
