"""Periodic sweeps: expire lapsed Ready holds and mark overdue loans.

Each item a sweep touches goes through the same exclusive section as
patron requests. The Sweeper runs both on a daemon thread; cron
deployments can call `run_once` instead (see scripts/sweep.py).
"""

import logging
import threading
from lendit.configs import SWEEP_INTERVAL
from lendit.core import utils
from lendit.core.db import session as db
from lendit.core.holds import HoldQueue
from lendit.core.loans import BorrowManager

logger = logging.getLogger(__name__)


def run_once(now=None):
    now = utils.as_naive_utc(now) if now else utils.utcnow()
    expired = HoldQueue.expire_ready_holds(now=now)
    overdue = BorrowManager.mark_overdue(now=now)
    logger.info(f"Sweep at {now}: {len(expired)} ready hold(s) expired, "
                f"{len(overdue)} loan(s) marked overdue")
    return {"expired_holds": len(expired), "overdue_loans": len(overdue)}


class Sweeper:

    def __init__(self, interval: int = SWEEP_INTERVAL):
        self.interval = interval
        self._stop = threading.Event()
        self._thread = None

    @property
    def running(self):
        return bool(self._thread and self._thread.is_alive())

    def start(self):
        if self.interval <= 0 or self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="lendit-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"Sweeper started, every {self.interval}s")
        return self

    def stop(self, timeout=None):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
        self._thread = None

    def _run(self):
        while not self._stop.wait(self.interval):
            try:
                run_once()
            except Exception:
                logger.exception("Sweep failed; will retry on the next interval")
            finally:
                db.remove()
