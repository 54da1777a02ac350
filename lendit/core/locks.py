"""Per-item mutual exclusion for every mutating lending operation.

Each item id maps to its own lock, so operations on one item run
one-at-a-time while different items proceed independently. A caller only
ever holds one item lock at a time, so no lock ordering is needed.

Usage:
    from lendit.core.locks import exclusive
    with exclusive(item_id) as db:
        # read and write the item's loans and holds
"""

import logging
import threading
import time
from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError
from lendit.configs import LOCK_TIMEOUT, BUSY_RETRY_AFTER
from lendit.core.db import session as db
from lendit.core.exceptions import ItemBusyError
from lendit.core.notifications import notifier

logger = logging.getLogger(__name__)


class ItemLocks:
    """Registry of per-item locks, reference counted so idle items are
    dropped instead of accumulating forever.
    """

    def __init__(self, timeout: float = LOCK_TIMEOUT):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks = {}  # item_id -> [lock, users]

    def _checkout(self, item_id):
        with self._guard:
            entry = self._locks.setdefault(item_id, [threading.Lock(), 0])
            entry[1] += 1
            return entry[0]

    def _checkin(self, item_id):
        with self._guard:
            entry = self._locks[item_id]
            entry[1] -= 1
            if not entry[1]:
                del self._locks[item_id]

    def __len__(self):
        with self._guard:
            return len(self._locks)

    @contextmanager
    def acquire(self, item_id, timeout: float = None):
        timeout = self.timeout if timeout is None else timeout
        lock = self._checkout(item_id)
        started = time.monotonic()
        try:
            if not lock.acquire(timeout=timeout):
                logger.warning(f"Timed out after {timeout}s waiting for item {item_id}")
                raise ItemBusyError(
                    f"Item {item_id} is busy, retry shortly.",
                    item_id=item_id, retry_after=BUSY_RETRY_AFTER)
            waited = time.monotonic() - started
            if waited > timeout / 2:
                logger.info(f"Waited {waited:.3f}s for item {item_id}")
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(item_id)


item_locks = ItemLocks()


@contextmanager
def exclusive(item_id, timeout: float = None, translate=None):
    """Runs the body inside item_id's exclusive section and one database
    transaction. The transaction commits before the lock is released;
    notifications queued by the body are published after both.

    `translate` maps a storage IntegrityError to a lending error when a
    uniqueness backstop fires.
    """
    with item_locks.acquire(item_id, timeout=timeout):
        # Drop anything this thread's session cached before the lock was held
        db.rollback()
        db.expire_all()
        try:
            yield db
            db.commit()
        except IntegrityError as e:
            db.rollback()
            notifier.discard(db)
            logger.warning(f"Integrity backstop fired for item {item_id}: {e.orig}")
            if translate:
                raise translate(e) from e
            raise
        except Exception:
            db.rollback()
            notifier.discard(db)
            raise
    notifier.flush(db)
