"""Hold-ready signals.

Promotion writes a Notification row in the same transaction as the hold
change and queues a HoldReadyEvent on the session. Events are published
to subscribers only after the transaction commits; a rollback discards
them. Delivery (email, push, ...) belongs to the subscribers.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List

logger = logging.getLogger(__name__)

HOLD_READY = "hold_ready"
_PENDING_KEY = "lendit.pending_events"


@dataclass(frozen=True)
class HoldReadyEvent:
    hold_id: int
    patron_id: str
    item_id: int
    expires_at: datetime
    type: str = HOLD_READY

    @property
    def message(self):
        return (f"Item {self.item_id} is ready for you to borrow until "
                f"{self.expires_at.isoformat()} UTC.")


class Notifier:

    def __init__(self):
        self._subscribers: List[Callable[[HoldReadyEvent], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback):
        with self._lock:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback):
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def queue(self, session, event):
        session.info.setdefault(_PENDING_KEY, []).append(event)

    def discard(self, session):
        session.info.pop(_PENDING_KEY, None)

    def flush(self, session):
        events = session.info.pop(_PENDING_KEY, [])
        with self._lock:
            subscribers = list(self._subscribers)
        for event in events:
            logger.info(f"Hold {event.hold_id} ready for patron {event.patron_id} "
                        f"on item {event.item_id} until {event.expires_at}")
            for callback in subscribers:
                try:
                    callback(event)
                except Exception:
                    # A broken subscriber must not undo a committed promotion
                    logger.exception(f"Notification subscriber {callback!r} failed")
        return events


notifier = Notifier()
