"""Inventory ledger: copy counts derived on demand from loans and holds.

Nothing here is cached. Mutating callers must read the ledger inside the
item's exclusive section; query paths may read it without the lock and
accept that the numbers can move underneath them.
"""

from dataclasses import dataclass
from sqlalchemy import func
from lendit.core.db import session as db
from lendit.core.models import Loan, Hold, HoldStatus


@dataclass(frozen=True)
class InventorySnapshot:
    item_id: int
    total_copies: int
    on_loan: int
    earmarked: int
    pending_holds: int

    @property
    def available_copies(self) -> int:
        """Copies neither on loan nor earmarked for a ready hold."""
        return max(0, self.total_copies - self.on_loan - self.earmarked)

    @property
    def free_for_waiters(self) -> int:
        """Copies that could be earmarked for pending holds right now."""
        return min(self.available_copies, self.pending_holds)


def on_loan(item_id) -> int:
    return Loan.outstanding(item_id).count()


def earmarked(item_id) -> int:
    return Hold.ready(item_id).count()


def pending_holds(item_id) -> int:
    return Hold.pending(item_id).order_by(None).count()


def max_pending_position(item_id) -> int:
    return db.query(func.max(Hold.position)).filter(
        Hold.item_id == item_id,
        Hold.status == HoldStatus.PENDING
    ).scalar() or 0


def snapshot(item) -> InventorySnapshot:
    return InventorySnapshot(
        item_id=item.id,
        total_copies=item.total_copies,
        on_loan=on_loan(item.id),
        earmarked=earmarked(item.id),
        pending_holds=pending_holds(item.id),
    )
