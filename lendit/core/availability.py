"""Availability calculator: what an item looks like to a given patron.

`evaluate` is a pure function of the item, its inventory snapshot and the
patron's own loan and hold. `get_availability` gathers those without
taking the item lock, so the answer is for display only; the decision
that counts is made again inside Borrow or Reserve.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from lendit.core import ledger, utils
from lendit.core.db import session as db
from lendit.core.models import Item, Loan, Hold, HoldStatus
from lendit.core.exceptions import ItemNotFoundError


class AvailabilityStatus(enum.Enum):
    BORROWED_BY_YOU = "borrowed_by_you"
    ON_HOLD_FOR_YOU = "on_hold_for_you"
    WAITING = "waiting"
    AVAILABLE = "available"
    WAIT_LISTED = "wait_listed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class Availability:
    item_id: int
    status: AvailabilityStatus
    total_copies: int
    available_copies: int
    pending_holds: int
    due_date: Optional[datetime] = None
    loan_id: Optional[int] = None
    hold_id: Optional[int] = None
    queue_position: Optional[int] = None
    holds_ahead: Optional[int] = None
    hold_expires_at: Optional[datetime] = None
    estimated_wait_days: Optional[int] = None


def estimate_wait_days(waiting: int, loan_period_days: int, total_copies: int) -> int:
    """Round-robin approximation: waiting patrons are served in proportion
    to the number of copies, one loan period each. Not a promise.
    """
    return utils.ceil_div(waiting * loan_period_days, total_copies)


def evaluate(item, snapshot, loan=None, hold=None, holds_ahead=0) -> Availability:
    common = dict(
        item_id=item.id,
        total_copies=snapshot.total_copies,
        available_copies=snapshot.available_copies,
        pending_holds=snapshot.pending_holds,
    )

    if loan is not None:
        return Availability(
            status=AvailabilityStatus.BORROWED_BY_YOU,
            due_date=loan.due_date, loan_id=loan.id, **common)

    if hold is not None and hold.status == HoldStatus.READY:
        return Availability(
            status=AvailabilityStatus.ON_HOLD_FOR_YOU,
            hold_id=hold.id, hold_expires_at=hold.expires_at, **common)

    if hold is not None and hold.status == HoldStatus.PENDING:
        return Availability(
            status=AvailabilityStatus.WAITING,
            hold_id=hold.id,
            queue_position=hold.position,
            holds_ahead=holds_ahead,
            estimated_wait_days=estimate_wait_days(
                holds_ahead + 1, item.loan_period_days, item.total_copies),
            **common)

    if snapshot.available_copies > 0:
        return Availability(status=AvailabilityStatus.AVAILABLE, **common)

    if snapshot.pending_holds > 0:
        return Availability(
            status=AvailabilityStatus.WAIT_LISTED,
            estimated_wait_days=estimate_wait_days(
                snapshot.pending_holds, item.loan_period_days, item.total_copies),
            **common)

    return Availability(status=AvailabilityStatus.UNAVAILABLE, **common)


def get_availability(item_id, patron_id=None) -> Availability:
    # Fresh transaction, so rows loaded earlier on this thread are re-read
    db.rollback()
    if not (item := Item.exists(item_id)):
        raise ItemNotFoundError(f"Item {item_id} does not exist.", item_id=item_id)

    loan = hold = None
    holds_ahead = 0
    if patron_id:
        loan = Loan.exists(item_id, patron_id)
        hold = Hold.open_for(item_id, patron_id)
        if hold is not None and hold.status == HoldStatus.PENDING:
            holds_ahead = Hold.pending(item_id).filter(
                Hold.position < hold.position).order_by(None).count()

    result = evaluate(item, ledger.snapshot(item), loan=loan, hold=hold, holds_ahead=holds_ahead)
    db.rollback()
    return result
