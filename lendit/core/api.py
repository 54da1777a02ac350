from typing import Optional
from lendit.core import ledger, utils, sweeps
from lendit.core.db import session as db
from lendit.core.locks import exclusive
from lendit.core.loans import BorrowManager
from lendit.core.holds import HoldQueue
from lendit.core.availability import get_availability
from lendit.core.models import Item, Loan, Hold, Notification
from lendit.core.exceptions import (
    ItemNotFoundError,
    NotificationNotFoundError,
    NotRecordOwnerError,
    CopiesInUseError,
    InvalidItemError,
    ItemExistsError,
)
from sqlalchemy.exc import IntegrityError
from lendit.configs import DEFAULT_LOAN_PERIOD_DAYS, DEFAULT_MAX_RENEWALS


class LendingAPI:
    """The operations callers use. Patron ids come from the caller's
    authenticated session and are trusted as given.
    """

    DEFAULT_LIMIT = 50

    @classmethod
    def borrow(cls, patron_id: str, item_id: int) -> Loan:
        return BorrowManager.borrow(patron_id, item_id)

    @classmethod
    def renew(cls, loan_id: int, patron_id: Optional[str] = None) -> Loan:
        return BorrowManager.renew(loan_id, patron_id=patron_id)

    @classmethod
    def return_item(cls, loan_id: int, patron_id: Optional[str] = None) -> Loan:
        return BorrowManager.return_item(loan_id, patron_id=patron_id)

    @classmethod
    def reserve(cls, patron_id: str, item_id: int) -> Hold:
        return HoldQueue.enqueue(patron_id, item_id)

    @classmethod
    def cancel_reservation(cls, hold_id: int, patron_id: str) -> Hold:
        return HoldQueue.cancel(hold_id, patron_id)

    @classmethod
    def get_availability(cls, item_id: int, patron_id: Optional[str] = None):
        return get_availability(item_id, patron_id=patron_id)

    @classmethod
    def list_active_borrows(cls, patron_id: str):
        """Active and overdue loans for the patron, newest first."""
        db.rollback()
        return Loan.by_patron(patron_id)

    @classmethod
    def list_loan_history(cls, patron_id: str):
        db.rollback()
        return Loan.by_patron(patron_id, outstanding_only=False)

    @classmethod
    def list_pending_holds(cls, patron_id: str):
        """Holds still waiting (Pending) or waiting to be claimed (Ready)."""
        db.rollback()
        return Hold.by_patron(patron_id)

    @classmethod
    def list_notifications(cls, patron_id: str, unread_only: bool = False):
        db.rollback()
        return Notification.by_patron(patron_id, unread_only=unread_only)

    @classmethod
    def mark_notification_read(cls, notification_id: int, patron_id: str) -> Notification:
        db.rollback()
        notification = Notification.get(notification_id)
        if not notification:
            raise NotificationNotFoundError(
                f"Notification {notification_id} does not exist.",
                notification_id=notification_id)
        if notification.patron_id != patron_id:
            raise NotRecordOwnerError(
                f"Notification {notification_id} belongs to another patron.",
                notification_id=notification_id)
        try:
            notification.is_read = True
            db.commit()
        except Exception:
            db.rollback()
            raise
        return notification

    @classmethod
    def list_items(cls, offset: Optional[int] = None, limit: Optional[int] = None):
        limit = limit or cls.DEFAULT_LIMIT
        db.rollback()
        return [(item, ledger.snapshot(item)) for item in Item.get_many(offset=offset, limit=limit)]

    @classmethod
    def add_item(cls, total_copies: int = 1, loan_period_days: int = DEFAULT_LOAN_PERIOD_DAYS,
                 max_renewals: int = DEFAULT_MAX_RENEWALS, title: Optional[str] = None,
                 item_id: Optional[int] = None) -> Item:
        """Catalog hook: registers an item with the engine."""
        cls._validate(total_copies, loan_period_days, max_renewals)
        if item_id is not None and Item.exists(item_id):
            raise ItemExistsError(f"Item {item_id} already exists.", item_id=item_id)
        try:
            item = Item(
                id=item_id,
                title=title,
                total_copies=total_copies,
                loan_period_days=loan_period_days,
                max_renewals=max_renewals,
            )
            db.add(item)
            db.commit()
            return item
        except IntegrityError as e:
            db.rollback()
            raise ItemExistsError(f"Item {item_id} already exists.", item_id=item_id) from e
        except Exception:
            db.rollback()
            raise

    @classmethod
    def update_copies(cls, item_id: int, total_copies: int) -> Item:
        """Catalog hook: changes how many copies an item has. New copies
        go to waiting patrons first.
        """
        if total_copies < 1:
            raise InvalidItemError("An item needs at least one copy.", total_copies=total_copies)
        with exclusive(item_id):
            item = Item.exists(item_id, for_update=True)
            if not item:
                raise ItemNotFoundError(f"Item {item_id} does not exist.", item_id=item_id)
            snap = ledger.snapshot(item)
            if total_copies < snap.on_loan + snap.earmarked:
                raise CopiesInUseError(
                    f"Item {item_id} has {snap.on_loan} copies on loan and "
                    f"{snap.earmarked} earmarked; cannot drop to {total_copies}.",
                    item_id=item_id, on_loan=snap.on_loan, earmarked=snap.earmarked)
            item.total_copies = total_copies
            db.flush()
            HoldQueue.fill_earmarks(item, utils.utcnow())
        return item

    @classmethod
    def sweep(cls, now=None):
        return sweeps.run_once(now=now)

    @classmethod
    def _validate(cls, total_copies, loan_period_days, max_renewals):
        if total_copies < 1:
            raise InvalidItemError("An item needs at least one copy.", total_copies=total_copies)
        if loan_period_days < 1:
            raise InvalidItemError("Loan period must be at least one day.",
                                   loan_period_days=loan_period_days)
        if max_renewals < 0:
            raise InvalidItemError("Max renewals cannot be negative.", max_renewals=max_renewals)
