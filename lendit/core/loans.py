#!/usr/bin/env python

"""
    Borrow manager for Lendit: the life of a single loan.

    Active -> Returned, Active -> Overdue -> Returned. Loans are never
    deleted; a returned loan stays behind as history.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from lendit.core import ledger, utils
from lendit.core.db import session as db
from lendit.core.locks import exclusive
from lendit.core.holds import HoldQueue
from lendit.core.models import Item, Loan, LoanStatus, Hold, HoldStatus
from lendit.core.exceptions import (
    ItemNotFoundError,
    LoanNotFoundError,
    AlreadyBorrowedError,
    AlreadyReturnedError,
    RenewalLimitReachedError,
    HoldsPendingError,
    LoanNotActiveError,
    NoCopiesAvailableError,
    NotRecordOwnerError,
    BusyError,
)

logger = logging.getLogger(__name__)


class BorrowManager:

    @classmethod
    def borrow(cls, patron_id: str, item_id: int) -> Loan:
        """
        Lends one copy of an item to a patron.

        A patron whose hold is Ready claims the copy earmarked for them.
        Anyone else gets a copy only if one is left after every waiting
        hold has been given its earmark.

        Raises:
            ItemNotFoundError: If the item does not exist.
            AlreadyBorrowedError: If the patron already has the item out.
            NoCopiesAvailableError: If no copy is free at commit time; the
                caller should offer a reservation instead.
        """
        def already_borrowed(e):
            return AlreadyBorrowedError(
                f"Patron {patron_id} already has item {item_id} on loan.",
                item_id=item_id)

        refusal = None
        loan = None
        with exclusive(item_id, translate=already_borrowed):
            item = Item.exists(item_id, for_update=True)
            if not item:
                raise ItemNotFoundError(f"Item {item_id} does not exist.", item_id=item_id)

            if existing := Loan.exists(item_id, patron_id):
                raise AlreadyBorrowedError(
                    f"Patron {patron_id} already has item {item_id} on loan "
                    f"until {existing.due_date}.",
                    item_id=item_id, loan_id=existing.id,
                    due_date=existing.due_date.isoformat())

            now = utils.utcnow()
            HoldQueue.expire_stale(item, now)
            HoldQueue.fill_earmarks(item, now)

            hold = Hold.open_for(item_id, patron_id)
            if hold and hold.status == HoldStatus.READY:
                HoldQueue.fulfill_ready(hold, now)
                loan = cls._lend(item, patron_id, now)
            elif (snap := ledger.snapshot(item)).available_copies > 0:
                loan = cls._lend(item, patron_id, now)
            else:
                # Promotions and expiries above still commit
                refusal = NoCopiesAvailableError(
                    f"No copies of item {item_id} are available; "
                    f"{snap.pending_holds} patron(s) waiting.",
                    item_id=item_id,
                    total_copies=snap.total_copies,
                    pending_holds=snap.pending_holds,
                    hold_id=hold.id if hold else None)
        if refusal:
            raise refusal
        return loan

    @classmethod
    def renew(cls, loan_id: int, patron_id: str = None) -> Loan:
        """Extends an active loan by one loan period, unless the renewal
        limit is reached or anyone is waiting for the item.
        """
        loan = cls._find(loan_id)
        with exclusive(loan.item_id):
            item = Item.exists(loan.item_id, for_update=True)
            loan = Loan.get(loan_id)
            cls._check_owner(loan, patron_id)
            if loan.status != LoanStatus.ACTIVE:
                raise LoanNotActiveError(
                    f"Loan {loan_id} is {loan.status.value} and cannot be renewed.",
                    loan_id=loan_id, status=loan.status.value)

            if loan.renewal_count >= item.max_renewals:
                raise RenewalLimitReachedError(
                    f"Loan {loan_id} has used all {item.max_renewals} renewals.",
                    loan_id=loan_id, max_renewals=item.max_renewals)
            if waiting := ledger.pending_holds(item.id):
                raise HoldsPendingError(
                    f"Loan {loan_id} cannot be renewed; {waiting} patron(s) "
                    f"are waiting for item {item.id}.",
                    loan_id=loan_id, pending_holds=waiting)

            loan.due_date = loan.due_date + utils.days(item.loan_period_days)
            loan.renewal_count += 1
            logger.info(f"Loan {loan_id} renewed ({loan.renewal_count}/{item.max_renewals}), "
                        f"due {loan.due_date}")
        return loan

    @classmethod
    def return_item(cls, loan_id: int, patron_id: str = None) -> Loan:
        """Closes an outstanding loan and hands the copy to the next
        patron in line. Returning twice is an error, not a no-op.
        """
        loan = cls._find(loan_id)
        with exclusive(loan.item_id):
            item = Item.exists(loan.item_id, for_update=True)
            loan = Loan.get(loan_id)
            cls._check_owner(loan, patron_id)
            if loan.status == LoanStatus.RETURNED:
                raise AlreadyReturnedError(
                    f"Loan {loan_id} was already returned at {loan.returned_at}.",
                    loan_id=loan_id)

            now = utils.utcnow()
            loan.status = LoanStatus.RETURNED
            loan.returned_at = now
            db.flush()
            logger.info(f"Patron {loan.patron_id} returned item {loan.item_id} (loan {loan_id})")
            HoldQueue.fill_earmarks(item, now)
        return loan

    @classmethod
    def mark_overdue(cls, now=None):
        """Sweep: reclassifies active loans past their due date as overdue.
        Overdue loans keep their copy until returned.
        """
        now = now or utils.utcnow()
        item_ids = [row[0] for row in db.query(Loan.item_id).filter(
            Loan.status == LoanStatus.ACTIVE,
            Loan.due_date < now
        ).distinct().all()]
        db.rollback()
        marked = []
        for item_id in item_ids:
            try:
                with exclusive(item_id):
                    loans = Loan.outstanding(item_id).filter(
                        Loan.status == LoanStatus.ACTIVE,
                        Loan.due_date < now
                    ).all()
                    for loan in loans:
                        loan.status = LoanStatus.OVERDUE
                        logger.info(f"Loan {loan.id} for patron {loan.patron_id} is overdue")
                marked.extend(loans)
            except BusyError:
                logger.warning(f"Item {item_id} busy, overdue marking left for the next sweep")
        return marked

    @classmethod
    def _lend(cls, item, patron_id, now):
        loan = Loan(
            item_id=item.id,
            patron_id=patron_id,
            borrowed_at=now,
            due_date=now + utils.days(item.loan_period_days),
            renewal_count=0,
            status=LoanStatus.ACTIVE,
        )
        db.add(loan)
        db.flush()
        logger.info(f"Patron {patron_id} borrowed item {item.id} (loan {loan.id}), due {loan.due_date}")
        return loan

    @classmethod
    def _find(cls, loan_id):
        if not (loan := Loan.get(loan_id)):
            raise LoanNotFoundError(f"Loan {loan_id} does not exist.", loan_id=loan_id)
        return loan

    @classmethod
    def _check_owner(cls, loan, patron_id):
        if patron_id is not None and loan.patron_id != patron_id:
            raise NotRecordOwnerError(
                f"Loan {loan.id} belongs to another patron.", loan_id=loan.id)
