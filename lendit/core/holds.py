#!/usr/bin/env python

"""
    Hold queue for Lendit: the per-item wait list.

    Pending holds are served lowest position first. Positions are handed
    out as max(pending position) + 1 and never renumbered, so cancelling
    leaves harmless gaps. When a copy frees up the head of the line moves
    to Ready and that copy is earmarked for it until it is borrowed or the
    ready window runs out.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from lendit.configs import HOLD_READY_DAYS
from lendit.core import ledger, utils
from lendit.core.db import session as db
from lendit.core.locks import exclusive
from lendit.core.models import Item, Loan, Hold, HoldStatus, Notification
from lendit.core.notifications import notifier, HoldReadyEvent, HOLD_READY
from lendit.core.exceptions import (
    ItemNotFoundError,
    HoldNotFoundError,
    DuplicateHoldError,
    AlreadyBorrowedError,
    HoldNotPendingError,
    NotRecordOwnerError,
    BusyError,
)

logger = logging.getLogger(__name__)


class HoldQueue:

    READY_WINDOW_DAYS = HOLD_READY_DAYS

    @classmethod
    def enqueue(cls, patron_id: str, item_id: int) -> Hold:
        """Puts the patron at the back of the item's wait list.

        If a copy is free and nobody is ahead, the new hold is promoted to
        Ready straight away.
        """
        def duplicate(e):
            return DuplicateHoldError(
                f"Patron {patron_id} already holds a place for item {item_id}.",
                item_id=item_id)

        with exclusive(item_id, translate=duplicate):
            item = Item.exists(item_id, for_update=True)
            if not item:
                raise ItemNotFoundError(f"Item {item_id} does not exist.", item_id=item_id)

            if loan := Loan.exists(item_id, patron_id):
                raise AlreadyBorrowedError(
                    f"Patron {patron_id} already has item {item_id} on loan.",
                    item_id=item_id, loan_id=loan.id)

            if existing := Hold.open_for(item_id, patron_id):
                raise DuplicateHoldError(
                    f"Patron {patron_id} already has a {existing.status.value} "
                    f"hold on item {item_id}.",
                    item_id=item_id, hold_id=existing.id,
                    status=existing.status.value)

            now = utils.utcnow()
            hold = Hold(
                item_id=item_id,
                patron_id=patron_id,
                position=ledger.max_pending_position(item_id) + 1,
                status=HoldStatus.PENDING,
                created_at=now,
            )
            db.add(hold)
            db.flush()
            logger.info(f"Patron {patron_id} queued for item {item_id} at position {hold.position}")
            cls.fill_earmarks(item, now)
        return hold

    @classmethod
    def cancel(cls, hold_id: int, patron_id: str) -> Hold:
        if not (hold := Hold.get(hold_id)):
            raise HoldNotFoundError(f"Hold {hold_id} does not exist.", hold_id=hold_id)

        with exclusive(hold.item_id):
            Item.exists(hold.item_id, for_update=True)
            hold = Hold.get(hold_id)
            if hold.patron_id != patron_id:
                raise NotRecordOwnerError(
                    f"Hold {hold_id} belongs to another patron.", hold_id=hold_id)
            if hold.status != HoldStatus.PENDING:
                raise HoldNotPendingError(
                    f"Hold {hold_id} is {hold.status.value} and can no longer be cancelled.",
                    hold_id=hold_id, status=hold.status.value)
            hold.close(HoldStatus.CANCELLED)
            logger.info(f"Patron {patron_id} cancelled hold {hold_id} on item {hold.item_id}")
        return hold

    @classmethod
    def expire_ready(cls, item_id: int, now=None):
        """Expires the item's lapsed Ready holds and promotes whoever is
        next in line for each released copy.
        """
        now = now or utils.utcnow()
        with exclusive(item_id):
            item = Item.exists(item_id, for_update=True)
            if not item:
                return []
            expired = cls.expire_stale(item, now)
        return expired

    @classmethod
    def expire_ready_holds(cls, now=None):
        """Sweep: expires lapsed Ready holds across all items."""
        now = now or utils.utcnow()
        item_ids = [row[0] for row in db.query(Hold.item_id).filter(
            Hold.status == HoldStatus.READY,
            Hold.expires_at < now
        ).distinct().all()]
        db.rollback()
        expired = []
        for item_id in item_ids:
            try:
                expired.extend(cls.expire_ready(item_id, now=now))
            except BusyError:
                logger.warning(f"Item {item_id} busy, ready holds left for the next sweep")
        return expired

    # The methods below run inside an item's exclusive section

    @classmethod
    def promote_next(cls, item, now):
        """Moves the lowest-position pending hold to Ready, if there is one."""
        hold = Hold.pending(item.id).first()
        if not hold:
            return None
        hold.status = HoldStatus.READY
        hold.notified_at = now
        hold.expires_at = now + utils.days(cls.READY_WINDOW_DAYS)
        event = HoldReadyEvent(
            hold_id=hold.id, patron_id=hold.patron_id,
            item_id=item.id, expires_at=hold.expires_at)
        db.add(Notification(
            patron_id=hold.patron_id,
            type=HOLD_READY,
            message=event.message,
            item_id=item.id,
            hold_id=hold.id,
            expires_at=hold.expires_at,
            date=now,
        ))
        db.flush()
        notifier.queue(db, event)
        logger.info(f"Hold {hold.id} for patron {hold.patron_id} on item {item.id} "
                    f"ready until {hold.expires_at}")
        return hold

    @classmethod
    def fill_earmarks(cls, item, now):
        promoted = []
        while ledger.snapshot(item).free_for_waiters > 0:
            promoted.append(cls.promote_next(item, now))
        return promoted

    @classmethod
    def expire_stale(cls, item, now):
        expired = Hold.ready(item.id).filter(Hold.expires_at < now).all()
        for hold in expired:
            hold.close(HoldStatus.EXPIRED, now)
            logger.info(f"Ready hold {hold.id} for patron {hold.patron_id} on item {item.id} expired")
        if expired:
            db.flush()
            cls.fill_earmarks(item, now)
        return expired

    @classmethod
    def fulfill_ready(cls, hold, now):
        """Consumes the patron's Ready hold as their loan is created."""
        hold.close(HoldStatus.FULFILLED, now)
        logger.info(f"Ready hold {hold.id} fulfilled by patron {hold.patron_id}")
        return hold
