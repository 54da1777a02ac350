#!/usr/bin/env python

"""
    Lending models for Lendit,
    including items, loans (borrow records), holds and notifications.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from sqlalchemy import (
    Column, String, Integer, DateTime, Boolean, ForeignKey,
    CheckConstraint, Index, Enum as SQLAlchemyEnum, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from lendit.core.db import session as db, Base, Identifier
from lendit.core import utils
import enum


class LoanStatus(enum.Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    RETURNED = "returned"


class HoldStatus(enum.Enum):
    PENDING = "pending"
    READY = "ready"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    FULFILLED = "fulfilled"


# Loans in these states still occupy a copy
OUTSTANDING = (LoanStatus.ACTIVE, LoanStatus.OVERDUE)
# Holds in these states still occupy a place in line or a copy
OPEN_HOLDS = (HoldStatus.PENDING, HoldStatus.READY)


class Item(Base):
    __tablename__ = 'items'

    id = Column(Identifier, primary_key=True)
    title = Column(String(255))
    total_copies = Column(Integer, default=1, nullable=False)
    loan_period_days = Column(Integer, default=21, nullable=False)
    max_renewals = Column(Integer, default=2, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint('total_copies >= 1', name='ck_items_total_copies'),
        CheckConstraint('loan_period_days >= 1', name='ck_items_loan_period'),
        CheckConstraint('max_renewals >= 0', name='ck_items_max_renewals'),
    )

    @classmethod
    def exists(cls, item_id, for_update=False):
        query = db.query(Item).filter(Item.id == item_id)
        if for_update:
            query = query.with_for_update()
        return query.first()


class Loan(Base):
    """A borrow record. Never deleted; its status moves instead."""
    __tablename__ = 'loans'

    id = Column(Identifier, primary_key=True)
    item_id = Column(Identifier, ForeignKey('items.id', ondelete='CASCADE'), nullable=False)
    patron_id = Column(String(50), nullable=False)
    borrowed_at = Column(DateTime, default=utils.utcnow, nullable=False)
    due_date = Column(DateTime, nullable=False)
    renewal_count = Column(Integer, default=0, nullable=False)
    status = Column(SQLAlchemyEnum(LoanStatus), default=LoanStatus.ACTIVE, nullable=False)
    returned_at = Column(DateTime, nullable=True)

    item = relationship('Item', back_populates='loans')

    __table_args__ = (
        CheckConstraint('renewal_count >= 0', name='ck_loans_renewal_count'),
        Index(
            'uq_loans_outstanding', 'item_id', 'patron_id', unique=True,
            postgresql_where=text('returned_at IS NULL'),
            sqlite_where=text('returned_at IS NULL'),
        ),
        Index('ix_loans_patron_status', 'patron_id', 'status'),
    )

    @hybrid_property
    def is_outstanding(self):
        return self.returned_at == None

    @classmethod
    def exists(cls, item_id, patron_id):
        """The patron's outstanding (active or overdue) loan of this item."""
        return db.query(Loan).filter(
            Loan.item_id == item_id,
            Loan.patron_id == patron_id,
            Loan.is_outstanding
        ).first()

    @classmethod
    def outstanding(cls, item_id):
        return db.query(Loan).filter(
            Loan.item_id == item_id,
            Loan.is_outstanding
        )

    @classmethod
    def by_patron(cls, patron_id, outstanding_only=True):
        query = db.query(Loan).filter(Loan.patron_id == patron_id)
        if outstanding_only:
            query = query.filter(Loan.is_outstanding)
        return query.order_by(Loan.borrowed_at.desc(), Loan.id.desc()).all()


class Hold(Base):
    """A patron's place in an item's wait list."""
    __tablename__ = 'holds'

    id = Column(Identifier, primary_key=True)
    item_id = Column(Identifier, ForeignKey('items.id', ondelete='CASCADE'), nullable=False)
    patron_id = Column(String(50), nullable=False)
    position = Column(Integer, nullable=False)
    status = Column(SQLAlchemyEnum(HoldStatus), default=HoldStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=utils.utcnow, nullable=False)
    notified_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)

    item = relationship('Item', back_populates='holds')

    __table_args__ = (
        Index(
            'uq_holds_open', 'item_id', 'patron_id', unique=True,
            postgresql_where=text("status IN ('PENDING', 'READY')"),
            sqlite_where=text("status IN ('PENDING', 'READY')"),
        ),
        Index(
            'uq_holds_pending_position', 'item_id', 'position', unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
        Index('ix_holds_patron_status', 'patron_id', 'status'),
    )

    @classmethod
    def open_for(cls, item_id, patron_id):
        """The patron's pending or ready hold on this item, if any."""
        return db.query(Hold).filter(
            Hold.item_id == item_id,
            Hold.patron_id == patron_id,
            Hold.status.in_(OPEN_HOLDS)
        ).first()

    @classmethod
    def pending(cls, item_id):
        return db.query(Hold).filter(
            Hold.item_id == item_id,
            Hold.status == HoldStatus.PENDING
        ).order_by(Hold.position)

    @classmethod
    def ready(cls, item_id):
        return db.query(Hold).filter(
            Hold.item_id == item_id,
            Hold.status == HoldStatus.READY
        )

    @classmethod
    def by_patron(cls, patron_id):
        return db.query(Hold).filter(
            Hold.patron_id == patron_id,
            Hold.status.in_(OPEN_HOLDS)
        ).order_by(Hold.created_at, Hold.id).all()

    def close(self, status, when=None):
        self.status = status
        self.closed_at = when or utils.utcnow()
        return self


class Notification(Base):
    __tablename__ = 'notifications'

    id = Column(Identifier, primary_key=True)
    patron_id = Column(String(50), nullable=False)
    type = Column(String(50), nullable=False)
    message = Column(String, nullable=False)
    item_id = Column(Identifier, ForeignKey('items.id', ondelete='CASCADE'))
    hold_id = Column(Identifier, ForeignKey('holds.id', ondelete='CASCADE'))
    expires_at = Column(DateTime, nullable=True)
    date = Column(DateTime, default=utils.utcnow, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    @classmethod
    def by_patron(cls, patron_id, unread_only=False):
        query = db.query(Notification).filter(Notification.patron_id == patron_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)
        return query.order_by(Notification.date.desc(), Notification.id.desc()).all()


Item.loans = relationship('Loan', back_populates='item', cascade='all, delete-orphan')
Item.holds = relationship('Hold', back_populates='item', cascade='all, delete-orphan')
