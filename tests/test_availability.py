#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_availability
    ~~~~~~~~~~~~~~~~~~~~~~~

    What an item looks like to a patron.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import datetime
from types import SimpleNamespace
import pytest
from lendit.core.api import LendingAPI
from lendit.core.availability import (
    AvailabilityStatus,
    evaluate,
    estimate_wait_days,
)
from lendit.core.ledger import InventorySnapshot
from lendit.core.models import HoldStatus
from lendit.core.exceptions import ItemNotFoundError

ITEM = SimpleNamespace(id=1, total_copies=2, loan_period_days=21)
DUE = datetime.datetime(2025, 4, 1)


def snap(on_loan=0, earmarked=0, pending=0, total=2):
    return InventorySnapshot(item_id=1, total_copies=total, on_loan=on_loan,
                             earmarked=earmarked, pending_holds=pending)


def test_patrons_own_loan_wins():
    loan = SimpleNamespace(id=9, due_date=DUE)
    hold = SimpleNamespace(id=3, status=HoldStatus.READY, expires_at=DUE, position=1)
    result = evaluate(ITEM, snap(on_loan=2), loan=loan, hold=hold)
    assert result.status == AvailabilityStatus.BORROWED_BY_YOU
    assert result.due_date == DUE
    assert result.loan_id == 9


def test_ready_hold_is_on_hold_for_you():
    hold = SimpleNamespace(id=3, status=HoldStatus.READY, expires_at=DUE, position=1)
    result = evaluate(ITEM, snap(on_loan=1, earmarked=1), hold=hold)
    assert result.status == AvailabilityStatus.ON_HOLD_FOR_YOU
    assert result.hold_expires_at == DUE


def test_pending_hold_reports_position_and_wait():
    hold = SimpleNamespace(id=3, status=HoldStatus.PENDING, expires_at=None, position=5)
    result = evaluate(ITEM, snap(on_loan=2, pending=4), hold=hold, holds_ahead=2)
    assert result.status == AvailabilityStatus.WAITING
    assert result.queue_position == 5
    assert result.holds_ahead == 2
    # ceil(3 * 21 / 2)
    assert result.estimated_wait_days == 32


def test_earmarked_copies_are_not_available():
    result = evaluate(ITEM, snap(on_loan=1, earmarked=1))
    assert result.available_copies == 0
    assert result.status == AvailabilityStatus.UNAVAILABLE


def test_free_copy_is_available():
    result = evaluate(ITEM, snap(on_loan=1))
    assert result.status == AvailabilityStatus.AVAILABLE
    assert result.available_copies == 1
    assert result.estimated_wait_days is None


def test_wait_listed_estimate():
    result = evaluate(ITEM, snap(on_loan=2, pending=3))
    assert result.status == AvailabilityStatus.WAIT_LISTED
    assert result.estimated_wait_days == 32


@pytest.mark.parametrize("waiting, period, copies, expected", [
    (1, 21, 1, 21),
    (2, 21, 3, 14),
    (1, 14, 4, 4),
])
def test_estimate_wait_days(waiting, period, copies, expected):
    assert estimate_wait_days(waiting, period, copies) == expected


def test_get_availability_follows_the_lifecycle(db_session):
    item_id = LendingAPI.add_item(total_copies=1, loan_period_days=14).id

    assert LendingAPI.get_availability(item_id).status == AvailabilityStatus.AVAILABLE
    assert LendingAPI.get_availability(item_id, "A").status == AvailabilityStatus.AVAILABLE

    loan = LendingAPI.borrow("A", item_id)
    mine = LendingAPI.get_availability(item_id, "A")
    assert mine.status == AvailabilityStatus.BORROWED_BY_YOU
    assert mine.loan_id == loan.id
    assert LendingAPI.get_availability(item_id, "B").status == AvailabilityStatus.UNAVAILABLE

    LendingAPI.reserve("B", item_id)
    LendingAPI.reserve("C", item_id)
    waiting = LendingAPI.get_availability(item_id, "C")
    assert waiting.status == AvailabilityStatus.WAITING
    assert waiting.queue_position == 2
    assert waiting.holds_ahead == 1
    assert waiting.estimated_wait_days == 28

    anonymous = LendingAPI.get_availability(item_id)
    assert anonymous.status == AvailabilityStatus.WAIT_LISTED
    assert anonymous.pending_holds == 2
    assert anonymous.estimated_wait_days == 28

    LendingAPI.return_item(loan.id)
    assert LendingAPI.get_availability(item_id, "B").status == AvailabilityStatus.ON_HOLD_FOR_YOU
    assert LendingAPI.get_availability(item_id, "C").holds_ahead == 0


def test_get_availability_unknown_item(db_session):
    with pytest.raises(ItemNotFoundError):
        LendingAPI.get_availability(31337)
