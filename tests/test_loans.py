#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_loans
    ~~~~~~~~~~~~~~~~

    Borrow, renew and return.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import datetime
import pytest
from lendit.core import ledger
from lendit.core.api import LendingAPI
from lendit.core.models import Loan, LoanStatus, Hold, HoldStatus
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
    UnavailableError,
    ConflictError,
)


@pytest.fixture
def item_id(db_session):
    return LendingAPI.add_item(total_copies=1, loan_period_days=21, max_renewals=2).id


def test_borrow_creates_active_loan(item_id, clock):
    loan = LendingAPI.borrow("alice", item_id)

    assert loan.status == LoanStatus.ACTIVE
    assert loan.patron_id == "alice"
    assert loan.borrowed_at == clock.now
    assert loan.due_date == clock.now + datetime.timedelta(days=21)
    assert loan.renewal_count == 0
    assert ledger.on_loan(item_id) == 1


def test_borrow_unknown_item(db_session):
    with pytest.raises(ItemNotFoundError):
        LendingAPI.borrow("alice", 999)


def test_borrow_twice_is_already_borrowed(item_id):
    loan = LendingAPI.borrow("alice", item_id)
    with pytest.raises(AlreadyBorrowedError) as excinfo:
        LendingAPI.borrow("alice", item_id)
    assert excinfo.value.details["loan_id"] == loan.id
    assert isinstance(excinfo.value, ConflictError)


def test_borrow_without_copies_is_unavailable(item_id):
    LendingAPI.borrow("alice", item_id)
    with pytest.raises(NoCopiesAvailableError) as excinfo:
        LendingAPI.borrow("bob", item_id)
    assert isinstance(excinfo.value, UnavailableError)
    assert excinfo.value.details["total_copies"] == 1
    assert ledger.on_loan(item_id) == 1


def test_no_copies_and_already_borrowed_are_distinguishable(item_id):
    LendingAPI.borrow("alice", item_id)
    with pytest.raises(AlreadyBorrowedError) as mine:
        LendingAPI.borrow("alice", item_id)
    with pytest.raises(NoCopiesAvailableError) as theirs:
        LendingAPI.borrow("bob", item_id)
    assert mine.value.code == "already_borrowed"
    assert theirs.value.code == "no_copies_available"


def test_multiple_copies_lend_independently(db_session):
    item_id = LendingAPI.add_item(total_copies=2).id
    LendingAPI.borrow("alice", item_id)
    LendingAPI.borrow("bob", item_id)
    with pytest.raises(NoCopiesAvailableError):
        LendingAPI.borrow("carol", item_id)
    assert ledger.on_loan(item_id) == 2


def test_renew_extends_due_date(item_id, clock):
    loan = LendingAPI.borrow("alice", item_id)
    first_due = loan.due_date

    renewed = LendingAPI.renew(loan.id, patron_id="alice")

    assert renewed.renewal_count == 1
    assert renewed.due_date == first_due + datetime.timedelta(days=21)


def test_renew_stops_at_limit(item_id):
    loan = LendingAPI.borrow("alice", item_id)
    LendingAPI.renew(loan.id)
    LendingAPI.renew(loan.id)
    with pytest.raises(RenewalLimitReachedError):
        LendingAPI.renew(loan.id)


def test_renew_blocked_while_anyone_waits(item_id, reload):
    loan = LendingAPI.borrow("alice", item_id)
    LendingAPI.reserve("bob", item_id)

    with pytest.raises(HoldsPendingError) as excinfo:
        LendingAPI.renew(loan.id)

    assert excinfo.value.details["pending_holds"] == 1
    assert reload(Loan, loan.id).renewal_count == 0


def test_renew_by_other_patron_is_refused(item_id):
    loan = LendingAPI.borrow("alice", item_id)
    with pytest.raises(NotRecordOwnerError):
        LendingAPI.renew(loan.id, patron_id="mallory")


def test_renew_unknown_loan(db_session):
    with pytest.raises(LoanNotFoundError):
        LendingAPI.renew(12345)


def test_renew_returned_loan(item_id):
    loan = LendingAPI.borrow("alice", item_id)
    LendingAPI.return_item(loan.id)
    with pytest.raises(LoanNotActiveError):
        LendingAPI.renew(loan.id)


def test_return_frees_the_copy(item_id, clock):
    loan = LendingAPI.borrow("alice", item_id)
    clock.advance(days=4)

    returned = LendingAPI.return_item(loan.id, patron_id="alice")

    assert returned.status == LoanStatus.RETURNED
    assert returned.returned_at == clock.now
    assert ledger.on_loan(item_id) == 0
    assert LendingAPI.borrow("bob", item_id).patron_id == "bob"


def test_double_return_is_reported(item_id):
    loan = LendingAPI.borrow("alice", item_id)
    LendingAPI.return_item(loan.id)
    with pytest.raises(AlreadyReturnedError):
        LendingAPI.return_item(loan.id)


def test_return_by_other_patron_is_refused(item_id, reload):
    loan = LendingAPI.borrow("alice", item_id)
    with pytest.raises(NotRecordOwnerError):
        LendingAPI.return_item(loan.id, patron_id="mallory")
    assert reload(Loan, loan.id).status == LoanStatus.ACTIVE


def test_returned_loans_stay_as_history(item_id):
    first = LendingAPI.borrow("alice", item_id)
    LendingAPI.return_item(first.id)
    second = LendingAPI.borrow("alice", item_id)

    history = LendingAPI.list_loan_history("alice")
    active = LendingAPI.list_active_borrows("alice")

    assert {loan.id for loan in history} == {first.id, second.id}
    assert [loan.id for loan in active] == [second.id]


def test_borrow_with_pending_hold_elsewhere_in_line(db_session, reload):
    item_id = LendingAPI.add_item(total_copies=1).id
    loan = LendingAPI.borrow("alice", item_id)
    hold = LendingAPI.reserve("bob", item_id)
    LendingAPI.return_item(loan.id)

    # bob's hold is Ready, so carol cannot take the copy
    with pytest.raises(NoCopiesAvailableError):
        LendingAPI.borrow("carol", item_id)

    bobs_loan = LendingAPI.borrow("bob", item_id)
    assert bobs_loan.status == LoanStatus.ACTIVE
    assert reload(Hold, hold.id).status == HoldStatus.FULFILLED
