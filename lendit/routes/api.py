#!/usr/bin/env python

"""
    API routes for Lendit,
    including borrowing, reservations and the catalog hooks.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from functools import wraps
from typing import Optional, List
from fastapi import (
    APIRouter,
    Request,
    Depends,
    Header,
    Cookie,
    status,
)
from fastapi.responses import JSONResponse
from lendit.core import auth
from lendit.core.api import LendingAPI
from lendit.core.db import session as db
from lendit.core.exceptions import (
    LendingAPIError,
    BusyError,
    InvalidTokenError,
    LibrarianOnlyError,
)
from lendit.configs import LIBRARIAN_HOSTS, TOKEN_TTL
from lendit.schemas.item import Item, ItemCreate, ItemCopies, ItemStatus
from lendit.schemas.loan import Loan
from lendit.schemas.hold import Hold
from lendit.schemas.availability import Availability
from lendit.schemas.notification import Notification
from lendit.schemas.patron import Token, TokenRequest

router = APIRouter()


def lending_error_response(e: LendingAPIError) -> JSONResponse:
    headers = {}
    if isinstance(e, BusyError):
        headers["Retry-After"] = str(e.details.get("retry_after", 1))
    return JSONResponse(status_code=e.status_code, content=e.to_dict(), headers=headers)


def releases_session(func):
    """Returns the thread's database session to the pool once the
    endpoint is done; endpoints run on a worker thread pool.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        finally:
            db.remove()
    return wrapper


def _bearer(request: Request, session: Optional[str]) -> Optional[str]:
    if session:
        return session
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


def optional_patron(request: Request, session: Optional[str] = Cookie(None)) -> Optional[str]:
    """Patron id from the bearer token or session cookie, if any."""
    token = _bearer(request, session)
    if not token:
        return None
    if not (patron_id := auth.verify_patron_token(token)):
        raise InvalidTokenError("Patron token is invalid or expired.")
    return patron_id


def requires_patron(patron_id: Optional[str] = Depends(optional_patron)) -> str:
    if not patron_id:
        raise InvalidTokenError("A patron token is required.")
    return patron_id


def requires_librarian(request: Request):
    host = request.client.host if request.client else None
    if host not in LIBRARIAN_HOSTS:
        raise LibrarianOnlyError(f"Host {host} may not manage the catalog.")
    return host


@router.get("/items", response_model=List[ItemStatus])
@releases_session
def get_items(offset: Optional[int] = None, limit: Optional[int] = None):
    return [
        ItemStatus(
            **Item.model_validate(item).model_dump(),
            available_copies=snap.available_copies,
            on_loan=snap.on_loan,
            earmarked=snap.earmarked,
            pending_holds=snap.pending_holds,
        )
        for item, snap in LendingAPI.list_items(offset=offset, limit=limit)
    ]


@router.post("/items", response_model=Item, status_code=status.HTTP_201_CREATED)
@releases_session
def add_item(body: ItemCreate, librarian: str = Depends(requires_librarian)):
    item = LendingAPI.add_item(
        item_id=body.id,
        title=body.title,
        total_copies=body.total_copies,
        loan_period_days=body.loan_period_days,
        max_renewals=body.max_renewals,
    )
    return Item.model_validate(item)


@router.patch("/items/{item_id}", response_model=Item)
@releases_session
def update_item_copies(item_id: int, body: ItemCopies, librarian: str = Depends(requires_librarian)):
    return Item.model_validate(LendingAPI.update_copies(item_id, body.total_copies))


@router.get("/items/{item_id}/availability", response_model=Availability)
@releases_session
def get_availability(item_id: int, patron_id: Optional[str] = Depends(optional_patron)):
    return Availability.model_validate(LendingAPI.get_availability(item_id, patron_id=patron_id))


@router.post("/items/{item_id}/borrow", response_model=Loan, status_code=status.HTTP_201_CREATED)
@releases_session
def borrow_item(item_id: int, patron_id: str = Depends(requires_patron)):
    """
    Borrow endpoint. A 409 `no_copies_available` answer means the
    patron should be offered a reservation instead.
    """
    return Loan.model_validate(LendingAPI.borrow(patron_id, item_id))


@router.post("/items/{item_id}/reserve", response_model=Hold, status_code=status.HTTP_201_CREATED)
@releases_session
def reserve_item(item_id: int, patron_id: str = Depends(requires_patron)):
    return Hold.model_validate(LendingAPI.reserve(patron_id, item_id))


@router.post("/loans/{loan_id}/renew", response_model=Loan)
@releases_session
def renew_loan(loan_id: int, patron_id: str = Depends(requires_patron)):
    return Loan.model_validate(LendingAPI.renew(loan_id, patron_id=patron_id))


@router.post("/loans/{loan_id}/return", response_model=Loan)
@releases_session
def return_loan(loan_id: int, patron_id: str = Depends(requires_patron)):
    return Loan.model_validate(LendingAPI.return_item(loan_id, patron_id=patron_id))


@router.get("/loans", response_model=List[Loan])
@releases_session
def get_loans(history: bool = False, patron_id: str = Depends(requires_patron)):
    loans = (LendingAPI.list_loan_history(patron_id) if history
             else LendingAPI.list_active_borrows(patron_id))
    return [Loan.model_validate(loan) for loan in loans]


@router.get("/holds", response_model=List[Hold])
@releases_session
def get_holds(patron_id: str = Depends(requires_patron)):
    return [Hold.model_validate(hold) for hold in LendingAPI.list_pending_holds(patron_id)]


@router.delete("/holds/{hold_id}", response_model=Hold)
@releases_session
def cancel_hold(hold_id: int, patron_id: str = Depends(requires_patron)):
    return Hold.model_validate(LendingAPI.cancel_reservation(hold_id, patron_id))


@router.get("/notifications", response_model=List[Notification])
@releases_session
def get_notifications(unread: bool = False, patron_id: str = Depends(requires_patron)):
    return [Notification.model_validate(n)
            for n in LendingAPI.list_notifications(patron_id, unread_only=unread)]


@router.post("/notifications/{notification_id}/read", response_model=Notification)
@releases_session
def read_notification(notification_id: int, patron_id: str = Depends(requires_patron)):
    return Notification.model_validate(
        LendingAPI.mark_notification_read(notification_id, patron_id))


@router.post("/token", response_model=Token)
def issue_token(body: TokenRequest, librarian: str = Depends(requires_librarian)):
    """Mints a patron capability token. The identity provider in front of
    Lendit calls this once it has authenticated the patron.
    """
    return Token(
        patron_id=body.patron_id,
        token=auth.create_patron_token(body.patron_id),
        expires_in=TOKEN_TTL,
    )
