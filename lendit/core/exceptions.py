class LendingAPIError(Exception):
    """Base class for every failure the lending engine reports to callers.

    `code` is the stable machine-readable reason and `status_code` is the
    HTTP status the routes answer with.
    """
    code = "lending_error"
    status_code = 400

    def __init__(self, message=None, **details):
        super().__init__(message or self.code)
        self.details = details

    def to_dict(self):
        return {"error": self.code, "message": str(self), **self.details}


# NotFound

class NotFoundError(LendingAPIError):
    code = "not_found"
    status_code = 404

class ItemNotFoundError(NotFoundError):
    code = "item_not_found"

class LoanNotFoundError(NotFoundError):
    code = "loan_not_found"

class HoldNotFoundError(NotFoundError):
    code = "hold_not_found"

class NotificationNotFoundError(NotFoundError):
    code = "notification_not_found"


# Conflict

class ConflictError(LendingAPIError):
    code = "conflict"
    status_code = 409

class AlreadyBorrowedError(ConflictError):
    code = "already_borrowed"

class DuplicateHoldError(ConflictError):
    code = "duplicate_hold"

class AlreadyReturnedError(ConflictError):
    code = "already_returned"

class RenewalLimitReachedError(ConflictError):
    code = "renewal_limit_reached"

class HoldsPendingError(ConflictError):
    code = "holds_pending"

class LoanNotActiveError(ConflictError):
    code = "loan_not_active"

class HoldNotPendingError(ConflictError):
    code = "hold_not_pending"

class CopiesInUseError(ConflictError):
    code = "copies_in_use"

class ItemExistsError(ConflictError):
    code = "item_exists"


# Unavailable

class UnavailableError(LendingAPIError):
    code = "unavailable"
    status_code = 409

class NoCopiesAvailableError(UnavailableError):
    code = "no_copies_available"


# Busy

class BusyError(LendingAPIError):
    code = "busy"
    status_code = 503
    retryable = True

class ItemBusyError(BusyError):
    code = "item_busy"


# Unauthorized

class UnauthorizedError(LendingAPIError):
    code = "unauthorized"
    status_code = 403

class NotRecordOwnerError(UnauthorizedError):
    code = "not_record_owner"

class InvalidTokenError(UnauthorizedError):
    code = "invalid_token"
    status_code = 401

class LibrarianOnlyError(UnauthorizedError):
    code = "librarian_only"


class InvalidItemError(LendingAPIError):
    code = "invalid_item"
    status_code = 422
