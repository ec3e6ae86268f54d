"""
Domain errors raised by the shift-close and ledger services.

Views turn any BackOfficeError into a JSON error body with its status code.
Field-level rule violations on models still raise Django's ValidationError.
"""


class BackOfficeError(Exception):
    code = "backoffice_error"
    status = 400

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def as_dict(self):
        body = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class AlreadyClosed(BackOfficeError):
    """A (date, shift) pair already has a ShiftClosed record."""
    code = "already_closed"
    status = 409


class IncompleteData(BackOfficeError):
    """Required operational or configuration data is missing or invalid."""
    code = "incomplete_data"
    status = 422


class AccountNotFound(BackOfficeError):
    code = "account_not_found"
    status = 404


class InvalidDateRange(BackOfficeError):
    code = "invalid_date_range"
    status = 400
