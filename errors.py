"""Domain exceptions and their HTTP status codes"""


class ExpenseTrackerError(Exception):
    """Base error carrying a short, user-facing message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ExpenseTrackerError):
    status_code = 400


class ConflictError(ExpenseTrackerError):
    status_code = 400


class AuthError(ExpenseTrackerError):
    status_code = 401


class NotFoundError(ExpenseTrackerError):
    status_code = 404
