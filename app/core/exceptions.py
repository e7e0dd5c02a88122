"""Error taxonomy shared by the services and mapped to HTTP at the app edge."""


class BookingAppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(BookingAppError):
    status_code = 400


class Forbidden(BookingAppError):
    status_code = 403


class NotFound(BookingAppError):
    status_code = 404


class Conflict(BookingAppError):
    status_code = 409


class Unavailable(BookingAppError):
    """Store or lock backend unreachable. Safe to retry."""

    status_code = 503
