# Each error carries the HTTP status the API answers with.


class BookingError(Exception):
    """Base class for booking failures reported to the caller."""

    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class ConflictError(BookingError):
    status_code = 409


class AlreadyInStateError(BookingError):
    status_code = 409


class InvalidTransitionError(BookingError):
    status_code = 409


class TransientStoreError(BookingError):
    status_code = 503
