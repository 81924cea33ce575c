"""Error types raised by the booking services."""


class BookingError(Exception):
    """Base class for recoverable, per-call failures."""

    kind = 'BookingError'

    def __init__(self, msg: str):
        super().__init__(msg)
        self.msg = msg


class NotFoundError(BookingError):
    """A referenced record does not exist."""

    kind = 'NotFound'


class InvalidInputError(BookingError):
    """Validation failed, including a slot that is no longer available."""

    kind = 'InvalidInput'


class AlreadyExistsError(BookingError):
    """A unique directory field is already taken."""

    kind = 'AlreadyExists'
