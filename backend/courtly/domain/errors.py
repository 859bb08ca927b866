class BookingError(Exception):
    """Base class for booking failures a caller is expected to handle."""


class InvalidBookingRequestError(BookingError):
    pass


class SlotTooSoonError(BookingError):
    pass


class SlotUnavailableError(BookingError):
    """A requested (date, timeslot, court) is already reserved."""

    def __init__(
        self,
        message: str,
        *,
        date: str | None = None,
        court_id: str | None = None,
        timeslot_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.date = date
        self.court_id = court_id
        self.timeslot_id = timeslot_id


class PaymentNotCompletedError(BookingError):
    pass


class PaymentProviderError(BookingError):
    pass
