# inspector_booking/errors.py

class SchedulingError(Exception):
    """Base class for errors reported straight back to the caller."""

    status_code = 400
    retryable = False

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    @property
    def name(self) -> str:
        return type(self).__name__


class ValidationError(SchedulingError):
    status_code = 422


class SlotUnavailable(SchedulingError):
    status_code = 409


class OutsideAdvanceWindow(SchedulingError):
    status_code = 422


class WidgetDisabled(SchedulingError):
    status_code = 403


class NotFound(SchedulingError):
    status_code = 404


class Forbidden(SchedulingError):
    status_code = 403


class InvalidTransition(SchedulingError):
    status_code = 409


class StorageUnavailable(SchedulingError):
    status_code = 503
    retryable = True
