# app/services/errors.py


class ScheduleError(Exception):
    """Base class for everything the intake engine raises on purpose."""


class InvalidRange(ScheduleError):
    pass


class InvalidTimes(ScheduleError):
    pass


class InvalidTime(ScheduleError, ValueError):
    # a ValueError too, so pydantic validators turn it into a field error
    pass


class NotFound(ScheduleError):
    pass


class StoreFailure(ScheduleError):
    pass
