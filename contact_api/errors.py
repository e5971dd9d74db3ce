from starlette import status


class ContactApiError(Exception):
    """base class for errors raised by the contact api"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InputError(ContactApiError):
    """
        **InputError**
            a submission failed validation, carries every failing rule
    """
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(message=" ".join(self.errors))


class StorageError(ContactApiError):
    """the messages file could not be read, parsed or written"""


class NotificationError(ContactApiError):
    """a notification provider failed to deliver the message"""
    status_code = status.HTTP_502_BAD_GATEWAY


class RateLimitExceeded(ContactApiError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, message: str, rate_limit: dict[str, int]):
        super().__init__(message=message)
        self.rate_limit = rate_limit


class PayloadTooLarge(ContactApiError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
