from fastapi import status
from fastapi.responses import JSONResponse


class ApplicationException(Exception):
    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def to_response(self):
        return JSONResponse(
            status_code=self.status_code,
            content={"error": self.message}
        )


class NotFoundError(ApplicationException):
    """Unknown breathing mode, or a session that does not belong to the caller."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class InvalidArgumentError(ApplicationException):
    """Bad enum value or an empty update payload."""

    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class StoreUnavailableError(ApplicationException):
    """The backing store failed. Not retried here."""

    def __init__(self, message: str = "Breathing store unavailable"):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE)
