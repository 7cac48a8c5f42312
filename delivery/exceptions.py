"""Custom exception classes for file delivery."""


class DeliveryException(Exception):
    """
    Base exception class for all delivery errors.
    """
    status_code = 500


class FileMissingError(DeliveryException):
    """
    Raised when the requested path does not exist or is not a regular file.
    """
    status_code = 404


class FileNotReadableError(DeliveryException):
    """
    Raised when the file exists but the process cannot read it.
    """
    status_code = 404


class OpenFailureError(DeliveryException):
    """
    Raised when the file cannot be opened for streaming after a successful probe.
    """
    status_code = 500


class RangeNotSatisfiableError(DeliveryException):
    """
    Raised when a recognized Range header falls outside the file.
    """
    status_code = 416

    def __init__(self, size: int, message: str = "Requested range not satisfiable"):
        super().__init__(message)
        self.size = size

    @property
    def content_range(self) -> str:
        return f"bytes */{self.size}"


class InvalidOptionError(DeliveryException):
    """
    Raised when an unknown delivery option key is set.
    """
    pass
