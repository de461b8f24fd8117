"""Custom exceptions for the media uploader."""


class UploadError(Exception):
    """Base exception for upload failures."""
    pass


class UnknownLengthError(UploadError):
    """Exception raised when the source length cannot be determined up front."""
    pass


class TransportError(UploadError):
    """Exception raised when an HTTP request fails or the service rejects it."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        service_message: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.service_message = service_message


class DeadlineExceededError(UploadError):
    """Exception raised when the upload deadline elapses."""
    pass


class UploadCancelledError(UploadError):
    """Exception raised when the caller cancels an upload in progress."""
    pass


class MalformedResponseError(UploadError):
    """Exception raised when a response body cannot be decoded."""
    pass


class MalformedPairError(MalformedResponseError, ValueError):
    """Exception raised when a [label, weight] array is malformed."""
    pass


class SessionStateError(UploadError):
    """Exception raised when a finished session is used again."""
    pass
