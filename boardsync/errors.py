"""Exception types shared across boardsync."""


class BoardsyncError(Exception):
    """Base class for boardsync failures."""
    pass


class ConfigurationError(BoardsyncError):
    """Raised when a credential or required setting is missing.

    Fatal for the current invocation and never retried.
    """
    pass


class MondayAPIError(BoardsyncError):
    """Raised when the monday.com API rejects or fails a request.

    Attributes:
        status_code: HTTP status of the response, if one was received
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamHTTPError(BoardsyncError):
    """Raised when a REST dependency (GitHub, npm, endoflife.date) fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
