"""Custom exceptions for smarthome_panel."""


class PanelException(Exception):
    """Base class for smarthome_panel exceptions."""


class RequestFailed(PanelException):
    """Raised when an API call fails.

    ``status_code`` is the HTTP status, or ``0`` when the request never got a
    response (connection error, timeout, undecodable body).
    """

    def __init__(self, status_code: int, message: str) -> None:
        """Initialize the request failure."""
        self.status_code = status_code
        self.message = message
        super().__init__(message)
