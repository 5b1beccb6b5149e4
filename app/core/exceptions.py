"""
Error types raised by the service layer.

Routes do not catch these; the handlers registered in app.main turn them
into {"message": ...} JSON responses.
"""


class BackendError(Exception):
    """The recruiting backend answered with an error (or could not be reached)."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class BackendContractError(BackendError):
    """The backend answered 2xx but the payload does not match our schemas."""

    def __init__(self, message: str):
        super().__init__(502, message)


class GeocodingError(Exception):
    """Remote geocoding failed (network, HTTP status or malformed payload)."""
