# filerelay/core/errors.py
"""
Error taxonomy shared by the store client, the mapping store and the routers.

Only the HTTP layer turns these into responses (see ``filerelay.main``).
"""


class RelayError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RelayError):
    """Bad client input: missing file, oversized file, rejected extension."""

    status_code = 400


class NotFound(RelayError):
    status_code = 404


class TransportError(RelayError):
    """Anything that went wrong talking to the contents API."""

    status_code = 500


class ConflictError(TransportError):
    """A conditional write was rejected because the object changed remotely."""
