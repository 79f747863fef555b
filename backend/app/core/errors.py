# app/core/errors.py


class RelayError(Exception):
    """Base class for everything the relay raises on purpose"""


class ValidationError(RelayError):
    """Bad input from the caller (missing room id, empty content, bad TTL...)"""


class RoomFullError(ValidationError):
    """Room already holds the maximum number of active messages"""


class IdentityRequiredError(RelayError):
    def __init__(self, message: str = "Session ID required"):
        super().__init__(message)


class DecodeError(RelayError):
    """Stored content can't be turned back into plaintext with this key"""


class StoreUnavailableError(RelayError):
    """Backing store failed; nothing was persisted"""
