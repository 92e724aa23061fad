"""
errors.py: Error taxonomy for the network/protocol layer.

Nothing here is fatal to the process. The connection manager catches these
at its boundary, logs them and records a message in the shared state store.
"""

from typing import Optional


class CruxError(Exception):
    """Base class for all errors raised by this package."""


class DecodeError(CruxError):
    """A binary snapshot could not be decoded."""


class TruncatedError(DecodeError):
    """The buffer ended before a field, count or string it declares."""

    def __init__(self, needed: int, offset: int, available: int):
        self.needed = needed
        self.offset = offset
        self.available = available
        super().__init__(
            f"buffer truncated: need {needed} bytes at offset {offset}, "
            f"only {available} available")


class InvalidTextError(DecodeError):
    """A player name was not valid UTF-8."""

    def __init__(self, offset: int, reason: Optional[str] = None):
        self.offset = offset
        message = f"invalid UTF-8 in string at offset {offset}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class TransportError(CruxError):
    """Connection refused, dropped, or a write to the socket failed."""


class ProtocolViolation(CruxError):
    """A frame of an unexpected type or shape arrived."""
