"""
Error types raised by the discovery and transfer protocols.

Transport failures (bind, connect, read, write) are not wrapped; they
surface as the underlying OSError.
"""


class SnekdropError(Exception):
    """Base class for protocol-level failures."""


class PeerNotFoundError(SnekdropError):
    """Raised when the attempt budget runs out without reaching a peer."""


class FileTooLargeError(SnekdropError, PermissionError):
    """Raised when a transfer header declares more bytes than allowed."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"File size bigger than limit ({limit})")
        self.size = size
        self.limit = limit


class IncompleteTransferError(SnekdropError):
    """Raised when a stream ends before the declared length."""

    def __init__(self, expected: int, received: int):
        super().__init__(f"Stream ended after {received} of {expected} bytes")
        self.expected = expected
        self.received = received
