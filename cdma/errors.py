"""
CDMA Round Errors

Every failure that ends a round is raised as a subclass of CDMAError so
callers can tell a bad frame apart from a stalled join or a dead stream.
None of these are retried: a round either completes for all three stations
or fails as a whole.
"""


class CDMAError(Exception):
    """Base class for all round failures."""


class DomainError(CDMAError, ValueError):
    """Value outside [0, 7] or station id outside {1, 2, 3}."""


class MalformedFrameError(CDMAError, ValueError):
    """Frame of the wrong length or with a byte outside its digit set."""


class CodeTableError(CDMAError, ValueError):
    """Walsh table with the wrong shape, entries or orthogonality."""


class RoutingError(CDMAError, ValueError):
    """Destinations do not address every station exactly once."""


class DecodeError(CDMAError, ValueError):
    """Correlation average outside {-1, +1} while despreading."""

    def __init__(self, message: str, averages=None):
        super().__init__(message)
        self.averages = averages


class JoinError(CDMAError, RuntimeError):
    """Combiner did not receive one request from every station."""

    def __init__(self, message: str, received=None):
        super().__init__(message)
        self.received = sorted(received or [])


class TransportError(CDMAError, RuntimeError):
    """Stream closed, unreadable or timed out mid-frame."""

    def __init__(self, message: str, timed_out: bool = False, received_bytes: int = 0):
        super().__init__(message)
        self.timed_out = timed_out
        self.received_bytes = received_bytes
