"""Exception hierarchy for the Review Board connection.

Transport failures are not wrapped: they surface as ``requests.RequestException``
everywhere except the authentication check.
"""

from __future__ import annotations


class ReviewboardError(Exception):
    """Base class for every error raised by reviewbot_core."""


class AuthenticationError(ReviewboardError):
    """The session check failed, even after re-applying credentials once."""


class DecodeError(ReviewboardError):
    """An XML payload could not be decoded into the expected shape."""


class PreconditionError(ReviewboardError, ValueError):
    """A request was made against a review that cannot satisfy it."""


class ConnectionClosedError(ReviewboardError):
    """The connection was used after close()."""
