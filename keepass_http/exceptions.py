"""
KeePassHTTP Errors.

Every failure raised by this package derives from ``KeePassHTTPError``.
A store answering ``Success: false`` is *not* an error: it is reported
as a normal ``False`` / empty result by the operation that received it.
"""


class KeePassHTTPError(Exception):
    """Base class for all KeePassHTTP client errors."""


class ConfigurationError(KeePassHTTPError, ValueError):
    """Invalid client settings (e.g. a shared key that is not 32 bytes)."""


class StoreTimeoutError(KeePassHTTPError, TimeoutError):
    """The store did not answer before the request deadline.

    The session nonce is indeterminate afterwards; the next operation
    starts a fresh exchange.
    """


class StoreConnectionError(KeePassHTTPError, ConnectionError):
    """The store could not be reached (refused, reset, DNS failure)."""


class ProtocolError(KeePassHTTPError):
    """Non-200 HTTP status or a response body that is not a JSON object."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ValidationError(KeePassHTTPError):
    """Response verifier does not match its nonce.

    Either the peer does not hold the same key or the wire data was
    corrupted. Payload fields of such a response must not be decrypted.
    """


class NotAssociatedError(KeePassHTTPError):
    """A query was attempted before any identity (label) was obtained."""
