"""KeePassHTTP — Async client for the KeePassHTTP credential store.

Security Note (Threat Model):
    The shared key crosses the wire once, in the ``associate`` request,
    to a store expected to listen on localhost over plain HTTP.
    Response verifiers prove the store holds the same key; they do not
    authenticate the payload. This is a limitation of the protocol.
"""

from .version import __version__
from .client import KeePassHTTPClient
from .config import ClientConfig, load_key, generate_key
from .crypto import CipherSession, Exchange
from .protocol import Credential, RequestType
from .transport import Transport
from .exceptions import (
    KeePassHTTPError,
    ConfigurationError,
    StoreTimeoutError,
    StoreConnectionError,
    ProtocolError,
    ValidationError,
    NotAssociatedError,
)

__all__ = [
    "__version__",
    "KeePassHTTPClient",
    "ClientConfig",
    "load_key",
    "generate_key",
    "CipherSession",
    "Exchange",
    "Credential",
    "RequestType",
    "Transport",
    "KeePassHTTPError",
    "ConfigurationError",
    "StoreTimeoutError",
    "StoreConnectionError",
    "ProtocolError",
    "ValidationError",
    "NotAssociatedError",
]
