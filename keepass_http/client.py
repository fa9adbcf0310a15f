"""
KeePassHTTPClient — public entry point.

Owns the client identity (label) and the association state; delegates
encryption to ``CipherSession`` and every round trip to ``Transport``.

A client instance supports one exchange in flight at a time: callers
sharing it between tasks must serialize access (e.g. with an
``asyncio.Lock``).
"""
from typing import Optional

from .config import ClientConfig
from .crypto import CipherSession, Exchange
from .handshake import AssociationHandshake
from .protocol import NONCE, VERIFIER
from .queries import QueryOperations
from .transport import Transport


class KeePassHTTPClient(AssociationHandshake, QueryOperations):
    """Async KeePassHTTP client.

    Args:
        key: Raw 32-byte shared key (persisted by the caller).
        label: Identity obtained from a previous ``authorize_key()``.
        config: Store address, deadlines and debug flag.
        transport: Optional pre-built transport (mainly for tests).

    Raises:
        ConfigurationError: If ``key`` is not exactly 32 bytes.
    """

    def __init__(
        self,
        key: bytes,
        label: str = "",
        config: Optional[ClientConfig] = None,
        transport: Optional[Transport] = None,
    ):
        self._cipher = CipherSession(key)
        self._label = label or ""
        self._associated = False
        self.config = config or (transport.config if transport else ClientConfig())
        self.transport = transport or Transport(self.config)

    def __repr__(self) -> str:
        return (
            f"<KeePassHTTPClient {self.config.base_url} "
            f"label={self._label!r} associated={self._associated}>"
        )

    async def __aenter__(self) -> "KeePassHTTPClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def address(self) -> str:
        return self.config.host

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def label(self) -> str:
        return self._label

    def is_associated(self) -> bool:
        """Outcome of the latest test_associate() / authorize_key()."""
        return self._associated

    async def is_server_listening(self) -> bool:
        return await self.transport.is_listening()

    async def close(self) -> None:
        await self.transport.close()

    def _verify(self, response: dict) -> Exchange:
        return self._cipher.verify_response(
            response.get(NONCE), response.get(VERIFIER)
        )
