"""
Association Handshake — obtaining and testing the client identity (label).

    Unassociated --test-associate--> Associated | Unassociated
    Unassociated --associate-------> Associated | ProtocolError

``associate`` is the only request carrying the shared key itself; it blocks
until the user approves the new key in KeePass, hence its longer deadline.
"""
import logging

from .protocol import (
    ID,
    KEY,
    REQUEST_TYPE,
    TRIGGER_UNLOCK,
    RequestType,
    is_success,
)

logger = logging.getLogger("keepass_http")


class AssociationHandshake:
    """Mixin driving the two association requests.

    Expects ``_cipher`` (CipherSession), ``transport``, ``config``,
    ``_label`` and ``_associated`` on the host class.
    """

    async def test_associate(self, use_identity: bool = True) -> bool:
        """Check whether the store still recognizes our identity.

        Args:
            use_identity: Send the current label as ``Id``. With ``False``
                the request only checks that the store answers and
                verifies our key.

        Returns:
            True if the store reported success, False otherwise.

        Raises:
            ValidationError: Store answered success with a bad verifier.
            StoreTimeoutError, StoreConnectionError, ProtocolError: transport failures.
        """
        exchange = self._cipher.new_exchange()
        request = {
            **exchange.envelope(),
            REQUEST_TYPE: RequestType.TEST_ASSOCIATE.value,
            TRIGGER_UNLOCK: False,
        }
        if use_identity:
            request[ID] = self._label
        self._associated = False
        response = await self.transport.post(request)
        if is_success(response):
            self._verify(response)
            self._associated = True
        logger.debug("test-associate: associated=%s", self._associated)
        return self._associated

    async def authorize_key(self) -> str:
        """Register the shared key with the store and adopt the new label.

        Returns:
            The label assigned by the store (unchanged if the user denied).
            ``is_associated()`` is False afterwards unless the store accepted.

        Raises:
            ProtocolError: If the store answered with a non-200 status.
            ValidationError: If the success response carries a bad verifier.
        """
        exchange = self._cipher.new_exchange()
        request = {
            **exchange.envelope(),
            REQUEST_TYPE: RequestType.ASSOCIATE.value,
            KEY: self._cipher.encoded_key,
        }
        self._associated = False
        response = await self.transport.post(
            request, timeout=self.config.associate_timeout
        )
        if is_success(response):
            self._verify(response)
            self._label = response.get(ID) or ""
            self._associated = bool(self._label)
            logger.info("Associated with KeePassHTTP as %r", self._label)
        else:
            logger.warning("KeePassHTTP refused the association request")
        return self._label
