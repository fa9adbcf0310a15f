"""
Query Operations — encrypted credential lookups for an associated client.

Both requests carry the label as ``Id`` and the page/submit URLs encrypted
with the request exchange; response entries are decrypted with the
exchange returned by verifying the response.
"""
import logging
from typing import Optional

from .exceptions import NotAssociatedError, ValidationError
from .protocol import (
    COUNT,
    ENTRIES,
    ID,
    REQUEST_TYPE,
    SORT_SELECTION,
    SUBMIT_URL,
    TRIGGER_UNLOCK,
    URL,
    Credential,
    RequestType,
    is_success,
)

logger = logging.getLogger("keepass_http")


class QueryOperations:
    """Mixin implementing ``get-logins-count`` and ``get-logins``."""

    def _query_request(
        self, kind: RequestType, url: str, submit_url: Optional[str]
    ) -> dict:
        if not self._label:
            raise NotAssociatedError(
                "No identity available: call authorize_key() first"
            )
        exchange = self._cipher.new_exchange()
        request = {
            **exchange.envelope(),
            REQUEST_TYPE: kind.value,
            TRIGGER_UNLOCK: False,
            ID: self._label,
            URL: exchange.encrypt(url),
            SUBMIT_URL: exchange.encrypt(submit_url or url),
            SORT_SELECTION: True,
        }
        return request

    async def get_logins_count(self, url: str, submit_url: Optional[str] = None) -> int:
        """Number of stored logins matching ``url``.

        Returns:
            The store's ``Count``, or 0 if it reported failure
            (e.g. the label is no longer recognized).
        """
        request = self._query_request(
            RequestType.GET_LOGINS_COUNT, url, submit_url
        )
        response = await self.transport.post(request)
        if not is_success(response):
            logger.warning("get-logins-count: store reported failure")
            return 0
        self._verify(response)
        count = response.get(COUNT, 0)
        if not isinstance(count, int) or isinstance(count, bool):
            raise ValidationError(f"Invalid Count in response: {count!r}")
        return count

    async def get_logins(self, url: str, submit_url: Optional[str] = None) -> list[Credential]:
        """Stored logins matching ``url``, decrypted.

        The list keeps the order returned by the store and is a snapshot
        of its result set at call time.

        Returns:
            Credential list; empty if the store reported failure.
        """
        request = self._query_request(RequestType.GET_LOGINS, url, submit_url)
        response = await self.transport.post(request)
        if not is_success(response):
            logger.warning("get-logins: store reported failure")
            return []
        exchange = self._verify(response)
        credentials = []
        for entry in response.get(ENTRIES) or []:
            try:
                credentials.append(
                    Credential(
                        name=exchange.decrypt(entry["Name"]),
                        login=exchange.decrypt(entry["Login"]),
                        password=exchange.decrypt(entry["Password"]),
                        uuid=exchange.decrypt(entry["Uuid"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as err:
                raise ValidationError(
                    f"Undecodable entry in get-logins response: {err}"
                ) from err
        logger.debug("get-logins: %d entries", len(credentials))
        return credentials
