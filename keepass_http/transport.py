"""
Transport — JSON over HTTP POST to the KeePassHTTP store.

One awaited POST per exchange. No pooling policy, no retries: a failed
call is classified and raised, and the caller decides what to do next.
"""
import asyncio
import logging
from typing import Any, Optional

import orjson
import aiohttp

from .config import ClientConfig
from .exceptions import (
    ProtocolError,
    StoreConnectionError,
    StoreTimeoutError,
)

logger = logging.getLogger("keepass_http")

_PROBE_TIMEOUT = 2.0


def _json_serialize(obj: Any) -> str:
    return orjson.dumps(obj).decode("utf-8")


async def _on_request_start(session, ctx, params: aiohttp.TraceRequestStartParams) -> None:
    ctx.start = asyncio.get_running_loop().time()
    logger.debug("POST %s", params.url)


async def _on_request_end(session, ctx, params: aiohttp.TraceRequestEndParams) -> None:
    elapsed = asyncio.get_running_loop().time() - ctx.start
    logger.debug(
        "POST %s -> %s (%.3fs)", params.url, params.response.status, elapsed
    )


async def _on_request_exception(
    session, ctx, params: aiohttp.TraceRequestExceptionParams
) -> None:
    logger.debug("POST %s failed: %r", params.url, params.exception)


def _trace_config() -> aiohttp.TraceConfig:
    trace = aiohttp.TraceConfig()
    trace.on_request_start.append(_on_request_start)
    trace.on_request_end.append(_on_request_end)
    trace.on_request_exception.append(_on_request_exception)
    return trace


class Transport:
    """Sends request objects to the store and returns parsed responses.

    The underlying ``aiohttp.ClientSession`` is created on first use, so a
    Transport can be built outside of a running event loop.
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    def __repr__(self) -> str:
        return f"<Transport {self.config.base_url}>"

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            trace_configs = [_trace_config()] if self.config.debug else None
            self._session = aiohttp.ClientSession(
                base_url=f"http://{self.config.host}:{self.config.port}",
                json_serialize=_json_serialize,
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                trace_configs=trace_configs,
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def post(self, request: dict, timeout: Optional[float] = None) -> dict:
        """POST a request object and return the decoded response object.

        Args:
            request: JSON-serializable request fields.
            timeout: Deadline in seconds for this call; defaults to
                ``config.timeout``.

        Returns:
            Parsed JSON response object.

        Raises:
            StoreTimeoutError: If the deadline elapsed.
            StoreConnectionError: If the store could not be reached.
            ProtocolError: On a non-200 status or a malformed body.
        """
        deadline = timeout if timeout is not None else self.config.timeout
        session = self._get_session()
        try:
            async with session.post(
                "/",
                json=request,
                timeout=aiohttp.ClientTimeout(total=deadline),
            ) as resp:
                if resp.status != 200:
                    logger.warning(
                        "KeePassHTTP store returned HTTP %s", resp.status
                    )
                    raise ProtocolError(
                        f"Server returned error status {resp.status}",
                        status=resp.status,
                    )
                body = await resp.read()
        except asyncio.TimeoutError as err:
            raise StoreTimeoutError(
                f"Request timed out after {deadline}s"
            ) from err
        except aiohttp.ClientConnectionError as err:
            raise StoreConnectionError(
                f"Unable to reach KeePassHTTP at {self.config.base_url}: {err}"
            ) from err
        except aiohttp.ClientError as err:
            raise ProtocolError(f"Invalid HTTP exchange: {err}") from err
        try:
            response = orjson.loads(body)
        except orjson.JSONDecodeError as err:
            raise ProtocolError("Response body is not valid JSON") from err
        if not isinstance(response, dict):
            raise ProtocolError("Response body is not a JSON object")
        return response

    async def is_listening(self) -> bool:
        """Probe whether something accepts TCP connections on host:port."""
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self.config.host, self.config.port),
                timeout=_PROBE_TIMEOUT,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True
