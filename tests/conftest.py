"""
Shared fixtures: a mock KeePassHTTP store served with aiohttp.web.

The mock behaves like the KeePassHTTP plugin: it checks request
verifiers, assigns a label on ``associate``, and answers lookups with
entries encrypted under a fresh response nonce.
"""
import asyncio
import base64
import os

import pytest
from aiohttp import web

from keepass_http import ClientConfig, KeePassHTTPClient
from keepass_http.crypto import CipherSession
from keepass_http.exceptions import ValidationError


STORE_LABEL = "python-test-client"


class MockStore:
    """In-memory KeePassHTTP store."""

    def __init__(self):
        self.keys: dict[str, bytes] = {}
        self.entries: list[dict] = []
        self.count: int | None = None
        self.requests: list[dict] = []
        self.urls: list[tuple] = []
        self.status = 200
        self.delay = 0.0
        self.tamper = False
        self.approve = True

    def add_entry(self, name, login, password, uuid):
        self.entries.append(
            {"name": name, "login": login, "password": password, "uuid": uuid}
        )

    def _reply(self, cipher: CipherSession, exchange=None, **payload) -> web.Response:
        exchange = exchange or cipher.new_exchange()
        body = {"Success": True, **exchange.envelope(), **payload}
        if self.tamper:
            other = CipherSession(os.urandom(32)).new_exchange()
            body["Verifier"] = other.verifier
        return web.json_response(body)

    def _fail(self) -> web.Response:
        return web.json_response({"Success": False})

    def _known(self, body: dict):
        key = self.keys.get(body.get("Id"))
        if key is None:
            return None, None
        cipher = CipherSession(key)
        try:
            exchange = cipher.verify_response(body["Nonce"], body["Verifier"])
        except ValidationError:
            return None, None
        return cipher, exchange

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.requests.append(body)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.status != 200:
            return web.json_response({"Success": True}, status=self.status)
        kind = body.get("RequestType")
        if kind == "associate":
            if not self.approve:
                return self._fail()
            key = base64.b64decode(body["Key"])
            cipher = CipherSession(key)
            cipher.verify_response(body["Nonce"], body["Verifier"])
            self.keys[STORE_LABEL] = key
            return self._reply(cipher, Id=STORE_LABEL)
        cipher, exchange = self._known(body)
        if cipher is None:
            return self._fail()
        if kind == "test-associate":
            return self._reply(cipher, Id=body["Id"])
        self.urls.append(
            (exchange.decrypt(body["Url"]), exchange.decrypt(body["SubmitUrl"]))
        )
        if kind == "get-logins-count":
            count = len(self.entries) if self.count is None else self.count
            return self._reply(cipher, Id=body["Id"], Count=count)
        if kind == "get-logins":
            response = cipher.new_exchange()
            entries = [
                {
                    "Name": response.encrypt(e["name"]),
                    "Login": response.encrypt(e["login"]),
                    "Password": response.encrypt(e["password"]),
                    "Uuid": response.encrypt(e["uuid"]),
                }
                for e in self.entries
            ]
            return self._reply(
                cipher, response, Id=body["Id"], Count=len(entries), Entries=entries
            )
        return self._fail()


@pytest.fixture
def key():
    return os.urandom(32)


@pytest.fixture
def store():
    return MockStore()


@pytest.fixture
async def server(aiohttp_server, store):
    app = web.Application()
    app.router.add_post("/", store.handle)
    return await aiohttp_server(app)


@pytest.fixture
def config(server):
    return ClientConfig(
        host=server.host, port=server.port, timeout=5, associate_timeout=5
    )


@pytest.fixture
async def client(key, config):
    kp = KeePassHTTPClient(key, config=config)
    yield kp
    await kp.close()


@pytest.fixture
async def associated(client, store, key):
    """Client whose label is already known to the store."""
    store.keys[STORE_LABEL] = key
    kp = KeePassHTTPClient(key, label=STORE_LABEL, transport=client.transport)
    return kp
