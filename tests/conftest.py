"""Pytest configuration and fixtures."""

import json
import os
import time

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from fastapi.testclient import TestClient

# Signing key for the whole test session; the app verifies against its public half
SIGNING_KEY = Ed25519PrivateKey.generate()
PUBLIC_KEY_HEX = SIGNING_KEY.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()

OWNER_ID = "100000000000000001"
APPLICATION_ID = "200000000000000002"

# Set test environment variables BEFORE importing app
os.environ.setdefault("DISCORD_PUBLIC_KEY", PUBLIC_KEY_HEX)
os.environ.setdefault("DISCORD_TOKEN", "test_bot_token")
os.environ.setdefault("OWNER_ID", OWNER_ID)
os.environ.setdefault("ENVIRONMENT", "test")

from interaction_gateway.config import Settings  # noqa: E402
from interaction_gateway.main import create_app  # noqa: E402
from interaction_gateway.services.discord_rest import DiscordRestClient  # noqa: E402


def sign(body: bytes, timestamp: str = None) -> dict:
    """Headers for a correctly signed request."""
    timestamp = timestamp or str(int(time.time()))
    signature = SIGNING_KEY.sign(timestamp.encode() + body).hex()
    return {
        "X-Signature-Ed25519": signature,
        "X-Signature-Timestamp": timestamp,
        "Content-Type": "application/json",
    }


def _user(user_id: str) -> dict:
    return {"id": user_id, "username": f"user{user_id[-2:]}", "global_name": None}


def _envelope(interaction_type: int, data: dict = None, user_id: str = OWNER_ID, guild: bool = False) -> dict:
    payload = {
        "id": "300000000000000003",
        "application_id": APPLICATION_ID,
        "type": interaction_type,
        "token": "interaction-token",
        "version": 1,
        "channel_id": "400000000000000004",
        "locale": "en-US",
        "app_permissions": "2147483647",
    }
    if data is not None:
        payload["data"] = data
    if guild:
        payload["guild_id"] = "500000000000000005"
        payload["member"] = {"user": _user(user_id), "permissions": "8", "roles": []}
    else:
        payload["user"] = _user(user_id)
    return payload


class Payloads:
    """Builders for raw interaction payloads."""

    @staticmethod
    def ping() -> dict:
        return {"id": "1", "application_id": APPLICATION_ID, "type": 1, "token": "t", "version": 1}

    @staticmethod
    def command(
        name: str,
        options: list = None,
        user_id: str = OWNER_ID,
        command_type: int = 1,
        guild: bool = False,
        **data
    ) -> dict:
        body = {"id": "600000000000000006", "name": name, "type": command_type}
        if options is not None:
            body["options"] = options
        body.update(data)
        return _envelope(2, body, user_id=user_id, guild=guild)

    @staticmethod
    def button(custom_id: str, user_id: str = OWNER_ID) -> dict:
        payload = _envelope(3, {"custom_id": custom_id, "component_type": 2}, user_id=user_id)
        payload["message"] = {"id": "700000000000000007", "content": "pick one"}
        return payload

    @staticmethod
    def select(custom_id: str, values: list, component_type: int = 3) -> dict:
        payload = _envelope(3, {"custom_id": custom_id, "component_type": component_type, "values": values})
        payload["message"] = {"id": "700000000000000007"}
        return payload

    @staticmethod
    def modal(custom_id: str, components: list) -> dict:
        return _envelope(5, {"custom_id": custom_id, "components": components})

    @staticmethod
    def autocomplete(name: str, options: list) -> dict:
        return _envelope(4, {"id": "600000000000000006", "name": name, "type": 1, "options": options})


@pytest.fixture
def payloads():
    return Payloads


@pytest.fixture
def settings():
    """Settings bound to the test signing key."""
    return Settings(
        discord_public_key=PUBLIC_KEY_HEX,
        discord_token="test_bot_token",
        owner_id=OWNER_ID,
        environment="test",
    )


@pytest.fixture
def rest_requests():
    """Requests captured by the mocked Discord REST transport."""
    return []


@pytest.fixture
def rest_client(rest_requests):
    """REST client whose transport records requests instead of sending them."""
    def handler(request: httpx.Request) -> httpx.Response:
        rest_requests.append(request)
        if request.method == "DELETE":
            return httpx.Response(204)
        return httpx.Response(200, json={"id": "800000000000000008", "content": "ok"})

    return DiscordRestClient(
        bot_token="test_bot_token",
        base_url="https://discord.test/api/v10",
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def make_client(settings, rest_client):
    """Build a test client around a registry."""
    clients = []

    def _make(registry, **kwargs):
        app = create_app(registry, settings=settings, rest=rest_client, **kwargs)
        client = TestClient(app, raise_server_exceptions=False)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def post_interaction():
    """Sign and post a payload to /interactions."""
    def _post(client: TestClient, payload: dict, headers: dict = None):
        body = json.dumps(payload).encode()
        return client.post("/interactions", content=body, headers=headers if headers is not None else sign(body))

    return _post
