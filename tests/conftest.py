"""Shared fixtures: an in-process fake of the Home Connect cloud API."""

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import aiohttp
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from custom_components.homeconnect.api import HomeConnectApiClient
from custom_components.homeconnect.models import Token

HA_ID = "SIEMENS-HCS02DWH1-6BE58C3DAD9C"


@dataclass
class FakeHomeConnect:
    """Mutable state of the fake API, inspected and configured by tests."""

    valid_tokens: set[str] = field(default_factory=lambda: {"access-0"})
    issued: int = 0
    device_pending: bool = False
    # (method, path) -> (status, payload)
    responses: dict[tuple[str, str], tuple[int, Any]] = field(default_factory=dict)
    requests: list[tuple[str, str, Any]] = field(default_factory=list)
    token_requests: list[dict[str, str]] = field(default_factory=list)
    # one list of raw lines per SSE connection
    sse_scripts: list[list[str]] = field(default_factory=list)
    sse_connections: int = 0
    # number of upcoming SSE connections answered with 401
    sse_unauthorized: int = 0
    # reject every access token, including freshly issued ones
    reject_all: bool = False
    # (method, path) -> extra response headers
    response_headers: dict[tuple[str, str], dict[str, str]] = field(default_factory=dict)

    def issue_token(self) -> str:
        self.issued += 1
        token = f"access-{self.issued}"
        self.valid_tokens = {token}
        return token

    def authorized(self, request: web.Request) -> bool:
        if self.reject_all:
            return False
        header = request.headers.get("Authorization", "")
        return header.removeprefix("Bearer ") in self.valid_tokens


def _json(status: int, payload: Any, headers: dict[str, str] | None = None) -> web.Response:
    return web.Response(
        status=status,
        text=json.dumps(payload),
        content_type="application/json",
        headers=headers,
    )


def build_app(state: FakeHomeConnect) -> web.Application:
    async def authorize(request: web.Request) -> web.Response:
        redirect_uri = request.query["redirect_uri"]
        raise web.HTTPFound(f"{redirect_uri}?code=sim-code&state=")

    async def device_authorization(request: web.Request) -> web.Response:
        return _json(
            200,
            {
                "device_code": "device-code",
                "user_code": "ABCD-1234",
                "verification_uri": "https://verify.home-connect.com",
                "verification_uri_complete": "https://verify.home-connect.com?user_code=ABCD-1234",
                "expires_in": 600,
                "interval": 5,
            },
        )

    async def token(request: web.Request) -> web.Response:
        form = dict(await request.post())
        state.token_requests.append(form)
        grant_type = form.get("grant_type")

        if grant_type == "refresh_token":
            if form.get("refresh_token") == "revoked":
                return _json(400, {"error": "invalid_grant"})
            return _json(200, {"access_token": state.issue_token(), "expires_in": 86400})
        if grant_type == "authorization_code":
            if form.get("code") != "sim-code":
                return _json(400, {"error": "invalid_grant"})
            return _json(200, {"access_token": state.issue_token(), "expires_in": 86400})
        if grant_type == "device_code":
            if state.device_pending:
                return _json(400, {"error": "authorization_pending"})
            return _json(
                200,
                {
                    "access_token": state.issue_token(),
                    "refresh_token": "device-refresh",
                    "expires_in": 86400,
                },
            )
        return _json(400, {"error": "unsupported_grant_type"})

    async def appliances(request: web.Request) -> web.Response:
        if not state.authorized(request):
            return _json(401, {"error": {"key": "invalid_token"}})
        state.requests.append((request.method, request.path, None))
        status, payload = state.responses.get(
            ("GET", request.path),
            (200, {"data": {"homeappliances": []}}),
        )
        return _json(status, payload)

    async def appliance_resource(request: web.Request) -> web.Response:
        if not state.authorized(request):
            return _json(401, {"error": {"key": "invalid_token"}})
        body = await request.text()
        state.requests.append(
            (request.method, request.path, json.loads(body) if body else None)
        )
        default = (404, {"error": {"key": "SDK.Error.UnsupportedSetting"}})
        if request.method != "GET":
            default = (204, None)
        status, payload = state.responses.get((request.method, request.path), default)
        headers = state.response_headers.get((request.method, request.path))
        if payload is None:
            return web.Response(status=status, headers=headers)
        return _json(status, payload, headers)

    async def events(request: web.Request) -> web.StreamResponse:
        state.sse_connections += 1
        if state.sse_unauthorized:
            state.sse_unauthorized -= 1
            return _json(401, {"error": {"key": "invalid_token"}})
        if not state.authorized(request):
            return _json(401, {"error": {"key": "invalid_token"}})

        response = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
        await response.prepare(request)
        script = state.sse_scripts.pop(0) if state.sse_scripts else []
        for line in script:
            await response.write(f"{line}\n".encode())
            await asyncio.sleep(0)
        if not script:
            # keep the idle connection open until the client goes away
            try:
                for _ in range(200):
                    await response.write(b": idle\n")
                    await asyncio.sleep(0.05)
            except ConnectionResetError:
                pass
        return response

    app = web.Application()
    app.router.add_get("/security/oauth/authorize", authorize)
    app.router.add_post("/security/oauth/device_authorization", device_authorization)
    app.router.add_post("/security/oauth/token", token)
    app.router.add_get("/api/homeappliances", appliances)
    app.router.add_get("/api/homeappliances/{ha_id}/events", events)
    app.router.add_route("*", "/api/homeappliances/{ha_id}", appliance_resource)
    app.router.add_route("*", "/api/homeappliances/{ha_id}/{tail:.*}", appliance_resource)
    return app


@pytest_asyncio.fixture
async def fake_api():
    """Start the fake API and yield (state, base url)."""
    state = FakeHomeConnect()
    server = TestServer(build_app(state))
    await server.start_server()
    try:
        yield state, str(server.make_url(""))
    finally:
        await server.close()


@pytest_asyncio.fixture
async def session():
    async with aiohttp.ClientSession() as client_session:
        yield client_session


@pytest_asyncio.fixture
async def client(fake_api, session):
    """A production-mode client holding a valid access token."""
    state, url = fake_api
    api_client = HomeConnectApiClient(
        session,
        "client-id",
        "client-secret",
        token=Token("access-0", "refresh-0", None),
        api_url=url,
    )
    try:
        yield api_client
    finally:
        await api_client.dispose()
