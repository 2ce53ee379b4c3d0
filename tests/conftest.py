"""Shared fixtures: in-process aiohttp servers and a fake Anthropic upstream."""

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer


def make_upstream_app(status: int = 200, body: str = '{"x": 1}', content_type: str = "application/json"):
    """Build a fake Messages API returning a fixed response.

    Returns:
        Tuple of (app, calls) where calls records each request's headers and raw body.
    """
    calls: list[dict] = []

    async def messages(request: web.Request) -> web.Response:
        calls.append({"headers": request.headers.copy(), "body": await request.read()})
        return web.Response(status=status, text=body, content_type=content_type)

    app = web.Application()
    app.router.add_post("/v1/messages", messages)
    return app, calls


@pytest_asyncio.fixture
async def serve():
    """Start aiohttp applications on localhost and close them after the test."""
    clients: list[TestClient] = []

    async def _serve(app: web.Application) -> TestClient:
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _serve

    for client in clients:
        await client.close()


@pytest_asyncio.fixture
async def upstream(serve):
    """Fake upstream factory: returns (url, calls) for a configured response."""

    async def _upstream(status: int = 200, body: str = '{"x": 1}', content_type: str = "application/json"):
        app, calls = make_upstream_app(status=status, body=body, content_type=content_type)
        client = await serve(app)
        return str(client.make_url("/v1/messages")), calls

    return _upstream
