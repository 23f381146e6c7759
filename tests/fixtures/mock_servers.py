"""Mock HTTP servers for feed and remote reputation tests."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from common.constants import SAFE_BROWSING_THREAT_TYPES


@pytest.fixture
async def mock_urlhaus_server(sample_urlhaus_content):
    """Mock feed server serving a URLhaus-style dump."""

    async def handle_feed(request):
        """Handle feed download requests."""
        return web.Response(
            text=sample_urlhaus_content,
            headers={"Content-Type": "text/plain"},
        )

    app = web.Application()
    app.router.add_get("/downloads/text_online/", handle_feed)

    server = TestServer(app)
    await server.start_server()

    yield server

    await server.close()


@pytest.fixture
async def mock_unreliable_feed_server(sample_urlhaus_content):
    """Mock feed server that fails twice before answering."""

    request_count = {"count": 0}

    async def handle_unreliable(request):
        """Handle requests with intermittent failures."""
        request_count["count"] += 1

        if request_count["count"] < 3:
            raise web.HTTPServiceUnavailable(text="Service temporarily unavailable")

        return web.Response(
            text=sample_urlhaus_content,
            headers={"Content-Type": "text/plain"},
        )

    app = web.Application()
    app.router.add_get("/unreliable", handle_unreliable)

    server = TestServer(app)
    await server.start_server()
    server.request_count = request_count

    yield server

    await server.close()


@pytest.fixture
async def mock_broken_feed_server():
    """Mock feed server that always fails."""

    async def handle_broken(request):
        """Always answer with a server error."""
        raise web.HTTPInternalServerError(text="Internal server error")

    app = web.Application()
    app.router.add_get("/broken", handle_broken)

    server = TestServer(app)
    await server.start_server()

    yield server

    await server.close()


@pytest.fixture
async def mock_safe_browsing_server(sample_malicious_urls):
    """Mock Safe Browsing threatMatches:find endpoint.

    Set ``server.behaviour["mode"]`` to ``error`` or ``slow`` to simulate
    outages.
    """

    behaviour = {"mode": "ok", "requests": []}

    async def handle_find(request):
        """Match request URLs against the sample threat list."""
        behaviour["requests"].append(request)

        if behaviour["mode"] == "error":
            raise web.HTTPInternalServerError(text="backend error")
        if behaviour["mode"] == "slow":
            await asyncio.sleep(2)

        if not request.query.get("key"):
            raise web.HTTPForbidden(text="API key missing")

        body = await request.json()
        info = body.get("threatInfo", {})
        if info.get("threatTypes") != list(SAFE_BROWSING_THREAT_TYPES):
            raise web.HTTPBadRequest(text="unexpected threat types")

        matches = []
        for entry in info.get("threatEntries", []):
            threat_type = sample_malicious_urls.get(entry.get("url"))
            if threat_type:
                matches.append(
                    {
                        "threatType": threat_type,
                        "platformType": "ANY_PLATFORM",
                        "threat": {"url": entry["url"]},
                    }
                )

        return web.json_response({"matches": matches} if matches else {})

    app = web.Application()
    app.router.add_post("/v4/threatMatches:find", handle_find)

    server = TestServer(app)
    await server.start_server()
    server.behaviour = behaviour

    yield server

    await server.close()


@pytest.fixture
async def mock_phishtank_server(sample_phish_urls):
    """Mock PhishTank checkurl endpoint."""

    async def handle_checkurl(request):
        """Answer form-encoded lookups."""
        form = await request.post()
        url = form.get("url", "")
        verified = url in sample_phish_urls

        return web.json_response(
            {
                "meta": {"status": "success"},
                "results": {
                    "url": url,
                    "in_database": verified,
                    "valid": verified,
                    "verified": verified,
                },
            }
        )

    app = web.Application()
    app.router.add_post("/checkurl/", handle_checkurl)

    server = TestServer(app)
    await server.start_server()

    yield server

    await server.close()
