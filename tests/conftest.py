"""
Pytest configuration and shared fixtures for the test suite.
"""
import asyncio
import gzip
import sys
import zlib
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "src"))

from btk_lookup.config.settings import LookupConfig  # noqa: E402


@pytest.fixture
def test_config():
    """Configuration with no delays, for fast orchestrator tests."""
    return LookupConfig(
        gemini_api_key="test_api_key",
        max_retries=3,
        retry_delay=0,
        inter_query_delay=0,
        request_timeout=5.0,
        max_redirects=3,
    )


@pytest_asyncio.fixture
async def test_server():
    """Start an in-process HTTP server for transport tests.

    Routes:
        /plain              text body
        /gzip, /deflate     compressed bodies with a matching Content-Encoding
        /raw-deflate        deflate without zlib header
        /broken-gzip        gzip header on a body that is not gzip
        /brotli             unsupported Content-Encoding
        /redirect/{n}       redirects n times before answering
        /slow               answers after two seconds
        /cookies            sets two cookies
        /echo               echoes method, form and headers back
    """
    from aiohttp import web

    async def plain(request):
        return web.Response(text="hello")

    async def gzipped(request):
        return web.Response(body=gzip.compress(b"gzip body"), headers={"Content-Encoding": "gzip"})

    async def deflated(request):
        return web.Response(body=zlib.compress(b"deflate body"), headers={"Content-Encoding": "deflate"})

    async def raw_deflated(request):
        compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
        body = compressor.compress(b"raw deflate body") + compressor.flush()
        return web.Response(body=body, headers={"Content-Encoding": "deflate"})

    async def broken_gzip(request):
        return web.Response(body=b"definitely not gzip", headers={"Content-Encoding": "gzip"})

    async def brotli(request):
        return web.Response(body=b"\x0b\x02\x80hello\x03", headers={"Content-Encoding": "br"})

    async def redirect(request):
        remaining = int(request.match_info["n"])
        if remaining == 0:
            return web.Response(text="arrived")
        return web.Response(status=302, headers={"Location": f"/redirect/{remaining - 1}"})

    async def slow(request):
        await asyncio.sleep(2)
        return web.Response(text="late")

    async def cookies(request):
        response = web.Response(text="cookies")
        response.set_cookie("PHPSESSID", "abc123")
        response.set_cookie("lang", "tr")
        return response

    async def echo(request):
        form = await request.post()
        return web.json_response({
            "method": request.method,
            "form": dict(form),
            "cookie": request.headers.get("Cookie", ""),
            "user_agent": request.headers.get("User-Agent", ""),
        })

    app = web.Application()
    app.router.add_get("/plain", plain)
    app.router.add_get("/gzip", gzipped)
    app.router.add_get("/deflate", deflated)
    app.router.add_get("/raw-deflate", raw_deflated)
    app.router.add_get("/broken-gzip", broken_gzip)
    app.router.add_get("/brotli", brotli)
    app.router.add_get("/redirect/{n}", redirect)
    app.router.add_post("/redirect/{n}", redirect)
    app.router.add_get("/slow", slow)
    app.router.add_get("/cookies", cookies)
    app.router.add_route("*", "/echo", echo)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()

    port = site._server.sockets[0].getsockname()[1]
    base_url = f"http://127.0.0.1:{port}"

    yield base_url

    await runner.cleanup()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
