"""HTTP transport built on aiohttp.

One ``request`` call is one attempt: redirects are followed for GET requests,
the body is decompressed, and failures are mapped onto the transport error
taxonomy. There is no retry logic and no cookie jar here; cookie state is
owned by the session store and passed in as a ``Cookie`` header.
"""

import asyncio
import gzip
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urljoin

import aiohttp

from btk_lookup.config.logger import logger
from btk_lookup.config.settings import LookupConfig
from btk_lookup.errors import (
    DecompressionError,
    NetworkError,
    RedirectLoopError,
    RequestTimeoutError,
)


@dataclass
class HttpResponse:
    """Outcome of a single HTTP request.

    Attributes:
        status: HTTP status code of the final response.
        headers: Response headers with lower-cased names (last value wins).
        set_cookies: Every ``Set-Cookie`` header value, in order.
        body: Decompressed response body.
    """
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    set_cookies: List[str] = field(default_factory=list)
    body: bytes = b""

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")


def decompress_body(body: bytes, encoding: Optional[str]) -> bytes:
    """Decode a response body according to its Content-Encoding.

    Supports identity, gzip and deflate. Deflate is tried as a zlib stream
    first and as a raw deflate stream second, since servers send both.

    Raises:
        DecompressionError: For any other encoding or a corrupt body.
    """
    encoding = (encoding or "").strip().lower()
    if encoding in ("", "identity"):
        return body

    if encoding in ("gzip", "x-gzip"):
        try:
            return gzip.decompress(body)
        except (OSError, EOFError, zlib.error) as e:
            raise DecompressionError(encoding, str(e)) from e

    if encoding == "deflate":
        try:
            return zlib.decompress(body)
        except zlib.error:
            try:
                return zlib.decompress(body, -zlib.MAX_WBITS)
            except zlib.error as e:
                raise DecompressionError(encoding, str(e)) from e

    raise DecompressionError(encoding, "unsupported encoding")


class HttpTransport:
    """Async HTTP transport.

    Use as an async context manager so the underlying aiohttp session is
    closed::

        async with HttpTransport(config) as transport:
            response = await transport.request("GET", url)
    """

    def __init__(self, config: LookupConfig, session: Optional[aiohttp.ClientSession] = None):
        """Initialize the transport.

        Args:
            config: Application configuration (timeout, redirects, user agent).
            session: Optional pre-built aiohttp session, mainly for tests.
                     When omitted one is created on first use and owned here.
        """
        self.config = config
        self.max_redirects = config.max_redirects
        self.default_headers = {
            "User-Agent": config.user_agent,
            "Accept-Language": "tr-TR,tr;q=0.9,en-US;q=0.8,en;q=0.7",
            "Accept-Encoding": "gzip, deflate",
        }
        self._session = session
        self._owns_session = session is None
        self.logger = logger.bind(component="transport")

    async def __aenter__(self) -> "HttpTransport":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # Decompression and cookies are handled explicitly, not by aiohttp
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
                cookie_jar=aiohttp.DummyCookieJar(),
                auto_decompress=False,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        data: Optional[Mapping[str, str]] = None,
        json: Optional[Any] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse:
        """Issue one request.

        Args:
            method: HTTP method, e.g. ``GET`` or ``POST``.
            url: Absolute URL.
            data: Form fields, sent url-encoded.
            json: JSON-serializable body.
            headers: Extra headers merged over the defaults.

        Returns:
            The final response after any redirects, with a decompressed body.

        Raises:
            NetworkError: Connection failure.
            RequestTimeoutError: No completion within the configured timeout.
            RedirectLoopError: More than ``max_redirects`` redirect hops.
            DecompressionError: Undecodable Content-Encoding.
        """
        method = method.upper()
        merged_headers = {**self.default_headers, **(headers or {})}
        current_url = url
        hops = 0

        while True:
            response = await self._send(method, current_url, data=data, json=json, headers=merged_headers)

            location = response.headers.get("location")
            if method != "GET" or not (300 <= response.status < 400) or not location:
                return response

            if hops >= self.max_redirects:
                self.logger.warning("redirect_limit_exceeded", url=url, max_redirects=self.max_redirects)
                raise RedirectLoopError(url, self.max_redirects)

            hops += 1
            current_url = urljoin(current_url, location)
            self.logger.debug("following_redirect", hop=hops, location=current_url)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        data: Optional[Mapping[str, str]],
        json: Optional[Any],
        headers: Mapping[str, str],
    ) -> HttpResponse:
        session = self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                data=data,
                json=json,
                headers=headers,
                allow_redirects=False,
            ) as resp:
                raw = await resp.read()
                response_headers = {name.lower(): value for name, value in resp.headers.items()}
                set_cookies = list(resp.headers.getall("Set-Cookie", []))
                status = resp.status
        except asyncio.TimeoutError as e:
            # Checked first: aiohttp's timeout errors are also ClientErrors
            raise RequestTimeoutError(
                f"{method} {url} timed out after {self.config.request_timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"{method} {url} failed: {e}") from e

        body = decompress_body(raw, response_headers.get("content-encoding"))

        self.logger.debug("http_response", method=method, url=url, status=status, size=len(body))
        return HttpResponse(status=status, headers=response_headers, set_cookies=set_cookies, body=body)
