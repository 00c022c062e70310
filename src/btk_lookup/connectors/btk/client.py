"""HTTP client for the BTK "site sorgu" form.

Wraps the three requests the lookup flow needs: the session handshake, the
CAPTCHA image download and the query submission. Cookies are passed in and
returned explicitly; nothing here keeps state between calls.
"""

import time
from typing import Callable, Optional
from urllib.parse import quote, urlencode

from btk_lookup.config.logger import logger
from btk_lookup.config.settings import LookupConfig
from btk_lookup.errors import CaptchaFetchError, SessionError, SubmissionError
from btk_lookup.http.transport import HttpTransport
from .interfaces import CaptchaChallenge
from .session import Session, merge_cookies

# Messages the form shows when the security code was wrong
CAPTCHA_REJECTION_PHRASES = (
    "Güvenlik kodu hatalı",
    "security code",
    "Doğrulama kodu",
)


def is_captcha_rejected(body: str) -> bool:
    """Check whether a submission was rejected for a wrong CAPTCHA code.

    Must run before result extraction: a rejection page is not a result
    page and would otherwise read as "not blocked".
    """
    return any(phrase in body for phrase in CAPTCHA_REJECTION_PHRASES)


def freshness_token(now: float) -> str:
    """Anti-cache token in the form the site's own JavaScript sends.

    Example: ``0.50000000 1700000000`` for ``now = 1700000000.5``.
    """
    seconds = int(now)
    return f"{now - seconds:.8f} {seconds}"


class BTKSiteClient:
    """Low-level client for the BTK lookup form."""

    def __init__(
        self,
        transport: HttpTransport,
        config: LookupConfig,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the client.

        Args:
            transport: Shared HTTP transport.
            config: Application configuration (URLs).
            clock: Source of the current Unix time, for the CAPTCHA token.
        """
        self.transport = transport
        self.config = config
        self.clock = clock
        self.logger = logger.bind(component="btk_site")

    async def open_session(self) -> Session:
        """Perform the session handshake against the form root.

        Raises:
            SessionError: If the root page does not answer with HTTP 200.
        """
        self.logger.info("session_starting")
        response = await self.transport.request(
            "GET",
            self.config.root_url,
            headers={"Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"},
        )
        if response.status != 200:
            raise SessionError(f"Session could not be started: HTTP {response.status}", response.status)

        session = Session.from_set_cookie(response.set_cookies)
        self.logger.info("session_started", cookies=len(session))
        return session

    async def acquire_captcha(self, session: Optional[Session] = None) -> CaptchaChallenge:
        """Download a CAPTCHA image bound to ``session``.

        Args:
            session: Session to reuse; a new handshake is made when absent.

        Returns:
            The image bytes and the session merged with any cookies the image
            response set.

        Raises:
            SessionError: If a new session was needed and the handshake failed.
            CaptchaFetchError: If the image request failed or returned no data.
        """
        if session is None:
            session = await self.open_session()

        query = urlencode({"_CAPTCHA": "", "t": freshness_token(self.clock())}, quote_via=quote)
        url = f"{self.config.captcha_url}?{query}"

        self.logger.debug("captcha_downloading", url=url)
        response = await self.transport.request(
            "GET",
            url,
            headers={
                "Cookie": session.cookie_header(),
                "Accept": "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8",
                "Referer": self.config.root_url,
            },
        )
        if response.status != 200:
            raise CaptchaFetchError(f"CAPTCHA could not be downloaded: HTTP {response.status}", response.status)
        if not response.body:
            raise CaptchaFetchError("CAPTCHA image was empty", response.status)

        merged = merge_cookies(session, response.set_cookies)
        self.logger.info("captcha_downloaded", size=len(response.body))
        return CaptchaChallenge(image=response.body, session=merged)

    async def submit(self, domain: str, code: str, session: Session) -> str:
        """Post a query for ``domain`` with the solved CAPTCHA code.

        Args:
            domain: Domain to look up.
            code: CAPTCHA code, sent verbatim (case-sensitive).
            session: Session the CAPTCHA was issued for.

        Returns:
            The decoded response page.

        Raises:
            SubmissionError: If the form does not answer with HTTP 200.
        """
        form = {
            "deger": domain,
            "ipw": "",
            "kat": "",
            "tr": "",
            "eg": "",
            "ayrintili": "0",
            "submit": "Sorgula",
            "security_code": code,
        }

        self.logger.info("query_submitting", domain=domain)
        response = await self.transport.request(
            "POST",
            self.config.root_url,
            data=form,
            headers={
                "Cookie": session.cookie_header(),
                "Origin": self.config.site_origin,
                "Referer": self.config.root_url,
            },
        )
        if response.status != 200:
            raise SubmissionError(f"Query failed: HTTP {response.status}", response.status)

        return response.text()
