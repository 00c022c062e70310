"""Exception hierarchy for the BTK lookup client.

Every failure the lookup pipeline can raise derives from ``BTKLookupError`` so
that the orchestrator can catch a single base class at its per-attempt
boundary. Subclasses are grouped by the layer that raises them:

- TransportError: a single outbound HTTP request failed
- SiteError: the BTK site answered, but not with what the flow needs
- RecognitionError: the CAPTCHA recognition service could not produce a code

A wrong CAPTCHA guess is deliberately not an exception; it is detected from
the response page and handled as a state transition by the orchestrator.
"""

from typing import Optional


class BTKLookupError(Exception):
    """Base class for all lookup errors."""
    pass


class ConfigurationError(BTKLookupError):
    """Raised when configuration values are missing or malformed."""
    pass


# Transport

class TransportError(BTKLookupError):
    """Base class for failures of a single HTTP request."""
    pass


class NetworkError(TransportError):
    """Connection could not be established or was dropped."""
    pass


class RequestTimeoutError(TransportError):
    """The request did not complete within the configured bound."""
    pass


class RedirectLoopError(TransportError):
    """A GET request was redirected more times than allowed."""

    def __init__(self, url: str, max_redirects: int):
        super().__init__(f"Too many redirects (>{max_redirects}) starting at {url}")
        self.url = url
        self.max_redirects = max_redirects


class DecompressionError(TransportError):
    """The response body could not be decoded for its Content-Encoding."""

    def __init__(self, encoding: str, message: str = ""):
        detail = f": {message}" if message else ""
        super().__init__(f"Cannot decode '{encoding}' response body{detail}")
        self.encoding = encoding


# Target site

class SiteError(BTKLookupError):
    """Base class for unexpected answers from the BTK site."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SessionError(SiteError):
    """The session handshake did not return HTTP 200."""
    pass


class CaptchaFetchError(SiteError):
    """The CAPTCHA image could not be downloaded or was empty."""
    pass


class SubmissionError(SiteError):
    """The query form submission did not return HTTP 200."""
    pass


# Recognition service

class RecognitionError(BTKLookupError):
    """Base class for CAPTCHA recognition failures."""
    pass


class RecognitionAuthError(RecognitionError):
    """The recognition service rejected the API key (401/403)."""
    pass


class RecognitionQuotaError(RecognitionError):
    """The recognition service quota is exhausted (429)."""
    pass


class RecognitionApiError(RecognitionError):
    """Any other non-200 answer or an unreadable response body."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RecognitionSafetyError(RecognitionError):
    """The request or the answer was blocked by a content-safety filter."""

    def __init__(self, reason: str):
        super().__init__(f"Recognition blocked by safety filter: {reason}")
        self.reason = reason


class RecognitionEmptyError(RecognitionError):
    """No text came back, or generation did not finish normally."""
    pass


class RecognitionFormatError(RecognitionError):
    """The recognized text does not look like a 5-6 character code."""

    def __init__(self, raw: str, cleaned: str):
        super().__init__(
            f"Invalid CAPTCHA output: {raw!r} -> {cleaned!r} ({len(cleaned)} characters)"
        )
        self.raw = raw
        self.cleaned = cleaned


# Orchestration

class BootstrapError(BTKLookupError):
    """The first domain could not be validated within the retry budget.

    This aborts the whole run: without one accepted submission there is no
    evidence that the CAPTCHA pipeline works at all.
    """

    def __init__(self, domain: str, reason: str):
        super().__init__(f"Could not query {domain}: {reason}")
        self.domain = domain
        self.reason = reason
