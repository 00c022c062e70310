"""Cookie session store for the BTK site.

The BTK lookup form ties each CAPTCHA to the PHP session cookie that fetched
it. Cookies are kept as plain name/value pairs for the lifetime of the
process; expiry, path and domain attributes are ignored.
"""

from typing import Dict, Iterable, Iterator, Mapping, Optional


def parse_set_cookie_headers(headers: Optional[Iterable[str]]) -> Dict[str, str]:
    """Extract name/value pairs from ``Set-Cookie`` header values.

    Each entry is cut at the first ``;`` and then split at the first ``=``,
    so values that themselves contain ``=`` (base64 padding) survive intact.
    Entries without ``=`` or with an empty name are ignored.
    """
    cookies: Dict[str, str] = {}
    for header in headers or ():
        pair = header.split(";", 1)[0]
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        cookies[name] = value.strip()
    return cookies


class Session(Mapping[str, str]):
    """Immutable, ordered cookie mapping.

    ``merge`` never changes the instance it is called on; it returns a new
    session where cookies from the new headers override same-named ones and
    every other cookie is kept.
    """

    __slots__ = ("_cookies",)

    def __init__(self, cookies: Optional[Mapping[str, str]] = None):
        self._cookies: Dict[str, str] = dict(cookies or {})

    @classmethod
    def from_set_cookie(cls, headers: Optional[Iterable[str]]) -> "Session":
        return cls(parse_set_cookie_headers(headers))

    def merge(self, set_cookie_headers: Optional[Iterable[str]]) -> "Session":
        return Session({**self._cookies, **parse_set_cookie_headers(set_cookie_headers)})

    def cookie_header(self) -> str:
        """Render the session as a ``Cookie`` request header value."""
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    def __getitem__(self, name: str) -> str:
        return self._cookies[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cookies)

    def __len__(self) -> int:
        return len(self._cookies)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Session):
            return self._cookies == other._cookies
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._cookies.items()))

    def __repr__(self) -> str:
        # Names only; values are session secrets
        return f"Session(names={list(self._cookies)})"


def merge_cookies(existing: Optional[Session], set_cookie_headers: Optional[Iterable[str]]) -> Session:
    """Merge ``Set-Cookie`` headers into ``existing`` (which may be absent)."""
    return (existing or Session()).merge(set_cookie_headers)
