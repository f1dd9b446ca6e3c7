"""
Header readers and writers.

Readers copy well-known request headers into caller-owned slots; they
never fail and leave a slot untouched when the header is absent.

    token = Slot("")
    RequestReader(header=BearerToken(token))

    Authorization: Bearer abc-123   →  token.value == "abc-123"

``SetCookie`` is a header writer adding a ``Set-Cookie`` response header.
"""

import re
from http.cookies import Morsel, SimpleCookie
from typing import Any, Optional

from ..http.headers import Headers
from ..http.request import parse_cookies
from .fields import Slot

_BEARER_RE = re.compile(r"(?i:bearer\s+)([0-9A-Za-z\-_]+)")

# keyword → Morsel attribute name
_COOKIE_ATTRIBUTES = {
    "path": "path",
    "domain": "domain",
    "expires": "expires",
    "max_age": "max-age",
    "secure": "secure",
    "http_only": "httponly",
    "same_site": "samesite",
}


class CookieValues(dict):
    """
    Reads cookie values by name: a dict of cookie name → ``Slot``.

    Slots whose cookie is not present are left unchanged.
    """

    def read_header(self, headers: Headers) -> None:
        cookies = parse_cookies(headers)
        if not cookies:
            return
        for name, slot in self.items():
            if name in cookies:
                slot.value = cookies[name]


class IPAddress:
    """Reads the client IP from ``X-Forwarded-For``, falling back to ``X-Real-Ip``."""

    def __init__(self, val: Slot):
        self.val = val

    def read_header(self, headers: Headers) -> None:
        ip = headers.get("X-Forwarded-For") or headers.get("X-Real-Ip")
        if ip:
            self.val.value = ip


class UserAgent:
    def __init__(self, val: Slot):
        self.val = val

    def read_header(self, headers: Headers) -> None:
        user_agent = headers.get("User-Agent")
        if user_agent:
            self.val.value = user_agent


class BearerToken:
    """Reads the token of an ``Authorization: Bearer <token>`` header."""

    def __init__(self, val: Slot):
        self.val = val

    def read_header(self, headers: Headers) -> None:
        found = _BEARER_RE.search(headers.get("Authorization"))
        if found:
            self.val.value = found.group(1)


def make_cookie(name: str, value: str, **attributes: Any) -> Morsel:
    """
    Build a cookie.

    Args:
        name: Cookie name.
        value: Cookie value (quoted automatically when needed).
        **attributes: path, domain, expires, max_age, secure, http_only,
                      same_site.

    Raises:
        http.cookies.CookieError: Illegal cookie name.
        KeyError: Unknown attribute.

    Example:
        make_cookie("session", "abc", path="/", http_only=True)
    """
    jar = SimpleCookie()
    jar[name] = value
    morsel = jar[name]
    for key, attr_value in attributes.items():
        if attr_value is None or attr_value is False:
            continue
        morsel[_COOKIE_ATTRIBUTES[key]] = attr_value
    return morsel


class SetCookie:
    """
    Header writer adding ``Set-Cookie`` for ``val``.

    Nothing is added when there is no cookie or it serializes to an
    empty string.
    """

    def __init__(self, val: Optional[Morsel]):
        self.val = val

    def write_header(self, headers: Headers) -> None:
        if self.val is None or not self.val.key:
            return
        serialized = self.val.OutputString()
        if serialized:
            headers.add("Set-Cookie", serialized)
