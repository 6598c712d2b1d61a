"""Scoping of Set-Cookie paths to a service path prefix."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field

from .web import Headers


@dataclass
class SetCookie:
    """A parsed Set-Cookie header value."""

    name: str
    value: str
    path: str = ""
    domain: str = ""
    expires: str = ""
    max_age: str = ""
    http_only: bool = False
    secure: bool = False
    same_site: str = ""
    extras: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, value: str) -> "SetCookie":
        parts = [p.strip() for p in value.strip().split(";")]
        name, sep, val = parts[0].partition("=")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"invalid cookie: {value!r}")
        cookie = cls(name=name, value=val.strip())
        for attr in parts[1:]:
            if not attr:
                continue
            key, _, aval = attr.partition("=")
            lower = key.strip().lower()
            aval = aval.strip()
            if lower == "path":
                cookie.path = aval
            elif lower == "domain":
                cookie.domain = aval.lstrip(".")
            elif lower == "expires":
                cookie.expires = aval
            elif lower == "max-age":
                cookie.max_age = aval
            elif lower == "httponly":
                cookie.http_only = True
            elif lower == "secure":
                cookie.secure = True
            elif lower == "samesite":
                cookie.same_site = aval
            else:
                cookie.extras.append(attr)
        return cookie

    def __str__(self) -> str:
        out = [f"{self.name}={self.value}"]
        if self.path:
            out.append(f"Path={self.path}")
        if self.domain:
            out.append(f"Domain={self.domain}")
        if self.expires:
            out.append(f"Expires={self.expires}")
        if self.max_age:
            out.append(f"Max-Age={self.max_age}")
        if self.http_only:
            out.append("HttpOnly")
        if self.secure:
            out.append("Secure")
        if self.same_site:
            out.append(f"SameSite={self.same_site}")
        out.extend(self.extras)
        return "; ".join(out)


def _strip_port(host: str) -> str:
    if host.startswith("["):
        end = host.find("]")
        if end != -1 and host[end + 1:end + 2] == ":":
            return host[1:end]
        return host
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


def _join_path(prefix: str, rest: str) -> str:
    joined = posixpath.normpath("/".join(p for p in (prefix, rest) if p) or "/")
    if prefix.startswith("/") and not joined.startswith("/"):
        joined = "/" + joined
    return joined


class CookieScope:
    """Rewrites first-party Set-Cookie paths to sit below a path prefix."""

    def __init__(self, path_prefix: str, host: str) -> None:
        self.path_prefix = path_prefix
        self.host = _strip_port(host)

    def apply_to_header(self, headers: Headers) -> None:
        rewritten = []
        for raw in headers.get_all("Set-Cookie"):
            try:
                cookie = SetCookie.parse(raw)
            except ValueError:
                rewritten.append(raw)
                continue
            if not self._domain_matches(cookie.domain):
                rewritten.append(raw)
                continue
            cookie.path = _join_path(self.path_prefix, cookie.path.strip("/"))
            rewritten.append(str(cookie))
        if rewritten:
            headers.delete("Set-Cookie")
            for value in rewritten:
                headers.add("Set-Cookie", value)

    def _domain_matches(self, cookie_domain: str) -> bool:
        return cookie_domain == "" or cookie_domain == self.host