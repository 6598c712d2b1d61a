"""Small HTTP primitives: headers, requests, response recorders and basic middleware."""

from __future__ import annotations

import io
import time
import uuid
from http import HTTPStatus
from typing import Callable, Iterable, Iterator, Mapping
from urllib.parse import urlsplit

Handler = Callable[["ResponseRecorder", "Request"], None]

_STATUS_OVERRIDES = {
    418: "I'm a teapot",
    503: "Service Unavailable",
}


def _canonical(name: str) -> str:
    """Canonicalise a header name the way HTTP/1 does (``x-custom`` -> ``X-Custom``)."""
    if not name or any(c in name for c in " \t\r\n:"):
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


class Headers:
    """A case-insensitive multi-valued header map."""

    def __init__(self, initial: Mapping[str, str | Iterable[str]] | None = None) -> None:
        self._values: dict[str, list[str]] = {}
        for name, value in (initial or {}).items():
            if isinstance(value, str):
                self.add(name, value)
            else:
                for item in value:
                    self.add(name, item)

    def get(self, name: str) -> str:
        values = self._values.get(_canonical(name))
        return values[0] if values else ""

    def get_all(self, name: str) -> list[str]:
        return list(self._values.get(_canonical(name), []))

    def set(self, name: str, value: str) -> None:
        self._values[_canonical(name)] = [value]

    def add(self, name: str, value: str) -> None:
        self._values.setdefault(_canonical(name), []).append(value)

    def delete(self, name: str) -> None:
        self._values.pop(_canonical(name), None)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _canonical(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


class Request:
    """An incoming HTTP request."""

    def __init__(
        self,
        method: str,
        url: str,
        body: bytes | io.IOBase | None = None,
        headers: Mapping[str, str | Iterable[str]] | Headers | None = None,
        remote_addr: str = "192.0.2.1:1234",
        proto: str = "HTTP/1.1",
        tls: bool = False,
    ) -> None:
        parts = urlsplit(url)
        self.method = method
        self.host = parts.netloc or "example.com"
        self.path = parts.path or "/"
        self.raw_query = parts.query
        self.headers = headers if isinstance(headers, Headers) else Headers(headers)
        if body is None:
            self.body = io.BytesIO(b"")
            self.content_length = 0
        elif isinstance(body, (bytes, bytearray)):
            self.body = io.BytesIO(bytes(body))
            self.content_length = len(body)
        else:
            self.body = body
            self.content_length = -1
        self.remote_addr = remote_addr
        self.proto = proto
        self.tls = tls
        self.context: dict[object, object] = {}

    def cookie(self, name: str) -> str | None:
        """Return the value of the named request cookie, or None."""
        for line in self.headers.get_all("Cookie"):
            for part in line.split(";"):
                key, sep, value = part.strip().partition("=")
                if sep and key == name:
                    return value.strip('"')
        return None


class ResponseRecorder:
    """Records everything a handler writes to the response."""

    def __init__(self) -> None:
        self.headers = Headers()
        self.status = 200
        self.body = bytearray()
        self.flushed = False
        self.header_written = False

    def write_header(self, status: int) -> None:
        if self.header_written:
            return
        self.status = status
        self.header_written = True

    def write(self, data: bytes) -> int:
        if not self.header_written:
            self.write_header(200)
        self.body.extend(data)
        return len(data)

    def flush(self) -> None:
        if not self.header_written:
            self.write_header(200)
        self.flushed = True


def status_text(status: int) -> str:
    """Return the standard reason phrase for a status code, or an empty string."""
    if status in _STATUS_OVERRIDES:
        return _STATUS_OVERRIDES[status]
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def http_error(writer, message: str, status: int) -> None:
    """Reply with a plain-text error message and status."""
    writer.headers.delete("Content-Length")
    writer.headers.set("Content-Type", "text/plain; charset=utf-8")
    writer.headers.set("X-Content-Type-Options", "nosniff")
    writer.write_header(status)
    writer.write((message + "\n").encode())


REQUEST_ID_HEADER = "X-Request-ID"
REQUEST_START_HEADER = "X-Request-Start"


class RequestIDMiddleware:
    """Adds an X-Request-ID header when the request has none."""

    def __init__(self, next_handler: Handler) -> None:
        self.next = next_handler

    def __call__(self, writer, request: Request) -> None:
        if not request.headers.get(REQUEST_ID_HEADER):
            request.headers.set(REQUEST_ID_HEADER, str(uuid.uuid4()))
        self.next(writer, request)


class RequestStartMiddleware:
    """Adds an X-Request-Start header (``t=<unix millis>``) when missing."""

    def __init__(self, next_handler: Handler) -> None:
        self.next = next_handler

    def __call__(self, writer, request: Request) -> None:
        if not request.headers.get(REQUEST_START_HEADER):
            request.headers.set(REQUEST_START_HEADER, f"t={time.time_ns() // 1_000_000}")
        self.next(writer, request)