"""Structured JSON request logging."""

from __future__ import annotations

import json
import logging
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, TextIO

from . import metrics
from .web import Handler, Headers, Request

_CONTEXT_KEY = object()

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}


class JsonLogger:
    """Writes one JSON object per log record to a text stream."""

    def __init__(self, stream: TextIO | None = None, level: int = logging.INFO) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.level = level
        self._lock = threading.Lock()

    def log(self, level: int, message: str, attrs: Mapping[str, object] | None = None) -> None:
        if level < self.level:
            return
        record = {
            "time": datetime.now(timezone.utc).astimezone().isoformat(),
            "level": _LEVEL_NAMES.get(level, logging.getLevelName(level)),
            "msg": message,
        }
        record.update(attrs or {})
        line = json.dumps(record) + "\n"
        with self._lock:
            self.stream.write(line)
            self.stream.flush()


@dataclass
class LoggingRequestContext:
    """Per-request details that downstream handlers fill in for the log line."""

    service: str = ""
    target: str = ""
    request_headers: list[str] = field(default_factory=list)
    response_headers: list[str] = field(default_factory=list)


def logging_request_context(request: Request) -> LoggingRequestContext:
    """Return the request's logging context, or a detached one if it has none."""
    ctx = request.context.get(_CONTEXT_KEY)
    return ctx if isinstance(ctx, LoggingRequestContext) else LoggingRequestContext()


def _split_host_port(address: str) -> tuple[str, str] | None:
    if address.startswith("["):
        end = address.find("]")
        if end == -1 or address[end + 1:end + 2] != ":":
            return None
        return address[1:end], address[end + 2:]
    host, sep, port = address.rpartition(":")
    if not sep or ":" in host:
        return None
    return host, port


class _LoggerResponseWriter:
    def __init__(self, writer) -> None:
        self._writer = writer
        self.status = 200
        self.bytes_written = 0

    @property
    def headers(self) -> Headers:
        return self._writer.headers

    def write_header(self, status: int) -> None:
        self.status = status
        self._writer.write_header(status)

    def write(self, data: bytes) -> int:
        n = self._writer.write(data)
        self.bytes_written += n
        return n

    def flush(self) -> None:
        flush = getattr(self._writer, "flush", None)
        if flush is not None:
            flush()


class LoggingMiddleware:
    """Logs one structured line per request and records request metrics."""

    def __init__(self, logger: JsonLogger, http_port: int, https_port: int, next_handler: Handler) -> None:
        self.logger = logger
        self.http_port = http_port
        self.https_port = https_port
        self.next = next_handler

    def __call__(self, writer, request: Request) -> None:
        wrapped = _LoggerResponseWriter(writer)
        context = LoggingRequestContext()
        request.context[_CONTEXT_KEY] = context
        started = time.perf_counter_ns()
        try:
            self.next(wrapped, request)
        finally:
            self._log(request, wrapped, context, time.perf_counter_ns() - started)

    def _log(self, request: Request, writer: _LoggerResponseWriter, context: LoggingRequestContext, elapsed_ns: int) -> None:
        port, scheme = (self.https_port, "https") if request.tls else (self.http_port, "http")

        split = _split_host_port(request.remote_addr)
        client_addr, client_port = split if split else (request.remote_addr, "")
        remote_addr = request.headers.get("X-Forwarded-For") or client_addr

        attrs: dict[str, object] = {
            "host": request.host,
            "port": port,
            "path": request.path,
            "request_id": request.headers.get("X-Request-ID"),
            "status": writer.status,
            "service": context.service,
            "target": context.target,
            "duration": elapsed_ns,
            "method": request.method,
            "req_content_length": request.content_length,
            "req_content_type": request.headers.get("Content-Type"),
            "resp_content_length": writer.bytes_written,
            "resp_content_type": writer.headers.get("Content-Type"),
            "client_addr": client_addr,
            "client_port": client_port,
            "remote_addr": remote_addr,
            "user_agent": request.headers.get("User-Agent"),
            "proto": request.proto,
            "scheme": scheme,
            "query": request.raw_query,
        }
        attrs.update(self._custom_headers(context.request_headers, request.headers, "req"))
        attrs.update(self._custom_headers(context.response_headers, writer.headers, "resp"))
        self.logger.log(logging.INFO, "Request", attrs)

        metrics.get_tracker().track_request(context.service, request.method, writer.status, elapsed_ns / 1e9)

    @staticmethod
    def _custom_headers(names: list[str], headers: Headers, prefix: str) -> dict[str, str]:
        return {
            f"{prefix}_{name.lower().replace('-', '_')}": ",".join(headers.get_all(name))
            for name in names
        }