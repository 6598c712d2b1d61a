"""Middleware that buffers responses, passing streaming responses straight through."""

from __future__ import annotations

import logging

from .buffer import Buffer, MaximumSizeExceededError
from .web import Handler, Headers, Request, http_error

log = logging.getLogger(__name__)


class BufferedResponseWriter:
    """Collects a response in a Buffer until ``send`` is called."""

    def __init__(self, writer, buffer: Buffer) -> None:
        self.writer = writer
        self.buffer = buffer
        self.status = 200
        self.header_written = False
        self.bypass = False

    @property
    def headers(self) -> Headers:
        return self.writer.headers

    def send(self) -> None:
        """Write the buffered response to the underlying writer."""
        if self.buffer.overflowed:
            raise MaximumSizeExceededError()
        if self.header_written:
            self.writer.write_header(self.status)
        self.buffer.send(self.writer)

    def write_header(self, status: int) -> None:
        if self.header_written:
            return
        self.status = status
        self.header_written = True
        if self.should_switch_to_unbuffered():
            self.switch_to_unbuffered()

    def should_switch_to_unbuffered(self) -> bool:
        content_type = self.headers.get("Content-Type").partition(";")[0]
        if content_type == "text/event-stream":
            return True
        return self.headers.get("Transfer-Encoding") == "chunked"

    def switch_to_unbuffered(self) -> None:
        self.bypass = True
        try:
            self.send()
        except MaximumSizeExceededError:
            pass

    def write(self, data: bytes) -> int:
        if self.bypass:
            return self.writer.write(data)
        try:
            return self.buffer.write(data)
        except MaximumSizeExceededError:
            # Overflow is reported when the buffer is sent.
            return len(data)

    def flush(self) -> None:
        if self.bypass:
            flush = getattr(self.writer, "flush", None)
            if flush is not None:
                flush()


class ResponseBufferMiddleware:
    """Buffers each response, replying 500 when it exceeds ``max_bytes``."""

    def __init__(self, max_mem_bytes: int, max_bytes: int, next_handler: Handler) -> None:
        self.max_mem_bytes = max_mem_bytes
        self.max_bytes = max_bytes
        self.next = next_handler

    def __call__(self, writer, request: Request) -> None:
        with Buffer(self.max_bytes, self.max_mem_bytes) as buffer:
            buffered = BufferedResponseWriter(writer, buffer)
            self.next(buffered, request)
            try:
                buffered.send()
            except MaximumSizeExceededError:
                log.info("Response exceeded max response limit path=%s", request.path)
                http_error(writer, "Internal Server Error", 500)
            except OSError as exc:
                log.error("Error sending response path=%s error=%s", request.path, exc)
                http_error(writer, "Internal Server Error", 500)