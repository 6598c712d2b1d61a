"""Middleware that buffers the whole request body before handling."""

from __future__ import annotations

import logging

from .buffer import MaximumSizeExceededError, buffered_read
from .web import Handler, Request, http_error

log = logging.getLogger(__name__)


class RequestBufferMiddleware:
    """Reads the request body into a Buffer, rejecting bodies over ``max_bytes``."""

    def __init__(self, max_mem_bytes: int, max_bytes: int, next_handler: Handler) -> None:
        self.max_mem_bytes = max_mem_bytes
        self.max_bytes = max_bytes
        self.next = next_handler

    def __call__(self, writer, request: Request) -> None:
        try:
            buffer = buffered_read(request.body, self.max_bytes, self.max_mem_bytes)
        except MaximumSizeExceededError:
            http_error(writer, "Request too large", 413)
            return
        except Exception as exc:
            log.error("Error buffering request path=%s error=%s", request.path, exc)
            http_error(writer, "Internal Server Error", 500)
            return

        with buffer:
            request.body = buffer
            self.next(writer, request)