"""Middleware that renders error pages from HTML templates."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import jinja2

from .web import Handler, Request, http_error, status_text

log = logging.getLogger(__name__)

_ERROR_RESPONSE_KEY = object()


class UnableToLoadErrorPagesError(Exception):
    """The error page templates could not be loaded."""

    def __init__(self) -> None:
        super().__init__("unable to load error pages")


@dataclass
class _ErrorResponse:
    status: int = 0
    template_arguments: Any = None


def set_error_response(writer, request: Request, status: int, template_arguments=None) -> None:
    """Ask the nearest error page middleware to render an error page.

    Without a middleware in the chain, a plain-text error is written instead.
    """
    error = request.context.get(_ERROR_RESPONSE_KEY)
    if isinstance(error, _ErrorResponse):
        error.status = status
        error.template_arguments = template_arguments
    else:
        http_error(writer, status_text(status), status)


def _load_pages(pages: Mapping[str, str] | str | os.PathLike) -> dict[str, str]:
    if isinstance(pages, Mapping):
        return {name: text for name, text in pages.items() if name.endswith(".html")}
    return {path.name: path.read_text() for path in sorted(Path(pages).glob("*.html"))}


class ErrorPageMiddleware:
    """Renders ``<status>.html`` templates for error responses set by handlers.

    ``pages`` is a mapping of file name to template text, or a directory
    holding ``*.html`` templates. A ``root`` middleware falls back to a
    minimal page when it has no template; a nested one leaves the error to
    its parent.
    """

    def __init__(self, pages, root: bool, next_handler: Handler) -> None:
        try:
            sources = _load_pages(pages)
        except OSError as exc:
            log.error("Failed to read error page templates: %s", exc)
            raise UnableToLoadErrorPagesError() from exc
        if not sources:
            log.error("Failed to parse error page templates: no templates found")
            raise UnableToLoadErrorPagesError()

        env = jinja2.Environment(loader=jinja2.DictLoader(sources), autoescape=True)
        try:
            self._templates = {name: env.get_template(name) for name in sources}
        except jinja2.TemplateError as exc:
            log.error("Failed to parse error page templates: %s", exc)
            raise UnableToLoadErrorPagesError() from exc

        self.root = root
        self.next = next_handler

    def __call__(self, writer, request: Request) -> None:
        error = request.context.get(_ERROR_RESPONSE_KEY)
        if not isinstance(error, _ErrorResponse):
            error = _ErrorResponse()
            request.context[_ERROR_RESPONSE_KEY] = error

        self.next(writer, request)

        if error.status and self._respond_with_error_page(writer, error.status, error.template_arguments):
            error.status = 0

    def _respond_with_error_page(self, writer, status: int, template_arguments) -> bool:
        writer.headers.set("Content-Type", "text/html; charset=utf-8")
        writer.write_header(status)

        template = self._templates.get(f"{status}.html")
        if template is None:
            return self._write_error_without_template(writer, status)

        context = dict(template_arguments) if isinstance(template_arguments, Mapping) else {}
        try:
            body = template.render(**context)
        except jinja2.TemplateError as exc:
            log.error("Failed to render error page template %s: %s", template.name, exc)
            return self._write_error_without_template(writer, status)

        writer.write(body.encode())
        return True

    def _write_error_without_template(self, writer, status: int) -> bool:
        if self.root:
            writer.write(f"<h1>{status} {status_text(status)}</h1>".encode())
            return True
        return False