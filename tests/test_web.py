import re
import time

from kproxy.web import (
    Headers,
    Request,
    RequestIDMiddleware,
    RequestStartMiddleware,
    ResponseRecorder,
    http_error,
    status_text,
)


def _capture(middleware_cls, header, preset=None):
    seen = []
    handler = middleware_cls(lambda w, r: seen.append(r.headers.get(header)))
    req = Request("GET", "/")
    if preset is not None:
        req.headers.set(header, preset)
    rec = ResponseRecorder()
    handler(rec, req)
    return rec, seen


def test_request_id_added_when_missing():
    rec, seen = _capture(RequestIDMiddleware, "X-Request-ID")
    assert seen[0] != ""
    assert rec.status == 200


def test_request_id_preserved():
    rec, seen = _capture(RequestIDMiddleware, "X-Request-ID", "1234")
    assert seen == ["1234"]
    assert rec.status == 200


def test_request_start_added():
    rec, seen = _capture(RequestStartMiddleware, "X-Request-Start")
    assert re.fullmatch(r"t=\d+", seen[0])
    assert abs(int(seen[0][2:]) / 1000 - time.time()) < 1
    assert rec.status == 200


def test_request_start_preserved():
    _, seen = _capture(RequestStartMiddleware, "X-Request-Start", "t=1234")
    assert seen == ["t=1234"]


def test_headers_case_insensitive():
    h = Headers()
    h.set("x-custom", "hello")
    h.add("X-CUSTOM", "again")
    assert h.get_all("X-Custom") == ["hello", "again"]
    h.delete("x-custom")
    assert h.get("X-Custom") == ""


def test_request_cookie():
    req = Request("GET", "/", headers={"Cookie": "a=1; b=2"})
    assert req.cookie("b") == "2"
    assert req.cookie("c") is None


def test_http_error_and_status_text():
    rec = ResponseRecorder()
    http_error(rec, status_text(418), 418)
    assert rec.status == 418
    assert rec.headers.get("Content-Type") == "text/plain; charset=utf-8"
    assert bytes(rec.body) == b"I'm a teapot\n"