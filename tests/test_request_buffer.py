import io

from kproxy.request_buffer import RequestBufferMiddleware
from kproxy.web import Request, ResponseRecorder


def _send(request_body, response_body, seen=None):
    def handler(writer, request):
        if seen is not None:
            seen.append(request.body.read())
        writer.write(response_body.encode())

    middleware = RequestBufferMiddleware(4, 8, handler)
    rec = ResponseRecorder()
    middleware(rec, Request("POST", "http://app.example.com/somepath", body=request_body.encode()))
    return rec


def test_success():
    rec = _send("hello", "ok")
    assert rec.status == 200
    assert rec.body.decode() == "ok"


def test_request_body_too_large():
    rec = _send("this request body is much too large", "ok")
    assert rec.status == 413
    assert rec.body.decode() == "Request too large\n"


def test_handler_sees_full_body():
    seen = []
    _send("hello", "ok", seen)
    assert seen == [b"hello"]


def test_read_error_is_internal_error():
    class Broken(io.RawIOBase):
        def read(self, size=-1):
            raise OSError("boom")

    middleware = RequestBufferMiddleware(4, 8, lambda w, r: w.write(b"ok"))
    rec = ResponseRecorder()
    middleware(rec, Request("POST", "/", body=Broken()))
    assert rec.status == 500
    assert rec.body.decode() == "Internal Server Error\n"