import io
import json
import logging

from kproxy import metrics
from kproxy.logging_middleware import JsonLogger, LoggingMiddleware, logging_request_context
from kproxy.web import Request, ResponseRecorder


def _handler(writer, request):
    ctx = logging_request_context(request)
    ctx.service = "myapp"
    ctx.target = "upstream:3000"
    ctx.request_headers = ["X-Custom"]
    ctx.response_headers = ["Cache-Control", "X-Custom"]

    writer.headers.set("Content-Type", "text/html")
    writer.headers.set("Cache-Control", "public, max-age=3600")
    writer.headers.set("X-Custom", "goodbye")
    writer.write_header(201)
    writer.write(b"goodbye\n")


def _serve(request, handler=_handler):
    out = io.StringIO()
    middleware = LoggingMiddleware(JsonLogger(out), 80, 443, handler)
    middleware(ResponseRecorder(), request)
    return json.loads(out.getvalue())


def test_logs_request_line():
    req = Request("POST", "http://app.example.com/somepath?q=ok", body=b"hello")
    req.headers.set("X-Request-ID", "request-id")
    req.headers.set("X-Forwarded-For", "192.168.1.1")
    req.headers.set("User-Agent", "Robot/1")
    req.headers.set("Content-Type", "application/json")
    req.headers.set("x-custom", "hello")

    line = _serve(req)

    assert line["msg"] == "Request"
    assert line["level"] == "INFO"
    assert line["request_id"] == "request-id"
    assert line["host"] == "app.example.com"
    assert line["port"] == 80
    assert line["path"] == "/somepath"
    assert line["method"] == "POST"
    assert line["status"] == 201
    assert line["client_addr"] == "192.0.2.1"
    assert line["client_port"] == "1234"
    assert line["remote_addr"] == "192.168.1.1"
    assert line["user_agent"] == "Robot/1"
    assert line["req_content_type"] == "application/json"
    assert line["resp_content_type"] == "text/html"
    assert line["query"] == "q=ok"
    assert line["req_content_length"] == 5
    assert line["resp_content_length"] == 8
    assert line["target"] == "upstream:3000"
    assert line["service"] == "myapp"
    assert line["req_x_custom"] == "hello"
    assert line["resp_cache_control"] == "public, max-age=3600"
    assert line["resp_x_custom"] == "goodbye"
    assert line["proto"] == "HTTP/1.1"
    assert line["scheme"] == "http"


def test_tls_and_defaults():
    req = Request("GET", "https://app.example.com/", tls=True, remote_addr="10.0.0.5")
    line = _serve(req, lambda w, r: None)
    assert line["scheme"] == "https"
    assert line["port"] == 443
    assert line["status"] == 200
    assert line["client_addr"] == "10.0.0.5"
    assert line["client_port"] == ""
    assert line["remote_addr"] == "10.0.0.5"
    assert line["service"] == ""


def test_context_without_middleware_is_detached():
    req = Request("GET", "/")
    logging_request_context(req).service = "ignored"
    assert logging_request_context(req).service == ""


def test_logger_respects_level():
    out = io.StringIO()
    logger = JsonLogger(out, level=logging.WARNING)
    logger.log(logging.INFO, "quiet", {})
    logger.log(logging.ERROR, "loud", {"a": 1})
    lines = out.getvalue().splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert (record["level"], record["msg"], record["a"]) == ("ERROR", "loud", 1)


def test_tracks_metrics():
    tracker = metrics.enable()
    _serve(Request("POST", "http://app.example.com/"))
    rendered = tracker.render()
    assert 'kamal_proxy_http_requests_total{service="myapp",method="POST",status="201"} 1' in rendered