# kproxy

Components for an HTTP proxy that performs zero-downtime deployments:
request middleware, spill-to-disk buffering, cookie path scoping, pause and
rollout control, request metrics, error pages, health checks and deploy
setting validation.

Handlers and middleware share one simple shape: a callable taking
`(writer, request)`, where `writer` has `headers`, `write_header(status)`,
`write(data)` and `flush()` (as `kproxy.web.ResponseRecorder` does) and
`request` is a `kproxy.web.Request`.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `kproxy.web` — `Headers` (case-insensitive, multi-valued), `Request`
  (with `cookie(name)`), `ResponseRecorder`, `status_text`, `http_error`,
  plus `RequestIDMiddleware` (sets `X-Request-ID` to a UUID when missing) and
  `RequestStartMiddleware` (sets `X-Request-Start: t=<unix millis>` when
  missing).
- `kproxy.buffer` — `Buffer`, which keeps up to `max_mem_bytes` in memory
  and spills the rest to a temporary file, raising
  `MaximumSizeExceededError` past `max_bytes` (zero means unlimited) and
  `WriteAfterReadError` on writes after reading has begun; `buffered_read`
  drains a reader into a new `Buffer`; `BufferPool` hands out reusable
  fixed-size `bytearray`s.
- `kproxy.cookie_scope` — `SetCookie.parse` / `str(cookie)`, and
  `CookieScope`, which rewrites the `Path` of `Set-Cookie` headers to sit
  below a path prefix for cookies with no `Domain` or a `Domain` equal to the
  host (port ignored).
- `kproxy.pause_controller` — `PauseController` with `pause(fail_after)`,
  `stop(message)`, `resume()` and a blocking `wait()` returning a
  `PauseWaitAction` and a message; `to_dict` / `from_dict` for saving state.
- `kproxy.rollout_controller` — `RolloutController(percentage, allowlist)`,
  whose `request_uses_rollout_group(request)` is true when the
  `kamal-rollout` cookie is allowlisted or its FNV-1a hash falls within the
  percentage.
- `kproxy.metrics` — `normalize_method`, `NullTracker` (the default),
  `PrometheusTracker` with `render()` giving Prometheus text format,
  `enable()` to switch to a `PrometheusTracker`, and `get_tracker()`.
- `kproxy.config` — `Config` with `socket_path()`, `state_path()` and
  `certificate_path()`.
- `kproxy.error_pages` — `ErrorPageMiddleware(pages, root, next_handler)`,
  where `pages` is a mapping of file name to template text or a directory of
  `*.html` Jinja templates named `<status>.html`; handlers call
  `set_error_response(writer, request, status, template_arguments)`, with a
  mapping of template arguments. It raises `UnableToLoadErrorPagesError`
  when no templates are found or one does not compile.
- `kproxy.health_check` — `HealthCheck(consumer, endpoint, interval,
  timeout)`, which polls the endpoint on a background thread and calls
  `consumer.health_check_completed(success)` after each check until
  `close()`.
- `kproxy.logging_middleware` — `LoggingMiddleware` writing one JSON line
  per request through `JsonLogger`; downstream handlers fill in
  `logging_request_context(request)` (service, target, extra request and
  response headers to log). Each request is also passed to the current
  metrics tracker.
- `kproxy.request_buffer` — `RequestBufferMiddleware`, answering 413 for
  bodies over the limit.
- `kproxy.response_buffer` — `ResponseBufferMiddleware` and
  `BufferedResponseWriter`, answering 500 for responses over the limit and
  passing `text/event-stream` and chunked responses straight through.
- `kproxy.formatting` — `Table` with `add_row`, `render` and `print`, for
  aligned, ANSI-styled terminal output.
- `kproxy.env` — `find_env`, `get_env_int`, `get_env_bool`, checking
  `KAMAL_PROXY_<KEY>` before `<KEY>`.
- `kproxy.deploy` — `DeploySettings` and `validate(changed)`, raising
  `DeployValidationError` for inconsistent deploy options.

## Example

```python
from kproxy.web import Request, ResponseRecorder, RequestIDMiddleware
from kproxy.error_pages import ErrorPageMiddleware, set_error_response

def app(writer, request):
    if request.path == "/missing":
        set_error_response(writer, request, 404, {"message": "nothing here"})
        return
    writer.write(request.headers.get("X-Request-ID").encode())

pages = {"404.html": "<h1>Not Found</h1><p>{{ message }}</p>"}
handler = RequestIDMiddleware(ErrorPageMiddleware(pages, True, app))

recorder = ResponseRecorder()
handler(recorder, Request("GET", "/missing"))
print(recorder.status, bytes(recorder.body))
```

## What this package does not do

It provides components only. There is no listening proxy server, no
router or load balancer, no TLS or certificate handling, no control
socket, and no command-line program; nothing here accepts network
connections. No default error page templates are included: pass your own
to `ErrorPageMiddleware`.