import pytest

from kproxy.metrics import PrometheusTracker, enable, get_tracker, normalize_method


@pytest.mark.parametrize(
    "method,expected",
    [
        ("GET", "GET"),
        ("POST", "POST"),
        ("PATCH", "PATCH"),
        ("CUSTOM", "OTHER"),
        ("OTHER", "OTHER"),
        ("", "OTHER"),
    ],
)
def test_normalize_method(method, expected):
    assert normalize_method(method) == expected


def test_enable_installs_tracker():
    tracker = enable()
    assert get_tracker() is tracker


def test_render_counts_requests():
    t = PrometheusTracker()
    t.track_request("app", "CUSTOM", 200, 0.02)
    t.track_request("app", "CUSTOM", 200, 0.02)
    text = t.render()
    assert 'kamal_proxy_http_requests_total{service="app",method="OTHER",status="200"} 2' in text
    assert 'kamal_proxy_http_request_duration_seconds_count{service="app",method="OTHER",status="200"} 2' in text


def test_inflight_gauge_balances():
    t = PrometheusTracker()
    t.add_inflight_request("app")
    t.add_inflight_request("app")
    t.subtract_inflight_request("app")
    assert 'kamal_proxy_http_in_flight_requests{service="app"} 1' in t.render()