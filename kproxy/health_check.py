"""Periodic HTTP health checks of a target."""

from __future__ import annotations

import http.client
import logging
import threading
import urllib.error
import urllib.request
from typing import Protocol

log = logging.getLogger(__name__)

USER_AGENT = "kamal-proxy"


class HealthCheckConsumer(Protocol):
    def health_check_completed(self, success: bool) -> None: ...


class HealthCheck:
    """Checks ``endpoint`` every ``interval`` seconds until closed.

    Each check must complete within ``timeout`` seconds and answer with a
    2xx status to count as a success. Results go to the consumer.
    """

    def __init__(self, consumer: HealthCheckConsumer, endpoint: str, interval: float, timeout: float) -> None:
        self.consumer = consumer
        self.endpoint = endpoint
        self.interval = interval
        self.timeout = timeout
        self._stopped = threading.Event()
        self._opener = urllib.request.build_opener(urllib.request.ProxyHandler({}))
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def close(self) -> None:
        self._stopped.set()

    def __enter__(self) -> "HealthCheck":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _run(self) -> None:
        while not self._stopped.is_set():
            self._check()
            if self._stopped.wait(self.interval):
                return

    def _check(self) -> None:
        request = urllib.request.Request(self.endpoint, method="GET", headers={"User-Agent": USER_AGENT})
        try:
            with self._opener.open(request, timeout=self.timeout) as response:
                response.read()
                status = response.status
        except urllib.error.HTTPError as exc:
            status = exc.code
            exc.close()
        except TimeoutError:
            self._report(False, "request timed out")
            return
        except urllib.error.URLError as exc:
            reason = "request timed out" if isinstance(exc.reason, TimeoutError) else str(exc.reason)
            self._report(False, reason)
            return
        except (OSError, ValueError, http.client.HTTPException) as exc:
            self._report(False, str(exc))
            return

        if not 200 <= status <= 299:
            self._report(False, f"unexpected status ({status})")
            return
        self._report(True, None)

    def _report(self, success: bool, error: str | None) -> None:
        if self._stopped.is_set():
            return
        if not success:
            log.info("Healthcheck failed url=%s error=%s", self.endpoint, error)
        self.consumer.health_check_completed(success)