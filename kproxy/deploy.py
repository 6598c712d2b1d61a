"""Settings for deploying a service, and their validation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


class DeployValidationError(ValueError):
    """The deploy settings are inconsistent."""


def _format_list(values: list[str]) -> str:
    return "[" + " ".join(values) + "]"


@dataclass
class DeploySettings:
    """Everything a deploy request carries.

    Durations are in seconds; a value of None leaves the server's default
    in place.
    """

    service: str = ""
    target_urls: list[str] = field(default_factory=list)
    reader_urls: list[str] = field(default_factory=list)

    hosts: list[str] = field(default_factory=list)
    path_prefixes: list[str] = field(default_factory=list)
    strip_path_prefix: bool = True
    tls_enabled: bool = False
    tls_certificate_path: str = ""
    tls_private_key_path: str = ""
    tls_acme_cache_path: str = ""
    tls_redirect: bool = True
    canonical_host: str = ""
    writer_affinity_timeout: float | None = None
    read_targets_accept_websockets: bool = False
    error_page_path: str = ""

    deploy_timeout: float | None = None
    drain_timeout: float | None = None
    force: bool = False

    health_check_interval: float | None = None
    health_check_timeout: float | None = None
    health_check_path: str | None = None
    health_check_port: int | None = None
    target_timeout: float | None = None
    buffer_requests: bool = False
    buffer_responses: bool = False
    max_memory_buffer_size: int | None = None
    max_request_body_size: int | None = None
    max_response_body_size: int | None = None
    log_request_headers: list[str] = field(default_factory=list)
    log_response_headers: list[str] = field(default_factory=list)
    forward_headers: bool = False
    scope_cookie_paths: bool = False

    def validate(self, changed: Iterable[str] = ()) -> None:
        """Check the settings before deploying.

        ``changed`` names the command-line flags the user gave explicitly
        (for example ``"max-request-body"``). When ``forward-headers`` is not
        among them, header forwarding defaults to on unless TLS is enabled.
        Raises DeployValidationError on inconsistent settings.
        """
        given = set(changed)

        if "max-request-body" in given and "buffer-requests" not in given:
            raise DeployValidationError("max-request-body can only be set when request buffering is enabled")

        if "max-response-body" in given and "buffer-responses" not in given:
            raise DeployValidationError("max-response-body can only be set when response buffering is enabled")

        if "forward-headers" not in given:
            self.forward_headers = not self.tls_enabled

        if self.tls_enabled:
            if not self.hosts:
                raise DeployValidationError("host must be set when using TLS")
            if "/" not in self.path_prefixes:
                raise DeployValidationError("TLS settings must be specified on the root path service")

        if self.canonical_host and self.hosts and self.hosts[0] != "":
            if self.canonical_host not in self.hosts:
                raise DeployValidationError(
                    f"canonical-host '{self.canonical_host}' must be present in the hosts list: "
                    f"{_format_list(self.hosts)}"
                )