"""Selection of requests for a rollout group by cookie."""

from __future__ import annotations

ROLLOUT_COOKIE_NAME = "kamal-rollout"

_FNV_OFFSET = 0x811C9DC5
_FNV_PRIME = 0x01000193


def _fnv1a32(data: bytes) -> int:
    h = _FNV_OFFSET
    for byte in data:
        h = ((h ^ byte) * _FNV_PRIME) & 0xFFFFFFFF
    return h


class RolloutController:
    """Routes allowlisted or hashed-into-percentage cookie values to the rollout."""

    def __init__(self, percentage: int, allowlist: list[str] | None = None) -> None:
        self.percentage = percentage
        self.percentage_split_point = float(0xFFFFFFFF) * (percentage / 100.0)
        self.allowlist = list(allowlist or [])

    def request_uses_rollout_group(self, request) -> bool:
        value = request.cookie(ROLLOUT_COOKIE_NAME)
        if not value:
            return False
        if value in self.allowlist:
            return True
        return float(_fnv1a32(value.encode())) <= self.percentage_split_point