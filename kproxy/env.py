"""Reading typed settings from environment variables."""

from __future__ import annotations

import os
import re

ENV_PREFIX = "KAMAL_PROXY_"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1
_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def find_env(key: str) -> str | None:
    """Look up ``KAMAL_PROXY_<key>``, then ``<key>``; None if neither is set."""
    value = os.environ.get(ENV_PREFIX + key)
    if value is not None:
        return value
    return os.environ.get(key)


def get_env_int(key: str, default: int) -> int:
    """Return the variable as an integer, or ``default`` if unset or invalid."""
    value = find_env(key)
    if value is None or not _INT_PATTERN.fullmatch(value):
        return default
    number = int(value)
    if not _INT_MIN <= number <= _INT_MAX:
        return default
    return number


def get_env_bool(key: str, default: bool) -> bool:
    """Return the variable as a boolean, or ``default`` if unset or invalid."""
    value = find_env(key)
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default