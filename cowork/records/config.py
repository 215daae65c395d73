"""
Record store and cache configuration from environment variables.

Intent:
    One place that reads ROBLE_* / COWORK_* variables, applies defaults and
    fails fast on malformed values, so adapters never touch `os.environ`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse


DEFAULT_BASE_URL = "https://roble-api.openlab.uninorte.edu.co"
DEFAULT_DEV_PROJECT = "coworkapp_dd7a0b82de"
CACHE_POLICIES = ("per_key", "shared")


@dataclass(frozen=True)
class RecordStoreConfig:
    base_url: str
    project: str
    timeout_seconds: int
    access_token: Optional[str] = None

    @property
    def data_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/database/{self.project}"


@dataclass(frozen=True)
class CacheConfig:
    ttl_seconds: int
    policy: str  # "per_key" | "shared"


def _int_env(name: str, default: int, *, upper: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw!r}")
    if value <= 0 or value > upper:
        raise ValueError(f"{name} out of range (1..{upper}), got: {value}")
    return value


def _is_prod_like() -> bool:
    env = (os.getenv("COWORK_ENV") or "dev").lower()
    return env in {"prod", "production", "stage", "staging"}


def _validate_base_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ValueError("ROBLE_BASE_URL must start with http:// or https://")
    if parsed.scheme == "http" and _is_prod_like():
        raise ValueError("ROBLE_BASE_URL must use https in prod-like environments")
    return url.rstrip("/")


def load_record_store_config() -> RecordStoreConfig:
    """
    Parse and validate record store settings.

    Behavior:
        - `ROBLE_BASE_URL` defaults to the public Roble endpoint.
        - `ROBLE_PROJECT` is required in prod-like envs (`COWORK_ENV`).
        - `ROBLE_TIMEOUT_SECONDS` must be 1..300 (default 30).
        - `ROBLE_ACCESS_TOKEN` is optional; the session layer usually injects
          a token provider instead.
    """
    base_url = _validate_base_url((os.getenv("ROBLE_BASE_URL") or DEFAULT_BASE_URL).strip())
    project = (os.getenv("ROBLE_PROJECT") or "").strip()
    if not project:
        if _is_prod_like():
            raise ValueError("ROBLE_PROJECT must be set in prod-like environments")
        project = DEFAULT_DEV_PROJECT
    timeout = _int_env("ROBLE_TIMEOUT_SECONDS", 30, upper=300)
    token = (os.getenv("ROBLE_ACCESS_TOKEN") or "").strip() or None
    return RecordStoreConfig(
        base_url=base_url,
        project=project,
        timeout_seconds=timeout,
        access_token=token,
    )


def load_cache_config() -> CacheConfig:
    ttl = _int_env("COWORK_CACHE_TTL_SECONDS", 300, upper=3600)
    policy = (os.getenv("COWORK_CACHE_POLICY") or "per_key").strip().lower()
    if policy not in CACHE_POLICIES:
        raise ValueError("COWORK_CACHE_POLICY must be 'per_key' or 'shared'")
    return CacheConfig(ttl_seconds=ttl, policy=policy)


__all__ = [
    "RecordStoreConfig",
    "CacheConfig",
    "load_record_store_config",
    "load_cache_config",
]
