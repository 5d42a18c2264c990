"""Runtime configuration helpers for the estimating engines."""
from __future__ import annotations

import os
from typing import Optional

DEFAULT_CONTINGENCY_PERCENTAGE = 10.0
DEFAULT_BENCHMARK_MIN_SAMPLE_SIZE = 3


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def _is_dev_env() -> bool:
    env = (get_env() or "dev").lower()
    return env in {"dev", "local"}


def get_estimation_backend() -> str:
    return (_get_env("ESTIMATION_BACKEND") or "memory").lower()


def get_estimation_fs_dir() -> Optional[str]:
    return _get_env("ESTIMATION_BACKEND_FS_DIR")


def get_catalog_seed() -> str:
    return (_get_env("CATALOG_SEED") or "default").lower()


def get_default_contingency_percentage() -> float:
    raw = _get_env("DEFAULT_CONTINGENCY_PERCENTAGE")
    if not raw:
        return DEFAULT_CONTINGENCY_PERCENTAGE
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"DEFAULT_CONTINGENCY_PERCENTAGE must be numeric, got: {raw}") from exc
    if value < 0:
        raise RuntimeError("DEFAULT_CONTINGENCY_PERCENTAGE must be non-negative")
    return value


def get_benchmark_min_sample_size() -> int:
    raw = _get_env("BENCHMARK_MIN_SAMPLE_SIZE")
    if not raw:
        return DEFAULT_BENCHMARK_MIN_SAMPLE_SIZE
    try:
        return max(1, int(raw))
    except ValueError as exc:
        raise RuntimeError(f"BENCHMARK_MIN_SAMPLE_SIZE must be an integer, got: {raw}") from exc


def get_jwt_signing_secret() -> Optional[str]:
    secret = _get_env("AUTH_JWT_SIGNING")
    if secret:
        return secret
    # Dev/local may run unsigned-token tests against a fixed secret.
    if _is_dev_env():
        return _get_env("AUTH_JWT_DEV_SECRET")
    return None
