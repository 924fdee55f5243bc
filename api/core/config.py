"""
Environment-driven settings.

Every value is read at call time so tests can patch `os.environ` freely.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_CORS_ORIGINS = ("http://localhost:1337",)
DEFAULT_MAX_UPLOAD_SIZE_MB = 10
DEFAULT_SIGNED_URL_TTL_MIN = 15


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def cors_origins() -> list[str]:
    raw = env_str("CORS_ORIGINS")
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class UploadSettings:
    """
    Options of the cloud-storage upload provider.
    """

    project_id: str | None
    service_account_b64: str | None
    bucket_name: str | None
    base_path: str | None
    size_limit_bytes: int
    public_files: bool = True


def upload_settings() -> UploadSettings:
    size_mb = env_int("MAX_UPLOAD_SIZE_MB", DEFAULT_MAX_UPLOAD_SIZE_MB)
    if size_mb <= 0:
        size_mb = DEFAULT_MAX_UPLOAD_SIZE_MB
    return UploadSettings(
        project_id=env_str("GCP_PROJECT_ID") or None,
        service_account_b64=env_str("GCS_SERVICE_ACCOUNT_BASE64") or None,
        bucket_name=env_str("GCS_BUCKET_NAME") or None,
        base_path=env_str("GCS_BASE_PATH") or None,
        size_limit_bytes=size_mb * 1024 * 1024,
    )


def signed_url_ttl_minutes() -> int:
    ttl = env_int("SIGNED_URL_TTL_MIN", DEFAULT_SIGNED_URL_TTL_MIN)
    return ttl if ttl > 0 else DEFAULT_SIGNED_URL_TTL_MIN


# Content-Security-Policy served to the admin panel.
CSP_DIRECTIVES: dict[str, list[str]] = {
    "default-src": ["'self'"],
    "script-src": ["'self'", "'unsafe-inline'", "'unsafe-eval'"],
    "style-src": ["'self'", "'unsafe-inline'"],
    "img-src": [
        "'self'",
        "data:",
        "blob:",
        "https://market-assets.strapi.io",
        "https://storage.googleapis.com",
    ],
    "connect-src": ["'self'"],
    "font-src": ["'self'", "data:"],
    "media-src": ["'self'"],
    "object-src": ["'none'"],
    "frame-src": [],
}


def content_security_policy() -> str:
    parts = []
    for directive, sources in CSP_DIRECTIVES.items():
        parts.append(" ".join([directive, *sources]))
    return "; ".join(parts)
