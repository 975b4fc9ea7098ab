"""
Runtime configuration for the TuneHub backend.

All settings come from environment variables. `Settings.from_env()` is called once
by the application factory; tests construct `Settings` directly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

_DEFAULT_JWT_EXPIRES_MINUTES = 7 * 24 * 60  # 7 days
_DEFAULT_MAX_AUDIO_BYTES = 10 * 1024 * 1024  # 10MB
_DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024  # 5MB

_DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _cors_origins() -> List[str]:
    origins = list(_DEFAULT_CORS_ORIGINS)
    raw = os.getenv("CORS_ALLOW_ORIGINS") or os.getenv("ALLOWED_ORIGINS", "")
    origins.extend(o.strip() for o in raw.split(",") if o.strip())
    return origins


@dataclass
class Settings:
    """Process-wide configuration, owned by the application root."""

    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = _DEFAULT_JWT_EXPIRES_MINUTES
    cors_origins: List[str] = field(default_factory=lambda: list(_DEFAULT_CORS_ORIGINS))
    media_root: str = "media"
    media_base_url: str = "/media"
    max_audio_bytes: int = _DEFAULT_MAX_AUDIO_BYTES
    max_image_bytes: int = _DEFAULT_MAX_IMAGE_BYTES
    auto_create_tables: bool = True
    log_level: str = "INFO"

    # PUBLIC_INTERFACE
    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            jwt_secret=os.getenv("JWT_SECRET") or None,
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            jwt_expires_minutes=_int_env("JWT_EXPIRES_MINUTES", _DEFAULT_JWT_EXPIRES_MINUTES),
            cors_origins=_cors_origins(),
            media_root=os.getenv("MEDIA_ROOT", "media").strip() or "media",
            media_base_url=os.getenv("MEDIA_BASE_URL", "/media").rstrip("/") or "/media",
            max_audio_bytes=_int_env("MAX_AUDIO_BYTES", _DEFAULT_MAX_AUDIO_BYTES),
            max_image_bytes=_int_env("MAX_IMAGE_BYTES", _DEFAULT_MAX_IMAGE_BYTES),
            auto_create_tables=_bool_env("AUTO_CREATE_TABLES", True),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    # PUBLIC_INTERFACE
    def require_jwt_secret(self) -> str:
        """Return the JWT secret or raise if it is not configured."""
        if not self.jwt_secret:
            raise RuntimeError("JWT_SECRET env var is required.")
        return self.jwt_secret


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
