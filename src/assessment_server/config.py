"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars.
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Assessment directory (None → AssessmentStore default, assessments/ at repo root)
    assessment_dir: str | None = None

    # Serve unpublished assessments by slug (admin preview)
    include_unpublished: bool = False

    # Hours to keep in-memory submissions (0 = keep until shutdown)
    submission_ttl_hours: int = 24

    # Logging
    log_level: str = "INFO"


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        assessment_dir=os.getenv("SERVER_ASSESSMENT_DIR") or None,
        include_unpublished=os.getenv("SERVER_INCLUDE_UNPUBLISHED", "").lower() in ("1", "true", "yes"),
        submission_ttl_hours=int(os.getenv("SUBMISSION_TTL_HOURS", "24")),
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
    )
