"""Graphwire central configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Client settings loaded from GRAPHWIRE_* environment variables / .env file."""

    # ── Endpoints ──
    graph_endpoint_url: str = "https://graph.facebook.com"
    legacy_endpoint_url: str = "https://api.facebook.com/method"

    # ── Credentials ──
    access_token: str = ""
    api_key: str = ""
    secret_key: str = ""

    # ── Legacy REST signing ──
    legacy_api_version: str = "1.0"
    signature_digest: str = "md5"  # wire-compatible with the legacy API

    # ── Transport ──
    request_timeout: float = 30.0  # seconds

    # ── Insights ──
    insights_time_zone: str = "America/Los_Angeles"

    # ── App ──
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "GRAPHWIRE_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "frozen": True,
    }


settings = Settings()
