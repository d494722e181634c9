"""Application settings and configuration.

This module defines all configuration options for the Chorus Governance
service. Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Chorus Governance", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Quorum and proposal defaults
    kick_quorum_ratio: float = Field(default=0.51, alias="GOVERNANCE_KICK_QUORUM_RATIO")
    proposal_default_duration_seconds: int = Field(
        default=7 * 24 * 60 * 60,
        alias="GOVERNANCE_PROPOSAL_DEFAULT_DURATION_SECONDS",
    )

    # Pending vote buffer bounds
    pending_votes_max_buckets: int = Field(
        default=1_000,
        alias="GOVERNANCE_PENDING_VOTES_MAX_BUCKETS",
    )
    pending_votes_max_per_bucket: int = Field(
        default=500,
        alias="GOVERNANCE_PENDING_VOTES_MAX_PER_BUCKET",
    )
    pending_votes_ttl_seconds: int = Field(
        default=3_600,
        alias="GOVERNANCE_PENDING_VOTES_TTL_SECONDS",
    )

    # Relay gateway integration settings
    relay_gateway_enabled: bool = Field(default=False, alias="RELAY_GATEWAY_ENABLED")
    relay_gateway_base_url: str | None = Field(default=None, alias="RELAY_GATEWAY_BASE_URL")
    relay_gateway_client_id: str = Field(
        default="governance-local",
        alias="RELAY_GATEWAY_CLIENT_ID",
    )
    relay_gateway_shared_secret: str | None = Field(
        default=None,
        alias="RELAY_GATEWAY_SHARED_SECRET",
    )
    relay_gateway_audience: str = Field(
        default="relay-gateway",
        alias="RELAY_GATEWAY_JWT_AUD",
    )
    relay_gateway_token_ttl_seconds: int = Field(
        default=300,
        alias="RELAY_GATEWAY_TOKEN_TTL_SECONDS",
    )
    relay_gateway_http_timeout_seconds: float = Field(
        default=10.0,
        alias="RELAY_GATEWAY_HTTP_TIMEOUT_SECONDS",
    )
    relay_gateway_pull_interval_seconds: float = Field(
        default=2.0,
        alias="RELAY_GATEWAY_PULL_INTERVAL_SECONDS",
    )
    relay_gateway_pull_limit: int = Field(
        default=200,
        alias="RELAY_GATEWAY_PULL_LIMIT",
    )
    relay_gateway_dedupe_window: int = Field(
        default=10_000,
        alias="RELAY_GATEWAY_DEDUPE_WINDOW",
    )
    relay_gateway_mtls_enabled: bool = Field(
        default=False,
        alias="RELAY_GATEWAY_MTLS_ENABLED",
    )
    relay_gateway_client_cert: str | None = Field(
        default=None,
        alias="RELAY_GATEWAY_CLIENT_CERT",
    )
    relay_gateway_client_key: str | None = Field(
        default=None,
        alias="RELAY_GATEWAY_CLIENT_KEY",
    )
    relay_gateway_ca_cert: str | None = Field(
        default=None,
        alias="RELAY_GATEWAY_CA_CERT",
    )

    # Communities followed by the sync worker (definition event ids)
    followed_communities: list[str] = Field(default=[], alias="GOVERNANCE_FOLLOWED_COMMUNITIES")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()
