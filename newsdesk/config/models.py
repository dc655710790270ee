"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PostgresConfig(BaseModel):
    """Postgres configuration."""

    host: str = Field("localhost", description="Database host")
    port: int = Field(5432, description="Database port")
    database: str = Field("newsdesk", description="Database name")
    user: str = Field("newsdesk_user", description="Database user")
    password: Optional[str] = Field(None, description="Database password")
    password_env: Optional[str] = Field(None, description="Environment variable for password")


class ServiceConfig(BaseModel):
    """External search/answer service configuration."""

    base_url: str = Field(
        "https://ee-perplexity-wrapper-production.up.railway.app",
        description="Base URL of the async query service",
    )
    account_name: Optional[str] = Field(None, description="Account used to route queries")
    account_name_env: Optional[str] = Field(
        "NEWSDESK_ACCOUNT_NAME", description="Environment variable for the account name"
    )
    mode: str = Field("auto", description="Query mode (auto, writing, coding, research)")
    sources: str = Field("web", description="Search sources (web, scholar, social)")
    request_timeout: float = Field(30.0, description="HTTP timeout per request in seconds", gt=0)
    poll_interval: float = Field(2.0, description="Seconds between result polls", ge=0)
    max_polls: int = Field(150, description="Poll attempts before timing out", ge=1)


class SchedulerConfig(BaseModel):
    """Outbound call rate limiting."""

    interval_seconds: float = Field(
        4.0, description="Minimum seconds between outbound calls (4s = 15 calls/min)", ge=0
    )


class DiscoveryConfig(BaseModel):
    """Headline discovery configuration."""

    collection_uuid: Optional[str] = Field(
        "e837cb67-4c52-4d0f-be7e-b44c7acae98a",
        description="Default collection for headline searches",
    )


class RewriteConfig(BaseModel):
    """Rewrite/translation pipeline configuration."""

    collection_uuid: Optional[str] = Field(
        "6b8829ad-4c17-4a45-ac67-db3b017c2be6",
        description="Collection used for article generation",
    )
    sentinel_prefix: str = Field(
        "Pending rewrite for: ", description="Body prefix marking placeholder articles"
    )
    batch_size: int = Field(10, description="Leads fetched per storage read while draining", ge=1)
    auto_start: bool = Field(True, description="Drain the rewrite queue after a task completes")
    max_retries: int = Field(0, description="Automatic generation retries (0 = manual only)", ge=0)
    retry_base_delay: float = Field(5.0, ge=0)
    retry_backoff: float = Field(2.0, ge=1.0)

    @field_validator("sentinel_prefix")
    @classmethod
    def validate_sentinel(cls, v: str) -> str:
        """Placeholder detection needs a non-blank marker."""
        if not v.strip():
            raise ValueError("sentinel_prefix must not be blank")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Log level")
    file: Optional[str] = Field(None, description="Optional log file path")


class ConfigModel(BaseModel):
    """Main configuration model."""

    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    rewrite: RewriteConfig = Field(default_factory=RewriteConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
