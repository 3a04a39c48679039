"""Operator settings read from environment variables (and an optional .env file).

Import the module-level ``settings`` instance; it is built once at import time.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven configuration. Every field names its variable."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root log level",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Emit one JSON object per log line",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Tag log lines with the correlation id of the current reconciliation",
    )

    # Namespace watching
    namespaces: str = Field(
        default="",
        validation_alias="SECRET_MIRROR_OPERATOR_NAMESPACES",
        description="Namespaces to watch, comma separated; empty watches the whole cluster",
    )

    # Operator behavior
    dry_run: bool = Field(
        default=False,
        validation_alias="DRY_RUN",
        description="Send Secret mutations with server-side dry run (nothing is persisted)",
    )
    max_workers: int = Field(
        default=20,
        validation_alias="MAX_WORKERS",
        description="Maximum number of concurrently executing sync handlers",
    )

    # Reconciliation behavior
    requeue_delay_seconds: int = Field(
        default=1,
        ge=0,
        validation_alias="REQUEUE_DELAY_SECONDS",
        description="Delay before re-running a reconciliation that asked to be requeued",
    )
    resync_interval_seconds: float = Field(
        default=600.0,
        gt=0,
        validation_alias="RESYNC_INTERVAL_SECONDS",
        description="Interval for periodic level-triggered resync of every SecretMirror",
    )

    # Metrics
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port of the /metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Address the /metrics endpoint binds to",
    )

    # Tracing
    tracing_enabled: bool = Field(
        default=False,
        validation_alias="TRACING_ENABLED",
        description="Enable OpenTelemetry tracing",
    )
    tracing_endpoint: str = Field(
        default="http://localhost:4317",
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="OTLP collector endpoint (gRPC)",
    )
    tracing_service_name: str = Field(
        default="secret-mirror-operator",
        validation_alias="OTEL_SERVICE_NAME",
        description="Service name reported in traces",
    )
    tracing_sample_rate: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        validation_alias="TRACING_SAMPLE_RATE",
        description="Fraction of root traces to sample",
    )

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Watched namespaces as a list, or None for cluster-wide operation."""
        names = [part.strip() for part in self.namespaces.split(",")]
        return [name for name in names if name] or None


settings = Settings()
