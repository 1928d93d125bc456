"""Application settings using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="scsm", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=5000, description="API port")
    api_workers: int = Field(default=1, description="Number of workers")
    api_reload: bool = Field(default=True, description="Enable auto-reload")

    # Session authentication
    auth_secret_key: str = Field(
        default="dev-jwt-secret-key-change-in-production-32chars!",
        description="Session token signing key (min 32 chars)",
    )
    auth_algorithm: str = Field(default="HS256", description="JWT algorithm")
    auth_session_token_expire_hours: int = Field(
        default=24, description="Session token lifetime (hours)"
    )

    # Redis
    redis_enabled: bool = Field(
        default=False, description="Use Redis for cross-worker user locks"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )
    redis_max_connections: int = Field(default=10, description="Max Redis connections")
    redis_socket_timeout: float = Field(default=5.0, description="Redis socket timeout")
    redis_socket_connect_timeout: float = Field(
        default=5.0, description="Redis connect timeout"
    )
    redis_retry_on_timeout: bool = Field(default=True, description="Retry on timeout")
    redis_health_check_interval: int = Field(
        default=30, description="Health check interval"
    )
    redis_lock_timeout_seconds: float = Field(
        default=10.0, description="Auto-release time for per-user locks"
    )

    # Cassandra
    cassandra_hosts: list[str] = Field(
        default=["localhost"], description="Cassandra hosts"
    )
    cassandra_port: int = Field(default=9042, description="Cassandra port")
    cassandra_keyspace: str = Field(default="scsm", description="Cassandra keyspace")
    cassandra_username: str | None = Field(default=None, description="Cassandra user")
    cassandra_password: str | None = Field(
        default=None, description="Cassandra password"
    )
    cassandra_protocol_version: int = Field(default=4, description="Protocol version")
    cassandra_connect_timeout: float = Field(
        default=10.0, description="Connect timeout"
    )
    cassandra_request_timeout: float = Field(
        default=5.0, description="Request timeout"
    )

    # Cashfree payment gateway
    cashfree_app_id: str | None = Field(default=None, description="Cashfree app ID")
    cashfree_secret_key: str | None = Field(
        default=None, description="Cashfree secret key (KEEP SECRET!)"
    )
    cashfree_api_version: str = Field(
        default="2022-09-01", description="Cashfree API version header"
    )
    cashfree_production_url: str = Field(
        default="https://api.cashfree.com/pg", description="Cashfree production URL"
    )
    cashfree_sandbox_url: str = Field(
        default="https://sandbox.cashfree.com/pg", description="Cashfree sandbox URL"
    )
    cashfree_timeout_seconds: float = Field(
        default=15.0, description="Timeout for Cashfree requests"
    )

    # Enrollment policy
    enrollment_validity_days: int = Field(
        default=20, description="Days a purchased course stays valid"
    )
    enrollment_default_attempts: int = Field(
        default=30, description="Exam attempts granted per course"
    )
    order_currency: str = Field(default="INR", description="Order currency")
    default_center_name: str = Field(
        default="Online Student", description="Center name when none is given"
    )
    course_prices: dict[str, Decimal] = Field(
        default={
            "soft-lang-combo": Decimal("199.00"),
            "combo": Decimal("199.00"),
            "comm-personality": Decimal("49.00"),
        },
        description="Server-enforced prices by course selection code",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="DEBUG", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=True, description="Include caller info"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )
    log_requests: bool = Field(
        default=True, description="Log HTTP request start/finish"
    )
    log_exclude_paths: list[str] = Field(
        default=["/health", "/health/live", "/health/ready"],
        description="Paths to exclude from request logging",
    )

    # CORS
    cors_origins: list[str] = Field(default=["*"], description="CORS origins")
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    cors_allow_methods: list[str] = Field(default=["*"], description="Allowed methods")
    cors_allow_headers: list[str] = Field(default=["*"], description="Allowed headers")
    cors_max_age: int = Field(default=600, description="CORS max age")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def cashfree_configured(self) -> bool:
        """Check if Cashfree credentials are present."""
        return bool(
            self.cashfree_app_id
            and self.cashfree_app_id.strip()
            and self.cashfree_secret_key
            and self.cashfree_secret_key.strip()
        )

    @property
    def cashfree_base_url(self) -> str:
        """Sandbox URL for TEST credentials, production otherwise."""
        app_id = (self.cashfree_app_id or "").strip()
        if app_id.startswith("TEST"):
            return self.cashfree_sandbox_url
        return self.cashfree_production_url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
