"""Application settings and configuration.

This module defines all configuration options for the Media Anchor service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Media Anchor", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # HTTP server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    max_body_bytes: int = Field(default=1024 * 1024, alias="MAX_BODY_BYTES")

    # Request authentication (single static client credential)
    max_clock_skew_ms: int = Field(default=5 * 60 * 1000, alias="MAX_CLOCK_SKEW_MS")
    client_id: str = Field(default="android-app", alias="CLIENT_ID")
    client_secret: str = Field(default="dev-client-secret", alias="CLIENT_SECRET")

    # Database configuration
    database_url: str = Field(default="sqlite:///./media_anchor.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=True, alias="AUTO_CREATE_TABLES")

    # Solana ledger anchoring
    ledger_rpc_url: str = Field(
        default="https://api.devnet.solana.com",
        alias="SOLANA_RPC_URL",
    )
    ledger_private_key_json: str | None = Field(
        default=None,
        alias="SOLANA_PRIVATE_KEY_JSON",
    )
    ledger_keypair_path: str = Field(
        default="~/.config/solana/devnet.json",
        alias="SOLANA_KEYPAIR_PATH",
    )
    ledger_required: bool = Field(default=False, alias="SOLANA_REQUIRED")
    ledger_verify_on_read: bool = Field(default=True, alias="SOLANA_VERIFY_ON_READ")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )


settings = Settings()


def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return settings
