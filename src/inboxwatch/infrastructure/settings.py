"""Application settings using Pydantic Settings for configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Inbox Watch"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    log_json: bool = False

    # Status API
    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # IMAP push source (IDLE)
    imap_enabled: bool = False
    imap_host: str = "imap.gmail.com"
    imap_port: int = 993
    imap_user: str | None = None
    imap_password: SecretStr | None = None
    imap_mailbox: str = "INBOX"
    imap_fetch_limit: int = Field(default=50, ge=1)
    imap_idle_timeout_seconds: float = 29 * 60
    imap_reconnect_seconds: float = 30.0

    # Gmail API poller
    gmail_enabled: bool = False
    google_client_id: str | None = None
    google_client_secret: SecretStr | None = None
    google_refresh_token: SecretStr | None = None
    google_token_uri: str = "https://oauth2.googleapis.com/token"
    gmail_cron_expression: str = "*/5 * * * *"
    gmail_query: str = "is:unread newer_than:1d"
    gmail_labels: str = "INBOX,UNREAD"
    gmail_max_results: int = Field(default=10, ge=1)
    gmail_processed_cache: int = Field(default=100, ge=1)

    # Outlook (Microsoft Graph) poller
    outlook_enabled: bool = False
    outlook_tenant_id: str | None = None
    outlook_client_id: str | None = None
    outlook_client_secret: SecretStr | None = None
    outlook_user_id: str | None = None
    outlook_folder_id: str = "inbox"
    outlook_cron_expression: str = "*/5 * * * *"
    outlook_filter: str = "isRead eq false"
    outlook_top: int = Field(default=10, ge=1)
    outlook_processed_cache: int = Field(default=100, ge=1)
    outlook_http_timeout_seconds: float = 30.0

    # Notification delivery
    notify_mode: Literal["smtp", "log"] = "smtp"
    notify_recipient: str | None = None
    notify_from: str | None = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_use_tls: bool = True
    smtp_username: str | None = None
    smtp_password: SecretStr | None = None

    @computed_field
    @property
    def gmail_label_ids(self) -> tuple[str, ...]:
        """Comma-separated GMAIL_LABELS as a tuple, blanks dropped."""
        return tuple(label.strip() for label in self.gmail_labels.split(",") if label.strip())

    @computed_field
    @property
    def smtp_login(self) -> str | None:
        """SMTP user, falling back to the IMAP account."""
        return self.smtp_username or self.imap_user


def secret_value(secret: SecretStr | None) -> str | None:
    return secret.get_secret_value() if secret is not None else None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
