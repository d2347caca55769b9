"""Settings for the restore request service."""

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class RestoreTableConfig(BaseModel):
    """
    Addressing for the restore request table.

    Built once from :class:`Settings` and injected into the repository, so the
    repository never reads process-wide configuration itself.
    """

    model_config = ConfigDict(frozen=True)

    connection_endpoint: str
    """Azure Storage connection string (or Azurite emulator connection string)."""

    table_name: str
    """Name of the table holding restore request entities."""

    @field_validator("connection_endpoint", "table_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only values."""
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v.strip()


class Settings(BaseSettings):
    """
    Settings for the restore request service.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) reads
    configuration values from:
    1. Environment variables (production - Azure Function / Web App Configuration)
    2. .env file (local development)

    Environment variable names are treated case-insensitively; the names kept from
    the backup service are STORAGE_RESTORE_TABLE_CONN and STORAGE_RESTORE_TABLE_NAME.
    """

    # Azure Table Storage
    storage_restore_table_conn: str
    """Azure Storage connection string for the restore request table (required)."""

    storage_restore_table_name: str
    """Restore request table name (required)."""

    # Status tracking
    restore_status_base_uri: str = "/api/restore"
    """Prefix for status location URIs handed back to callers. Keys are appended as /{partition}/{row}."""

    # Polling worker
    restore_poll_interval_seconds: float = 30.0
    """Seconds the poller sleeps when no pending restore request is found."""

    log_level: str = "INFO"
    """Minimum level for the stdout log sink."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra environment variables not defined in the model
        validate_default=True,
    )

    @field_validator("restore_poll_interval_seconds")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        """Poll interval must be positive."""
        if v <= 0:
            raise ValueError("restore_poll_interval_seconds must be greater than zero")
        return v

    def table_config(self) -> RestoreTableConfig:
        """Build the table addressing injected into the repository."""
        return RestoreTableConfig(
            connection_endpoint=self.storage_restore_table_conn,
            table_name=self.storage_restore_table_name,
        )
