"""
Application Configuration

Uses pydantic-settings for environment variable loading with validation.
All configuration is centralized here for easy management.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from formforge.core.constants import DEFAULT_COLUMNS, DEFAULT_SCHEMA_VERSION, MAX_HISTORY
from formforge.models.enums import HintLevel


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORMFORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: Literal["development", "testing", "production"] = Field(
        default="development",
        description="Runtime environment"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level for the server process"
    )

    # ==========================================================================
    # MCP Server
    # ==========================================================================
    server_name: str = Field(
        default="formforge",
        description="Name advertised by the MCP server"
    )

    tool_categories: list[Literal["form", "component", "property"]] | None = Field(
        default=None,
        description="Expose only tools in these categories, as a JSON list (default: all)"
    )

    # ==========================================================================
    # Form Engine
    # ==========================================================================
    grid_columns: int = Field(
        default=DEFAULT_COLUMNS,
        ge=1,
        le=DEFAULT_COLUMNS,
        description="Default grid width used by auto layout"
    )

    history_limit: int = Field(
        default=MAX_HISTORY,
        ge=1,
        description="Maximum undo snapshots kept per form (oldest evicted first)"
    )

    default_hint_level: HintLevel = Field(
        default=HintLevel.FULL,
        description="Validation feedback attached to mutation responses for new forms"
    )

    schema_version: int = Field(
        default=DEFAULT_SCHEMA_VERSION,
        description="schemaVersion written into newly created forms"
    )

    exporter_name: str = Field(
        default="formforge",
        description="Exporter name embedded in form schemas"
    )

    exporter_version: str = Field(
        default="1.0.0",
        description="Exporter version embedded in form schemas"
    )

    # ==========================================================================
    # Persistence
    # ==========================================================================
    persist_dir: str | None = Field(
        default=None,
        description="Directory for file-backed form persistence (disabled when unset)"
    )

    @computed_field
    @property
    def persistence_enabled(self) -> bool:
        """Check if file-backed persistence is configured."""
        return bool(self.persist_dir)

    @computed_field
    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def exporter(self) -> dict[str, str]:
        """Exporter metadata block for form schemas."""
        return {"name": self.exporter_name, "version": self.exporter_version}


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
