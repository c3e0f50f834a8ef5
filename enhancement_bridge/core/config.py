"""
Configuration management using Pydantic Settings.
Loads settings from environment variables and .env files.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class JiraSettings(BaseSettings):
    """JIRA connection for the default (enhancement) project."""

    model_config = SettingsConfigDict(env_prefix="JIRA_", env_file=".env", extra="ignore")

    base_url: str = Field(default="", description="JIRA Cloud base URL")
    email: str = Field(default="", description="Account email used for basic auth")
    api_token: str = Field(default="", description="JIRA API token")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class JiraStorySettings(BaseSettings):
    """JIRA connection for the story project."""

    model_config = SettingsConfigDict(env_prefix="JIRA_BMS_", env_file=".env", extra="ignore")

    base_url: str = Field(default="", description="JIRA Cloud base URL")
    email: str = Field(default="", description="Account email used for basic auth")
    api_token: str = Field(default="", description="JIRA API token")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")


class GeminiSettings(BaseSettings):
    """Google Gemini configuration settings."""

    model_config = SettingsConfigDict(env_prefix="GEMINI_", env_file=".env", extra="ignore")

    api_key: str = Field(default="", description="Gemini API key")
    model: str = Field(default="gemini-2.5-flash", description="Gemini model name")


class PushChannelSettings(BaseSettings):
    """Event-stream (MCP server) push channel configuration."""

    model_config = SettingsConfigDict(env_prefix="MCP_", env_file=".env", extra="ignore")

    server_url: Optional[str] = Field(default=None, description="Event stream URL for the default project")
    server_url_bms: Optional[str] = Field(default=None, description="Event stream URL for the story project")
    max_retries: int = Field(default=5, description="Reconnect attempts before giving up")
    retry_interval: float = Field(default=5.0, description="Fixed reconnect backoff in seconds")
    autostart: bool = Field(default=True, description="Connect to configured streams on startup")


class WorkflowSettings(BaseSettings):
    """Project keys, trigger identities and JIRA field mapping."""

    model_config = SettingsConfigDict(env_prefix="BRIDGE_", env_file=".env", extra="ignore")

    enhancement_project_key: str = Field(default="RSOFT")
    story_project_key: str = Field(default="RSOFTBMS")

    enhancement_trigger_assignee: str = Field(default="TeamBA")
    story_trigger_assignee: str = Field(default="Team Analyst")
    tracked_field_id: str = Field(
        default="customfield_10040",
        description="Custom field whose change re-triggers enhancement generation",
    )

    # Enhancement project fields
    i_want_field: str = Field(default="customfield_10040")
    so_that_field: str = Field(default="customfield_10041")
    acceptance_criteria_field: str = Field(default="customfield_10059")

    # Story project fields
    user_story_summary_field: str = Field(default="customfield_10129")
    check_points_field: str = Field(default="customfield_10127")
    validations_field: str = Field(default="customfield_10128")

    public_base_url: str = Field(
        default="http://localhost:3000", description="Base URL of the review UI"
    )
    comment_timezone: str = Field(default="Asia/Kolkata")

    enhancement_prompt_path: Optional[str] = Field(
        default=None, description="Optional file overriding the built-in enhancement prompt"
    )
    story_prompt_path: Optional[str] = Field(
        default=None, description="Optional file overriding the built-in story prompt"
    )


class SecuritySettings(BaseSettings):
    """Security configuration."""

    model_config = SettingsConfigDict(env_prefix="SECURITY_", env_file=".env", extra="ignore")

    allowed_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="enhancement-bridge", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=True, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5000, description="Server port")

    # Sub-settings
    jira: JiraSettings = Field(default_factory=JiraSettings)
    jira_story: JiraStorySettings = Field(default_factory=JiraStorySettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    push: PushChannelSettings = Field(default_factory=PushChannelSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"app_env must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience function for accessing settings
settings = get_settings()
