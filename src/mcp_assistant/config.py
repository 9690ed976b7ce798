"""Application configuration using Pydantic settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Anthropic Messages API
    anthropic_base_url: str = Field(
        "https://api.anthropic.com/v1", alias="ANTHROPIC_BASE_URL",
        description="Base URL of the Anthropic API. Requests are sent to {base}/messages.",
    )
    anthropic_model: str = Field(
        "claude-3-5-sonnet-20241022", alias="ANTHROPIC_MODEL",
        description="Model identifier sent with every request.",
    )
    anthropic_max_tokens: int = Field(
        1024, alias="ANTHROPIC_MAX_TOKENS",
        description="Max output tokens per answer.",
    )
    anthropic_version: str = Field(
        "2023-06-01", alias="ANTHROPIC_VERSION",
        description="Value of the anthropic-version protocol header.",
    )
    anthropic_beta: str = Field(
        "mcp-client-2025-04-04", alias="ANTHROPIC_BETA",
        description="Value of the anthropic-beta header that enables the MCP connector.",
    )

    # MCP tool server
    mcp_server_url: str = Field(
        "https://openhandbook.mcp.yumemi.jp/sse", alias="MCP_SERVER_URL",
        description="URL of the remote MCP server the model may call while answering.",
    )
    mcp_server_name: str = Field(
        "yumemi-openhandbook", alias="MCP_SERVER_NAME",
        description="Name announced for the MCP server in the request.",
    )

    # Timeouts (seconds)
    connect_timeout: float = Field(
        30.0, alias="CONNECT_TIMEOUT",
        description="TCP/TLS connect timeout in seconds.",
    )
    socket_timeout: float = Field(
        120.0, alias="SOCKET_TIMEOUT",
        description="Per-socket idle timeout (read/write/pool) in seconds. MCP answers can be slow.",
    )
    request_timeout: float = Field(
        120.0, alias="REQUEST_TIMEOUT",
        description="Total budget in seconds for one request, from send to fully read body.",
    )

    # Retry policy for the MCP call
    retry_max_attempts: int = Field(
        2, alias="RETRY_MAX_ATTEMPTS",
        description="Max attempts for one question. MCP calls are expensive, so keep this low.",
    )
    retry_initial_delay: float = Field(
        2.0, alias="RETRY_INITIAL_DELAY",
        description="Delay in seconds before the first retry.",
    )
    retry_max_delay: float = Field(
        30.0, alias="RETRY_MAX_DELAY",
        description="Upper bound in seconds for any single retry delay.",
    )
    retry_multiplier: float = Field(
        2.0, alias="RETRY_MULTIPLIER",
        description="Factor applied to the delay after each retry.",
    )

    # Local storage
    data_dir: Path = Field(
        Path.home() / ".mcp-assistant", alias="DATA_DIR",
        description="Directory holding the API key file and the conversation database.",
    )

    # Server
    host: str = Field(
        "127.0.0.1", alias="HOST",
        description="Host address to bind the aiohttp server to.",
    )
    port: int = Field(
        8080, alias="PORT",
        description="Port number for the aiohttp server.",
    )

    # Logging
    log_level: str = Field(
        "INFO", alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, or CRITICAL.",
    )
    log_file: str = Field(
        "", alias="LOG_FILE",
        description="Path to log file for file-based logging with rotation. Empty = console only.",
    )
    log_file_max_bytes: int = Field(
        10_485_760, alias="LOG_FILE_MAX_BYTES",
        description="Max size in bytes per log file before rotation. Default: 10 MB.",
    )
    log_file_backup_count: int = Field(
        5, alias="LOG_FILE_BACKUP_COUNT",
        description="Number of rotated backup log files to keep.",
    )

    @property
    def secret_path(self) -> Path:
        return self.data_dir / "api_key"

    @property
    def database_path(self) -> Path:
        return self.data_dir / "conversations.sqlite3"


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
