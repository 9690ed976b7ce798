"""Application entrypoint - aiohttp server for the MCP assistant."""

import logging

import structlog
from aiohttp.web import Application, run_app

from mcp_assistant.api import (
    ASSISTANT_KEY,
    REPOSITORY_KEY,
    SECRET_STORE_KEY,
    SETTINGS_KEY,
    setup_routes,
)
from mcp_assistant.assistant import AssistantService
from mcp_assistant.config import Settings, get_settings
from mcp_assistant.storage.conversations import ConversationRepository
from mcp_assistant.storage.secrets import FileSecretStore, SecretStore


def configure_logging(
    log_level: str = "INFO",
    log_file: str = "",
    log_file_max_bytes: int = 10_485_760,
    log_file_backup_count: int = 5,
) -> None:
    """Configure structlog and standard library logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file. Empty string = console only.
        log_file_max_bytes: Max size per log file before rotation (default: 10 MB)
        log_file_backup_count: Number of rotated backup files to keep (default: 5)
    """
    from logging.handlers import RotatingFileHandler
    from pathlib import Path

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.root
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=log_file,
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(file_handler)

    # httpx logs every request at INFO; keep it for DEBUG runs only
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            # JSON for files, human-readable for the console
            structlog.processors.JSONRenderer(ensure_ascii=False) if log_file else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def create_app(
    settings: Settings | None = None,
    secret_store: SecretStore | None = None,
    repository: ConversationRepository | None = None,
    assistant: AssistantService | None = None,
) -> Application:
    """Create and configure the aiohttp application."""
    settings = settings or get_settings()
    secret_store = secret_store or FileSecretStore(settings.secret_path)
    repository = repository or ConversationRepository(settings.database_path)
    assistant = assistant or AssistantService(settings, secret_store, repository)

    logger.info(
        "assistant_initialized",
        model=settings.anthropic_model,
        mcp_server=settings.mcp_server_name,
        data_dir=str(settings.data_dir),
    )

    app = Application()
    app[SETTINGS_KEY] = settings
    app[SECRET_STORE_KEY] = secret_store
    app[REPOSITORY_KEY] = repository
    app[ASSISTANT_KEY] = assistant

    async def close_repository(app: Application) -> None:
        app[REPOSITORY_KEY].close()

    app.on_cleanup.append(close_repository)
    setup_routes(app)
    return app


def main() -> None:
    """Run the assistant server."""
    settings = get_settings()
    configure_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        log_file_max_bytes=settings.log_file_max_bytes,
        log_file_backup_count=settings.log_file_backup_count,
    )

    logger.info(
        "starting_assistant_server",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )

    app = create_app(settings)
    run_app(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
