"""
formforge entry point

Builds the form engine (with file persistence when configured) and serves
it over MCP on stdio.
"""

import logging

from formforge.config import Settings, get_settings
from formforge.services.form_engine import FormEngine
from formforge.services.form_persistence import FilePersistence
from formforge.services.mcp_server.server import FormForgeMCPServer, MCPContext

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_engine(settings: Settings | None = None) -> FormEngine:
    """Create the form engine and attach persistence if a directory is configured."""
    settings = settings or get_settings()
    engine = FormEngine(settings)
    if settings.persistence_enabled:
        FilePersistence(settings.persist_dir).enable(engine.store)
    return engine


def create_server(settings: Settings | None = None) -> FormForgeMCPServer:
    settings = settings or get_settings()
    engine = create_engine(settings)
    return FormForgeMCPServer(
        MCPContext(engine=engine),
        name=settings.server_name,
        categories=settings.tool_categories,
    )


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    logger.info(f"Starting {settings.server_name} ({settings.environment})")

    server = create_server(settings)
    server.get_fastmcp_server().run()


if __name__ == "__main__":
    main()
