"""Service entry point."""

import uvicorn

from tokenprism.core.config import ConfigManager, TokenPrismConfig
from tokenprism.core.logging import configure_logging
from tokenprism.web.app import create_app


def run(config: TokenPrismConfig | None = None, *, host: str | None = None, port: int | None = None) -> None:
    """Configure logging and serve the app with uvicorn."""

    config = config or ConfigManager().get_config()
    configure_logging(config.logging.level, file=config.logging.file)
    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    run()
