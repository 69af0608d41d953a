from __future__ import annotations

import sys

import uvicorn
from dotenv import load_dotenv

from agent_core.config import ensure_upload_directory, get_opener_config
from agent_core.logging.logger import get_logger
from file_agent.server.app import create_app
from file_agent.server.config import get_settings


def main() -> None:
    load_dotenv()
    logger = get_logger()
    settings = get_settings()
    config = get_opener_config()
    try:
        ensure_upload_directory(config)
    except OSError as exc:
        logger.error("Failed to create upload directory %s: %s", config.upload_directory, exc)
        sys.exit(1)

    logger.info("File Opener Agent starting on %s:%s", settings.host, settings.port)
    logger.info("Upload directory: %s", config.upload_directory)
    uvicorn.run(create_app(settings, config), host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    main()
