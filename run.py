import logging

import uvicorn

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

from web.app import create_app

# Silence SQL loggers unless SQL_ECHO asks for queries
if not config.SQL_ECHO:
    for logger_name in ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']:
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.CRITICAL)
        logger.propagate = False
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(logging.NullHandler())

    logging.info("🔇 SQL loggers silenced (aiosqlite, sqlalchemy.*)")

app = create_app()

if __name__ == '__main__':
    logging.info(f"🚀 Starting storefront API on {config.WEBAPP_HOST}:{config.WEBAPP_PORT}")
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT)
