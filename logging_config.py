import os
import sys
import logging
from loguru import logger

SERVICE_NAME = "medischedule-backend"

NOISY_LIBRARIES = ['pymongo', 'motor', 'aiohttp.access', 'httpx', 'httpcore', 'openai', 'urllib3']


def setup_logging(debug: bool = None):
    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ["true", "1", "yes"]

    env = os.getenv("ENV", "local")
    level = "DEBUG" if debug else "INFO"
    log_file = os.getenv("LOG_FILE")

    logger.remove()
    # Every record carries the service and env so aggregated JSON logs can be filtered
    logger.configure(extra={"service": SERVICE_NAME, "env": env})

    if env == "production":
        logger.add(sys.stderr, level=level, format="{message}", serialize=True)
    else:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        )

    if log_file:
        logger.add(
            log_file,
            level=level,
            serialize=True,
            rotation=os.getenv("LOG_ROTATION", "10 MB"),
            retention=os.getenv("LOG_RETENTION", "7 days"),
        )

    for lib in NOISY_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if debug:
        logger.info(f"Debug logging enabled (env={env})")
    if log_file:
        logger.info(f"Writing JSON logs to {log_file}")
