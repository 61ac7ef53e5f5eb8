"""Process entrypoint for container and PaaS deployments."""
import logging

import uvicorn

from config import LOG_LEVEL, PORT
from main import app  # noqa: F401  fail fast on import errors before binding the port

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info(f"Starting uvicorn server on port {PORT}")
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=PORT,
        log_level=LOG_LEVEL.lower(),
        access_log=False,  # RequestLoggingMiddleware already logs each request
    )
