import logging
import os

import uvicorn
from dotenv import dotenv_values

# Keep uvicorn quiet; the node logs through repgov.logger
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "uvicorn.asgi"):
    uvicorn_logger = logging.getLogger(name)
    uvicorn_logger.setLevel(logging.ERROR)
    uvicorn_logger.handlers = []

config = dotenv_values(".env")

# Environment variables take precedence over .env
REPGOV_NODE_HOST = os.getenv("REPGOV_NODE_HOST", config.get("REPGOV_NODE_HOST", "127.0.0.1"))
REPGOV_NODE_PORT = int(os.getenv("REPGOV_NODE_PORT", config.get("REPGOV_NODE_PORT", "3010")))

if __name__ == "__main__":
    uvicorn.run(
        "repgov.node.app:create_app",
        factory=True,
        host=REPGOV_NODE_HOST,
        port=REPGOV_NODE_PORT,
        reload=False,
        access_log=False,
        log_config=None,
    )
