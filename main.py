"""
Entry Point for the Recipes API

Runs the FastAPI application under uvicorn. The port and bind address
come from the environment (see config/settings.py).
"""

import logging
import sys
from pathlib import Path

# Add the current directory to Python path to ensure imports work
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import settings


if __name__ == "__main__":
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    )
    logging.getLogger(__name__).info("Starting Recipes API on %s:%d", settings.host, settings.port)

    import uvicorn
    from app import app

    # Single worker: the in-memory store lives inside the process
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        workers=1,
        log_level=settings.log_level.lower()
    )
