#!/usr/bin/env python3
"""
FastAPI app module for running with uvicorn.

Usage:
    python run_api.py
    uvicorn run_api:app --host 0.0.0.0 --port 8080

Environment Variables:
    DATABASE_URL: Database connection URL (or DATABASE_URL_PROD / DATABASE_URL_STAGING)
    DERIVATION_API_KEY: API key for the messages API (CLAUDE_API_KEY also accepted)
    PORT: Port for `python run_api.py` (default: 8080)
"""

import os
import sys
from pathlib import Path

# Add lattice to path
sys.path.insert(0, str(Path(__file__).parent / "lattice"))

from dotenv import load_dotenv  # noqa: E402

load_dotenv()

from utils.logger import get_logger  # noqa: E402
from webapp.api import create_app  # noqa: E402

logger = get_logger(__name__)

# Create FastAPI app instance (exposed for uvicorn)
app = create_app()

logger.info("Lattice API module loaded")
logger.info("  API docs: http://localhost:%s/api/docs", os.getenv("PORT", "8080"))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8080")))
