"""
Configuration management for Image Forge.

Loads environment variables from .env file and provides typed access to configuration.
"""

import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)

logger = logging.getLogger(__name__)


class Config:
    """Process-level configuration for Image Forge."""

    # EverArt credential (required)
    EVERART_API_KEY = os.getenv("EVERART_API_KEY", "")

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is set."""
        required = ["EVERART_API_KEY"]
        missing = [key for key in required if not getattr(cls, key)]

        if missing:
            logger.error(
                "Missing required environment variables: %s. "
                "Please add your EverArt API key to the MCP settings or .env file.",
                ", ".join(missing),
            )
            return False

        return True
