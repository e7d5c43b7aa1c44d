"""
Image Forge MCP server entry point.

Integrates:
  - Configuration + credential check
  - Infrastructure bootstrap (remote client, pipeline, storage, viewer)
  - FastMCP tools and resources over stdio

Run: python main.py   (or the `image-forge` console script)
"""

import logging
import sys

from config import Config
from infra import InfraConfig, InfraBootstrap
from api.mcp_server import build_server
from api.tools import ImageForgeTools

# stdout carries the MCP stdio transport; logs go to stderr
logging.basicConfig(
    level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def create_app(infra_config: InfraConfig = None):
    """
    Build the MCP server.

    Exits the process with status 1 when the API key is missing or the
    remote client cannot be constructed.
    """
    infra_config = infra_config or InfraConfig.from_env(api_key=Config.EVERART_API_KEY)

    if infra_config.remote_backend != "stub" and not Config.validate():
        sys.exit(1)

    try:
        infra = InfraBootstrap(infra_config)
    except ValueError as e:
        logger.error(f"Failed to initialize EverArt client: {e}")
        sys.exit(1)

    ready = infra.resolver.ensure_storage_dir()
    if not ready.ok:
        logger.error(f"Storage directory unavailable: {ready.error.message}")
        sys.exit(1)

    tools = ImageForgeTools(infra.get_pipeline(), infra.get_store(), infra.get_viewer())
    return build_server(tools)


def run() -> None:
    logger.info("=" * 60)
    logger.info("Image Forge MCP server starting up...")
    logger.info(f"Environment: {Config.ENVIRONMENT}")
    logger.info("=" * 60)

    mcp = create_app()
    mcp.run(transport="stdio")

    logger.info("Image Forge MCP server shutting down...")


if __name__ == "__main__":
    run()
