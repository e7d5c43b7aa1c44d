"""
MCP tool boundary.

ImageForgeTools holds the tool behaviour; build_server registers it on FastMCP.
"""

from .tools import ImageForgeTools, ToolResponse, format_error
from .mcp_server import build_server

__all__ = ["ImageForgeTools", "ToolResponse", "format_error", "build_server"]
