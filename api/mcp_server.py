"""
MCP server wiring (stdio transport).

Registers the Image Forge tools, the stored-image resource templates and a
resource list of the stored files on a FastMCP instance. All behaviour
lives in ImageForgeTools; this module only converts ToolResponse values
into MCP content.
"""

import logging
from typing import List, Optional, Union

from mcp.server.fastmcp import FastMCP, Image
from mcp.server.fastmcp.exceptions import ResourceError, ToolError
from mcp.types import Resource

from generation.models import model_catalog_text
from forge.types import ImageFormat, mime_type_for

from .tools import ImageForgeTools, ToolResponse

logger = logging.getLogger(__name__)

SERVER_NAME = "image-forge"
RESOURCE_URI_PREFIX = "image-forge://images/"

RESOURCE_SUFFIXES = {
    "svg": ImageFormat.VECTOR.mime_type,
    "png": ImageFormat.PNG.mime_type,
    "jpg": ImageFormat.JPEG.mime_type,
    "jpeg": ImageFormat.JPEG.mime_type,
    "webp": ImageFormat.WEBP.mime_type,
}

GENERATE_DESCRIPTION = f"""Generate images using EverArt models.

Available models:
{model_catalog_text()}

Formats: svg (vector, model 8000 only), png, jpg, webp.
Default format is svg for model 8000 and png otherwise.
Images are saved to the storage directory unless output_path is given, or
into a web project's asset directory when web_project_path is given."""


def to_content(response: ToolResponse) -> Union[str, List[Union[str, Image]]]:
    """Raise ToolError for failures; text (plus optional preview) otherwise."""
    if response.is_error:
        raise ToolError(response.text)
    if response.preview is None:
        return response.text
    return [response.text, Image(data=response.preview.data, format=response.preview.format)]


class ImageForgeServer(FastMCP):
    """FastMCP whose resource list also carries every stored image file."""

    def __init__(self, image_tools: ImageForgeTools, name: str = SERVER_NAME):
        self.image_tools = image_tools
        super().__init__(name)

    async def list_resources(self) -> List[Resource]:
        resources = await super().list_resources()
        listed = self.image_tools.store.list_images()
        if not listed.ok:
            raise ResourceError(listed.error.message)
        for filename in listed.value:
            resources.append(Resource(
                uri=f"{RESOURCE_URI_PREFIX}{filename}",
                name=filename,
                description=f"Stored image: {filename}",
                mimeType=mime_type_for(filename),
            ))
        return resources


def build_server(tools: ImageForgeTools, name: str = SERVER_NAME) -> FastMCP:
    mcp = ImageForgeServer(tools, name)

    @mcp.tool(description=GENERATE_DESCRIPTION)
    async def generate_image(
        prompt: str,
        model: str = "5000",
        format: Optional[str] = None,
        image_count: int = 1,
        output_path: Optional[str] = None,
        web_project_path: Optional[str] = None,
        project_type: Optional[str] = None,
        asset_path: Optional[str] = None,
    ):
        arguments = {
            "prompt": prompt,
            "model": model,
            "format": format,
            "image_count": image_count,
            "output_path": output_path,
            "web_project_path": web_project_path,
            "project_type": project_type,
            "asset_path": asset_path,
        }
        return to_content(await tools.generate_image(**arguments))

    @mcp.tool(description="List all stored images, grouped by file type")
    async def list_images() -> str:
        return to_content(await tools.list_images())

    @mcp.tool(description="Open a stored image in the system's default image viewer")
    async def view_image(filename: str) -> str:
        return to_content(await tools.view_image(filename))

    for suffix, mime_type in RESOURCE_SUFFIXES.items():
        _register_resource(mcp, tools, suffix, mime_type)

    logger.info("MCP server %r ready with %d resource templates", name, len(RESOURCE_SUFFIXES))
    return mcp


def _register_resource(mcp: FastMCP, tools: ImageForgeTools, suffix: str, mime_type: str) -> None:
    @mcp.resource(
        f"{RESOURCE_URI_PREFIX}{{stem}}.{suffix}",
        name=f"stored-{suffix}",
        description=f"Stored {suffix.upper()} image",
        mime_type=mime_type,
    )
    def read_stored(stem: str) -> bytes:
        outcome = tools.read_image(f"{stem}.{suffix}")
        if not outcome.ok:
            raise ResourceError(outcome.error.message)
        return outcome.value.data
