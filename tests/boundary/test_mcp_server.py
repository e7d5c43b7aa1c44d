"""
tests/boundary/test_mcp_server.py

Tests for FastMCP wiring.

Verifies:
✔ The three tools are registered; generate_image lists the model catalog
✔ Error responses raise ToolError; previews become Image content
✔ Stored images are listed and readable as resources with the right MIME type
"""

import pytest
from mcp.server.fastmcp import Image
from mcp.server.fastmcp.exceptions import ResourceError, ToolError

from api.mcp_server import build_server, to_content
from api.tools import ImageForgeTools, ImagePreview, ToolResponse


@pytest.fixture
def server(pipeline, store, stub_viewer):
    return build_server(ImageForgeTools(pipeline, store, stub_viewer))


class TestToolRegistration:
    @pytest.mark.asyncio
    async def test_tools_listed(self, server):
        tools = {tool.name: tool for tool in await server.list_tools()}

        assert set(tools) == {"generate_image", "list_images", "view_image"}
        assert "8000:Recraft-Vector (Vector art)" in tools["generate_image"].description
        assert "prompt" in tools["generate_image"].inputSchema["properties"]

    @pytest.mark.asyncio
    async def test_resource_templates_listed(self, server):
        templates = await server.list_resource_templates()
        uris = {t.uriTemplate for t in templates}

        assert "image-forge://images/{stem}.svg" in uris
        assert "image-forge://images/{stem}.webp" in uris


class TestToContent:
    def test_text_only(self):
        assert to_content(ToolResponse(text="ok")) == "ok"

    def test_preview_attached(self):
        content = to_content(ToolResponse(text="ok", preview=ImagePreview(data=b"png", format="png")))
        assert content[0] == "ok"
        assert isinstance(content[1], Image)

    def test_error_raises_tool_error(self):
        with pytest.raises(ToolError, match=r"Error \[validation\]"):
            to_content(ToolResponse(is_error=True, error_kind="validation", text="Error [validation]: bad"))


class TestResources:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,mime", [
        ("logo.svg", "image/svg+xml"),
        ("photo.jpg", "image/jpeg"),
        ("pic.png", "image/png"),
    ])
    async def test_read_stored_image(self, server, storage_dir, name, mime):
        storage_dir.mkdir()
        (storage_dir / name).write_bytes(b"content")

        contents = list(await server.read_resource(f"image-forge://images/{name}"))

        assert contents[0].content == b"content"
        assert contents[0].mime_type == mime

    @pytest.mark.asyncio
    async def test_generated_image_listed_as_resource(self, server, storage_dir):
        await server.call_tool("generate_image", {"prompt": "A cat", "format": "png"})

        stored = [p.name for p in storage_dir.iterdir()]
        resources = {str(r.uri): r for r in await server.list_resources()}

        assert len(stored) == 1
        uri = f"image-forge://images/{stored[0]}"
        assert uri in resources
        assert resources[uri].mimeType == "image/png"
        assert resources[uri].name == stored[0]

    @pytest.mark.asyncio
    async def test_empty_storage_lists_no_resources(self, server):
        assert await server.list_resources() == []

    @pytest.mark.asyncio
    async def test_unlistable_storage_raises(self, server, storage_dir):
        storage_dir.parent.mkdir(parents=True, exist_ok=True)
        storage_dir.write_bytes(b"not a directory")

        with pytest.raises(ResourceError):
            await server.list_resources()

    @pytest.mark.asyncio
    async def test_missing_resource(self, server):
        with pytest.raises((ResourceError, ValueError)):
            await server.read_resource("image-forge://images/missing.png")
