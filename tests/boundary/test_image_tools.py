"""
tests/boundary/test_image_tools.py

Tests for the ImageForgeTools boundary.

Verifies:
✔ generate_image success text: model, prompt, format, saved path, file:// link
✔ Inline preview for small raster outputs only
✔ Bad arguments -> "Error [validation]: ..." (never raises)
✔ Unexpected exceptions -> "Error [unknown]: ..."
✔ list_images: empty storage is not an error; grouping; recent URLs
✔ view_image: opens the file; not found -> suggestions; traversal rejected
"""

from unittest.mock import AsyncMock

import pytest

from api.tools import ImageForgeTools, format_error, load_preview
from generation.types import ErrorKind, GenerationFailure
from forge import ImageFormat
from services.viewer import StubViewerBackend


@pytest.fixture
def tools(pipeline, store, stub_viewer):
    return ImageForgeTools(pipeline, store, stub_viewer)


def populate(directory, *names):
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"x")


# ─────────────────────────────────────────────────────
# generate_image
# ─────────────────────────────────────────────────────


class TestGenerateImage:
    @pytest.mark.asyncio
    async def test_vector_success(self, tools):
        response = await tools.generate_image(prompt="A fox logo", model="8000")

        assert response.is_error is False
        assert "Image generated successfully!" in response.text
        assert "8000 (Recraft-Vector (Vector art))" in response.text
        assert 'Prompt: "A fox logo"' in response.text
        assert "Format: SVG" in response.text
        assert "file://" in response.text
        assert response.preview is None
        assert response.data["format"] == "vector"

    @pytest.mark.asyncio
    async def test_raster_success_has_preview(self, tools):
        response = await tools.generate_image(prompt="A sunset")

        assert response.is_error is False
        assert "Format: PNG" in response.text
        assert response.preview is not None
        assert response.preview.format == "png"
        assert response.preview.data.startswith(b"\x89PNG")

    @pytest.mark.asyncio
    async def test_web_relative_path_reported(self, tools, tmp_path):
        response = await tools.generate_image(
            prompt="Logo", web_project_path=str(tmp_path / "app"), project_type="next",
        )
        assert "Web project path: /public/images/logo_5000.png" in response.text

    @pytest.mark.asyncio
    async def test_incompatible_format(self, tools, stub_client):
        response = await tools.generate_image(prompt="A fox", model="5000", format="svg")

        assert response.is_error is True
        assert response.error_kind == "validation"
        assert response.text.startswith("Error [validation]:")
        assert stub_client.submissions == []

    @pytest.mark.asyncio
    async def test_wrong_argument_type(self, tools):
        response = await tools.generate_image(prompt="A fox", image_count="many")

        assert response.is_error is True
        assert response.error_kind == "validation"
        assert "image_count" in response.text

    @pytest.mark.asyncio
    async def test_unknown_argument(self, tools):
        response = await tools.generate_image(prompt="A fox", colour="red")

        assert response.error_kind == "validation"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_unknown(self, tools):
        tools.pipeline.run = AsyncMock(side_effect=RuntimeError("kaboom"))

        response = await tools.generate_image(prompt="A fox")

        assert response.is_error is True
        assert response.error_kind == "unknown"
        assert response.text == "Error [unknown]: kaboom"

    @pytest.mark.asyncio
    async def test_provider_failure_text(self, tools):
        response = await tools.generate_image(prompt="this should fail")

        assert response.error_kind == "api"
        assert "stage: polling" in response.text


class TestHelpers:
    def test_format_error_exhausted(self):
        failure = GenerationFailure(
            kind=ErrorKind.NETWORK,
            message="Image download failed after 3 attempts",
            exhausted=True,
            attempts=3,
            cause=GenerationFailure(kind=ErrorKind.NETWORK, message="Failed to fetch image: Not Found (404)"),
            details={"status": 404},
        )
        text = format_error(failure)
        assert text.splitlines() == [
            "Error [network]: Image download failed after 3 attempts",
            "Gave up after 3 attempts.",
            "Last error: Failed to fetch image: Not Found (404)",
            "status: 404",
        ]

    def test_preview_skips_large_and_vector_files(self, tmp_path):
        big = tmp_path / "big.png"
        big.write_bytes(b"\0" * (1024 * 1024 + 1))
        small = tmp_path / "small.png"
        small.write_bytes(b"\0" * 10)

        assert load_preview(big, ImageFormat.PNG) is None
        assert load_preview(small, ImageFormat.VECTOR) is None
        assert load_preview(small, ImageFormat.PNG).data == b"\0" * 10
        assert load_preview(tmp_path / "gone.png", ImageFormat.PNG) is None


# ─────────────────────────────────────────────────────
# list_images / view_image
# ─────────────────────────────────────────────────────


class TestListImages:
    @pytest.mark.asyncio
    async def test_missing_storage_is_not_error(self, tools):
        response = await tools.list_images()

        assert response.is_error is False
        assert response.text == "No stored images found. Try generating some images first!"

    @pytest.mark.asyncio
    async def test_grouped_listing(self, tools, storage_dir):
        populate(storage_dir, "a.png", "b.svg", "c.svg")

        response = await tools.list_images()

        assert "Found 3 stored images:" in response.text
        assert "PNG files (1):" in response.text
        assert "SVG files (2):" in response.text
        assert (storage_dir / "c.svg").absolute().as_uri() in response.text

    @pytest.mark.asyncio
    async def test_recent_limited_to_five(self, tools, storage_dir):
        names = [f"2025-01-0{i}_5000_img.png" for i in range(1, 8)]
        populate(storage_dir, *names)

        response = await tools.list_images()

        assert response.data["recent"] == list(reversed(names[-5:]))

    @pytest.mark.asyncio
    async def test_unlistable_storage_is_storage_error(self, tools, storage_dir):
        storage_dir.parent.mkdir(parents=True, exist_ok=True)
        storage_dir.write_bytes(b"not a directory")

        response = await tools.list_images()

        assert response.is_error is True
        assert response.error_kind == "storage"
        assert response.text.startswith("Error [storage]:")


class TestViewImage:
    @pytest.mark.asyncio
    async def test_opens_existing_file(self, tools, storage_dir, stub_viewer):
        populate(storage_dir, "cat.png")

        response = await tools.view_image("cat.png")

        assert response.is_error is False
        assert response.text.startswith("Opened image in the default viewer.")
        assert stub_viewer.opened == [(storage_dir / "cat.png").absolute()]

    @pytest.mark.asyncio
    async def test_not_found_with_suggestion(self, tools, storage_dir):
        populate(storage_dir, "2025_5000_mountain_lake.png", "dog.svg")

        response = await tools.view_image("mountain")

        assert response.is_error is True
        assert response.error_kind == "validation"
        assert "Did you mean one of these?" in response.text
        assert "- 2025_5000_mountain_lake.png" in response.text
        assert "dog.svg" not in response.text

    @pytest.mark.asyncio
    async def test_not_found_without_suggestions(self, tools):
        response = await tools.view_image("nothing.png")

        assert response.text == "Error [validation]: Image not found: nothing.png"

    @pytest.mark.asyncio
    async def test_traversal_rejected(self, tools, stub_viewer):
        response = await tools.view_image("../../etc/passwd")

        assert response.error_kind == "validation"
        assert stub_viewer.opened == []

    @pytest.mark.asyncio
    async def test_viewer_failure_is_note(self, pipeline, store, storage_dir):
        populate(storage_dir, "cat.png")
        tools = ImageForgeTools(pipeline, store, StubViewerBackend(fail=True))

        response = await tools.view_image("cat.png")

        assert response.is_error is False
        assert "Note: Could not open the image" in response.text
