"""
tests/unit/test_viewer.py

Tests for viewer backends.

Verifies:
✔ Stub records opened paths / reports configured failure
✔ System backend: missing file -> recoverable_error, no opener -> recoverable_error
✔ System backend launches the platform opener without capturing stdout
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from services.viewer import StubViewerBackend, SystemViewerBackend
from services.viewer.system import opener_command


class TestStubViewer:
    @pytest.mark.asyncio
    async def test_records_paths(self, tmp_path):
        viewer = StubViewerBackend()
        response = await viewer.open(tmp_path / "a.png")
        assert response.status == "success"
        assert viewer.opened == [tmp_path / "a.png"]

    @pytest.mark.asyncio
    async def test_failure_mode(self, tmp_path):
        response = await StubViewerBackend(fail=True).open(tmp_path / "a.png")
        assert response.status == "recoverable_error"
        assert response.error_type == "launch_failed"


class TestSystemViewer:
    def test_opener_command_darwin(self):
        assert opener_command("darwin") == ["open"]

    def test_opener_command_windows(self):
        assert opener_command("win32") is None

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        response = await SystemViewerBackend("linux").open(tmp_path / "missing.png")
        assert response.status == "recoverable_error"
        assert response.error_type == "missing_file"

    @pytest.mark.asyncio
    async def test_no_opener(self, tmp_path):
        image = tmp_path / "a.png"
        image.write_bytes(b"x")
        with patch("services.viewer.system.opener_command", return_value=None):
            response = await SystemViewerBackend("linux").open(image)
        assert response.error_type == "no_opener"

    @pytest.mark.asyncio
    async def test_launches_opener(self, tmp_path):
        image = tmp_path / "a.png"
        image.write_bytes(b"x")
        with patch("services.viewer.system.opener_command", return_value=["xdg-open"]), \
                patch("asyncio.create_subprocess_exec", new=AsyncMock()) as spawn:
            response = await SystemViewerBackend("linux").open(image)

        assert response.status == "success"
        args, kwargs = spawn.call_args
        assert args == ("xdg-open", str(image))
        assert kwargs["stdout"] == asyncio.subprocess.DEVNULL

    @pytest.mark.asyncio
    async def test_launch_failure(self, tmp_path):
        image = tmp_path / "a.png"
        image.write_bytes(b"x")
        with patch("services.viewer.system.opener_command", return_value=["xdg-open"]), \
                patch("asyncio.create_subprocess_exec", new=AsyncMock(side_effect=FileNotFoundError("xdg-open"))):
            response = await SystemViewerBackend("linux").open(image)

        assert response.status == "recoverable_error"
        assert response.error_type == "launch_failed"
