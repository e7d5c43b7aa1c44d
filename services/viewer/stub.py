"""
Stub viewer backend for testing and headless deployments.
"""

from pathlib import Path
from typing import List

from .base import ViewerBackend, ViewerResponse


class StubViewerBackend(ViewerBackend):
    """Records opened paths instead of launching anything."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.opened: List[Path] = []

    async def open(self, path: Path) -> ViewerResponse:
        if self.fail:
            return ViewerResponse(
                status="recoverable_error",
                error_type="launch_failed",
                metadata={"backend": "stub_viewer", "path": str(path)},
            )
        self.opened.append(path)
        return ViewerResponse(
            status="success",
            metadata={"backend": "stub_viewer", "path": str(path)},
        )
