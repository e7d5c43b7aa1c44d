"""
System viewer backend.

Launches the platform opener (open / xdg-open / startfile) without
waiting for the viewer to exit.
"""

import asyncio
import logging
import os
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from .base import ViewerBackend, ViewerResponse

logger = logging.getLogger(__name__)


def opener_command(platform: str = sys.platform) -> Optional[List[str]]:
    """Command prefix that opens a file on this platform, or None."""
    if platform == "darwin":
        return ["open"]
    if platform.startswith("win"):
        return None  # os.startfile
    for candidate in ("xdg-open", "gio"):
        if shutil.which(candidate):
            return [candidate, "open"] if candidate == "gio" else [candidate]
    return None


class SystemViewerBackend(ViewerBackend):
    def __init__(self, platform: str = sys.platform):
        self.platform = platform

    async def open(self, path: Path) -> ViewerResponse:
        metadata = {"backend": "system_viewer", "path": str(path)}
        if not path.exists():
            return ViewerResponse(status="recoverable_error", error_type="missing_file", metadata=metadata)

        if self.platform.startswith("win"):
            try:
                os.startfile(str(path))  # type: ignore[attr-defined]
            except OSError as e:
                return ViewerResponse(status="recoverable_error", error_type="launch_failed",
                                      metadata={**metadata, "error": str(e)})
            return ViewerResponse(status="success", metadata=metadata)

        command = opener_command(self.platform)
        if command is None:
            return ViewerResponse(status="recoverable_error", error_type="no_opener", metadata=metadata)

        try:
            # stdio detached: stdout carries the MCP transport
            await asyncio.create_subprocess_exec(
                *command, str(path),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning("Could not launch %s: %s", command[0], e)
            return ViewerResponse(status="recoverable_error", error_type="launch_failed",
                                  metadata={**metadata, "error": str(e)})
        return ViewerResponse(status="success", metadata={**metadata, "command": command[0]})
