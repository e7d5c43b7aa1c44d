"""
Image viewer abstract interface.

Role: best-effort "open this file for the user" side effect.

Rules:
- Output-only (no state mutation)
- Optional (failure -> warning, never a pipeline failure)
- All failures are explicit and typed
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Literal, Optional


ViewerStatus = Literal["success", "recoverable_error"]


@dataclass
class ViewerResponse:
    """Result of an open request."""

    status: ViewerStatus
    error_type: Optional[str] = None  # no_opener | launch_failed | missing_file
    metadata: Optional[Dict[str, Any]] = None


class ViewerBackend(ABC):
    """
    Abstract viewer boundary.
    Pipeline and tool code must depend ONLY on this interface.
    """

    @abstractmethod
    async def open(self, path: Path) -> ViewerResponse:
        """
        Open a file in the platform's default viewer.

        Args:
            path: Absolute path of an existing file

        Returns:
            ViewerResponse with explicit status
        """
        raise NotImplementedError
