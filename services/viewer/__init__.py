"""
Image viewer service exports.

Clean interface for the pipeline and tools to import viewer components.
"""

from .base import ViewerBackend, ViewerResponse, ViewerStatus
from .stub import StubViewerBackend
from .system import SystemViewerBackend

__all__ = [
    "ViewerBackend",
    "ViewerResponse",
    "ViewerStatus",
    "StubViewerBackend",
    "SystemViewerBackend",
]
