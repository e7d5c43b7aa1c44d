"""
Infrastructure configuration system.

Environment-based backend selection with sensible defaults.
Every remote-facing knob (timeouts, retry budgets, poll ceiling) is read here
so the pipeline itself stays free of environment lookups.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

from generation import EverArtRemoteClient, RemoteClient, StubRemoteClient
from generation.everart import DEFAULT_BASE_URL
from forge.pipeline import PipelineSettings
from forge.retry import RetryPolicy
from services.viewer import StubViewerBackend, SystemViewerBackend, ViewerBackend


RemoteBackendType = Literal["everart", "stub"]
ViewerBackendType = Literal["system", "stub"]

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_STORAGE_DIR = PROJECT_ROOT / "images"


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # Remote provider
    remote_backend: RemoteBackendType
    everart_api_key: str
    everart_base_url: str
    request_timeout_s: float

    # Retry / polling
    retry_max_attempts: int
    retry_initial_delay_s: float
    retry_backoff_multiplier: float
    retry_max_wait_s: float
    poll_max_attempts: int
    poll_interval_s: float

    # Output
    storage_dir: Path
    image_width: int
    image_height: int

    # Viewer
    viewer_backend: ViewerBackendType
    open_in_viewer: bool

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Defaults:
        - 3 attempts, 1 s initial delay, doubling, Retry-After capped at 120 s
        - 30 polls, 3 s apart
        - 30 s per-request timeout
        - 1024x1024 output
        """
        return cls(
            remote_backend=os.getenv("REMOTE_BACKEND", "everart"),  # type: ignore
            everart_api_key=api_key if api_key is not None else os.getenv("EVERART_API_KEY", ""),
            everart_base_url=os.getenv("EVERART_BASE_URL", DEFAULT_BASE_URL),
            request_timeout_s=float(os.getenv("REQUEST_TIMEOUT_S", "30")),

            retry_max_attempts=int(os.getenv("RETRY_MAX_ATTEMPTS", "3")),
            retry_initial_delay_s=float(os.getenv("RETRY_INITIAL_DELAY_S", "1.0")),
            retry_backoff_multiplier=float(os.getenv("RETRY_BACKOFF_MULTIPLIER", "2.0")),
            retry_max_wait_s=float(os.getenv("RETRY_MAX_WAIT_S", "120")),
            poll_max_attempts=int(os.getenv("POLL_MAX_ATTEMPTS", "30")),
            poll_interval_s=float(os.getenv("POLL_INTERVAL_S", "3.0")),

            storage_dir=Path(os.getenv("IMAGE_STORAGE_DIR", str(DEFAULT_STORAGE_DIR))).expanduser(),
            image_width=int(os.getenv("IMAGE_WIDTH", "1024")),
            image_height=int(os.getenv("IMAGE_HEIGHT", "1024")),

            viewer_backend=os.getenv("VIEWER_BACKEND", "system"),  # type: ignore
            open_in_viewer=_flag("OPEN_IN_VIEWER", "true"),
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            initial_delay_s=self.retry_initial_delay_s,
            backoff_multiplier=self.retry_backoff_multiplier,
            max_retry_after_s=self.retry_max_wait_s,
        )

    def pipeline_settings(self) -> PipelineSettings:
        return PipelineSettings(
            submit_policy=self.retry_policy(),
            poll_max_attempts=self.poll_max_attempts,
            poll_interval_s=self.poll_interval_s,
            image_width=self.image_width,
            image_height=self.image_height,
            open_in_viewer=self.open_in_viewer,
        )

    def create_remote_client(self) -> RemoteClient:
        """Create the generation provider client based on configuration."""
        if self.remote_backend == "stub":
            return StubRemoteClient()
        # Default to EverArt; raises ValueError without a key
        return EverArtRemoteClient(
            api_key=self.everart_api_key,
            base_url=self.everart_base_url,
            timeout=self.request_timeout_s,
            max_retry_after_s=self.retry_max_wait_s,
        )

    def create_viewer(self) -> ViewerBackend:
        """Create viewer backend instance based on configuration."""
        if self.viewer_backend == "stub":
            return StubViewerBackend()
        return SystemViewerBackend()


def get_config() -> InfraConfig:
    """Get infrastructure configuration from the current environment."""
    return InfraConfig.from_env()
