"""
Infrastructure initialization and bootstrap.

Builds every collaborator once at startup and hands them out explicitly;
nothing is read back from module-level state.
"""

import logging
from typing import Optional

from generation import RemoteClient
from forge import (
    ArtifactFetcher,
    FormatConverter,
    GenerationPipeline,
    ImageStore,
    PathResolver,
    RetryExecutor,
)
from services.viewer import ViewerBackend

from .config import InfraConfig, get_config

logger = logging.getLogger(__name__)


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    One instance per process, constructed by main() and passed down.
    """

    def __init__(
        self,
        config: Optional[InfraConfig] = None,
        remote_client: Optional[RemoteClient] = None,
        viewer: Optional[ViewerBackend] = None,
    ):
        """Initialize bootstrap with configuration (collaborators injectable for tests)."""
        self.config = config or get_config()
        self.remote_client = remote_client or self.config.create_remote_client()
        self.viewer = viewer or self.config.create_viewer()

        self.executor = RetryExecutor()
        self.resolver = PathResolver(self.config.storage_dir)
        self.store = ImageStore(self.config.storage_dir)
        self.fetcher = ArtifactFetcher(
            self.executor,
            policy=self.config.retry_policy(),
            timeout=self.config.request_timeout_s,
        )
        self.converter = FormatConverter()
        self.pipeline = GenerationPipeline(
            client=self.remote_client,
            fetcher=self.fetcher,
            converter=self.converter,
            resolver=self.resolver,
            executor=self.executor,
            viewer=self.viewer,
            settings=self.config.pipeline_settings(),
        )
        logger.info(
            "Infrastructure ready: remote=%s viewer=%s storage=%s",
            self.config.remote_backend, self.config.viewer_backend, self.config.storage_dir,
        )

    def get_pipeline(self) -> GenerationPipeline:
        """Get the generation pipeline."""
        return self.pipeline

    def get_store(self) -> ImageStore:
        """Get the stored-image catalog."""
        return self.store

    def get_viewer(self) -> ViewerBackend:
        """Get the viewer backend."""
        return self.viewer


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """Create the process-wide infrastructure."""
    return InfraBootstrap(config)
