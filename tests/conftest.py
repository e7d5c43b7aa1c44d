"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to sys.path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from generation import StubRemoteClient  # noqa: E402
from forge import (  # noqa: E402
    ArtifactFetcher,
    FormatConverter,
    GenerationPipeline,
    ImageStore,
    PathResolver,
    PipelineSettings,
    RetryExecutor,
    RetryPolicy,
)
from services.viewer import StubViewerBackend  # noqa: E402


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "images"


@pytest.fixture
def stub_client():
    return StubRemoteClient()


@pytest.fixture
def stub_viewer():
    return StubViewerBackend()


@pytest.fixture
def pipeline(stub_client, stub_viewer, storage_dir, recording_sleep):
    """Full pipeline over the offline stub provider; no real sleeps."""
    executor = RetryExecutor(sleep=recording_sleep)
    policy = RetryPolicy(max_attempts=3, initial_delay_s=0.0)
    return GenerationPipeline(
        client=stub_client,
        fetcher=ArtifactFetcher(executor, policy=policy, timeout=1.0),
        converter=FormatConverter(),
        resolver=PathResolver(storage_dir),
        executor=executor,
        viewer=stub_viewer,
        settings=PipelineSettings(submit_policy=policy, poll_interval_s=0.0),
    )


@pytest.fixture
def store(storage_dir):
    return ImageStore(storage_dir)
