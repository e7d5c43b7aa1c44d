"""
Test suite for infrastructure configuration and bootstrap.

Verifies:
- Defaults for retries, polling, timeouts and output size
- Environment overrides are honoured
- Factories create the configured backends
- Bootstrap wires one pipeline over shared collaborators
"""

from pathlib import Path

import pytest

from config import Config
from forge import GenerationPipeline, ImageStore
from generation import EverArtRemoteClient, StubRemoteClient
from infra import InfraBootstrap, InfraConfig
from infra.config import DEFAULT_STORAGE_DIR
from services.viewer import StubViewerBackend, SystemViewerBackend

ENV_KEYS = [
    "REMOTE_BACKEND", "EVERART_BASE_URL", "REQUEST_TIMEOUT_S", "RETRY_MAX_ATTEMPTS",
    "RETRY_INITIAL_DELAY_S", "RETRY_BACKOFF_MULTIPLIER", "RETRY_MAX_WAIT_S", "POLL_MAX_ATTEMPTS",
    "POLL_INTERVAL_S", "IMAGE_STORAGE_DIR", "IMAGE_WIDTH", "IMAGE_HEIGHT",
    "VIEWER_BACKEND", "OPEN_IN_VIEWER",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


class TestInfraConfig:
    """Test infrastructure configuration."""

    def test_config_from_env_defaults(self):
        """Verify defaults."""
        config = InfraConfig.from_env(api_key="k")

        assert config.remote_backend == "everart"
        assert config.everart_base_url == "https://api.everart.ai/v1"
        assert config.request_timeout_s == 30.0
        assert config.retry_max_attempts == 3
        assert config.retry_initial_delay_s == 1.0
        assert config.retry_backoff_multiplier == 2.0
        assert config.retry_max_wait_s == 120.0
        assert config.poll_max_attempts == 30
        assert config.poll_interval_s == 3.0
        assert config.image_width == 1024
        assert config.image_height == 1024
        assert config.storage_dir == DEFAULT_STORAGE_DIR
        assert config.viewer_backend == "system"
        assert config.open_in_viewer is True

    def test_config_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("IMAGE_STORAGE_DIR", str(tmp_path / "out"))
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("POLL_INTERVAL_S", "0.5")
        monkeypatch.setenv("OPEN_IN_VIEWER", "false")

        config = InfraConfig.from_env(api_key="k")

        assert config.storage_dir == tmp_path / "out"
        assert config.retry_max_attempts == 5
        assert config.poll_interval_s == 0.5
        assert config.open_in_viewer is False

    def test_retry_policy_and_settings(self):
        config = InfraConfig.from_env(api_key="k")
        policy = config.retry_policy()
        settings = config.pipeline_settings()

        assert policy.max_attempts == 3
        assert policy.initial_delay_s == 1.0
        assert settings.submit_policy == policy
        assert settings.poll_max_attempts == 30

    def test_creates_everart_client(self):
        config = InfraConfig.from_env(api_key="k")
        assert isinstance(config.create_remote_client(), EverArtRemoteClient)

    def test_retry_after_cap_reaches_client_and_policy(self, monkeypatch):
        monkeypatch.setenv("RETRY_MAX_WAIT_S", "30")
        config = InfraConfig.from_env(api_key="k")

        assert config.create_remote_client().max_retry_after_s == 30.0
        assert config.retry_policy().max_retry_after_s == 30.0

    def test_everart_client_requires_key(self):
        config = InfraConfig.from_env(api_key="")
        with pytest.raises(ValueError):
            config.create_remote_client()

    def test_creates_stub_client(self):
        config = InfraConfig.from_env(api_key="")
        config.remote_backend = "stub"  # type: ignore
        assert isinstance(config.create_remote_client(), StubRemoteClient)

    def test_creates_viewers(self):
        config = InfraConfig.from_env(api_key="k")
        assert isinstance(config.create_viewer(), SystemViewerBackend)
        config.viewer_backend = "stub"  # type: ignore
        assert isinstance(config.create_viewer(), StubViewerBackend)


class TestInfraBootstrap:
    """Test infrastructure bootstrap."""

    def test_bootstrap_with_stub_backends(self, monkeypatch, tmp_path):
        monkeypatch.setenv("REMOTE_BACKEND", "stub")
        monkeypatch.setenv("VIEWER_BACKEND", "stub")
        monkeypatch.setenv("IMAGE_STORAGE_DIR", str(tmp_path))

        infra = InfraBootstrap(InfraConfig.from_env(api_key=""))

        assert isinstance(infra.get_pipeline(), GenerationPipeline)
        assert isinstance(infra.get_store(), ImageStore)
        assert isinstance(infra.get_viewer(), StubViewerBackend)
        assert infra.get_pipeline().client is infra.remote_client
        assert infra.get_store().storage_dir == Path(tmp_path)

    def test_bootstrap_accepts_injected_collaborators(self, tmp_path):
        config = InfraConfig.from_env(api_key="k")
        client = StubRemoteClient()
        viewer = StubViewerBackend()

        infra = InfraBootstrap(config, remote_client=client, viewer=viewer)

        assert infra.get_pipeline().client is client
        assert infra.get_pipeline().viewer is viewer


class TestConfig:
    def test_validate_requires_api_key(self, monkeypatch):
        monkeypatch.setattr(Config, "EVERART_API_KEY", "")
        assert Config.validate() is False

    def test_validate_with_key(self, monkeypatch):
        monkeypatch.setattr(Config, "EVERART_API_KEY", "key")
        assert Config.validate() is True
