"""
Infrastructure module exports.

Configuration and bootstrap for all service backends.
"""

from .config import InfraConfig, get_config, RemoteBackendType, ViewerBackendType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure

__all__ = [
    "InfraConfig",
    "get_config",
    "RemoteBackendType",
    "ViewerBackendType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
]
