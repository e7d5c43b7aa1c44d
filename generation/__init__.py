"""
Generation provider boundary.

This package provides a clean abstraction over the remote image-generation
service, so the pipeline stays agnostic of the provider.

Supported backends:
- StubRemoteClient: Deterministic offline provider (default for CI/tests)
- EverArtRemoteClient: EverArt REST API

Example usage:
    from generation import StubRemoteClient, SubmitOptions

    client = StubRemoteClient()
    jobs = await client.submit("5000", "A landscape", options=SubmitOptions(count=1))
    job = await client.poll(jobs.value[0].job_id)
"""

from .types import (
    ErrorKind,
    GenerationFailure,
    GenerationJob,
    JobState,
    Outcome,
    SubmitOptions,
)
from .models import (
    DEFAULT_MODEL_ID,
    MODEL_REGISTRY,
    VECTOR_MODEL_ID,
    ModelDescriptor,
    display_name,
    get_model,
)
from .base import TEXT_TO_IMAGE, RemoteClient
from .stub import StubRemoteClient
from .everart import EverArtRemoteClient

__all__ = [
    "ErrorKind",
    "GenerationFailure",
    "GenerationJob",
    "JobState",
    "Outcome",
    "SubmitOptions",
    "DEFAULT_MODEL_ID",
    "MODEL_REGISTRY",
    "VECTOR_MODEL_ID",
    "ModelDescriptor",
    "display_name",
    "get_model",
    "TEXT_TO_IMAGE",
    "RemoteClient",
    "StubRemoteClient",
    "EverArtRemoteClient",
]
