"""
Generation-and-materialization core.

Validator -> RemoteClient submit/poll -> ArtifactFetcher -> FormatConverter,
with PathResolver choosing where the file lands. All components return
Outcome values; none raise across their public boundary.
"""

from .types import (
    GenerationRequest,
    GenerationResult,
    ImageFormat,
    NormalizedRequest,
    PipelineState,
    ResolvedArtifact,
)
from .validator import check_compatibility, validate
from .paths import PathResolver
from .retry import RetryExecutor, RetryPolicy
from .fetcher import ArtifactFetcher
from .svg_optimizer import SvgOptimizer
from .converter import FormatConverter
from .storage import ImageStore
from .pipeline import GenerationPipeline, PipelineSettings

__all__ = [
    "GenerationRequest",
    "GenerationResult",
    "ImageFormat",
    "NormalizedRequest",
    "PipelineState",
    "ResolvedArtifact",
    "check_compatibility",
    "validate",
    "PathResolver",
    "RetryExecutor",
    "RetryPolicy",
    "ArtifactFetcher",
    "SvgOptimizer",
    "FormatConverter",
    "ImageStore",
    "GenerationPipeline",
    "PipelineSettings",
]
