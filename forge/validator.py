"""
Request validation.

Runs before any network call. Pure and side-effect free apart from logging;
every rejection is returned as Outcome(status="error") with
kind=VALIDATION, never raised.
"""

import logging
from typing import Optional

from generation.models import MODEL_REGISTRY, get_model
from generation.types import ErrorKind, GenerationFailure, Outcome

from .types import SUPPORTED_FORMAT_NAMES, GenerationRequest, ImageFormat, NormalizedRequest

logger = logging.getLogger(__name__)

MIN_IMAGE_COUNT = 1
MAX_IMAGE_COUNT = 10


def _invalid(message: str, **details) -> Outcome[NormalizedRequest]:
    return Outcome.failure(GenerationFailure(
        kind=ErrorKind.VALIDATION,
        message=message,
        details=details or None,
    ))


def parse_model_id(raw: str) -> str:
    """'8000:Recraft-Vector' -> '8000'. The label is not checked."""
    raw = raw.strip()
    if ":" in raw:
        bare = raw.split(":", 1)[0].strip()
        logger.info("Received combined model ID format: %s, using base ID: %s", raw, bare)
        return bare
    return raw


def default_format(model_id: str) -> ImageFormat:
    descriptor = get_model(model_id)
    if descriptor is not None and descriptor.vector_capable:
        return ImageFormat.VECTOR
    return ImageFormat.PNG


def check_compatibility(model_id: str, fmt: ImageFormat) -> Optional[GenerationFailure]:
    """Vector output is only legal for the vector-capable model."""
    if fmt is not ImageFormat.VECTOR:
        return None
    descriptor = get_model(model_id)
    if descriptor is not None and descriptor.vector_capable:
        return None
    vector_ids = [d.model_id for d in MODEL_REGISTRY.values() if d.vector_capable]
    return GenerationFailure(
        kind=ErrorKind.VALIDATION,
        message=(
            f"Format 'svg' is not compatible with model '{model_id}'. "
            f"SVG format is only available with model {', '.join(vector_ids)}."
        ),
        details={"model": model_id, "format": fmt.value},
    )


def validate(request: GenerationRequest) -> Outcome[NormalizedRequest]:
    """Check and normalize a generation request."""
    if not request.prompt or not request.prompt.strip():
        return _invalid("Prompt is required and must be a non-empty string.")

    if not MIN_IMAGE_COUNT <= request.image_count <= MAX_IMAGE_COUNT:
        return _invalid(
            f"image_count must be between {MIN_IMAGE_COUNT} and {MAX_IMAGE_COUNT}",
            image_count=request.image_count,
        )

    model_id = parse_model_id(request.model or "")
    if model_id not in MODEL_REGISTRY:
        return _invalid(
            f"Invalid model ID: {model_id}. Valid models are: {', '.join(MODEL_REGISTRY)}",
            model=model_id,
        )

    if request.format is None or not request.format.strip():
        fmt = default_format(model_id)
    else:
        fmt = ImageFormat.parse(request.format)
        if fmt is None:
            return _invalid(
                f"Unsupported format: {request.format}. "
                f"Supported formats are: {', '.join(SUPPORTED_FORMAT_NAMES)}",
                format=request.format,
            )

    incompatible = check_compatibility(model_id, fmt)
    if incompatible is not None:
        return Outcome.failure(incompatible)

    return Outcome.success(NormalizedRequest(
        prompt=request.prompt,
        model_id=model_id,
        format=fmt,
        count=request.image_count,
        output_path=request.output_path or None,
        web_project_path=request.web_project_path or None,
        project_type=request.project_type or None,
        asset_path=request.asset_path or None,
    ))
