"""
Image Forge tool boundary.

Translates MCP tool arguments into pipeline/storage calls and pipeline
outcomes into user-facing text. This is the only layer that catches
arbitrary exceptions: an unexpected bug becomes an `unknown` error
response instead of taking the server down.

Enforces:
- Tools return typed ToolResponse values, never raise
- Error text always starts with "Error [<kind>]:"
- Viewer problems are warnings, never errors
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ValidationError

from generation.types import ErrorKind, GenerationFailure
from forge import GenerationPipeline, GenerationRequest, ImageStore
from forge.types import GenerationResult, ImageFormat
from services.viewer import ViewerBackend

logger = logging.getLogger(__name__)

PREVIEW_MAX_BYTES = 1024 * 1024
RECENT_IMAGE_COUNT = 5


class ImagePreview(BaseModel):
    """Inline image attached to a tool response."""

    data: bytes
    format: str  # png | jpeg | webp


class ToolResponse(BaseModel):
    """
    Result from tool execution.

    Invariants:
    - is_error ∈ {true, false}
    - error_kind only present if is_error=true
    - text is always non-empty
    """

    is_error: bool = False
    error_kind: Optional[str] = None
    text: str
    data: Dict[str, Any] = {}
    preview: Optional[ImagePreview] = None
    execution_time_ms: int = 0


def format_error(failure: GenerationFailure) -> str:
    """'Error [<kind>]: <message>' followed by any details."""
    lines = [f"Error [{failure.kind.value}]: {failure.message}"]
    if failure.exhausted and failure.attempts:
        lines.append(f"Gave up after {failure.attempts} attempts.")
    if failure.cause is not None and failure.cause.message != failure.message:
        lines.append(f"Last error: {failure.cause.message}")
    for key, value in (failure.details or {}).items():
        if key == "suggestions":
            continue
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


def error_response(failure: GenerationFailure, started: float) -> ToolResponse:
    return ToolResponse(
        is_error=True,
        error_kind=failure.kind.value,
        text=format_error(failure),
        data={"details": failure.details or {}},
        execution_time_ms=int((time.time() - started) * 1000),
    )


def _validation_message(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        problems.append(f"{location}: {err.get('msg')}")
    return "Invalid arguments - " + "; ".join(problems)


def success_text(result: GenerationResult) -> str:
    lines = [
        "Image generated successfully!",
        "Generation details:",
        f"- Model: {result.model_id} ({result.model_name})",
        f"- Prompt: \"{result.prompt}\"",
        f"- Format: {result.format.suffix[1:].upper()}",
    ]
    if len(result.paths) == 1:
        lines.append(f"- Saved to: {result.path}")
    else:
        lines.append(f"- Saved {len(result.paths)} images:")
        lines.extend(f"  - {path}" for path in result.paths)
    if result.web_relative_path:
        lines.append(f"- Web project path: {result.web_relative_path}")
    for warning in result.warnings:
        lines.append(f"Note: {warning}")
    lines.append("")
    lines.append(f"View the image at: {result.path.as_uri()}")
    return "\n".join(lines)


def load_preview(path: Path, fmt: ImageFormat) -> Optional[ImagePreview]:
    """Raster files under 1 MiB; None otherwise or if the file is unreadable."""
    if not fmt.is_raster:
        return None
    try:
        if path.stat().st_size > PREVIEW_MAX_BYTES:
            return None
        return ImagePreview(data=path.read_bytes(), format=fmt.value)
    except OSError as e:
        logger.warning("Skipping inline preview for %s: %s", path, e)
        return None


class ImageForgeTools:
    """The three tools exposed over MCP, plus stored-image reads for resources."""

    def __init__(
        self,
        pipeline: GenerationPipeline,
        store: ImageStore,
        viewer: Optional[ViewerBackend] = None,
    ):
        self.pipeline = pipeline
        self.store = store
        self.viewer = viewer

    async def generate_image(self, **arguments: Any) -> ToolResponse:
        started = time.time()
        try:
            try:
                request = GenerationRequest.model_validate(arguments)
            except ValidationError as e:
                return error_response(GenerationFailure(
                    kind=ErrorKind.VALIDATION,
                    message=_validation_message(e),
                ), started)

            outcome = await self.pipeline.run(request)
            if not outcome.ok:
                return error_response(outcome.error, started)

            result = outcome.value
            return ToolResponse(
                text=success_text(result),
                data={
                    "model": result.model_id,
                    "format": result.format.value,
                    "paths": [str(p) for p in result.paths],
                    "web_relative_path": result.web_relative_path,
                },
                preview=load_preview(result.path, result.format),
                execution_time_ms=int((time.time() - started) * 1000),
            )
        except Exception as e:
            logger.exception("generate_image failed unexpectedly")
            return error_response(GenerationFailure(kind=ErrorKind.UNKNOWN, message=str(e)), started)

    async def list_images(self) -> ToolResponse:
        started = time.time()
        try:
            listed = self.store.list_images()
            if not listed.ok:
                return error_response(listed.error, started)
            files = listed.value
            if not files:
                return ToolResponse(text="No stored images found. Try generating some images first!")

            lines = [f"Found {len(files)} stored images:", ""]
            for ext, names in sorted(self.store.grouped(files).items()):
                lines.append(f"{ext.upper()} files ({len(names)}):")
                lines.extend(f"- {name}" for name in names)
                lines.append("")

            recent = list(reversed(files[-RECENT_IMAGE_COUNT:]))
            lines.append("Recent images:")
            lines.extend(
                f"- {(self.store.storage_dir / name).absolute().as_uri()}" for name in recent
            )
            return ToolResponse(
                text="\n".join(lines),
                data={"files": files, "recent": recent},
                execution_time_ms=int((time.time() - started) * 1000),
            )
        except Exception as e:
            logger.exception("list_images failed unexpectedly")
            return error_response(GenerationFailure(kind=ErrorKind.UNKNOWN, message=str(e)), started)

    async def view_image(self, filename: str) -> ToolResponse:
        started = time.time()
        try:
            found = self.store.lookup(filename)
            if not found.ok:
                return error_response(found.error, started)

            lookup = found.value
            if not lookup.found:
                failure = GenerationFailure(
                    kind=ErrorKind.VALIDATION,
                    message=f"Image not found: {filename}",
                    details={"suggestions": lookup.suggestions} if lookup.suggestions else None,
                )
                response = error_response(failure, started)
                if lookup.suggestions:
                    response.text += "\n\nDid you mean one of these?\n" + "\n".join(
                        f"- {name}" for name in lookup.suggestions
                    )
                return response

            lines = [f"Image: {filename}", f"Location: {lookup.path.as_uri()}"]
            opened = await self._open(lookup.path)
            if opened is None:
                lines.insert(0, "Opened image in the default viewer.")
            else:
                lines.append(f"Note: {opened}")
            return ToolResponse(
                text="\n".join(lines),
                data={"path": str(lookup.path), "opened": opened is None},
                execution_time_ms=int((time.time() - started) * 1000),
            )
        except Exception as e:
            logger.exception("view_image failed unexpectedly")
            return error_response(GenerationFailure(kind=ErrorKind.UNKNOWN, message=str(e)), started)

    async def _open(self, path: Path) -> Optional[str]:
        """Returns a warning string, or None if the viewer accepted the file."""
        if self.viewer is None:
            return "No image viewer configured"
        try:
            response = await self.viewer.open(path)
        except Exception as e:
            logger.warning("Viewer raised for %s: %s", path, e)
            return f"Could not open the image in the default viewer: {e}"
        if response.status != "success":
            return f"Could not open the image in the default viewer ({response.error_type})"
        return None

    def read_image(self, filename: str):
        """Stored bytes for resource reads; returns the store's Outcome."""
        return self.store.read(filename)
