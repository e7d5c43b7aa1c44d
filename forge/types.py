from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from generation.models import DEFAULT_MODEL_ID


class ImageFormat(str, Enum):
    VECTOR = "vector"
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def suffix(self) -> str:
        """Default file suffix, with leading dot."""
        return _SUFFIXES[self][0]

    @property
    def suffixes(self) -> Tuple[str, ...]:
        """Every suffix accepted as matching this format."""
        return _SUFFIXES[self]

    @property
    def mime_type(self) -> str:
        return _MIME_TYPES[self]

    @property
    def is_raster(self) -> bool:
        return self is not ImageFormat.VECTOR

    @classmethod
    def parse(cls, value: str) -> Optional["ImageFormat"]:
        """Resolve a user-supplied format name (aliases allowed); None if unsupported."""
        key = value.strip().lower().lstrip(".")
        return _ALIASES.get(key)


_SUFFIXES = {
    ImageFormat.VECTOR: (".svg",),
    ImageFormat.PNG: (".png",),
    ImageFormat.JPEG: (".jpg", ".jpeg"),
    ImageFormat.WEBP: (".webp",),
}

_MIME_TYPES = {
    ImageFormat.VECTOR: "image/svg+xml",
    ImageFormat.PNG: "image/png",
    ImageFormat.JPEG: "image/jpeg",
    ImageFormat.WEBP: "image/webp",
}

_ALIASES = {
    "vector": ImageFormat.VECTOR,
    "svg": ImageFormat.VECTOR,
    "png": ImageFormat.PNG,
    "jpeg": ImageFormat.JPEG,
    "jpg": ImageFormat.JPEG,
    "webp": ImageFormat.WEBP,
}

SUPPORTED_FORMAT_NAMES = tuple(_ALIASES)


def mime_type_for(filename: str) -> str:
    """MIME type from a file name's suffix."""
    suffix = Path(filename).suffix.lower()
    for fmt in ImageFormat:
        if suffix in fmt.suffixes:
            return fmt.mime_type
    return "application/octet-stream"


class GenerationRequest(BaseModel):
    """Validated shape of a generate_image tool call; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    prompt: str = Field(..., description="Text description of desired image")
    model: str = Field(default=DEFAULT_MODEL_ID, description="Model id, optionally '<id>:<label>'")
    format: Optional[str] = Field(default=None, description="svg/vector, png, jpg/jpeg, webp")
    image_count: int = Field(default=1, description="Number of images to generate (1-10)")
    output_path: Optional[str] = None
    web_project_path: Optional[str] = None
    project_type: Optional[str] = None
    asset_path: Optional[str] = None


@dataclass(frozen=True)
class NormalizedRequest:
    prompt: str
    model_id: str
    format: ImageFormat
    count: int = 1
    output_path: Optional[str] = None
    web_project_path: Optional[str] = None
    project_type: Optional[str] = None
    asset_path: Optional[str] = None


@dataclass
class ResolvedArtifact:
    data: bytes
    source_format: Optional[ImageFormat] = None
    content_type: Optional[str] = None
    url: Optional[str] = None


class PipelineState(str, Enum):
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    POLLING = "polling"
    FETCHING = "fetching"
    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationResult:
    model_id: str
    model_name: str
    prompt: str
    format: ImageFormat
    paths: List[Path] = field(default_factory=list)
    web_relative_path: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def path(self) -> Path:
        return self.paths[0]
