"""
Format conversion and atomic persistence.

Vector artifacts are optimized as text and written verbatim; raster
artifacts are decoded with Pillow and re-encoded into the requested codec.
Either the destination holds the complete file or it does not exist.
"""

import asyncio
import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from PIL import Image, UnidentifiedImageError

from generation.types import ErrorKind, GenerationFailure, Outcome

from .svg_optimizer import SvgOptimizationError, SvgOptimizer
from .types import ImageFormat, ResolvedArtifact

logger = logging.getLogger(__name__)

RASTER_QUALITY = 90

_PIL_CODECS: Dict[ImageFormat, str] = {
    ImageFormat.PNG: "PNG",
    ImageFormat.JPEG: "JPEG",
    ImageFormat.WEBP: "WEBP",
}


class FormatError(Exception):
    """Encode/decode failure; converted to a FORMAT failure at the boundary."""


def default_file_mode() -> int:
    """Mode a plain open() would create files with under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write(destination: Path, data: bytes) -> None:
    """Write via a sibling temp file and os.replace()."""
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".part", dir=destination.parent
    )
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        # mkstemp creates 0600
        os.chmod(tmp_name, default_file_mode())
        os.replace(tmp_name, destination)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def encode_raster(data: bytes, fmt: ImageFormat, quality: int = RASTER_QUALITY) -> bytes:
    codec = _PIL_CODECS.get(fmt)
    if codec is None:
        raise FormatError(f"Unsupported raster format: {fmt.value}")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            if fmt is ImageFormat.JPEG and img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            elif fmt is not ImageFormat.JPEG and img.mode in ("P", "CMYK", "I;16"):
                img = img.convert("RGBA")
            buffer = io.BytesIO()
            if fmt is ImageFormat.PNG:
                img.save(buffer, codec, optimize=True)
            else:
                img.save(buffer, codec, quality=quality)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise FormatError(f"Image processing failed: {e}") from e
    return buffer.getvalue()


class FormatConverter:
    def __init__(self, optimizer: Optional[SvgOptimizer] = None, quality: int = RASTER_QUALITY):
        self.optimizer = optimizer or SvgOptimizer()
        self.quality = quality

    def encode(self, artifact: ResolvedArtifact, fmt: ImageFormat) -> bytes:
        """Produce the bytes to store. Raises FormatError."""
        if fmt is ImageFormat.VECTOR:
            try:
                text = artifact.data.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise FormatError(
                    f"Expected SVG text but received {artifact.source_format.value if artifact.source_format else 'binary'} data"
                ) from e
            try:
                return self.optimizer.optimize(text).encode("utf-8")
            except SvgOptimizationError as e:
                raise FormatError(str(e)) from e
        return encode_raster(artifact.data, fmt, self.quality)

    def _materialize_sync(self, artifact: ResolvedArtifact, fmt: ImageFormat, destination: Path) -> Outcome[Path]:
        try:
            payload = self.encode(artifact, fmt)
        except FormatError as e:
            logger.error("Conversion to %s failed: %s", fmt.value, e)
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.FORMAT,
                message=str(e),
                details={"format": fmt.value, "source_format": getattr(artifact.source_format, "value", None)},
            ))

        try:
            atomic_write(destination, payload)
        except OSError as e:
            logger.error("Failed to write %s: %s", destination, e)
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.STORAGE,
                message=f"Failed to save image: {e.strerror or e}",
                details={"path": str(destination), "error": repr(e)},
            ))

        logger.info("Saved %s (%d bytes)", destination, len(payload))
        return Outcome.success(destination)

    async def materialize(self, artifact: ResolvedArtifact, fmt: ImageFormat, destination: Path) -> Outcome[Path]:
        return await asyncio.to_thread(self._materialize_sync, artifact, fmt, destination)
