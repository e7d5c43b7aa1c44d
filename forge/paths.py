"""
Destination path resolution.

Decision order (first match wins):
  1. explicit output_path     - suffix forced to the requested format
  2. web_project_path         - conventional asset directory per project type
  3. default storage dir      - timestamped file name
"""

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from generation.types import ErrorKind, GenerationFailure, Outcome

from .types import ImageFormat, NormalizedRequest

logger = logging.getLogger(__name__)

PROMPT_FRAGMENT_LEN = 20

# Frameworks that serve static assets out of public/
PUBLIC_DIR_PROJECTS = {"react", "vue", "angular", "next", "nuxt", "svelte"}
PUBLIC_ASSET_DIR = Path("public")
DEFAULT_PUBLIC_SUBDIR = "images"
DEFAULT_STATIC_SUBDIR = "assets/images"

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def sanitize_prompt(prompt: str, max_len: int = PROMPT_FRAGMENT_LEN) -> str:
    return _NON_ALNUM_RE.sub("_", prompt[:max_len]).lower()


def filesystem_timestamp(now: datetime) -> str:
    """ISO-8601 UTC timestamp with ':' and '.' replaced by '-'."""
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    stamp = stamp.replace("+00:00", "Z")
    return stamp.replace(":", "-").replace(".", "-")


def project_asset_dir(base: Path, project_type: Optional[str], asset_path: Optional[str]) -> Path:
    """Map a project type onto its conventional image directory."""
    if project_type:
        if project_type.strip().lower() in PUBLIC_DIR_PROJECTS:
            return base / PUBLIC_ASSET_DIR / (asset_path or DEFAULT_PUBLIC_SUBDIR)
        return base / (asset_path or DEFAULT_STATIC_SUBDIR)
    if asset_path:
        return base / asset_path
    return base


def _with_index(path: Path, index: int) -> Path:
    if index <= 0:
        return path
    return path.with_name(f"{path.stem}_{index + 1}{path.suffix}")


def _ensure_dir(directory: Path) -> Optional[GenerationFailure]:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create directory %s: %s", directory, e)
        return GenerationFailure(
            kind=ErrorKind.STORAGE,
            message=f"Failed to create directory {directory}: {e.strerror or e}",
            details={"path": str(directory), "error": repr(e)},
        )
    return None


def coerce_suffix(output_path: Path, fmt: ImageFormat) -> Path:
    """Append or override the suffix so it matches fmt."""
    suffix = output_path.suffix
    if not suffix:
        return output_path.with_name(output_path.name + fmt.suffix)
    if suffix.lower() not in fmt.suffixes:
        logger.warning(
            "File extension %s doesn't match specified format %s; using %s",
            suffix, fmt.value, fmt.suffix,
        )
        return output_path.with_suffix(fmt.suffix)
    return output_path


class PathResolver:
    """Computes where a generated image is written."""

    def __init__(self, storage_dir: Path, clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.storage_dir = Path(storage_dir)
        self._clock = clock

    def generated_filename(self, request: NormalizedRequest) -> str:
        return f"{sanitize_prompt(request.prompt)}_{request.model_id}{request.format.suffix}"

    def timestamped_filename(self, request: NormalizedRequest) -> str:
        return (
            f"{filesystem_timestamp(self._clock())}_{request.model_id}_"
            f"{sanitize_prompt(request.prompt)}{request.format.suffix}"
        )

    def resolve(self, request: NormalizedRequest, index: int = 0) -> Outcome[Path]:
        if request.output_path:
            target = coerce_suffix(Path(request.output_path).expanduser(), request.format)
            target = _with_index(target.absolute(), index)
            directory = target.parent
        elif request.web_project_path:
            directory = project_asset_dir(
                Path(request.web_project_path).expanduser(),
                request.project_type,
                request.asset_path,
            ).absolute()
            target = _with_index(directory / self.generated_filename(request), index)
        else:
            directory = self.storage_dir.absolute()
            target = _with_index(directory / self.timestamped_filename(request), index)

        failure = _ensure_dir(directory)
        if failure is not None:
            return Outcome.failure(failure)
        return Outcome.success(target)

    def ensure_storage_dir(self) -> Outcome[Path]:
        failure = _ensure_dir(self.storage_dir)
        if failure is not None:
            return Outcome.failure(failure)
        return Outcome.success(self.storage_dir)
