"""
Stored-image catalog.

The storage directory is flat and file names are the only index; there is
no manifest. A missing storage directory reads as empty.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from generation.types import ErrorKind, GenerationFailure, Outcome

from .types import mime_type_for

logger = logging.getLogger(__name__)

IMAGE_FILE_RE = re.compile(r"\.(svg|png|jpe?g|webp)$", re.IGNORECASE)
MAX_SUGGESTIONS = 3


@dataclass
class StoredImage:
    filename: str
    path: Path
    mime_type: str
    data: Optional[bytes] = None


@dataclass
class ImageLookup:
    """Result of resolving a stored file name."""

    found: bool
    path: Optional[Path] = None
    suggestions: List[str] = field(default_factory=list)


def suggest(query: str, filenames: List[str], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Names sharing a substring with the query, in either direction."""
    q = query.lower()
    matches = []
    for name in filenames:
        lowered = name.lower()
        tail = lowered.rsplit("_", 1)[-1]
        if q in lowered or lowered in q or (tail and tail in q):
            matches.append(name)
        if len(matches) >= limit:
            break
    return matches


class ImageStore:
    def __init__(self, storage_dir: Path):
        self.storage_dir = Path(storage_dir)

    def list_images(self) -> Outcome[List[str]]:
        """Image file names in the storage directory, sorted."""
        try:
            entries = list(self.storage_dir.iterdir())
        except FileNotFoundError:
            return Outcome.success([])
        except OSError as e:
            logger.error("Failed to list %s: %s", self.storage_dir, e)
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.STORAGE,
                message=f"Failed to list stored images: {e.strerror or e}",
                details={"path": str(self.storage_dir)},
            ))
        return Outcome.success(sorted(
            entry.name for entry in entries
            if entry.is_file() and IMAGE_FILE_RE.search(entry.name)
        ))

    @staticmethod
    def grouped(filenames: List[str]) -> Dict[str, List[str]]:
        """File names grouped by lower-case extension (without dot)."""
        groups: Dict[str, List[str]] = {}
        for name in filenames:
            groups.setdefault(Path(name).suffix[1:].lower(), []).append(name)
        return groups

    def _safe_name(self, filename: str) -> Optional[GenerationFailure]:
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            return GenerationFailure(
                kind=ErrorKind.VALIDATION,
                message=f"Invalid filename: {filename!r}. Use a bare file name from list_images.",
            )
        return None

    def lookup(self, filename: str) -> Outcome[ImageLookup]:
        invalid = self._safe_name(filename)
        if invalid is not None:
            return Outcome.failure(invalid)
        path = self.storage_dir / filename
        if path.is_file():
            return Outcome.success(ImageLookup(found=True, path=path.absolute()))
        listed = self.list_images()
        if not listed.ok:
            return Outcome.failure(listed.error)
        return Outcome.success(ImageLookup(found=False, suggestions=suggest(filename, listed.value)))

    def read(self, filename: str) -> Outcome[StoredImage]:
        found = self.lookup(filename)
        if not found.ok:
            return Outcome.failure(found.error)
        if not found.value.found:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.VALIDATION,
                message=f"Image not found: {filename}. Please check if the file exists in the storage directory.",
                details={"suggestions": found.value.suggestions} if found.value.suggestions else None,
            ))
        path = found.value.path
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.STORAGE,
                message=f"Failed to read image: {e.strerror or e}",
                details={"path": str(path)},
            ))
        return Outcome.success(StoredImage(filename=filename, path=path,
                                           mime_type=mime_type_for(filename), data=data))
