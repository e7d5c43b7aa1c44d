r"""
Generation pipeline.

State machine:

    VALIDATING -> SUBMITTING -> POLLING -> FETCHING -> CONVERTING -> DONE
         \____________\___________\__________\____________\--> FAILED

One pipeline instance is shared by every request; all per-request state
(job ids, attempt counters, paths) lives in the `run()` call frame.

Invariants:
- No network call before validation succeeds
- Submission and download each get an independent retry budget
- Polling is bounded by the poll-attempt ceiling
- Viewer failures never fail the request
- Never raises - all errors return Outcome(status="error")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from generation.base import TEXT_TO_IMAGE, RemoteClient
from generation.models import display_name, get_model
from generation.types import ErrorKind, GenerationFailure, Outcome, SubmitOptions
from services.viewer import ViewerBackend

from .converter import FormatConverter
from .fetcher import ArtifactFetcher
from .paths import PathResolver
from .retry import RetryExecutor, RetryPolicy
from .types import GenerationRequest, GenerationResult, ImageFormat, NormalizedRequest, PipelineState
from .validator import check_compatibility, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineSettings:
    submit_policy: RetryPolicy = field(default_factory=RetryPolicy)
    poll_max_attempts: int = 30
    poll_interval_s: float = 3.0
    image_width: int = 1024
    image_height: int = 1024
    open_in_viewer: bool = True


def web_relative_path(base: Optional[str], path: Path) -> Optional[str]:
    """'/public/images/x.png' when path lies under base, else None."""
    if not base:
        return None
    try:
        relative = path.relative_to(Path(base).expanduser().absolute())
    except ValueError:
        return None
    return "/" + relative.as_posix()


class GenerationPipeline:
    def __init__(
        self,
        client: RemoteClient,
        fetcher: ArtifactFetcher,
        converter: FormatConverter,
        resolver: PathResolver,
        executor: RetryExecutor,
        viewer: Optional[ViewerBackend] = None,
        settings: PipelineSettings = PipelineSettings(),
    ):
        self.client = client
        self.fetcher = fetcher
        self.converter = converter
        self.resolver = resolver
        self.executor = executor
        self.viewer = viewer
        self.settings = settings

    @staticmethod
    def _discard(paths: List[Path]) -> List[str]:
        """Remove files from earlier jobs of a failed run; returns those that stayed."""
        left_behind = []
        for path in paths:
            try:
                path.unlink()
                logger.info("Removed %s from the failed run", path)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Could not remove %s: %s", path, e)
                left_behind.append(str(path))
        return left_behind

    @classmethod
    def _fail(
        cls,
        state: PipelineState,
        failure: GenerationFailure,
        written: Optional[List[Path]] = None,
    ) -> Outcome[GenerationResult]:
        logger.error("Pipeline failed in %s: %s", state.value, failure.describe())
        details = dict(failure.details or {})
        details.setdefault("stage", state.value)
        # A run either stores every requested image or none of them
        if written:
            left_behind = cls._discard(written)
            if left_behind:
                details["left_behind"] = left_behind
        failure.details = details
        return Outcome.failure(failure)

    def submit_options(self, request: NormalizedRequest) -> SubmitOptions:
        descriptor = get_model(request.model_id)
        flags = {}
        if request.format is ImageFormat.VECTOR and descriptor is not None and descriptor.vector_capable:
            flags["variant"] = "vector"
        return SubmitOptions(
            count=request.count,
            height=self.settings.image_height,
            width=self.settings.image_width,
            extra_model_flags=flags,
        )

    async def run(self, request: GenerationRequest) -> Outcome[GenerationResult]:
        state = PipelineState.VALIDATING
        validated = validate(request)
        if not validated.ok:
            return self._fail(state, validated.error)
        normalized = validated.value

        state = PipelineState.SUBMITTING
        logger.debug("-> %s", state.value)
        submitted = await self.executor.run(
            lambda: self.client.submit(
                normalized.model_id,
                normalized.prompt,
                TEXT_TO_IMAGE,
                self.submit_options(normalized),
            ),
            self.settings.submit_policy,
            label="Generation submit",
        )
        if not submitted.ok:
            return self._fail(state, submitted.error)

        jobs = submitted.value
        if len(jobs) != normalized.count:
            logger.warning("Requested %d images, provider returned %d jobs", normalized.count, len(jobs))

        result = GenerationResult(
            model_id=normalized.model_id,
            model_name=display_name(normalized.model_id),
            prompt=normalized.prompt,
            format=normalized.format,
        )

        for index, job in enumerate(jobs):
            state = PipelineState.POLLING
            logger.debug("-> %s (job %s)", state.value, job.job_id)
            completed = await self.client.poll(
                job.job_id,
                max_attempts=self.settings.poll_max_attempts,
                interval_s=self.settings.poll_interval_s,
            )
            if not completed.ok:
                return self._fail(state, completed.error, written=result.paths)
            if not completed.value.image_url:
                return self._fail(state, GenerationFailure(
                    kind=ErrorKind.API,
                    message="No image URL in the completed generation",
                    details={"job_id": job.job_id},
                ), written=result.paths)

            state = PipelineState.FETCHING
            logger.debug("-> %s (job %s)", state.value, job.job_id)
            fetched = await self.fetcher.fetch(completed.value.image_url)
            if not fetched.ok:
                return self._fail(state, fetched.error, written=result.paths)

            state = PipelineState.CONVERTING
            logger.debug("-> %s (job %s)", state.value, job.job_id)
            incompatible = check_compatibility(normalized.model_id, normalized.format)
            if incompatible is not None:
                return self._fail(state, incompatible, written=result.paths)
            destination = self.resolver.resolve(normalized, index=index)
            if not destination.ok:
                return self._fail(state, destination.error, written=result.paths)
            stored = await self.converter.materialize(fetched.value, normalized.format, destination.value)
            if not stored.ok:
                return self._fail(state, stored.error, written=result.paths)
            result.paths.append(stored.value)

        if not result.paths:
            return self._fail(state, GenerationFailure(
                kind=ErrorKind.API,
                message="Generation produced no images",
            ))

        result.web_relative_path = web_relative_path(normalized.web_project_path, result.path)
        await self._open_in_viewer(result)
        logger.debug("-> %s", PipelineState.DONE.value)
        return Outcome.success(result)

    async def _open_in_viewer(self, result: GenerationResult) -> None:
        if self.viewer is None or not self.settings.open_in_viewer:
            return
        try:
            response = await self.viewer.open(result.path)
        except Exception as e:
            logger.warning("Could not open the image in default viewer: %s", e)
            result.warnings.append(f"Could not open the image in the default viewer: {e}")
            return
        if response.status != "success":
            logger.warning("Could not open the image in default viewer: %s", response.error_type)
            result.warnings.append(f"Could not open the image in the default viewer ({response.error_type})")
