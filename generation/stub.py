import base64
import io
import itertools
from typing import Dict, List, Optional

from PIL import Image

from .base import TEXT_TO_IMAGE, RemoteClient
from .types import ErrorKind, GenerationFailure, GenerationJob, JobState, Outcome, SubmitOptions

_STUB_SVG = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<!-- stub render -->\n"
    '<svg xmlns="http://www.w3.org/2000/svg" width="64" height="64">'
    "<metadata>stub</metadata>"
    '<g><rect id="bg" x="0" y="0" width="64" height="64" fill="#1e90ff"/></g>'
    '<circle cx="32" cy="32" r="16" fill="#ffffff"/>'
    "</svg>"
)


def _stub_png() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (64, 64), (30, 144, 255)).save(buffer, "PNG")
    return buffer.getvalue()


def data_uri(data: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class StubRemoteClient(RemoteClient):
    """
    Deterministic offline provider for testing and development.

    Completed jobs point at data: URIs (an SVG when the vector variant was
    requested, a PNG otherwise), so the full pipeline runs without network.
    A prompt containing "fail" produces a FAILED job.
    """

    def __init__(self):
        self._jobs: Dict[str, GenerationJob] = {}
        self._ids = itertools.count(1)
        self.submissions: List[dict] = []

    async def submit(
        self,
        model_id: str,
        prompt: str,
        mode: str = TEXT_TO_IMAGE,
        options: Optional[SubmitOptions] = None,
    ) -> Outcome[List[GenerationJob]]:
        options = options or SubmitOptions()
        self.submissions.append({"model_id": model_id, "prompt": prompt, "mode": mode,
                                 "options": options})
        vector = options.extra_model_flags.get("variant") == "vector"

        jobs = []
        for _ in range(options.count):
            job_id = f"stub-{next(self._ids)}"
            if "fail" in prompt.lower():
                job = GenerationJob(job_id, model_id, JobState.FAILED, raw_status="FAILED",
                                    failure_reason="stub failure")
            elif vector:
                job = GenerationJob(job_id, model_id, JobState.COMPLETED, raw_status="SUCCEEDED",
                                    image_url=data_uri(_STUB_SVG.encode("utf-8"), "image/svg+xml"))
            else:
                job = GenerationJob(job_id, model_id, JobState.COMPLETED, raw_status="SUCCEEDED",
                                    image_url=data_uri(_stub_png(), "image/png"))
            self._jobs[job_id] = job
            jobs.append(GenerationJob(job_id, model_id, JobState.SUBMITTED, raw_status="STARTING"))
        return Outcome.success(jobs)

    async def poll(
        self,
        job_id: str,
        max_attempts: int = 30,
        interval_s: float = 3.0,
    ) -> Outcome[GenerationJob]:
        job = self._jobs.get(job_id)
        if job is None:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.API,
                message=f"Unknown generation id: {job_id}",
                status_code=404,
            ))
        if job.state == JobState.FAILED:
            return Outcome.failure(GenerationFailure(
                kind=ErrorKind.API,
                message=f"Generation {job_id} ended with status {job.raw_status}",
                details={"job_id": job_id, "status": job.raw_status, "reason": job.failure_reason},
            ))
        return Outcome.success(job)
