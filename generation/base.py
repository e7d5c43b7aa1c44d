from abc import ABC, abstractmethod
from typing import List, Optional

from .types import GenerationJob, Outcome, SubmitOptions

TEXT_TO_IMAGE = "txt2img"


class RemoteClient(ABC):
    """
    Abstract generation-provider boundary.
    Pipeline code must depend ONLY on this interface.
    """

    @abstractmethod
    async def submit(
        self,
        model_id: str,
        prompt: str,
        mode: str = TEXT_TO_IMAGE,
        options: Optional[SubmitOptions] = None,
    ) -> Outcome[List[GenerationJob]]:
        """Create a generation; one job handle per requested image."""
        raise NotImplementedError

    @abstractmethod
    async def poll(
        self,
        job_id: str,
        max_attempts: int = 30,
        interval_s: float = 3.0,
    ) -> Outcome[GenerationJob]:
        """Query job status until it reaches a terminal state or the ceiling is hit."""
        raise NotImplementedError
