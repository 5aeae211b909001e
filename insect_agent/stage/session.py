"""
Classification session: primary classifier + cascade, one image at a time.

A new request supersedes the one in flight. The superseded task is
cancelled (which cancels its pending VLM call), and if it still manages to
finish, its result is dropped instead of overwriting the newer one.
"""

import asyncio
import logging
from typing import Optional

from insect_agent.stage.classify import CascadeOrchestrator, CascadeResult
from insect_agent.vision.primary import PrimaryClassifier, to_confidence_map

logger = logging.getLogger("InsectAgent.Session")


class ClassificationSession:

    def __init__(self, primary: PrimaryClassifier, orchestrator: CascadeOrchestrator):
        self.primary = primary
        self.orchestrator = orchestrator
        self._generation = 0
        self._latest: Optional[CascadeResult] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def latest(self) -> Optional[CascadeResult]:
        return self._latest

    def update_tau(self, new_tau: float):
        self.orchestrator.update_tau(new_tau)

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    async def classify_image(self, image) -> Optional[CascadeResult]:
        """
        Classify one image. Returns None if a newer request started
        before this one finished.
        """
        return await self._run(image, self._next_generation())

    async def _run(self, image, generation: int) -> Optional[CascadeResult]:
        predictions = await asyncio.to_thread(self.primary.predict, image)
        confidence_map = to_confidence_map(predictions)
        result = await self.orchestrator.classify(image, confidence_map)

        if generation != self._generation:
            logger.debug(f"Discarding stale result from request {generation} (current {self._generation})")
            return None

        self._latest = result
        return result

    def submit(self, image) -> asyncio.Task:
        """Start classifying `image`, cancelling any request still in flight."""
        if self._task is not None and not self._task.done():
            logger.info("New classification requested; cancelling the one in flight")
            self._task.cancel()
        self._task = asyncio.create_task(self._run(image, self._next_generation()))
        return self._task
