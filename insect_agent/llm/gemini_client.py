"""
Gemini vision-language model, used as Tier 2 of the cascade.

The model handle is created lazily on first use and shared by the whole
process. Creation is guarded so that concurrent first requests still
build exactly one GenerativeModel.

Usage:
    from insect_agent.llm.gemini_client import get_vlm

    vlm = get_vlm()
    await vlm.ensure_initialized()      # optional, generate() does it too
    answer = await vlm.generate(prompt, "bug.jpg")
"""

import asyncio
import logging
import os
from typing import Optional

import google.generativeai as genai

from insect_agent.config import GEMINI_MODEL
from insect_agent.errors import SecondaryModelError
from insect_agent.imaging.loader import to_pil

logger = logging.getLogger("InsectAgent.Gemini")


def get_gemini_client(model_name=GEMINI_MODEL, api_key=None):
    api_key = api_key or os.getenv("GEMINI_API_KEY")
    if not api_key:
        raise ValueError("Missing GEMINI_API_KEY environment variable.")
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


class GeminiVLM:
    """Secondary model capability: generate(prompt, image) -> text."""

    def __init__(self, model_name: str = GEMINI_MODEL, api_key: Optional[str] = None):
        self.model_name = model_name
        self.api_key = api_key
        self._model = None
        self._init_lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._model is not None

    async def ensure_initialized(self):
        """Create the GenerativeModel if it does not exist yet. Idempotent."""
        if self._model is not None:
            return
        async with self._init_lock:
            if self._model is not None:
                return
            logger.info(f"Initializing Gemini model {self.model_name} (first use)...")
            try:
                self._model = await asyncio.to_thread(get_gemini_client, self.model_name, self.api_key)
            except Exception as e:
                logger.error(f"Failed to initialize Gemini: {e}")
                raise SecondaryModelError(f"Gemini initialization failed: {e}", cause=e) from e
            logger.info("Gemini model ready")

    async def generate(self, prompt: str, image) -> str:
        await self.ensure_initialized()
        pil_img = await asyncio.to_thread(to_pil, image)

        response = await self._model.generate_content_async([prompt, pil_img])

        # .text raises ValueError when the candidate was blocked
        try:
            text = response.text
        except ValueError as e:
            raise SecondaryModelError(f"Gemini returned no text: {e}", cause=e) from e

        text = (text or "").strip()
        if not text:
            raise SecondaryModelError("Gemini returned an empty answer")
        return text


# ============== MODULE-LEVEL SINGLETON ==============

_vlm: Optional[GeminiVLM] = None


def get_vlm() -> GeminiVLM:
    """Get or create the process-wide Gemini VLM."""
    global _vlm
    if _vlm is None:
        _vlm = GeminiVLM()
    return _vlm
