"""
Two-tier insect classification cascade.

Tier 1 is the fast image classifier, whose output arrives here as a
confidence map. When its best candidate is not confident enough, Tier 2
(a vision-language model) is asked to pick among the top-K candidates,
with a prompt enriched by the knowledge base. The VLM answer is then
reconciled back onto a primary candidate.

Usage:
    orchestrator = CascadeOrchestrator(get_vlm(), knowledge_store, class_index, tau=70.0)
    result = await orchestrator.classify(image, {"antlion": 60.0, "mantis": 55.0})
    print(result.final_identifier)
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from insect_agent.config import DEFAULT_TAU, DEFAULT_TOP_K, SECONDARY_TIMEOUT_S
from insect_agent.errors import SecondaryModelError
from insect_agent.knowledge.store import ClassIndex, KnowledgeStore
from insect_agent.llm.prompt_builder import build_prompt
from insect_agent.stage.gate import decide
from insect_agent.stage.reconcile import reconcile
from insect_agent.stage.selector import rank_candidates, select_top_k

logger = logging.getLogger("InsectAgent.Cascade")


@dataclass(frozen=True)
class CascadeResult:
    used_secondary_model: bool
    primary_top_k: Tuple[Tuple[str, float], ...]
    final_identifier: str
    secondary_raw_text: Optional[str] = None
    tau: Optional[float] = None
    prompt: Optional[str] = None
    error: Optional[SecondaryModelError] = None

    @property
    def fell_back(self) -> bool:
        """True when the VLM was tried but failed."""
        return self.error is not None

    def to_dict(self):
        return {
            "used_secondary_model": self.used_secondary_model,
            "primary_top_k": [[identifier, confidence] for identifier, confidence in self.primary_top_k],
            "final_identifier": self.final_identifier,
            "secondary_raw_text": self.secondary_raw_text,
            "tau": self.tau,
            "error": str(self.error) if self.error else None,
        }


async def _generate(secondary_model, prompt, image, timeout):
    """Calls the secondary model, converting every failure into SecondaryModelError."""
    try:
        ensure_initialized = getattr(secondary_model, "ensure_initialized", None)
        if ensure_initialized is not None:
            await ensure_initialized()

        pending = secondary_model.generate(prompt, image)
        if inspect.isawaitable(pending):
            if timeout is not None and timeout > 0:
                text = await asyncio.wait_for(pending, timeout=timeout)
            else:
                text = await pending
        else:
            text = pending
    except SecondaryModelError:
        raise
    except asyncio.TimeoutError as e:
        raise SecondaryModelError(f"Secondary model timed out after {timeout}s", cause=e) from e
    except Exception as e:
        raise SecondaryModelError(f"Secondary model failed: {e}", cause=e) from e

    if not isinstance(text, str):
        raise SecondaryModelError(f"Secondary model returned {type(text).__name__}, expected text")
    return text


async def classify(
    image: Any,
    confidence_map: Mapping[str, float],
    k: int,
    class_index: Mapping[str, str],
    knowledge_store: Mapping,
    tau: float,
    secondary_model,
    timeout: Optional[float] = None,
) -> CascadeResult:
    """
    Runs one classification request through the cascade.

    Raises EmptyInputError if confidence_map is empty. A failing secondary
    model never raises: the primary top candidate is returned and the
    error is attached to the result.
    """
    # Snapshot the request inputs; later changes by the caller do not leak in
    confidence_map = dict(confidence_map)
    tau = float(tau)

    # Tier 1
    decision = decide(confidence_map, tau)
    top_k = tuple(rank_candidates(confidence_map, k))

    if decision.skip_secondary:
        logger.debug(f"Primary confidence {decision.top_confidence} > tau {tau}; no VLM fallback")
        return CascadeResult(
            used_secondary_model=False,
            primary_top_k=top_k,
            final_identifier=decision.top_identifier,
            tau=tau,
        )

    # Tier 2
    logger.info(f"Primary confidence {decision.top_confidence} <= tau {tau}; asking VLM")
    top_k_identifiers = [identifier for identifier, _ in top_k]
    candidates = select_top_k(confidence_map, k, class_index)
    if not candidates:
        logger.warning("None of the top-K candidates has a class index; prompt lists no candidates")

    prompt = build_prompt(candidates, knowledge_store)

    # What the prompt showed for each identifier, for matching the answer
    display_labels = {}
    for identifier in top_k_identifiers:
        index = class_index.get(identifier)
        if index is None:
            continue
        record = knowledge_store.get(str(index))
        label = getattr(record, "label", None)
        if label:
            display_labels[identifier] = label

    try:
        raw_text = await _generate(secondary_model, prompt, image, timeout)
    except SecondaryModelError as e:
        logger.warning(f"{e}; falling back to primary top candidate {decision.top_identifier}")
        return CascadeResult(
            used_secondary_model=True,
            primary_top_k=top_k,
            final_identifier=decision.top_identifier,
            secondary_raw_text=f"Error: {e}",
            tau=tau,
            prompt=prompt,
            error=e,
        )

    final = reconcile(raw_text, top_k_identifiers, fallback=decision.top_identifier,
                      display_labels=display_labels)
    logger.info(f"VLM answer reconciled to {final}")
    return CascadeResult(
        used_secondary_model=True,
        primary_top_k=top_k,
        final_identifier=final,
        secondary_raw_text=raw_text,
        tau=tau,
        prompt=prompt,
    )


class CascadeOrchestrator:
    """
    Owns the tunable threshold and the static resources for a session.

    update_tau() affects the next request only; a request in flight keeps
    the tau it started with.
    """

    def __init__(
        self,
        secondary_model,
        knowledge_store: Optional[KnowledgeStore] = None,
        class_index: Optional[ClassIndex] = None,
        tau: float = DEFAULT_TAU,
        top_k: int = DEFAULT_TOP_K,
        timeout: Optional[float] = SECONDARY_TIMEOUT_S,
    ):
        self.secondary_model = secondary_model
        self.knowledge_store = knowledge_store if knowledge_store is not None else KnowledgeStore()
        self.class_index = class_index if class_index is not None else ClassIndex()
        self.top_k = top_k
        self.timeout = timeout
        self._tau = float(tau)

    @property
    def tau(self) -> float:
        return self._tau

    def update_tau(self, new_tau: float):
        self._tau = float(new_tau)
        logger.debug(f"tau set to {self._tau}")

    async def classify(self, image, confidence_map: Mapping[str, float], k: Optional[int] = None,
                       tau: Optional[float] = None) -> CascadeResult:
        return await classify(
            image,
            confidence_map,
            k=self.top_k if k is None else k,
            class_index=self.class_index,
            knowledge_store=self.knowledge_store,
            tau=self._tau if tau is None else tau,
            secondary_model=self.secondary_model,
            timeout=self.timeout,
        )
