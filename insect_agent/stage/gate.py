import logging
from dataclasses import dataclass
from typing import Mapping

from insect_agent.errors import EmptyInputError

logger = logging.getLogger("InsectAgent.Gate")


@dataclass(frozen=True)
class GateDecision:
    skip_secondary: bool
    top_identifier: str
    top_confidence: float


def decide(confidence_map: Mapping[str, float], tau: float) -> GateDecision:
    """
    Tier 1 gate. Picks the most confident primary candidate and decides
    whether the secondary model is needed.

    Ties go to the candidate listed first by the classifier.
    The secondary model is skipped only when confidence is strictly above tau.
    """
    if not confidence_map:
        raise EmptyInputError("Primary classifier returned no candidates")

    top_identifier, top_confidence = None, None
    for identifier, confidence in confidence_map.items():
        if top_confidence is None or confidence > top_confidence:
            top_identifier, top_confidence = identifier, confidence

    skip = float(top_confidence) > float(tau)
    logger.debug(f"Gate: top={top_identifier} ({top_confidence}) tau={tau} -> {'skip' if skip else 'escalate'}")
    return GateDecision(skip_secondary=skip, top_identifier=top_identifier, top_confidence=float(top_confidence))
