"""
Tier 1 (primary classifier) interface.

The image classifier itself is external; anything with
predict(image) -> [(label, confidence), ...] plugs in. StaticClassifier
replays precomputed predictions, e.g. exported from a ResNet run.
"""

import json
import logging
import numbers
from typing import Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple

logger = logging.getLogger("InsectAgent.Primary")

Prediction = Tuple[str, float]


class PrimaryClassifier(Protocol):
    def predict(self, image) -> Sequence[Prediction]:
        ...


class StaticClassifier:
    """Returns the same predictions for every image, most confident first."""

    def __init__(self, predictions):
        pairs = list(predictions.items()) if isinstance(predictions, Mapping) else list(predictions)
        cleaned = to_confidence_map(pairs)
        self.predictions: List[Prediction] = sorted(cleaned.items(), key=lambda p: p[1], reverse=True)

    def predict(self, image) -> List[Prediction]:
        return list(self.predictions)


def to_confidence_map(predictions: Iterable[Prediction]) -> Dict[str, float]:
    """
    Ordered label -> confidence map. The first occurrence of a label wins;
    entries with a non-numeric confidence are skipped.
    """
    confidence_map = {}
    for label, confidence in predictions:
        if isinstance(confidence, bool) or not isinstance(confidence, numbers.Real):
            logger.debug(f"Skipping prediction {label!r} with confidence {confidence!r}")
            continue
        key = str(label)
        if key in confidence_map:
            continue
        confidence_map[key] = float(confidence)
    return confidence_map


def load_predictions(path) -> List[Prediction]:
    """
    Read classifier output from JSON. Accepted shapes:
      {"antlion": 60.0, "mantis": 55.0}
      [["antlion", 60.0], ["mantis", 55.0]]
      [{"label": "antlion", "confidence": 60.0}, ...]
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict):
        return [(str(label), conf) for label, conf in data.items()]

    if not isinstance(data, list):
        raise ValueError(f"Unsupported predictions format in {path}")

    predictions = []
    for item in data:
        if isinstance(item, dict) and "label" in item:
            predictions.append((str(item["label"]), item.get("confidence")))
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            predictions.append((str(item[0]), item[1]))
        else:
            logger.debug(f"Ignoring malformed prediction entry: {item!r}")
    return predictions


def format_candidates(pairs: Iterable[Prediction]) -> List[str]:
    return [f"{label} – {confidence:.1f}%" for label, confidence in pairs]
