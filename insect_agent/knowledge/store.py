"""
Read-only knowledge lookups used when escalating to the secondary model.

Two static resources are involved:
- the knowledge base (enhanced_visual_knowledge.json), keyed by class index,
  each entry holding a display label and a free-text visual description;
- the class index (subset_class_to_idx.json), mapping a classifier label to
  the class index the knowledge base and the prompt vocabulary use.

Both arrive as loosely-typed JSON. Shape problems are resolved here, once,
so the prompt builder and the selector only ever see typed values.
"""

import json
import logging
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

logger = logging.getLogger("InsectAgent.Knowledge")


@dataclass(frozen=True)
class KnowledgeRecord:
    label: Optional[str] = None
    visual_description: Optional[str] = None


def _as_text(value) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class KnowledgeStore(Mapping[str, KnowledgeRecord]):
    """Immutable mapping from candidate key to KnowledgeRecord."""

    def __init__(self, records: Optional[Mapping[str, KnowledgeRecord]] = None):
        self._records: Dict[str, KnowledgeRecord] = dict(records or {})

    @classmethod
    def from_mapping(cls, raw: Any) -> "KnowledgeStore":
        """
        Build a store from parsed JSON.

        Accepts {key: {"label": str, "visual_knowledge": str}}. The
        "visual_description" spelling is accepted as well. Entries that are
        not objects, or fields that are not non-empty strings, are kept as
        empty fields so the prompt falls back to its default wording.
        """
        records = {}
        if not isinstance(raw, Mapping):
            logger.warning(f"Knowledge base is not an object ({type(raw).__name__}); using empty store")
            return cls()

        for key, entry in raw.items():
            if not isinstance(entry, Mapping):
                logger.debug(f"Knowledge entry {key!r} is not an object; skipping fields")
                records[str(key)] = KnowledgeRecord()
                continue
            description = entry.get("visual_knowledge")
            if description is None:
                description = entry.get("visual_description")
            records[str(key)] = KnowledgeRecord(
                label=_as_text(entry.get("label")),
                visual_description=_as_text(description),
            )
        return cls(records)

    def __getitem__(self, key: str) -> KnowledgeRecord:
        return self._records[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def label_for(self, key: str) -> str:
        record = self._records.get(key)
        if record is not None and record.label:
            return record.label
        return key


class ClassIndex(Mapping[str, str]):
    """Immutable mapping from classifier label to class index (as a string)."""

    def __init__(self, indices: Optional[Mapping[str, str]] = None):
        self._indices: Dict[str, str] = dict(indices or {})

    @classmethod
    def from_mapping(cls, raw: Any) -> "ClassIndex":
        indices = {}
        if not isinstance(raw, Mapping):
            logger.warning(f"Class index is not an object ({type(raw).__name__}); using empty index")
            return cls()

        for label, value in raw.items():
            index = _normalize_index(value)
            if index is None:
                logger.debug(f"Class index entry {label!r}={value!r} is not numeric; dropped")
                continue
            indices[str(label)] = index
        return cls(indices)

    def __getitem__(self, label: str) -> str:
        return self._indices[label]

    def __iter__(self) -> Iterator[str]:
        return iter(self._indices)

    def __len__(self) -> int:
        return len(self._indices)


def _normalize_index(value) -> Optional[str]:
    # bool is an Integral too
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Integral):
        return str(int(value))
    if isinstance(value, numbers.Real):
        return str(int(value)) if float(value).is_integer() else None
    if isinstance(value, str):
        try:
            return str(int(value.strip()))
        except ValueError:
            return None
    return None


def load_json(path) -> Dict[str, Any]:
    """Read a JSON object from disk; {} if the file is missing or unreadable."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning(f"JSON resource not found: {path}")
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read JSON resource {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"JSON resource {path} is not an object; ignoring")
        return {}
    return data
