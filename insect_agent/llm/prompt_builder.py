from typing import Mapping, Sequence

from insect_agent.knowledge.store import KnowledgeRecord
from insect_agent.llm.prompts import (
    CANDIDATE_PROMPT_CLOSING,
    CANDIDATE_PROMPT_PREAMBLE,
    NO_KNOWLEDGE_TEXT,
)


def build_prompt(candidates: Sequence[str], knowledge_store: Mapping[str, KnowledgeRecord]) -> str:
    """
    Renders the disambiguation prompt for the secondary model.

    Candidates are listed 1-based, in the order given, each with its display
    label (or the raw key when unknown) and its visual knowledge.
    Output depends only on the arguments.
    """
    parts = [CANDIDATE_PROMPT_PREAMBLE]
    for i, candidate in enumerate(candidates, start=1):
        record = knowledge_store.get(candidate)
        if not isinstance(record, KnowledgeRecord):
            record = KnowledgeRecord()

        label = record.label or candidate
        knowledge = record.visual_description or NO_KNOWLEDGE_TEXT
        parts.append(f"{i}. {label}\n")
        parts.append(f"Knowledge: {knowledge}\n\n")

    parts.append(CANDIDATE_PROMPT_CLOSING)
    return "".join(parts)
