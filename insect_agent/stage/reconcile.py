from typing import Mapping, Optional, Sequence


def reconcile(
    secondary_text: str,
    top_k_identifiers: Sequence[str],
    fallback: Optional[str] = None,
    display_labels: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Maps free-form VLM text back onto one of the primary candidates.

    Candidates are tried in top-K order; the first one whose identifier (or
    display label, when the prompt showed a different name) appears in the
    text, case-insensitively, wins. Position inside the text does not matter.

    Falls back to `fallback`, or to the first top-K identifier, when nothing
    matches. Never raises on unmatched text.
    """
    text = (secondary_text or "").lower()
    display_labels = display_labels or {}

    for identifier in top_k_identifiers:
        names = [identifier]
        alias = display_labels.get(identifier)
        if alias and alias != identifier:
            names.append(alias)
        for name in names:
            needle = name.strip().lower()
            # An empty needle would match anything
            if needle and needle in text:
                return identifier

    if fallback is not None:
        return fallback
    if top_k_identifiers:
        return top_k_identifiers[0]
    return ""
