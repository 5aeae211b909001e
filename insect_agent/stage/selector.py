from typing import List, Mapping, Tuple


def rank_candidates(confidence_map: Mapping[str, float], k: int) -> List[Tuple[str, float]]:
    """Top-k (identifier, confidence) pairs, most confident first. Ties keep input order."""
    if k <= 0:
        return []
    ranked = sorted(confidence_map.items(), key=lambda item: item[1], reverse=True)
    return ranked[:k]


def select_top_k(confidence_map: Mapping[str, float], k: int, class_index: Mapping[str, str]) -> List[str]:
    """
    Class indices of the top-k candidates, in ranking order.

    Candidates missing from the class index are dropped, so the result
    may be shorter than k.
    """
    selected = []
    for identifier, _ in rank_candidates(confidence_map, k):
        index = class_index.get(identifier)
        if index is None:
            continue
        selected.append(str(index))
    return selected
