"""Fuzzy matching of region names using RapidFuzz."""
from typing import List, Tuple

from rapidfuzz import fuzz, process
from rapidfuzz.utils import default_process

from regionfinder.core.config import FUZZY_THRESHOLD
from regionfinder.core.normalization import normalize_name


def fuzzy_match(
    query: str,
    choices: List[str],
    threshold: float = FUZZY_THRESHOLD,
    limit: int = 5
) -> List[Tuple[str, float, int]]:
    """
    Perform fuzzy matching between query and choices.

    Query and choices are compared in normalized form, so Arabic and Persian
    spellings of the same letter score as equal. Token sort ratio and WRatio
    are combined, keeping the best score per choice.

    Args:
        query: Query string to match
        choices: List of candidate strings
        threshold: Minimum similarity score (0-1)
        limit: Maximum number of results to return

    Returns:
        List of tuples (matched_string, score, index) sorted by score descending
    """
    normalized_query = normalize_name(query).casefold()
    if not normalized_query or not choices:
        return []

    normalized_choices = [normalize_name(c).casefold() for c in choices]
    cutoff = int(threshold * 100)

    combined = {}
    for scorer in (fuzz.token_sort_ratio, fuzz.WRatio):
        results = process.extract(
            normalized_query,
            normalized_choices,
            scorer=scorer,
            limit=limit,
            score_cutoff=cutoff,
            processor=default_process,
        )
        for _, score, idx in results:
            score_normalized = score / 100.0

            # Short prefixes ("Ab") should not outrank full names
            choice_len = len(normalized_choices[idx])
            query_len = len(normalized_query)
            if normalized_query != normalized_choices[idx] and normalized_query in normalized_choices[idx]:
                if min(query_len, choice_len) / max(query_len, choice_len) < 0.5:
                    score_normalized *= 0.8

            if idx not in combined or combined[idx][1] < score_normalized:
                combined[idx] = (choices[idx], score_normalized, idx)

    ranked = sorted(combined.values(), key=lambda x: (-x[1], x[2]))
    return [r for r in ranked if r[1] >= threshold][:limit]
