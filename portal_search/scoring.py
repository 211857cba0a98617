"""
Weighted field-match scoring.

All rules are additive and independent: a document collects points for
every rule it satisfies.  Inputs are already normalized; nothing here
touches raw text.
"""

from __future__ import annotations

from typing import Iterable

from .config import SCORE_WEIGHTS, ScoreWeights
from .models import SearchDocument


def score_document(
    doc: SearchDocument,
    normalized_query: str,
    tokens: Iterable[str],
    weights: ScoreWeights = SCORE_WEIGHTS,
) -> int:
    """Relevance of ``doc`` for the query; 0 means "not a match"."""
    if not normalized_query:
        return 0

    n = doc.normalized
    score = 0

    if n.title == normalized_query:
        score += weights.exact_title
    if normalized_query in n.title:
        score += weights.title_phrase
    if normalized_query in n.description:
        score += weights.description_phrase

    for token in tokens:
        if not token:
            continue
        if token in n.title:
            score += weights.token_title
        if token in n.description:
            score += weights.token_description
        if n.category and token in n.category:
            score += weights.token_category
        if n.body and token in n.body:
            score += weights.token_body
        if any(token in tag for tag in n.tags):
            score += weights.token_tag
        if any(token in kw for kw in n.keywords):
            score += weights.token_keyword

    return score
