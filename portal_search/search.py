"""
Federated portal search over calculators, articles and standards.

:class:`PortalSearch` is the public entry point.  For a query and a
locale it expands the query tokens with the locale's synonyms, scores
every cached document of the locale, and returns one ranked group per
content kind.  When nothing at all matches in a non-default locale the
whole search is repeated once against the default locale and the
response is flagged as a fallback.

Example::

    engine = PortalSearch.from_config()
    response = await engine.search_portal("mortgage", "ru")
    for hit in response.calculators.items:
        ...
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set, Tuple

from loguru import logger

from .config import DEFAULT_LOCALE, MIN_QUERY_LENGTH, SCORE_WEIGHTS, ScoreWeights
from .documents import DocumentBuilder
from .models import (
    DocumentType,
    SearchDocument,
    SearchGroup,
    SearchHit,
    SearchOptions,
    SearchResponse,
)
from .normalize import clamp_text_length, normalize_text, tokenize
from .providers import providers_from_config
from .scoring import score_document
from .synonyms import SynonymTable, default_synonym_table


def to_hit(doc: SearchDocument) -> SearchHit:
    return SearchHit(
        id=doc.id,
        type=doc.type,
        title=doc.title,
        description=doc.description,
        url=doc.url,
        category=doc.category_label or doc.category,
        badge=doc.badge,
        is_foreign_locale=doc.content_locale != doc.locale,
    )


def build_group(
    documents: Sequence[SearchDocument],
    doc_type: DocumentType,
    normalized_query: str,
    tokens: Set[str],
    limit: int,
    weights: ScoreWeights = SCORE_WEIGHTS,
) -> SearchGroup:
    """Score one kind, keep positive scores, rank them (stable)."""
    scored: List[Tuple[SearchDocument, int]] = []
    for doc in documents:
        if doc.type != doc_type:
            continue
        score = score_document(doc, normalized_query, tokens, weights)
        if score > 0:
            scored.append((doc, score))
    # sort() is stable, so equal scores keep provider order
    scored.sort(key=lambda pair: -pair[1])
    return SearchGroup(
        total=len(scored),
        items=[to_hit(doc) for doc, _ in scored[:limit]],
    )


class PortalSearch:
    def __init__(
        self,
        builder: DocumentBuilder,
        synonyms: Optional[SynonymTable] = None,
        default_locale: str = DEFAULT_LOCALE,
        weights: ScoreWeights = SCORE_WEIGHTS,
    ):
        self.builder = builder
        self.synonyms = synonyms if synonyms is not None else default_synonym_table()
        self.default_locale = default_locale
        self.weights = weights

    @classmethod
    def from_config(cls) -> "PortalSearch":
        """Engine wired to the configured content source and bundled synonyms."""
        return cls(DocumentBuilder(providers_from_config()), default_synonym_table())

    async def _search_locale(
        self,
        query: str,
        normalized_query: str,
        locale: str,
        limit: int,
    ) -> SearchResponse:
        tokens = self.synonyms.expand(locale, tokenize(query))
        documents = await self.builder.get_documents(locale)

        def group(doc_type: DocumentType) -> SearchGroup:
            return build_group(documents, doc_type, normalized_query, tokens, limit, self.weights)

        return SearchResponse(
            calculators=group(DocumentType.CALCULATOR),
            articles=group(DocumentType.ARTICLE),
            standards=group(DocumentType.STANDARD),
            fallback_locale_used=False,
            used_locale=locale,
        )

    async def search_portal(
        self,
        query: str,
        locale: str,
        options: Optional[SearchOptions] = None,
    ) -> SearchResponse:
        options = options or SearchOptions()
        query = clamp_text_length(query or "")
        normalized_query = normalize_text(query)
        if len(normalized_query) < MIN_QUERY_LENGTH:
            return SearchResponse.empty(locale)

        response = await self._search_locale(query, normalized_query, locale, options.limit_per_type)
        if response.total > 0 or locale == self.default_locale:
            return response

        logger.info(
            "No results for {!r} in locale={}; retrying in {}",
            normalized_query,
            locale,
            self.default_locale,
        )
        fallback = await self._search_locale(
            query, normalized_query, self.default_locale, options.limit_per_type
        )
        return fallback.model_copy(update={"fallback_locale_used": True})
