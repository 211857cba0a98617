"""
Build and cache normalized search documents per locale.

Each content kind has its own projection into :class:`SearchDocument`;
every text field is normalized once here so scoring never has to.  The
resulting collection is cached per locale for the life of the process,
and concurrent requests for a locale that is still being built share
that single build.
"""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from .config import DEFAULT_LOCALE
from .models import (
    ArticleItem,
    CalculatorItem,
    ContentItem,
    DocumentType,
    NormalizedFields,
    SearchDocument,
    StandardItem,
)
from .normalize import normalize_text, strip_html
from .providers import ContentProviders

Documents = Tuple[SearchDocument, ...]


# ---------------------------
# Projections
# ---------------------------

def build_localized_path(locale: str, path: str) -> str:
    """Prefix ``path`` with the locale, except for the default locale."""
    if not path.startswith("/"):
        path = f"/{path}"
    if locale == DEFAULT_LOCALE:
        return path
    return f"/{locale}{path}"


def resolve_standard_type(country: str) -> str:
    if country == "EU":
        return "Eurocode"
    if country == "ISO":
        return "ISO"
    return "National"


def _normalize_all(values: Iterable[str]) -> Tuple[str, ...]:
    return tuple(normalize_text(v) for v in values)


def calculator_document(item: CalculatorItem, locale: str) -> SearchDocument:
    description = item.short_description or item.long_description or ""
    faq_text = " ".join(q.question for q in item.faq)
    body = f"{item.long_description or ''} {faq_text}".strip()
    return SearchDocument(
        id=f"calculator-{item.id}-{item.locale}",
        type=DocumentType.CALCULATOR,
        title=item.title,
        description=description,
        body=body,
        category=item.category,
        category_label=item.category,
        badge=item.category or None,
        tags=tuple(item.tags),
        keywords=tuple(item.keywords),
        url=build_localized_path(locale, f"/calculators/{item.category}/{item.slug}"),
        locale=locale,
        content_locale=item.content_locale or item.locale,
        normalized=NormalizedFields(
            title=normalize_text(item.title),
            description=normalize_text(description),
            category=normalize_text(item.category),
            body=normalize_text(body),
            tags=_normalize_all(item.tags),
            keywords=_normalize_all(item.keywords),
        ),
    )


def article_document(item: ArticleItem, locale: str) -> SearchDocument:
    description = item.short_description or ""
    body = strip_html(item.content_html or "")
    return SearchDocument(
        id=f"article-{item.id}-{item.locale}",
        type=DocumentType.ARTICLE,
        title=item.title,
        description=description,
        body=body,
        badge="Learn",
        keywords=tuple(item.keywords),
        url=build_localized_path(locale, f"/learn/{item.slug}"),
        locale=locale,
        content_locale=item.locale,
        normalized=NormalizedFields(
            title=normalize_text(item.title),
            description=normalize_text(description),
            body=normalize_text(body),
            keywords=_normalize_all(item.keywords),
        ),
    )


def standard_document(item: StandardItem, locale: str) -> SearchDocument:
    description = item.short_description or ""
    body = item.long_description or ""
    standard_type = resolve_standard_type(item.country)
    return SearchDocument(
        id=f"standard-{item.id}-{item.locale}",
        type=DocumentType.STANDARD,
        title=item.title,
        description=description,
        body=body,
        category_label=standard_type,
        badge=standard_type,
        keywords=tuple(item.keywords),
        url=build_localized_path(locale, f"/standards/{item.country}/{item.slug}"),
        locale=locale,
        content_locale=item.locale,
        normalized=NormalizedFields(
            title=normalize_text(item.title),
            description=normalize_text(description),
            category=normalize_text(standard_type),
            body=normalize_text(body),
            keywords=_normalize_all(item.keywords),
        ),
    )


_PROJECTIONS: Dict[str, Callable[..., SearchDocument]] = {
    DocumentType.CALCULATOR.value: calculator_document,
    DocumentType.ARTICLE.value: article_document,
    DocumentType.STANDARD.value: standard_document,
}


def to_document(item: ContentItem, locale: str) -> SearchDocument:
    return _PROJECTIONS[item.kind](item, locale)


async def build_documents(locale: str, providers: ContentProviders) -> Documents:
    """
    Fetch all three kinds concurrently and project them, calculators
    first, then articles, then standards, each in provider order.

    Any provider failure fails the whole build.
    """
    calculators, articles, standards = await asyncio.gather(
        providers.calculators.get_all(locale),
        providers.articles.get_all(locale),
        providers.standards.get_all(locale),
    )
    docs: List[SearchDocument] = []
    for items in (calculators, articles, standards):
        docs.extend(to_document(item, locale) for item in items)
    logger.info(
        "Built {} search documents for locale={} (calculators={}, articles={}, standards={})",
        len(docs),
        locale,
        len(calculators),
        len(articles),
        len(standards),
    )
    return tuple(docs)


# ---------------------------
# Cache
# ---------------------------

class DocumentCache:
    """
    Per-locale memoized builds.

    The first request for a locale starts a task; every request that
    arrives before it finishes awaits the same task.  The task is
    shielded, so a caller going away never cancels a build other callers
    are waiting on.  Failed builds are evicted so the next request
    starts over.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, asyncio.Task] = {}

    def __contains__(self, locale: str) -> bool:
        return locale in self._entries

    @property
    def locales(self) -> List[str]:
        return list(self._entries)

    def _evict_failed(self, locale: str, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is not None:
            if self._entries.get(locale) is task:
                del self._entries[locale]
                logger.warning("Document build for locale={} failed; not cached", locale)

    async def get_or_build(
        self,
        locale: str,
        build: Callable[[str], Awaitable[Documents]],
    ) -> Documents:
        task = self._entries.get(locale)
        if task is not None and task.done():
            if not task.cancelled() and task.exception() is None:
                return task.result()
            self._entries.pop(locale, None)
            task = None
        if task is None:
            task = asyncio.ensure_future(build(locale))
            task.add_done_callback(partial(self._evict_failed, locale))
            self._entries[locale] = task
        return await asyncio.shield(task)

    def invalidate(self, locale: Optional[str] = None) -> None:
        """Forget one locale, or every locale when ``locale`` is None."""
        if locale is None:
            self._entries.clear()
        else:
            self._entries.pop(locale, None)


class DocumentBuilder:
    """Hands out the cached document collection for a locale."""

    def __init__(self, providers: ContentProviders, cache: Optional[DocumentCache] = None):
        self.providers = providers
        self.cache = cache if cache is not None else DocumentCache()

    async def _build(self, locale: str) -> Documents:
        logger.info("Building search documents for locale={}", locale)
        return await build_documents(locale, self.providers)

    async def get_documents(self, locale: str) -> Documents:
        return await self.cache.get_or_build(locale, self._build)
