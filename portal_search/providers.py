"""
Content providers: where calculators, articles and standards come from.

The search core only ever calls ``get_all(locale)`` on three providers,
one per content kind.  Two implementations ship here:

* :class:`LocalContentProvider` reads ``<kind>.json`` files from the
  content directory (the default, ``PORTAL_DATA_SOURCE=local``).
* :class:`HttpContentProvider` asks a content API for
  ``GET <base>/<kind>?locale=<code>`` (``PORTAL_DATA_SOURCE=api``).

Both return validated item models and raise :class:`ContentProviderError`
on any I/O or format problem; nothing is retried here.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

import httpx
from loguru import logger
from pydantic import ValidationError

from .config import (
    CONTENT_API_URL,
    CONTENT_DIR,
    DATA_SOURCE,
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_BYTES,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
)
from .models import CONTENT_ITEM_ADAPTER, CalculatorItem, ContentItem, DocumentType

COLLECTION_NAMES = {
    DocumentType.CALCULATOR: "calculators",
    DocumentType.ARTICLE: "articles",
    DocumentType.STANDARD: "standards",
}


class ContentProviderError(RuntimeError):
    """A content provider could not deliver items for a locale."""


class ContentProvider(Protocol):
    kind: DocumentType

    async def get_all(self, locale: str) -> Sequence[ContentItem]:
        ...


def parse_items(kind: DocumentType, records: Any, source: str) -> List[ContentItem]:
    """Validate raw records into item models of ``kind``."""
    if not isinstance(records, list):
        raise ContentProviderError(f"{source}: expected a JSON array, got {type(records).__name__}")
    items: List[ContentItem] = []
    for idx, record in enumerate(records):
        if not isinstance(record, dict):
            raise ContentProviderError(f"{source}: record {idx} is not an object")
        try:
            items.append(CONTENT_ITEM_ADAPTER.validate_python({**record, "kind": kind.value}))
        except ValidationError as e:
            raise ContentProviderError(f"{source}: invalid record {idx}: {e}") from e
    return items


def _drop_disabled(items: List[ContentItem]) -> List[ContentItem]:
    enabled = [i for i in items if not (isinstance(i, CalculatorItem) and not i.is_enabled)]
    if len(enabled) != len(items):
        logger.info("Skipped {} disabled calculators", len(items) - len(enabled))
    return enabled


# ---------------------------
# Local JSON files
# ---------------------------

class LocalContentProvider:
    """Reads one JSON array per content kind and filters it by locale."""

    def __init__(self, kind: DocumentType, content_dir: Path = CONTENT_DIR):
        self.kind = kind
        self.path = Path(content_dir) / f"{COLLECTION_NAMES[kind]}.json"

    def _load(self) -> List[ContentItem]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ContentProviderError(f"Cannot read {self.path}: {e}") from e
        return parse_items(self.kind, records, str(self.path))

    async def get_all(self, locale: str) -> List[ContentItem]:
        items = await asyncio.to_thread(self._load)
        items = [i for i in items if i.locale == locale]
        return _drop_disabled(items)


# ---------------------------
# Remote content API
# ---------------------------

def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": HTTP_USER_AGENT},
        follow_redirects=True,
        timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        trust_env=False,
    )


class HttpContentProvider:
    """
    Fetches items from a content API.

    An ``httpx.AsyncClient`` may be injected (and is then owned by the
    caller); otherwise a short-lived client is opened per request.
    """

    def __init__(
        self,
        kind: DocumentType,
        base_url: str = CONTENT_API_URL,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not base_url:
            raise ValueError("HttpContentProvider needs a base URL (PORTAL_CONTENT_API_URL)")
        self.kind = kind
        self.url = f"{base_url.rstrip('/')}/{COLLECTION_NAMES[kind]}"
        self._client = client

    async def _fetch(self, client: httpx.AsyncClient, locale: str) -> Any:
        logger.info("Fetching {} for locale={} from {}", COLLECTION_NAMES[self.kind], locale, self.url)
        r = await client.get(self.url, params={"locale": locale})
        if r.status_code >= 400:
            raise ContentProviderError(f"HTTP {r.status_code} for {self.url}")
        if len(r.content) > HTTP_MAX_BYTES:
            raise ContentProviderError(
                f"Response too large ({len(r.content)} bytes) for {self.url}"
            )
        try:
            return r.json()
        except ValueError as e:
            raise ContentProviderError(f"Invalid JSON from {self.url}: {e}") from e

    async def get_all(self, locale: str) -> List[ContentItem]:
        try:
            if self._client is not None:
                records = await self._fetch(self._client, locale)
            else:
                async with _http_client() as client:
                    records = await self._fetch(client, locale)
        except httpx.HTTPError as e:
            raise ContentProviderError(f"Request to {self.url} failed: {e}") from e
        items = parse_items(self.kind, records, self.url)
        return _drop_disabled(items)


# ---------------------------
# Wiring
# ---------------------------

@dataclass(frozen=True)
class ContentProviders:
    calculators: ContentProvider
    articles: ContentProvider
    standards: ContentProvider


def providers_from_config(
    source: str = DATA_SOURCE,
    content_dir: Path = CONTENT_DIR,
    api_url: str = CONTENT_API_URL,
) -> ContentProviders:
    """Build the provider trio for the configured data source."""
    if source == "api":
        logger.info("Using content API at {}", api_url)
        return ContentProviders(
            calculators=HttpContentProvider(DocumentType.CALCULATOR, api_url),
            articles=HttpContentProvider(DocumentType.ARTICLE, api_url),
            standards=HttpContentProvider(DocumentType.STANDARD, api_url),
        )
    if source != "local":
        raise ValueError(f"Unknown data source {source!r}; expected 'local' or 'api'")
    logger.info("Using local content files under {}", content_dir)
    return ContentProviders(
        calculators=LocalContentProvider(DocumentType.CALCULATOR, content_dir),
        articles=LocalContentProvider(DocumentType.ARTICLE, content_dir),
        standards=LocalContentProvider(DocumentType.STANDARD, content_dir),
    )
