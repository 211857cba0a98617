"""Shared fixtures: in-memory content providers that record their calls."""

import asyncio
from typing import Dict, List, Optional

import pytest

from portal_search.documents import DocumentBuilder
from portal_search.models import DocumentType
from portal_search.providers import ContentProviderError, ContentProviders, parse_items
from portal_search.search import PortalSearch
from portal_search.synonyms import SynonymTable


class MemoryProvider:
    """Serves canned records per locale and counts ``get_all`` calls."""

    def __init__(
        self,
        kind: DocumentType,
        records: Optional[Dict[str, List[dict]]] = None,
        delay: float = 0.0,
        failures: int = 0,
    ):
        self.kind = kind
        self.records = records or {}
        self.delay = delay
        self.failures = failures
        self.calls: List[str] = []

    async def get_all(self, locale: str):
        self.calls.append(locale)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.failures > 0:
            self.failures -= 1
            raise ContentProviderError(f"{self.kind.value} store unreachable")
        return parse_items(self.kind, self.records.get(locale, []), "memory")


def calculator(id, title, locale="en", **extra) -> dict:
    record = {
        "id": id,
        "title": title,
        "shortDescription": extra.pop("shortDescription", ""),
        "slug": extra.pop("slug", id),
        "category": extra.pop("category", "finance"),
        "locale": locale,
    }
    record.update(extra)
    return record


def article(id, title, locale="en", **extra) -> dict:
    record = {
        "id": id,
        "title": title,
        "shortDescription": extra.pop("shortDescription", ""),
        "slug": extra.pop("slug", id),
        "locale": locale,
    }
    record.update(extra)
    return record


def standard(id, title, locale="en", country="EU", **extra) -> dict:
    record = {
        "id": id,
        "title": title,
        "shortDescription": extra.pop("shortDescription", ""),
        "slug": extra.pop("slug", id),
        "locale": locale,
        "country": country,
    }
    record.update(extra)
    return record


def make_providers(calculators=None, articles=None, standards=None, **kwargs) -> ContentProviders:
    return ContentProviders(
        calculators=MemoryProvider(DocumentType.CALCULATOR, calculators, **kwargs),
        articles=MemoryProvider(DocumentType.ARTICLE, articles, **kwargs),
        standards=MemoryProvider(DocumentType.STANDARD, standards, **kwargs),
    )


def all_calls(providers: ContentProviders) -> List[str]:
    return (
        providers.calculators.calls
        + providers.articles.calls
        + providers.standards.calls
    )


@pytest.fixture
def portal_providers() -> ContentProviders:
    return make_providers(
        calculators={
            "en": [
                calculator(
                    "mortgage",
                    "Mortgage Calculator",
                    shortDescription="Estimate monthly mortgage payments.",
                    tags=["home"],
                ),
                calculator("bmi", "BMI Calculator", category="health"),
            ],
            "ru": [
                calculator("bmi", "Калькулятор ИМТ", locale="ru", category="health"),
                calculator(
                    "compound-interest",
                    "Compound Interest Calculator",
                    locale="ru",
                    contentLocale="en",
                ),
            ],
        },
        articles={
            "en": [
                article(
                    "how-to-calculate-loan-payment",
                    "How to Calculate Loan Payment",
                    contentHtml="<p>Use the <b>annuity</b> formula.</p>",
                    meta={"keywords": ["loan", "mortgage"]},
                ),
            ],
        },
        standards={
            "en": [standard("eurocode-2", "Eurocode 2: Design of concrete structures")],
            "ru": [standard("sp-20", "СП 20.13330: Нагрузки и воздействия", locale="ru", country="RU")],
        },
    )


@pytest.fixture
def synonyms() -> SynonymTable:
    return SynonymTable({"en": {"loan": ["mortgage"]}, "ru": {"кредит": ["ипотека"]}})


@pytest.fixture
def engine(portal_providers, synonyms) -> PortalSearch:
    return PortalSearch(DocumentBuilder(portal_providers), synonyms)
