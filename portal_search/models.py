"""
Pydantic schemas shared across the search service.

Raw content items arrive from the providers as loosely typed records;
they are validated here into one model per content kind (a tagged union
on ``kind``).  Search documents and the response models are immutable.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_LIMIT_PER_TYPE


class DocumentType(str, Enum):
    CALCULATOR = "calculator"
    ARTICLE = "article"
    STANDARD = "standard"


# ---------------------------
# Raw content items
# ---------------------------

class FaqItem(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    question: str = ""
    answer: str = ""


class _ContentItem(BaseModel):
    """Fields common to every content kind.

    Keywords are accepted either top-level or nested under
    ``meta.keywords``, which is where the content registries keep them.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: str
    title: str
    short_description: Optional[str] = None
    slug: str
    locale: str
    keywords: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _lift_meta_keywords(cls, data):
        if isinstance(data, dict) and not data.get("keywords"):
            meta = data.get("meta")
            if isinstance(meta, dict) and meta.get("keywords"):
                data = {**data, "keywords": meta["keywords"]}
        return data


class CalculatorItem(_ContentItem):
    kind: Literal["calculator"] = "calculator"
    long_description: Optional[str] = None
    content_locale: Optional[str] = None
    category: str = ""
    tags: List[str] = Field(default_factory=list)
    faq: List[FaqItem] = Field(default_factory=list)
    is_enabled: bool = True


class ArticleItem(_ContentItem):
    kind: Literal["article"] = "article"
    content_html: Optional[str] = None


class StandardItem(_ContentItem):
    kind: Literal["standard"] = "standard"
    long_description: Optional[str] = None
    country: str


ContentItem = Annotated[
    Union[CalculatorItem, ArticleItem, StandardItem],
    Field(discriminator="kind"),
]
CONTENT_ITEM_ADAPTER: TypeAdapter = TypeAdapter(ContentItem)


# ---------------------------
# Search documents
# ---------------------------

class NormalizedFields(BaseModel):
    """Canonical text of a document, computed once at build time."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    category: str = ""
    body: str = ""
    tags: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()


class SearchDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: DocumentType
    title: str
    description: str
    body: Optional[str] = None
    category: Optional[str] = None
    category_label: Optional[str] = None
    badge: Optional[str] = None
    tags: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    url: str
    locale: str
    content_locale: str
    normalized: NormalizedFields


# ---------------------------
# API schemas
# ---------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchOptions(_CamelModel):
    limit_per_type: int = Field(DEFAULT_LIMIT_PER_TYPE, ge=0)


class SearchHit(_CamelModel):
    id: str
    type: DocumentType
    title: str
    description: str
    url: str
    category: Optional[str] = None
    badge: Optional[str] = None
    is_foreign_locale: bool = False


class SearchGroup(_CamelModel):
    total: int = 0
    items: List[SearchHit] = Field(default_factory=list)


class SearchResponse(_CamelModel):
    calculators: SearchGroup
    articles: SearchGroup
    standards: SearchGroup
    fallback_locale_used: bool = False
    used_locale: str

    @classmethod
    def empty(cls, locale: str) -> "SearchResponse":
        return cls(
            calculators=SearchGroup(),
            articles=SearchGroup(),
            standards=SearchGroup(),
            fallback_locale_used=False,
            used_locale=locale,
        )

    @property
    def total(self) -> int:
        return self.calculators.total + self.articles.total + self.standards.total


class HealthResponse(BaseModel):
    status: str
