"""
Configuration for the portal search service.

Plain module-level constants with environment overrides for the values
that change between deployments.  Scoring weights live here as a named
structure so the ranking heuristic can be audited in one place.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple

from pydantic import BaseModel, ConfigDict

# Paths
PACKAGE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_DIR.parent
DATA_DIR = PACKAGE_DIR / "data"
SYNONYMS_DIR = DATA_DIR / "synonyms"
CONTENT_DIR = Path(os.getenv("PORTAL_CONTENT_DIR", str(DATA_DIR / "content")))

# Locales
SUPPORTED_LOCALES: Tuple[str, ...] = ("en", "ru", "es", "tr", "hi")
DEFAULT_LOCALE = "en"

# Query / result policy
MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT_PER_TYPE = 20
MAX_LIMIT_PER_TYPE = 100

# Text processing
MAX_INPUT_CHARS = 20_000

# Content source: "local" (JSON files under CONTENT_DIR) or "api"
DATA_SOURCE = os.getenv("PORTAL_DATA_SOURCE", "local").strip().lower()
CONTENT_API_URL = os.getenv("PORTAL_CONTENT_API_URL", "").rstrip("/")

# HTTP hardening
HTTP_CONNECT_TIMEOUT = 3.0
HTTP_READ_TIMEOUT = 7.0
HTTP_MAX_BYTES = 5_000_000
HTTP_USER_AGENT = "portal-search/1.0"

# Logging
LOG_LEVEL = os.getenv("PORTAL_LOG_LEVEL", "INFO").upper()


class ScoreWeights(BaseModel):
    """Additive weights for the field-match scoring rules."""

    model_config = ConfigDict(frozen=True)

    # whole-query rules
    exact_title: int = 60
    title_phrase: int = 35
    description_phrase: int = 15
    # per expanded token
    token_title: int = 12
    token_description: int = 6
    token_category: int = 5
    token_body: int = 3
    token_tag: int = 4
    token_keyword: int = 2


SCORE_WEIGHTS = ScoreWeights()
