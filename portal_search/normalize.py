"""
Text normalization utilities used across the search service.

Every comparison the scorer makes happens between strings produced by
:func:`normalize_text`: lowercased, diacritics stripped, punctuation
collapsed to spaces.  Content is normalized once when documents are
built and queries once per request, so both sides always agree.
"""

from __future__ import annotations

import re
import unicodedata
from typing import List

from bs4 import BeautifulSoup
from loguru import logger

from .config import MAX_INPUT_CHARS


# ---------------------------
# Basic helpers
# ---------------------------

def clamp_text_length(text: str, max_chars: int = MAX_INPUT_CHARS) -> str:
    """Truncate raw query text to ``max_chars`` before it is normalized."""
    text = text if isinstance(text, str) else str(text)
    return text[:max_chars]


def normalize_whitespace(text: str) -> str:
    """
    Collapse all whitespace runs into a single space and strip edges.
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def strip_html(raw: str) -> str:
    """
    Strip HTML tags using BeautifulSoup and collapse the remaining
    whitespace.  If parsing fails, the input is returned unchanged to
    fail open rather than drop text.
    """
    if not raw:
        return ""
    # Fast path: if there's no '<', it's almost certainly not HTML
    if "<" not in raw:
        return raw

    try:
        soup = BeautifulSoup(raw, "lxml")
        return normalize_whitespace(soup.get_text(" ", strip=True))
    except Exception as e:
        logger.warning("HTML stripping failed, keeping raw markup: {}", e)
        return raw


# ---------------------------
# Search normalization & tokenization
# ---------------------------

# Combining diacritical marks left behind by NFD decomposition
_DIACRITICS_RE = re.compile(r"[\u0300-\u036f]")

# Latin letters and digits plus the Cyrillic and Devanagari blocks used
# by the supported locales; everything else becomes a separator.
_DISALLOWED_RE = re.compile(r"[^a-z0-9\u0400-\u04ff\u0900-\u097f\s-]")


def normalize_text(text: str | None) -> str:
    """
    Canonical form used for all matching.

    Lowercases, decomposes (NFD) and drops combining marks, replaces
    anything outside the allowed alphabet with a space, then collapses
    whitespace.  Applying it twice gives the same result as applying it
    once.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFD", str(text).lower())
    text = _DIACRITICS_RE.sub("", text)
    text = _DISALLOWED_RE.sub(" ", text)
    return normalize_whitespace(text)


def tokenize(text: str | None) -> List[str]:
    """
    Split normalized text on whitespace.  Never yields empty tokens.
    """
    normalized = normalize_text(text)
    if not normalized:
        return []
    return [t for t in normalized.split(" ") if t]
