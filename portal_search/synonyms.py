"""
Per-locale synonym tables and query expansion.

Tables are plain JSON data (``data/synonyms/<locale>.json``, each a
mapping of term -> list of related terms) so they can be edited without
touching the scoring code.  Keys and values are normalized when a table
is loaded; a locale without a file simply has an empty table.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Mapping, Set

from loguru import logger

from .config import SYNONYMS_DIR
from .normalize import normalize_text

_EMPTY: Mapping[str, FrozenSet[str]] = {}


def _normalize_mapping(raw: Mapping[str, Iterable[str]]) -> Dict[str, FrozenSet[str]]:
    out: Dict[str, FrozenSet[str]] = {}
    for term, related in raw.items():
        key = normalize_text(term)
        if not key:
            continue
        values = {normalize_text(r) for r in related}
        values.discard("")
        out[key] = out.get(key, frozenset()) | frozenset(values)
    return out


class SynonymTable:
    """Static, locale-scoped synonym lookup with bidirectional expansion."""

    def __init__(self, tables: Mapping[str, Mapping[str, Iterable[str]]] | None = None):
        self._forward: Dict[str, Dict[str, FrozenSet[str]]] = {}
        self._inverse: Dict[str, Dict[str, Set[str]]] = {}
        for locale, raw in (tables or {}).items():
            forward = _normalize_mapping(raw)
            inverse: Dict[str, Set[str]] = {}
            for term, related in forward.items():
                for r in related:
                    inverse.setdefault(r, set()).add(term)
            self._forward[locale] = forward
            self._inverse[locale] = inverse

    @classmethod
    def from_directory(cls, directory: Path = SYNONYMS_DIR) -> "SynonymTable":
        tables: Dict[str, Dict[str, list]] = {}
        if directory.is_dir():
            for path in sorted(directory.glob("*.json")):
                with path.open("r", encoding="utf-8") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError(f"Synonym table {path} must be a JSON object")
                tables[path.stem] = data
        logger.info("Loaded synonym tables for locales: {}", sorted(tables))
        return cls(tables)

    @property
    def locales(self) -> Set[str]:
        return set(self._forward)

    def synonyms_for(self, locale: str) -> Mapping[str, FrozenSet[str]]:
        """Term -> related terms for ``locale``; empty for unknown locales."""
        return self._forward.get(locale, _EMPTY)

    def expand(self, locale: str, tokens: Iterable[str]) -> Set[str]:
        """
        Each token, plus every term it maps to, plus every term whose
        mapping contains it.
        """
        forward = self._forward.get(locale, {})
        inverse = self._inverse.get(locale, {})
        expanded: Set[str] = set()
        for token in tokens:
            if not token:
                continue
            expanded.add(token)
            expanded.update(forward.get(token, ()))
            expanded.update(inverse.get(token, ()))
        return expanded


@lru_cache(maxsize=1)
def default_synonym_table() -> SynonymTable:
    """The bundled tables, loaded once per process."""
    return SynonymTable.from_directory(SYNONYMS_DIR)
