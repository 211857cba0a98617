"""
Command line runner for portal search.

Single query (prints the JSON response)::

    portal-search --query "mortgage" --locale ru --limit 5

Batch mode reads a CSV/XLSX with a ``query`` column (and optionally a
``locale`` column), runs every distinct (query, locale) pair once and
writes one row per hit::

    portal-search --in queries.csv --out artifacts/search_results.csv
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
from loguru import logger

from .config import DEFAULT_LIMIT_PER_TYPE, DEFAULT_LOCALE, LOG_LEVEL
from .models import SearchOptions, SearchResponse
from .providers import ContentProviderError
from .search import PortalSearch

RESULT_COLUMNS = ["query", "locale", "used_locale", "fallback", "type", "id", "url"]


def configure_logging(level: str = LOG_LEVEL) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level)


def load_queries(path: Path, default_locale: str = DEFAULT_LOCALE) -> List[Tuple[str, str]]:
    ext = path.suffix.lower()
    df = pd.read_excel(path) if ext in {".xlsx", ".xls"} else pd.read_csv(path)
    cols = {c.lower(): c for c in df.columns}
    qcol = cols.get("query")
    if not qcol:
        raise ValueError(f"Expected column 'query' in {path}. Found: {list(df.columns)}")
    queries = df[qcol].fillna("").astype(str).str.strip()
    lcol = cols.get("locale")
    if lcol:
        locales = df[lcol].fillna("").astype(str).str.strip().str.lower()
        locales = locales.where(locales != "", default_locale)
    else:
        locales = pd.Series([default_locale] * len(df), index=df.index)
    return list(zip(queries.tolist(), locales.tolist()))


def _dedup_preserve_order(seq: Sequence[Tuple[str, str]]) -> List[Tuple[str, str]]:
    seen = set()
    out: List[Tuple[str, str]] = []
    for s in seq:
        if s not in seen:
            seen.add(s)
            out.append(s)
    return out


def response_rows(query: str, locale: str, response: SearchResponse) -> List[Dict[str, object]]:
    rows: List[Dict[str, object]] = []
    for group in (response.calculators, response.articles, response.standards):
        for hit in group.items:
            rows.append(
                {
                    "query": query,
                    "locale": locale,
                    "used_locale": response.used_locale,
                    "fallback": response.fallback_locale_used,
                    "type": hit.type.value,
                    "id": hit.id,
                    "url": hit.url,
                }
            )
    return rows


async def run_batch(
    engine: PortalSearch,
    pairs: Sequence[Tuple[str, str]],
    limit: int = DEFAULT_LIMIT_PER_TYPE,
) -> pd.DataFrame:
    """Search every distinct pair once and fan the rows back out."""
    options = SearchOptions(limit_per_type=limit)
    unique_pairs = _dedup_preserve_order(pairs)
    logger.info("Unique (query, locale) pairs to run: {}", len(unique_pairs))

    results: Dict[Tuple[str, str], List[Dict[str, object]]] = {}
    for i, (q, loc) in enumerate(unique_pairs, 1):
        try:
            response = await engine.search_portal(q, loc, options)
            results[(q, loc)] = response_rows(q, loc, response)
        except ContentProviderError as e:
            logger.warning("{}/{} search failed for {!r} ({}): {}", i, len(unique_pairs), q, loc, e)
            results[(q, loc)] = []
        if i % 10 == 0 or i == len(unique_pairs):
            logger.info("Processed {}/{} unique queries", i, len(unique_pairs))

    rows: List[Dict[str, object]] = []
    for pair in pairs:
        rows.extend(results.get(pair, []))
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="portal-search")
    ap.add_argument("--query", "-q", type=str, default=None, help="run a single query and print JSON")
    ap.add_argument("--locale", "-l", type=str, default=DEFAULT_LOCALE)
    ap.add_argument("--limit", type=int, default=DEFAULT_LIMIT_PER_TYPE, help="max hits per content type")
    ap.add_argument("--in", dest="inp", type=str, default=None, help="CSV/XLSX with a 'query' column")
    ap.add_argument("--out", dest="out", type=str, default="artifacts/search_results.csv")
    ap.add_argument("--log-level", type=str, default=LOG_LEVEL)
    args = ap.parse_args(argv)

    if args.query is None and args.inp is None:
        ap.error("one of --query or --in is required")
    if args.limit < 0:
        ap.error("--limit must be >= 0")

    configure_logging(args.log_level.upper())
    engine = PortalSearch.from_config()

    if args.query is not None:
        options = SearchOptions(limit_per_type=args.limit)
        try:
            response = asyncio.run(engine.search_portal(args.query, args.locale, options))
        except ContentProviderError as e:
            logger.error("Search unavailable: {}", e)
            return 1
        print(response.model_dump_json(by_alias=True, indent=2))
        return 0

    pairs = load_queries(Path(args.inp), args.locale)
    logger.info("Loaded {} queries from {}", len(pairs), args.inp)
    df = asyncio.run(run_batch(engine, pairs, args.limit))
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    logger.info("Wrote {} rows to {}", len(df), out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
