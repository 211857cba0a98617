"""Tests for the command line runner."""

import json

import pandas as pd
import pytest

from portal_search import cli
from portal_search.cli import RESULT_COLUMNS, load_queries, main, run_batch


@pytest.fixture
def patched_engine(monkeypatch, engine):
    monkeypatch.setattr(cli.PortalSearch, "from_config", classmethod(lambda cls: engine))
    return engine


class TestLoadQueries:
    def test_query_column_only(self, tmp_path) -> None:
        path = tmp_path / "q.csv"
        pd.DataFrame({"Query": ["mortgage", " loan "]}).to_csv(path, index=False)
        assert load_queries(path, "ru") == [("mortgage", "ru"), ("loan", "ru")]

    def test_locale_column_with_blanks(self, tmp_path) -> None:
        path = tmp_path / "q.csv"
        pd.DataFrame({"query": ["a", "b"], "locale": ["RU", None]}).to_csv(path, index=False)
        assert load_queries(path) == [("a", "ru"), ("b", "en")]

    def test_missing_query_column(self, tmp_path) -> None:
        path = tmp_path / "q.csv"
        pd.DataFrame({"text": ["x"]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="query"):
            load_queries(path)


class TestRunBatch:
    async def test_duplicates_run_once_and_fan_out(self, engine, portal_providers) -> None:
        pairs = [("mortgage", "en"), ("eurocode", "en"), ("mortgage", "en")]
        df = await run_batch(engine, pairs, limit=5)
        assert list(df.columns) == RESULT_COLUMNS
        assert df["id"].tolist().count("calculator-mortgage-en") == 2
        assert "standard-eurocode-2-en" in df["id"].tolist()
        assert portal_providers.calculators.calls == ["en"]

    async def test_failed_query_yields_no_rows(self, engine, portal_providers) -> None:
        portal_providers.calculators.failures = 1
        df = await run_batch(engine, [("mortgage", "en")])
        assert df.empty
        assert list(df.columns) == RESULT_COLUMNS


class TestMain:
    def test_single_query_prints_json(self, patched_engine, capsys) -> None:
        assert main(["--query", "mortgage", "--locale", "ru", "--log-level", "error"]) == 0
        body = json.loads(capsys.readouterr().out)
        assert body["fallbackLocaleUsed"] is True
        assert body["usedLocale"] == "en"
        assert body["calculators"]["items"][0]["id"] == "calculator-mortgage-en"

    def test_batch_writes_csv(self, patched_engine, tmp_path) -> None:
        inp = tmp_path / "queries.csv"
        out = tmp_path / "out" / "results.csv"
        pd.DataFrame({"query": ["mortgage", "x"]}).to_csv(inp, index=False)
        assert main(["--in", str(inp), "--out", str(out), "--log-level", "error"]) == 0
        df = pd.read_csv(out)
        assert df["id"].tolist()[0] == "calculator-mortgage-en"
        assert set(df["query"]) == {"mortgage"}

    def test_requires_query_or_input(self) -> None:
        with pytest.raises(SystemExit):
            main([])
