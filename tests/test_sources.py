"""Tests for time entry sources."""

import json
import pytest
from datetime import date
from decimal import Decimal

from billing_tool.engine import summarize
from billing_tool.models import ClientRef, StrictValidationError, TimeEntry, UnknownClientError
from billing_tool.sources import InMemoryEntrySource, JsonFileEntrySource, build_source, fetch_batches

ACME = ClientRef(id="c1", name="Acme SRL")
BETA = ClientRef(id="c2", name="Beta SA")


def _make_entry(entry_id, hours="1", rate="100", invoiced=False) -> TimeEntry:
    return TimeEntry(
        id=entry_id,
        hours=Decimal(hours),
        rate=Decimal(rate),
        date=date(2026, 1, 10),
        invoiced=invoiced,
    )


def _source() -> InMemoryEntrySource:
    return InMemoryEntrySource([
        (ACME, [_make_entry("t1"), _make_entry("t2", invoiced=True)]),
        (BETA, [_make_entry("t3", hours="2")]),
    ])


class TestInMemoryEntrySource:
    def test_clients(self):
        assert _source().clients == [ACME, BETA]

    def test_fetch_unbilled_entries(self):
        source = _source()
        assert [e.id for e in source.fetch_entries("c1")] == ["t1", "t2"]
        assert [e.id for e in source.fetch_unbilled_entries("c1")] == ["t1"]

    def test_unknown_client(self):
        with pytest.raises(UnknownClientError, match="Unknown client: c9"):
            _source().fetch_unbilled_entries("c9")

    def test_entries_are_validated(self):
        with pytest.raises(StrictValidationError):
            InMemoryEntrySource([(ACME, [_make_entry("t1", hours="-1")])])

    def test_fetch_batches_feeds_summary(self):
        source = _source()
        summaries = summarize(fetch_batches(source, source.clients))
        assert [s.client.id for s in summaries] == ["c2", "c1"]
        assert summaries[1].entry_count == 1


class TestBuildSource:
    def test_from_data(self):
        source = build_source(data={"clients": [
            {"id": "c1", "name": "Acme", "entries": [
                {"id": "t1", "hours": "1", "rate": "50", "date": "2026-01-10"},
            ]},
        ]})
        assert source.client("c1").name == "Acme"
        assert source.fetch_unbilled_entries("c1")[0].amount == Decimal("50")

    def test_empty(self):
        assert build_source().clients == []

    def test_from_file(self, tmp_path):
        path = tmp_path / "entries.json"
        path.write_text(json.dumps({"clients": [{"id": "c1", "name": "Acme", "entries": []}]}), encoding="utf-8")
        source = build_source(path=path)
        assert isinstance(source, JsonFileEntrySource)
        assert source.path == path
        assert source.clients == [ClientRef(id="c1", name="Acme")]
