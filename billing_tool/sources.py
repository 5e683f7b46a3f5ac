"""Time entry sources.

The engine never fetches data itself. Callers hand it entries obtained from
an ``EntrySource``, which hides where those entries live.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional, Protocol

from billing_tool.engine.validator import validate_entries
from billing_tool.models import ClientRef, TimeEntry, UnknownClientError
from billing_tool.parsers import parse_entries_data, parse_entries_file

logger = logging.getLogger(__name__)


class EntrySource(Protocol):
    def fetch_unbilled_entries(self, client_id: str) -> list[TimeEntry]:
        ...


class InMemoryEntrySource:
    """Entry source backed by per-client lists held in memory."""

    def __init__(self, batches: Iterable[tuple[ClientRef, Iterable[TimeEntry]]]):
        self._clients: dict[str, ClientRef] = {}
        self._entries: dict[str, list[TimeEntry]] = {}
        for client, entries in batches:
            self._clients[client.id] = client
            self._entries[client.id] = validate_entries(entries)

    @property
    def clients(self) -> list[ClientRef]:
        return list(self._clients.values())

    def client(self, client_id: str) -> ClientRef:
        try:
            return self._clients[client_id]
        except KeyError:
            raise UnknownClientError(client_id) from None

    def fetch_entries(self, client_id: str) -> list[TimeEntry]:
        self.client(client_id)
        return list(self._entries[client_id])

    def fetch_unbilled_entries(self, client_id: str) -> list[TimeEntry]:
        return [e for e in self.fetch_entries(client_id) if not e.invoiced]

    def batches(self) -> list[tuple[ClientRef, list[TimeEntry]]]:
        return [(client, list(self._entries[client.id])) for client in self._clients.values()]


class JsonFileEntrySource(InMemoryEntrySource):
    """Entry source over a JSON export file (see ``billing_tool.parsers``)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(parse_entries_file(self.path))


def fetch_batches(
    source: EntrySource,
    clients: Iterable[ClientRef],
) -> list[tuple[ClientRef, list[TimeEntry]]]:
    """Fetch unbilled entries for each client, ready for ``summarize``."""
    batches = []
    for client in clients:
        entries = source.fetch_unbilled_entries(client.id)
        logger.debug("Fetched %d unbilled entries for client %s", len(entries), client.id)
        batches.append((client, entries))
    return batches


def build_source(data: Optional[Mapping] = None, path: Optional[str | Path] = None) -> InMemoryEntrySource:
    """Build a source from decoded export data or from a file path."""
    if path is not None:
        return JsonFileEntrySource(path)
    return InMemoryEntrySource(parse_entries_data(dict(data or {"clients": []})))
