"""Layer 1 - Time entry export parser.

Reads the JSON export of billable time entries:

    {
      "clients": [
        {
          "id": "c1",
          "name": "Acme SRL",
          "entries": [
            {"id": "t1", "hours": "2.5", "rate": "150", "date": "2026-01-10",
             "invoiced": false, "description": "Drafting",
             "case": {"id": "k1", "number": "123/2026", "title": "Acme v. Beta"}}
          ]
        }
      ]
    }

Numbers may be JSON numbers or strings; both go through ``str`` into
``Decimal`` so no binary float rounding reaches the engine.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

from billing_tool.models import (
    CaseRef,
    ClientRef,
    StrictValidationError,
    TimeEntry,
)

logger = logging.getLogger(__name__)

EntryBatch = tuple[ClientRef, list[TimeEntry]]


def _parse_date_flexible(date_str: str) -> date:
    """Parse ISO dates, with or without a time part."""
    date_str = date_str.strip()

    formats = [
        "%Y-%m-%d",      # 2026-01-10
        "%d.%m.%Y",      # 10.01.2026
        "%d/%m/%Y",      # 10/01/2026
    ]

    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError(f"Cannot parse date: '{date_str}'") from None


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a number: {value!r}")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}") from None


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ValueError(f"not a boolean: {value!r}")


def _parse_case(raw: Optional[dict]) -> Optional[CaseRef]:
    if not raw:
        return None
    return CaseRef(
        id=str(raw["id"]),
        number=str(raw.get("number") or raw.get("caseNumber") or "-"),
        title=str(raw.get("title") or ""),
    )


def _parse_entry(raw: dict) -> TimeEntry:
    user = raw.get("user")
    user_name = None
    if isinstance(user, dict):
        user_name = " ".join(p for p in (user.get("firstName"), user.get("lastName")) if p) or None
    elif user:
        user_name = str(user)

    return TimeEntry(
        id=str(raw["id"]),
        hours=_to_decimal(raw["hours"]),
        rate=_to_decimal(raw["rate"] if "rate" in raw else raw["rateEur"]),
        date=_parse_date_flexible(str(raw["date"])),
        invoiced=_to_bool(raw.get("invoiced", False)),
        case=_parse_case(raw.get("case")),
        description=str(raw.get("description") or ""),
        user_name=user_name,
    )


def parse_entries_data(data: dict, source: str = "<data>") -> list[EntryBatch]:
    """Turn an already-decoded export into per-client batches."""
    errors: list[str] = []
    batches: list[EntryBatch] = []

    clients = data.get("clients") if isinstance(data, dict) else None
    if not isinstance(clients, list):
        raise StrictValidationError([f"{source}: top-level 'clients' list not found"])

    for ci, raw_client in enumerate(clients):
        if not isinstance(raw_client, dict):
            errors.append(f"{source}: client #{ci} is not an object")
            continue
        try:
            client = ClientRef(id=str(raw_client["id"]), name=str(raw_client.get("name") or ""))
        except KeyError as e:
            errors.append(f"{source}: client #{ci} is missing {e}")
            continue

        raw_entries = raw_client.get("entries") or []
        if not isinstance(raw_entries, list):
            errors.append(f"{source}: client {client.id} 'entries' is not a list")
            continue

        entries: list[TimeEntry] = []
        for ei, raw_entry in enumerate(raw_entries):
            if not isinstance(raw_entry, dict):
                errors.append(f"{source}: client {client.id} entry #{ei} is not an object")
                continue
            try:
                entries.append(_parse_entry(raw_entry))
            except KeyError as e:
                errors.append(f"{source}: client {client.id} entry #{ei} is missing field {e}")
            except (AttributeError, TypeError, ValueError) as e:
                errors.append(f"{source}: client {client.id} entry #{ei}: {e}")

        batches.append((client, entries))

    if errors:
        raise StrictValidationError(errors)

    return batches


def parse_entries_file(path: str | Path) -> list[EntryBatch]:
    """Load a JSON export file into per-client batches of time entries."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise StrictValidationError([f"{path.name}: invalid JSON ({e})"]) from e

    batches = parse_entries_data(data, source=path.name)
    logger.info(
        "Loaded %d entries for %d client(s) from %s",
        sum(len(entries) for _, entries in batches), len(batches), path,
    )
    return batches
