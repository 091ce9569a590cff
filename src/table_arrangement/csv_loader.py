"""CSV loading utilities."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import IO, Any, Iterable, List, Type, TypeVar, Union

import pandas as pd

from .models import (
    ElementType,
    Guest,
    Position,
    RelationshipType,
    RsvpStatus,
    Side,
    Table,
    VenueElement,
    parse_bool,
    parse_pipe_list,
)

Source = Union[Path, str, IO[Any]]
E = TypeVar("E", bound=Enum)

GUEST_COLUMNS = ["id", "name", "rsvp_status", "relationship_type", "side"]
TABLE_COLUMNS = ["id", "name", "capacity"]
VENUE_COLUMNS = ["id", "type"]


def _read(path: Source, required: Iterable[str], label: str) -> pd.DataFrame:
    # Everything as text so ids like "007" survive and blanks stay blank.
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise ValueError(f"{label}: missing columns: {', '.join(missing)}")
    return df


def parse_enum(enum_cls: Type[E], value: object, label: str) -> E:
    """Match ``value`` to an enum member, ignoring case, spaces and hyphens."""
    text = str(value).strip().lower().replace(" ", "_").replace("-", "_")
    try:
        return enum_cls(text)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"{label}: unknown value {value!r} (expected one of {allowed})") from None


def _int(value: object, default: int, label: str) -> int:
    text = str(value).strip()
    if not text:
        return default
    try:
        return int(float(text))
    except ValueError:
        raise ValueError(f"{label}: not a number: {value!r}") from None


def _float(value: object, label: str) -> float:
    text = str(value).strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"{label}: not a number: {value!r}") from None


def load_guests(path: Source) -> List[Guest]:
    """Load guests from ``guests.csv``.

    Dietary restrictions are pipe separated. ``table_id`` is optional.
    """
    df = _read(path, GUEST_COLUMNS, "guests.csv")
    guests: List[Guest] = []
    for idx, row in df.iterrows():
        where = f"guests.csv row {idx + 2}"
        additional = _int(row.get("additional_guest_count", ""), 0, where)
        if additional < 0:
            raise ValueError(f"{where}: additional_guest_count must be >= 0")
        side = parse_enum(Side, row["side"], where)
        if side == Side.MIXED:
            raise ValueError(f"{where}: side must be bride or groom")
        guests.append(
            Guest(
                id=row["id"].strip(),
                name=row["name"].strip(),
                rsvp_status=parse_enum(RsvpStatus, row["rsvp_status"], where),
                relationship_type=parse_enum(RelationshipType, row["relationship_type"], where),
                side=side,
                dietary_restrictions=parse_pipe_list(row.get("dietary_restrictions", "")),
                additional_guest_count=additional,
                table_id=row.get("table_id", "").strip() or None,
            )
        )
    return guests


def load_tables(path: Source, guest_ids: set[str] | None = None) -> List[Table]:
    """Load table definitions.

    If ``guest_ids`` is provided it validates that every pre-assigned guest
    exists.
    """
    df = _read(path, TABLE_COLUMNS, "tables.csv")
    tables: List[Table] = []
    for idx, row in df.iterrows():
        where = f"tables.csv row {idx + 2}"
        capacity = _int(row["capacity"], 0, where)
        if capacity <= 0:
            raise ValueError(f"{where}: capacity must be positive")
        assigned = parse_pipe_list(row.get("assigned_guests", ""))
        if guest_ids is not None:
            unknown = [gid for gid in assigned if gid not in guest_ids]
            if unknown:
                raise ValueError(f"{where}: unknown guests assigned: {', '.join(unknown)}")
        tables.append(
            Table(
                id=row["id"].strip(),
                name=row["name"].strip(),
                capacity=capacity,
                position=Position(_float(row.get("x", ""), where), _float(row.get("y", ""), where)),
                is_locked=parse_bool(row.get("is_locked", "false")),
                assigned_guests=assigned,
            )
        )
    return tables


def load_venue_elements(path: Source) -> List[VenueElement]:
    """Load venue elements used for proximity scoring."""
    df = _read(path, VENUE_COLUMNS, "venue.csv")
    elements: List[VenueElement] = []
    for idx, row in df.iterrows():
        where = f"venue.csv row {idx + 2}"
        elements.append(
            VenueElement(
                id=row["id"].strip(),
                element_type=parse_enum(ElementType, row["type"], where),
                position=Position(_float(row.get("x", ""), where), _float(row.get("y", ""), where)),
            )
        )
    return elements


def load_all(guests_path: Source, tables_path: Source, venue_path: Source | None = None):
    """Convenience wrapper returning guests, tables and venue elements."""
    guests = load_guests(guests_path)
    tables = load_tables(tables_path, {g.id for g in guests})
    venue = load_venue_elements(venue_path) if venue_path is not None else []
    return guests, tables, venue
