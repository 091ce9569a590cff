"""Small helpers shared by the scoring and assignment stages."""
from __future__ import annotations

import re
from typing import Collection, Dict, Iterable, List, Mapping

from .models import Guest, Table

UNNUMBERED_TABLE_ORDINAL = 999

_NUMBER = re.compile(r"(\d+)")


def table_ordinal(name: str) -> int:
    """First number in a table name, ``"Table 3"`` -> 3.

    Tables without a number sort after every numbered table.
    """
    match = _NUMBER.search(name or "")
    return int(match.group(1)) if match else UNNUMBERED_TABLE_ORDINAL


def occupied_seats(
    table: Table, guests_by_id: Mapping[str, Guest], skip: Collection[str] = ()
) -> int:
    """Seats already used at ``table``. Unknown guest ids count as one seat.

    Ids in ``skip`` are left out, so a guest listed both as an occupant and
    in a new assignment is only counted once.
    """
    total = 0
    for guest_id in table.assigned_guests:
        if guest_id in skip:
            continue
        guest = guests_by_id.get(guest_id)
        total += guest.seats if guest is not None else 1
    return total


def index_guests(guests: Iterable[Guest]) -> Dict[str, Guest]:
    """Map guest id to guest. The first record wins on duplicate ids."""
    index: Dict[str, Guest] = {}
    for g in guests:
        index.setdefault(g.id, g)
    return index


def unique_guests(guests: Iterable[Guest]) -> List[Guest]:
    return list(index_guests(guests).values())
