"""Post-hoc checks on a produced assignment."""
from __future__ import annotations

from typing import List, Mapping, Sequence

from .models import Conflict, Guest, Table
from .utils import index_guests, occupied_seats

CAPACITY = "capacity"
ERROR = "error"


def validate_assignment(
    assignments: Mapping[str, List[str]],
    guests: Sequence[Guest],
    tables: Sequence[Table],
) -> List[Conflict]:
    """Report every table whose occupants and newly seated guests need more seats than it has.

    Existing occupants count with their additional guests; unknown ids take
    one seat each.
    """
    guests_by_id = index_guests(guests)
    tables_by_id = {t.id: t for t in tables}
    conflicts: List[Conflict] = []
    for table_id, guest_ids in assignments.items():
        table = tables_by_id.get(table_id)
        if table is None:
            continue
        new_ids = set(guest_ids)
        seats = occupied_seats(table, guests_by_id, skip=new_ids) + sum(
            guests_by_id[gid].seats for gid in new_ids if gid in guests_by_id
        )
        if seats > table.capacity:
            conflicts.append(
                Conflict(
                    kind=CAPACITY,
                    severity=ERROR,
                    message=f'Table "{table.name}" is over capacity: {seats}/{table.capacity} seats',
                    affected_guests=list(guest_ids),
                    affected_tables=[table_id],
                )
            )
    return conflicts
