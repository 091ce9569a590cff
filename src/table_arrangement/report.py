"""
Per-table summary of an arrangement.

Tables are graded A to F on their seating fitness, the weighted capacity,
balance, dietary and proximity factors rescaled to 0..1:
    A: >= 0.9
    B: >= 0.8
    C: >= 0.7
    D: >= 0.6
    F: below 0.6
The relationship factor is left out of the grade. It grows with relationship
priority instead of seating quality, so a table of close family would grade A
whatever its fit.
"""
from __future__ import annotations

from typing import Dict, List, Sequence

from .groups import group_from_guests
from .models import ArrangementConstraints, ArrangementResult, Guest, ScoreFactors, Table, VenueElement
from .scoring import WEIGHTS, score_table
from .utils import index_guests, occupied_seats

Row = Dict[str, object]

_GRADES = ((0.9, "A"), (0.8, "B"), (0.7, "C"), (0.6, "D"))

_FITNESS_FACTORS = ("capacity", "balance", "dietary", "proximity")


def grade(score: float) -> str:
    for threshold, letter in _GRADES:
        if score >= threshold:
            return letter
    return "F"


def seating_fitness(factors: ScoreFactors) -> float:
    """Weighted mean of the factors that describe how well a table fits."""
    total_weight = sum(WEIGHTS[name] for name in _FITNESS_FACTORS)
    return sum(getattr(factors, name) * WEIGHTS[name] for name in _FITNESS_FACTORS) / total_weight


def table_report(
    result: ArrangementResult,
    guests: Sequence[Guest],
    tables: Sequence[Table],
    venue_elements: Sequence[VenueElement],
    constraints: ArrangementConstraints,
) -> List[Row]:
    """One row per table that received guests, in assignment order."""
    guests_by_id = index_guests(guests)
    tables_by_id = {t.id: t for t in tables}
    rows: List[Row] = []
    for table_id, guest_ids in result.assignments.items():
        table = tables_by_id.get(table_id)
        if table is None:
            continue
        members = [guests_by_id[gid] for gid in guest_ids if gid in guests_by_id]
        ts = score_table(
            group_from_guests(members, group_id=f"table-{table_id}"),
            table,
            venue_elements,
            constraints,
            guests_by_id,
        )
        rows.append({
            "table": table.name,
            "table_id": table.id,
            "seats_used": occupied_seats(table, guests_by_id, skip=set(guest_ids))
            + sum(g.seats for g in members),
            "capacity": table.capacity,
            "score": ts.score,
            "fitness": seating_fitness(ts.factors),
            "capacity_factor": ts.factors.capacity,
            "dietary_factor": ts.factors.dietary,
            "proximity_factor": ts.factors.proximity,
            "relationship_factor": ts.factors.relationship,
            "members": "|".join(guest_ids),
        })
    return rows


def grade_tables(rows: List[Row]) -> List[Row]:
    """Copy ``rows`` adding a ``grade`` column computed from ``fitness``."""
    graded = []
    for row in rows:
        out = dict(row)
        out["grade"] = grade(float(row["fitness"]))
        graded.append(out)
    return graded
