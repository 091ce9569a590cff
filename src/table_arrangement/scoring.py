"""
Table fitness scoring.

Each (group, table) pair gets five factors combined as a weighted sum:
    capacity:     0.30
    balance:      0.20
    dietary:      0.15
    proximity:    0.20
    relationship: 0.15
The balance factor is pinned at 1.0 since bride and groom sides are never
mixed at the scoring level.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Sequence

from .groups import group_from_guests
from .models import (
    ArrangementConstraints,
    Guest,
    GuestGroup,
    Preference,
    ScoreFactors,
    Table,
    TableScore,
    VenueElement,
)
from .utils import index_guests, occupied_seats

logger = logging.getLogger(__name__)

WEIGHTS = {
    "capacity": 0.30,
    "balance": 0.20,
    "dietary": 0.15,
    "proximity": 0.20,
    "relationship": 0.15,
}

# Distance at which a "close" preference bottoms out and a "far" one peaks.
PROXIMITY_RANGE = 200.0

ScoreMatrix = Dict[str, Dict[str, TableScore]]


# ----------------------------- factors -----------------------------
def capacity_score(group: GuestGroup, table: Table, guests_by_id: Mapping[str, Guest]) -> float:
    """0 when the group does not fit, otherwise a step function of utilisation."""
    required = group.required_seats
    occupied = occupied_seats(table, guests_by_id)
    if required > table.capacity - occupied:
        return 0.0

    utilization = (occupied + required) / table.capacity
    if 0.6 <= utilization <= 0.9:
        return 1.0
    if 0.4 <= utilization < 0.6:
        return 0.8
    if utilization > 0.9:
        return 0.6
    return 0.4


def balance_score(group: GuestGroup, table: Table, constraints: ArrangementConstraints) -> float:
    return 1.0


def dietary_score(group: GuestGroup, constraints: ArrangementConstraints) -> float:
    if not constraints.consider_dietary_restrictions:
        return 1.0
    distinct = len(set(group.dietary_restrictions))
    if distinct == 0:
        return 1.0
    if distinct <= 2:
        return 0.9
    return 0.7


def proximity_score(
    group: GuestGroup,
    table: Table,
    venue_elements: Sequence[VenueElement],
    constraints: ArrangementConstraints,
) -> float:
    """Weight normalised agreement between the table position and group preferences.

    Preferences for element types missing from the venue are ignored.
    """
    if not constraints.optimize_venue_proximity or not group.proximity_preferences:
        return 1.0

    total = 0.0
    total_weight = 0.0
    for pref in group.proximity_preferences:
        relevant = [e for e in venue_elements if e.element_type == pref.element_type]
        if not relevant:
            continue
        distance = min(table.position.distance_to(e.position) for e in relevant)
        if pref.preference == Preference.CLOSE:
            value = max(0.0, 1 - distance / PROXIMITY_RANGE)
        elif pref.preference == Preference.FAR:
            value = min(1.0, distance / PROXIMITY_RANGE)
        else:
            value = 0.5
        total += value * pref.weight
        total_weight += pref.weight

    return total / total_weight if total_weight > 0 else 1.0


def relationship_score(group: GuestGroup, constraints: ArrangementConstraints) -> float:
    # Deliberately unclamped: a priority 100 group scores 10.0. Only used
    # as a relative ranking signal.
    if not constraints.respect_relationships:
        return 1.0
    return group.priority / 10


# ----------------------------- combination -----------------------------
def score_table(
    group: GuestGroup,
    table: Table,
    venue_elements: Sequence[VenueElement],
    constraints: ArrangementConstraints,
    guests_by_id: Mapping[str, Guest],
) -> TableScore:
    factors = ScoreFactors(
        capacity=capacity_score(group, table, guests_by_id),
        balance=balance_score(group, table, constraints),
        dietary=dietary_score(group, constraints),
        proximity=proximity_score(group, table, venue_elements, constraints),
        relationship=relationship_score(group, constraints),
    )
    total = (
        factors.capacity * WEIGHTS["capacity"]
        + factors.balance * WEIGHTS["balance"]
        + factors.dietary * WEIGHTS["dietary"]
        + factors.proximity * WEIGHTS["proximity"]
        + factors.relationship * WEIGHTS["relationship"]
    )
    return TableScore(table_id=table.id, score=total, factors=factors)


def build_score_matrix(
    groups: Sequence[GuestGroup],
    tables: Sequence[Table],
    venue_elements: Sequence[VenueElement],
    constraints: ArrangementConstraints,
    guests: Sequence[Guest],
) -> ScoreMatrix:
    """Score every group against every unlocked table, keyed by group then table id."""
    guests_by_id = index_guests(guests)
    matrix: ScoreMatrix = {}
    for group in groups:
        row: Dict[str, TableScore] = {}
        for table in tables:
            if table.is_locked:
                continue
            row[table.id] = score_table(group, table, venue_elements, constraints, guests_by_id)
        matrix[group.id] = row
    return matrix


# ----------------------------- aggregate -----------------------------
def aggregate_score(
    assignments: Mapping[str, List[str]],
    guests: Sequence[Guest],
    tables: Sequence[Table],
    venue_elements: Sequence[VenueElement],
    constraints: ArrangementConstraints,
) -> float:
    """Mean fitness over every table that received guests, 0.0 if none did."""
    guests_by_id = index_guests(guests)
    tables_by_id = {t.id: t for t in tables}
    total = 0.0
    counted = 0
    for table_id, guest_ids in assignments.items():
        table = tables_by_id.get(table_id)
        if table is None or not guest_ids:
            continue
        wanted = set(guest_ids)
        seated = [g for g in guests_by_id.values() if g.id in wanted]
        group = group_from_guests(seated, group_id=f"table-{table_id}")
        total += score_table(group, table, venue_elements, constraints, guests_by_id).score
        counted += 1
    return total / counted if counted else 0.0
