"""Greedy group-to-table assignment.

Groups are placed one at a time in priority order, each on the best table
that still has room. There is no backtracking: a group that fits nowhere is
left out of the result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, List, Sequence, Set, Tuple

from .models import ArrangementConstraints, GuestGroup, RelationshipType, Table, TableScore
from .scoring import ScoreMatrix
from .utils import table_ordinal

logger = logging.getLogger(__name__)

# Groups at or above this priority (bride, groom, parent, sibling) are seated
# by table number alone, lowest first.
HEAD_TIER_PRIORITY = 80
ORDINAL_BIAS = 0.1


@dataclass
class _TableState:
    """Run scoped bookkeeping for one candidate table."""

    table: Table
    ordinal: int
    remaining: int
    relationships: Set[RelationshipType] = field(default_factory=set)
    placed: List[str] = field(default_factory=list)


def _candidate_order(priority: float):
    def compare(a: Tuple[_TableState, TableScore], b: Tuple[_TableState, TableScore]) -> float:
        state_a, score_a = a
        state_b, score_b = b
        if priority >= HEAD_TIER_PRIORITY and state_a.ordinal != state_b.ordinal:
            return state_a.ordinal - state_b.ordinal
        return ORDINAL_BIAS * (state_a.ordinal - state_b.ordinal) + (score_b.score - score_a.score)

    return cmp_to_key(compare)


def assign_groups(
    groups: Sequence[GuestGroup],
    tables: Sequence[Table],
    score_matrix: ScoreMatrix,
    constraints: ArrangementConstraints,
) -> Dict[str, List[str]]:
    """Seat whole groups on unlocked tables.

    Returns table id -> guest ids placed during this call. Tables that
    received nobody are omitted.
    """
    available = sorted(
        (t for t in tables if not t.is_locked), key=lambda t: table_ordinal(t.name)
    )
    if not available or not groups:
        return {}

    states: Dict[str, _TableState] = {}
    for table in available:
        states.setdefault(
            table.id,
            _TableState(
                table=table,
                ordinal=table_ordinal(table.name),
                remaining=table.capacity - len(table.assigned_guests),
            ),
        )

    for group in sorted(groups, key=lambda grp: -grp.priority):
        group_scores = score_matrix.get(group.id)
        if group_scores is None:
            continue
        required = group.required_seats

        options = [
            (state, group_scores[state.table.id])
            for state in states.values()
            if state.table.id in group_scores and state.remaining >= required
        ]

        if constraints.keep_families_together:
            compatible = [
                option
                for option in options
                if not option[0].relationships or group.relationship_type in option[0].relationships
            ]
            if compatible:
                options = compatible

        if not options:
            logger.debug("no table fits group %s (%d seats)", group.id, required)
            continue

        options.sort(key=_candidate_order(group.priority))
        best = options[0][0]
        best.placed.extend(group.guest_ids)
        best.remaining -= required
        best.relationships.add(group.relationship_type)
        logger.debug("group %s -> %s", group.id, best.table.name)

    return {table_id: state.placed for table_id, state in states.items() if state.placed}
