"""
Arrangement orchestration.

Pipeline for one run:
    accepted guests -> groups -> score matrix -> assignment
    -> capacity conflicts + aggregate score -> ArrangementResult
Inputs are treated as read-only snapshots; every intermediate structure is
owned by the run and dropped afterwards.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .groups import build_groups
from .models import (
    ArrangementConstraints,
    ArrangementResult,
    Guest,
    RsvpStatus,
    Table,
    VenueElement,
)
from .optimizer import assign_groups
from .scoring import aggregate_score, build_score_matrix
from .validation import validate_assignment

logger = logging.getLogger(__name__)

NO_GUESTS_MESSAGE = "No guests with accepted RSVP status to arrange"


def eligible_guests(guests: Sequence[Guest], tables: Sequence[Table] = ()) -> List[Guest]:
    """Accepted guests that do not hold a seat yet.

    A guest holds a seat when it carries a ``table_id`` or is listed among a
    table's ``assigned_guests``. Seated guests keep their seat.
    """
    seated = {gid for t in tables for gid in t.assigned_guests}
    return [
        g
        for g in guests
        if g.rsvp_status == RsvpStatus.ACCEPTED and not g.table_id and g.id not in seated
    ]


# ----------------------------- model -----------------------------
class ArrangementModel:
    """Multi-factor greedy table arrangement."""

    def __init__(self, constraints: Optional[ArrangementConstraints] = None) -> None:
        self.constraints = constraints or ArrangementConstraints()
        # Inputs
        self.guests: List[Guest] = []
        self.tables: List[Table] = []
        self.venue_elements: List[VenueElement] = []

    def build(
        self,
        guests: Sequence[Guest],
        tables: Sequence[Table],
        venue_elements: Sequence[VenueElement] = (),
    ) -> None:
        """Store snapshots of the model inputs."""
        self.guests = list(guests)
        self.tables = list(tables)
        self.venue_elements = list(venue_elements)

    def solve(self) -> ArrangementResult:
        """Run the arrangement. Unexpected faults come back as a failed result."""
        try:
            return self._solve()
        except Exception as exc:
            logger.exception("auto-arrangement failed")
            return ArrangementResult(
                success=False,
                message=f"Auto-arrangement failed: {exc}",
                arranged_guests=0,
                assignments={},
                conflicts=[],
                score=0.0,
            )

    def _solve(self) -> ArrangementResult:
        constraints = self.constraints
        accepted = eligible_guests(self.guests, self.tables)
        if not accepted:
            return ArrangementResult(
                success=True,
                message=NO_GUESTS_MESSAGE,
                arranged_guests=0,
                assignments={},
                conflicts=[],
                score=1.0,
            )

        groups = build_groups(accepted, constraints, self.tables)
        matrix = build_score_matrix(groups, self.tables, self.venue_elements, constraints, self.guests)
        assignments = assign_groups(groups, self.tables, matrix, constraints)
        conflicts = validate_assignment(assignments, self.guests, self.tables)
        score = aggregate_score(assignments, self.guests, self.tables, self.venue_elements, constraints)

        arranged = sum(len(ids) for ids in assignments.values())
        logger.info(
            "arranged %d of %d accepted guests across %d tables (score %.3f, %d conflicts)",
            arranged, len(accepted), len(assignments), score, len(conflicts),
        )
        return ArrangementResult(
            success=True,
            message=f"Successfully arranged {arranged} guests across {len(assignments)} tables",
            arranged_guests=arranged,
            assignments=assignments,
            conflicts=conflicts,
            score=score,
        )


def arrange(
    guests: Sequence[Guest],
    tables: Sequence[Table],
    venue_elements: Sequence[VenueElement] = (),
    constraints: Optional[ArrangementConstraints] = None,
) -> ArrangementResult:
    """Arrange accepted guests at the given tables."""
    model = ArrangementModel(constraints)
    model.build(guests, tables, venue_elements)
    return model.solve()


def apply_assignment(
    guests: Sequence[Guest],
    tables: Sequence[Table],
    assignments: Mapping[str, List[str]],
) -> Tuple[List[Guest], List[Table]]:
    """Return copies of ``guests`` and ``tables`` with ``assignments`` written in.

    Moved guests are dropped from their previous table before being added to
    the new one. The inputs are left untouched.
    """
    target: Dict[str, str] = {}
    for table_id, guest_ids in assignments.items():
        for gid in guest_ids:
            target[gid] = table_id

    new_guests = [
        replace(g, table_id=target[g.id]) if g.id in target else replace(g) for g in guests
    ]

    new_tables: List[Table] = []
    for table in tables:
        kept = [gid for gid in table.assigned_guests if target.get(gid, table.id) == table.id]
        for gid in assignments.get(table.id, []):
            if gid not in kept:
                kept.append(gid)
        new_tables.append(replace(table, assigned_guests=kept))
    return new_guests, new_tables
