"""
Tests for the arrangement pipeline.

Covers the end to end scenarios, run-level invariants over randomly
generated events, and the helpers built on top of a result.
"""

import random

import pytest

from table_arrangement.models import (
    ArrangementConstraints,
    ArrangementResult,
    ElementType,
    Guest,
    Position,
    RelationshipType,
    RsvpStatus,
    Side,
    Table,
    VenueElement,
)
from table_arrangement.report import grade, grade_tables, table_report
from table_arrangement.solver import ArrangementModel, apply_assignment, arrange
from table_arrangement.utils import index_guests, occupied_seats


def guest(gid, rel="friend", side="bride", extra=0, rsvp=RsvpStatus.ACCEPTED, table_id=None):
    return Guest(
        id=gid,
        name=gid.title(),
        rsvp_status=rsvp,
        relationship_type=RelationshipType(rel),
        side=Side(side),
        additional_guest_count=extra,
        table_id=table_id,
    )


SINGLES = ArrangementConstraints(keep_families_together=False)
FAMILIES = ArrangementConstraints(keep_families_together=True)


class TestScenarios:
    """End to end behaviour of a single arrangement run."""

    def test_single_guest_single_table(self):
        tables = [Table(id="t1", name="Table 1", capacity=8)]
        result = arrange([guest("a")], tables, [], SINGLES)
        assert result.success is True
        assert result.assignments == {"t1": ["a"]}
        assert result.arranged_guests == 1
        assert result.conflicts == []
        assert result.message == "Successfully arranged 1 guests across 1 tables"

    def test_three_singles_two_small_tables(self):
        tables = [Table(id="t1", name="Table 1", capacity=2), Table(id="t2", name="Table 2", capacity=2)]
        result = arrange([guest("a"), guest("b"), guest("c")], tables, [], SINGLES)
        assert result.assignments == {"t1": ["a", "b"], "t2": ["c"]}
        assert result.arranged_guests == 3
        assert result.conflicts == []

    def test_locked_table_is_never_used(self):
        tables = [
            Table(id="t1", name="Table 1", capacity=8, is_locked=True),
            Table(id="t2", name="Table 2", capacity=2),
        ]
        result = arrange([guest("a")], tables, [], SINGLES)
        assert result.assignments == {"t2": ["a"]}
        assert "t1" not in result.assignments

    def test_group_that_fits_nowhere_is_omitted(self):
        tables = [Table(id="t1", name="Table 1", capacity=2), Table(id="t2", name="Table 2", capacity=2)]
        result = arrange([guest("big", extra=2), guest("a", "cousin")], tables, [], SINGLES)
        assert result.success is True
        assert result.assignments == {"t1": ["a"]}
        assert result.arranged_guests == 1

    def test_family_joins_table_with_same_relationship(self):
        tables = [Table(id=f"t{i}", name=f"Table {i}", capacity=6) for i in (1, 2, 3)]
        guests = [
            guest("c1", "cousin"), guest("c2", "cousin"),
            guest("f1", "friend"), guest("f2", "friend"),
            guest("g1", "friend", "groom"), guest("g2", "friend", "groom"),
        ]
        result = arrange(guests, tables, [], FAMILIES)
        assert result.assignments["t2"] == ["f1", "f2", "g1", "g2"]
        assert "t3" not in result.assignments

    def test_couple_sits_by_table_number(self):
        tables = [Table(id="t2", name="Table 2", capacity=2), Table(id="t1", name="Table 1", capacity=10)]
        guests = [guest("bride", "bride"), guest("groom", "groom", "groom")]
        result = arrange(guests, tables, [], SINGLES)
        assert result.assignments == {"t1": ["bride", "groom"]}

    def test_proximity_pulls_friends_to_dance_floor(self):
        tables = [
            Table(id="t1", name="Table 1", capacity=6, position=Position(0, 0)),
            Table(id="t2", name="Table 2", capacity=6, position=Position(500, 0)),
        ]
        venue = [VenueElement(id="d", element_type=ElementType.DANCE_FLOOR, position=Position(500, 50))]
        result = arrange([guest("f1"), guest("f2")], tables, venue, FAMILIES)
        assert result.assignments == {"t2": ["f1", "f2"]}

    def test_head_table_reservation(self):
        constraints = ArrangementConstraints(keep_families_together=True, reserve_head_table=True)
        tables = [Table(id="t1", name="Table 1", capacity=4), Table(id="t2", name="Table 2", capacity=8)]
        guests = [
            guest("f1"), guest("f2"), guest("f3"),
            guest("bride", "bride"), guest("groom", "groom", "groom"), guest("mum", "parent", extra=1),
        ]
        result = arrange(guests, tables, [], constraints)
        assert result.assignments == {"t1": ["bride", "groom", "mum"], "t2": ["f1", "f2", "f3"]}


class TestEligibility:
    def test_no_accepted_guests(self):
        guests = [guest("a", rsvp=RsvpStatus.DECLINED), guest("b", rsvp=RsvpStatus.PENDING)]
        tables = [Table(id="t1", name="Table 1", capacity=8)]
        result = arrange(guests, tables, [], SINGLES)
        assert result == ArrangementResult(
            success=True,
            message="No guests with accepted RSVP status to arrange",
            arranged_guests=0,
            assignments={},
            conflicts=[],
            score=1.0,
        )

    def test_only_accepted_guests_are_placed(self):
        guests = [
            guest("a"),
            guest("b", rsvp=RsvpStatus.NO_RESPONSE),
            guest("c", rsvp=RsvpStatus.NOT_INVITED),
        ]
        result = arrange(guests, [Table(id="t1", name="Table 1", capacity=8)], [], SINGLES)
        assert result.assignments == {"t1": ["a"]}

    def test_occupant_of_locked_table_stays_put(self):
        tables = [
            Table(id="t1", name="Table 1", capacity=8, is_locked=True, assigned_guests=["a"]),
            Table(id="t2", name="Table 2", capacity=8),
        ]
        guests = [guest("a", table_id="t1"), guest("b")]
        result = arrange(guests, tables, [], SINGLES)
        assert result.assignments == {"t2": ["b"]}

        _, new_tables = apply_assignment(guests, tables, result.assignments)
        assert new_tables[0].assigned_guests == ["a"]

    def test_seated_guest_does_not_take_a_free_seat(self):
        tables = [Table(id="t1", name="Table 1", capacity=2, assigned_guests=["a"])]
        guests = [guest("a", table_id="t1"), guest("b")]
        result = arrange(guests, tables, [], SINGLES)
        assert result.assignments == {"t1": ["b"]}
        assert result.arranged_guests == 1
        assert result.conflicts == []

    def test_guest_with_table_id_is_not_rearranged(self):
        tables = [Table(id="t1", name="Table 1", capacity=8)]
        result = arrange([guest("a", table_id="t9")], tables, [], SINGLES)
        assert result.assignments == {}
        assert result.arranged_guests == 0
        assert result.message == "No guests with accepted RSVP status to arrange"

    def test_listed_occupant_without_table_id_is_not_rearranged(self):
        tables = [Table(id="t1", name="Table 1", capacity=8, assigned_guests=["a"])]
        result = arrange([guest("a"), guest("b")], tables, [], SINGLES)
        assert result.assignments == {"t1": ["b"]}

    def test_occupant_companions_overflow_is_reported(self):
        # x brings two companions but holds a single entry in the table list
        tables = [Table(id="t1", name="Table 1", capacity=4, assigned_guests=["x"])]
        guests = [guest("x", extra=2, table_id="t1"), guest("a", extra=1)]
        result = arrange(guests, tables, [], SINGLES)
        assert result.assignments == {"t1": ["a"]}
        assert len(result.conflicts) == 1
        assert result.conflicts[0].message == 'Table "Table 1" is over capacity: 5/4 seats'


class TestFailures:
    def test_runtime_fault_becomes_failed_result(self):
        broken = guest("a")
        broken.additional_guest_count = None
        result = arrange([broken], [Table(id="t1", name="Table 1", capacity=8)], [], SINGLES)
        assert result.success is False
        assert result.message.startswith("Auto-arrangement failed: ")
        assert result.assignments == {}
        assert result.conflicts == []
        assert result.score == 0.0
        assert result.arranged_guests == 0

    def test_model_can_be_solved_twice(self):
        model = ArrangementModel(SINGLES)
        model.build([guest("a")], [Table(id="t1", name="Table 1", capacity=8)])
        assert model.solve() == model.solve()


# ----------------------------- invariants -----------------------------
def random_event(seed):
    rng = random.Random(seed)
    relationships = list(RelationshipType)
    statuses = list(RsvpStatus)
    guests = [
        Guest(
            id=f"g{i}",
            name=f"Guest {i}",
            rsvp_status=rng.choice(statuses),
            relationship_type=rng.choice(relationships),
            side=rng.choice([Side.BRIDE, Side.GROOM]),
            dietary_restrictions=rng.sample(["vegan", "halal", "kosher", "nut-free"], rng.randint(0, 2)),
            additional_guest_count=rng.choice([0, 0, 0, 1, 2]),
        )
        for i in range(rng.randint(0, 40))
    ]
    unseated = list(guests)
    rng.shuffle(unseated)
    tables = []
    for i in range(rng.randint(0, 8)):
        capacity = rng.randint(2, 10)
        # Walk-ins unknown to the guest list occupy one seat each.
        existing = [f"walkin-{i}-{k}" for k in range(rng.randint(0, capacity // 4))]
        while unseated and rng.random() < 0.3:
            seated = unseated.pop()
            seated.table_id = f"t{i}"
            existing.append(seated.id)
        tables.append(
            Table(
                id=f"t{i}",
                name=rng.choice([f"Table {i + 1}", f"Lounge {i + 1}", "Head Table"]),
                capacity=capacity,
                position=Position(rng.uniform(0, 400), rng.uniform(0, 400)),
                is_locked=rng.random() < 0.2,
                assigned_guests=existing,
            )
        )
    # Some guests point at a table that is no longer part of the plan.
    for stray in unseated[: rng.randint(0, 2)]:
        stray.table_id = "t-removed"
    venue = [
        VenueElement(id=f"v{i}", element_type=rng.choice(list(ElementType)),
                     position=Position(rng.uniform(0, 400), rng.uniform(0, 400)))
        for i in range(rng.randint(0, 4))
    ]
    constraints = ArrangementConstraints(
        respect_relationships=rng.random() < 0.5,
        consider_dietary_restrictions=rng.random() < 0.5,
        keep_families_together=rng.random() < 0.5,
        optimize_venue_proximity=rng.random() < 0.5,
        reserve_head_table=rng.random() < 0.3,
    )
    return guests, tables, venue, constraints


@pytest.mark.parametrize("seed", range(40))
def test_run_invariants(seed):
    guests, tables, venue, constraints = random_event(seed)
    result = arrange(guests, tables, venue, constraints)
    assert result.success is True

    placed = [gid for ids in result.assignments.values() for gid in ids]
    assert len(placed) == len(set(placed))
    assert result.arranged_guests == len(placed)

    by_id = index_guests(guests)
    assert all(by_id[gid].rsvp_status == RsvpStatus.ACCEPTED for gid in placed)

    # guests already holding a seat, locked tables included, are never moved
    occupants = {gid for t in tables for gid in t.assigned_guests}
    holders = {g.id for g in guests if g.table_id}
    assert not (occupants | holders) & set(placed)

    tables_by_id = {t.id: t for t in tables}
    conflicted = {tid for c in result.conflicts for tid in c.affected_tables}
    for table_id, ids in result.assignments.items():
        table = tables_by_id[table_id]
        assert not table.is_locked
        assert ids
        seats = sum(by_id[gid].seats for gid in ids) + occupied_seats(table, by_id)
        assert seats <= table.capacity or table_id in conflicted


@pytest.mark.parametrize("seed", range(10))
def test_runs_are_deterministic(seed):
    first = arrange(*random_event(seed))
    second = arrange(*random_event(seed))
    assert first == second
    assert repr(first) == repr(second)


@pytest.mark.parametrize("seed", range(5))
def test_inputs_are_left_untouched(seed):
    guests, tables, venue, constraints = random_event(seed)
    before = (repr(guests), repr(tables), repr(venue))
    arrange(guests, tables, venue, constraints)
    assert (repr(guests), repr(tables), repr(venue)) == before


# ----------------------------- helpers -----------------------------
class TestApplyAssignment:
    def test_moves_guests_and_returns_copies(self):
        guests = [guest("a"), guest("b", table_id="t1")]
        tables = [
            Table(id="t1", name="Table 1", capacity=4, assigned_guests=["b", "c"]),
            Table(id="t2", name="Table 2", capacity=4),
        ]
        new_guests, new_tables = apply_assignment(guests, tables, {"t2": ["a", "b"]})
        assert [g.table_id for g in new_guests] == ["t2", "t2"]
        assert new_tables[0].assigned_guests == ["c"]
        assert new_tables[1].assigned_guests == ["a", "b"]
        # originals untouched
        assert guests[0].table_id is None
        assert tables[0].assigned_guests == ["b", "c"]
        assert tables[1].assigned_guests == []

    def test_does_not_duplicate_existing_ids(self):
        tables = [Table(id="t1", name="Table 1", capacity=4, assigned_guests=["a"])]
        _, new_tables = apply_assignment([guest("a")], tables, {"t1": ["a"]})
        assert new_tables[0].assigned_guests == ["a"]


class TestReport:
    @pytest.mark.parametrize("score, letter", [
        (0.95, "A"), (0.9, "A"), (0.85, "B"), (0.75, "C"), (0.6, "D"), (0.59, "F"), (10.0, "A"),
    ])
    def test_grade(self, score, letter):
        assert grade(score) == letter

    def test_rows_follow_assignment(self):
        constraints = ArrangementConstraints(
            respect_relationships=False,
            consider_dietary_restrictions=False,
            keep_families_together=False,
            optimize_venue_proximity=False,
        )
        tables = [Table(id="t1", name="Table 1", capacity=2), Table(id="t2", name="Table 2", capacity=2)]
        guests = [guest("a"), guest("b"), guest("c")]
        result = arrange(guests, tables, [], constraints)
        rows = grade_tables(table_report(result, guests, tables, [], constraints))
        assert [r["table"] for r in rows] == ["Table 1", "Table 2"]
        assert rows[0]["seats_used"] == 2
        assert rows[0]["members"] == "a|b"
        assert rows[0]["score"] == pytest.approx(0.6 * 0.3 + 0.7)
        assert rows[0]["grade"] == "B"
        assert rows[1]["capacity_factor"] == 0.8
        assert rows[1]["grade"] == "A"
        assert rows[0]["fitness"] == pytest.approx((0.6 * 0.3 + 0.55) / 0.85)

    def test_grade_ignores_relationship_factor(self):
        tables = [Table(id="t1", name="Table 1", capacity=10)]
        guests = [guest("bride", "bride"), guest("groom", "groom", "groom")]
        constraints = ArrangementConstraints(keep_families_together=False)
        result = arrange(guests, tables, [], constraints)
        [row] = grade_tables(table_report(result, guests, tables, [], constraints))
        # 2 of 10 seats, relationship factor 10.0
        assert row["score"] == pytest.approx(0.4 * 0.3 + 0.55 + 10.0 * 0.15)
        assert row["fitness"] == pytest.approx((0.4 * 0.3 + 0.55) / 0.85)
        assert row["grade"] == "C"

    def test_seats_used_counts_each_guest_once(self):
        guests = [guest("a", extra=1), guest("b"), guest("x", extra=2)]
        tables = [Table(id="t1", name="Table 1", capacity=8, assigned_guests=["a", "x"])]
        result = ArrangementResult(
            success=True,
            message="",
            arranged_guests=2,
            assignments={"t1": ["a", "b"]},
            conflicts=[],
            score=0.0,
        )
        [row] = table_report(result, guests, tables, [], ArrangementConstraints())
        assert row["seats_used"] == 6
