"""Command line interface for table_arrangement."""
from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Sequence

from .csv_loader import load_all
from .models import ArrangementConstraints
from .report import grade_tables, table_report
from .solver import ArrangementModel, apply_assignment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Automatic guest table arrangement")
    parser.add_argument("--guests", required=True, type=Path, help="Path to guests.csv")
    parser.add_argument("--tables", required=True, type=Path, help="Path to tables.csv")
    parser.add_argument("--venue", type=Path, help="Path to venue.csv with stage, bar, ... positions")
    parser.add_argument("--no-relationships", action="store_true",
                        help="Ignore relationship priority when scoring tables.")
    parser.add_argument("--no-dietary", action="store_true",
                        help="Ignore dietary restrictions when scoring tables.")
    parser.add_argument("--no-families", action="store_true",
                        help="Seat every guest on their own instead of by side and relationship.")
    parser.add_argument("--no-proximity", action="store_true",
                        help="Ignore distance to venue elements when scoring tables.")
    parser.add_argument("--head-table", action="store_true",
                        help="Reserve the lowest numbered table for the couple and close family.")
    parser.add_argument("--min-guests-per-table", type=int, default=2,
                        help="Minimum guests per table (default: 2).")
    parser.add_argument("--preferred-table-distance", type=float, default=100.0,
                        help="Preferred distance between tables (default: 100).")
    parser.add_argument("--out-assignments", type=Path,
                        help="Write assignments CSV: guest_id,guest_name,table_id,table_name.")
    parser.add_argument("--out-report", type=Path,
                        help="Write per-table report CSV with scores and grades.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log assignment decisions.")
    return parser


def constraints_from_args(args: argparse.Namespace) -> ArrangementConstraints:
    return ArrangementConstraints(
        respect_relationships=not args.no_relationships,
        consider_dietary_restrictions=not args.no_dietary,
        keep_families_together=not args.no_families,
        optimize_venue_proximity=not args.no_proximity,
        min_guests_per_table=args.min_guests_per_table,
        preferred_table_distance=args.preferred_table_distance,
        reserve_head_table=args.head_table,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by ``python -m table_arrangement.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        guests, tables, venue = load_all(args.guests, args.tables, args.venue)
    except (OSError, ValueError) as e:
        print(f"Error loading input: {e}", file=sys.stderr)
        return 1

    constraints = constraints_from_args(args)
    model = ArrangementModel(constraints)
    model.build(guests, tables, venue)
    result = model.solve()

    print(result.message)
    if not result.success:
        return 1

    new_guests, new_tables = apply_assignment(guests, tables, result.assignments)
    guest_by_id = {g.id: g for g in new_guests}
    table_by_id = {t.id: t for t in new_tables}

    # Print simple assignments
    for table_id, guest_ids in result.assignments.items():
        for gid in guest_ids:
            print(f"{guest_by_id[gid].name},{table_by_id[table_id].name}")

    for conflict in result.conflicts:
        print(f"[{conflict.severity.upper()}] {conflict.message}", file=sys.stderr)

    if args.out_assignments:
        args.out_assignments.parent.mkdir(parents=True, exist_ok=True)
        with args.out_assignments.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["guest_id", "guest_name", "table_id", "table_name"])
            for table_id, guest_ids in result.assignments.items():
                for gid in guest_ids:
                    w.writerow([gid, guest_by_id[gid].name, table_id, table_by_id[table_id].name])

    graded = grade_tables(table_report(result, guests, tables, venue, constraints))

    # Print a compact table summary
    for s in graded:
        print(f"[REPORT] {s['table']} grade={s['grade']} fitness={s['fitness']:.2f} "
              f"score={s['score']:.2f} seats={s['seats_used']}/{s['capacity']}")
    print(f"Overall score: {result.score:.3f}")

    if args.out_report:
        args.out_report.parent.mkdir(parents=True, exist_ok=True)
        with args.out_report.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=[
                "table", "grade", "fitness", "score", "seats_used", "capacity", "capacity_factor",
                "dietary_factor", "proximity_factor", "relationship_factor", "members",
            ])
            w.writeheader()
            for s in graded:
                w.writerow({
                    "table": s["table"],
                    "grade": s["grade"],
                    "fitness": f"{s['fitness']:.4f}",
                    "score": f"{s['score']:.4f}",
                    "seats_used": s["seats_used"],
                    "capacity": s["capacity"],
                    "capacity_factor": f"{s['capacity_factor']:.4f}",
                    "dietary_factor": f"{s['dietary_factor']:.4f}",
                    "proximity_factor": f"{s['proximity_factor']:.4f}",
                    "relationship_factor": f"{s['relationship_factor']:.4f}",
                    "members": s["members"],
                })
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
