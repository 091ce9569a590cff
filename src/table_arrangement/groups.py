"""Partition eligible guests into groups that sit together.

Relationship priorities (higher seats first):
    bride, groom: 100
    parent: 90
    sibling: 80
    grandparent: 70
    granduncle, grandaunt: 60
    uncle, aunt: 50
    cousin: 40
    friend: 30
    colleague: 20
    other: 10
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .models import (
    ArrangementConstraints,
    ElementType,
    Guest,
    GuestGroup,
    Preference,
    ProximityPreference,
    RelationshipType,
    Side,
    Table,
)
from .utils import index_guests, occupied_seats, table_ordinal, unique_guests

logger = logging.getLogger(__name__)

HEAD_TABLE_GROUP_ID = "head-table"
HEAD_TABLE_PRIORITY = 200

RELATIONSHIP_PRIORITIES: Dict[RelationshipType, int] = {
    RelationshipType.BRIDE: 100,
    RelationshipType.GROOM: 100,
    RelationshipType.PARENT: 90,
    RelationshipType.SIBLING: 80,
    RelationshipType.GRANDPARENT: 70,
    RelationshipType.GRANDUNCLE: 60,
    RelationshipType.GRANDAUNT: 60,
    RelationshipType.UNCLE: 50,
    RelationshipType.AUNT: 50,
    RelationshipType.COUSIN: 40,
    RelationshipType.FRIEND: 30,
    RelationshipType.COLLEAGUE: 20,
    RelationshipType.OTHER: 10,
}


def _pref(element_type: ElementType, preference: Preference, weight: float) -> ProximityPreference:
    return ProximityPreference(element_type=element_type, preference=preference, weight=weight)


_STAGE = ElementType.STAGE
_DANCE = ElementType.DANCE_FLOOR
_BAR = ElementType.BAR
_CLOSE = Preference.CLOSE
_FAR = Preference.FAR
_NEUTRAL = Preference.NEUTRAL

VENUE_PROXIMITY_RULES: Dict[RelationshipType, Tuple[ProximityPreference, ...]] = {
    RelationshipType.BRIDE: (_pref(_STAGE, _CLOSE, 1.0), _pref(_DANCE, _CLOSE, 0.8)),
    RelationshipType.GROOM: (_pref(_STAGE, _CLOSE, 1.0), _pref(_DANCE, _CLOSE, 0.8)),
    RelationshipType.PARENT: (_pref(_STAGE, _CLOSE, 0.9), _pref(_DANCE, _CLOSE, 0.6)),
    RelationshipType.SIBLING: (_pref(_STAGE, _CLOSE, 0.7), _pref(_DANCE, _CLOSE, 0.6)),
    RelationshipType.GRANDPARENT: (
        _pref(_STAGE, _CLOSE, 0.8),
        _pref(_BAR, _FAR, 0.5),
        _pref(_DANCE, _FAR, 0.4),
    ),
    RelationshipType.GRANDUNCLE: (_pref(_STAGE, _CLOSE, 0.6), _pref(_BAR, _NEUTRAL, 0.3)),
    RelationshipType.GRANDAUNT: (_pref(_STAGE, _CLOSE, 0.6), _pref(_BAR, _NEUTRAL, 0.3)),
    RelationshipType.UNCLE: (_pref(_STAGE, _CLOSE, 0.5),),
    RelationshipType.AUNT: (_pref(_STAGE, _CLOSE, 0.5),),
    RelationshipType.COUSIN: (_pref(_DANCE, _CLOSE, 0.4),),
    RelationshipType.COLLEAGUE: (_pref(_BAR, _CLOSE, 0.5), _pref(_STAGE, _NEUTRAL, 0.3)),
    RelationshipType.FRIEND: (_pref(_DANCE, _CLOSE, 0.7), _pref(_BAR, _CLOSE, 0.6)),
    RelationshipType.OTHER: (),
}

# Order in which VIPs claim head table seats.
HEAD_TABLE_ORDER: Tuple[RelationshipType, ...] = (
    RelationshipType.BRIDE,
    RelationshipType.GROOM,
    RelationshipType.PARENT,
    RelationshipType.SIBLING,
    RelationshipType.GRANDPARENT,
)


def relationship_priority(relationship: RelationshipType) -> int:
    return RELATIONSHIP_PRIORITIES.get(relationship, 1)


def merge_dietary(guests: Iterable[Guest]) -> List[str]:
    """Distinct dietary restrictions in first seen order."""
    seen: Dict[str, None] = {}
    for g in guests:
        for restriction in g.dietary_restrictions:
            seen.setdefault(restriction, None)
    return list(seen)


def majority_side(guests: Sequence[Guest]) -> Side:
    """Side most members belong to. Ties resolve to ``mixed``."""
    bride = sum(1 for g in guests if g.side == Side.BRIDE)
    groom = sum(1 for g in guests if g.side == Side.GROOM)
    if bride > groom:
        return Side.BRIDE
    if groom > bride:
        return Side.GROOM
    return Side.MIXED


def group_from_family(
    members: List[Guest], side: Side, relationship: RelationshipType
) -> GuestGroup:
    return GuestGroup(
        id=f"{side.value}-{relationship.value}",
        guests=members,
        priority=relationship_priority(relationship),
        preferred_side=side,
        dietary_restrictions=merge_dietary(members),
        relationship_type=relationship,
        proximity_preferences=list(VENUE_PROXIMITY_RULES.get(relationship, ())),
    )


def group_from_guests(guests: Sequence[Guest], group_id: str = "mixed-group") -> GuestGroup:
    """Build a synthetic group around an arbitrary set of guests.

    Priority is the mean relationship priority of the members. The side is
    decided by majority vote and the relationship type is ``other``; no
    proximity preferences are attached.
    """
    members = list(guests)
    priority = (
        sum(relationship_priority(g.relationship_type) for g in members) / len(members)
        if members
        else 0.0
    )
    return GuestGroup(
        id=group_id,
        guests=members,
        priority=priority,
        preferred_side=majority_side(members),
        dietary_restrictions=merge_dietary(members),
        relationship_type=RelationshipType.OTHER,
        proximity_preferences=[],
    )


def singleton_group(guest: Guest) -> GuestGroup:
    return GuestGroup(
        id=f"guest-{guest.id}",
        guests=[guest],
        priority=relationship_priority(guest.relationship_type),
        preferred_side=guest.side,
        dietary_restrictions=merge_dietary([guest]),
        relationship_type=guest.relationship_type,
        proximity_preferences=[],
    )


def build_head_table_group(
    guests: Sequence[Guest], tables: Sequence[Table]
) -> Optional[GuestGroup]:
    """Collect VIP guests that fit the lowest numbered unlocked table.

    Returns ``None`` when there is no unlocked table or no VIP fits.
    """
    unlocked = [t for t in tables if not t.is_locked]
    if not unlocked:
        return None
    head = sorted(unlocked, key=lambda t: table_ordinal(t.name))[0]
    guests_by_id = index_guests(guests)
    remaining = head.capacity - occupied_seats(head, guests_by_id)

    vips: List[Guest] = []
    for relationship in HEAD_TABLE_ORDER:
        if remaining <= 0:
            break
        for guest in guests_by_id.values():
            if guest.relationship_type != relationship:
                continue
            if guest.seats <= remaining:
                vips.append(guest)
                remaining -= guest.seats
            if remaining <= 0:
                break

    if not vips:
        return None

    preferences: List[ProximityPreference] = []
    added = set()
    for guest in vips:
        for pref in VENUE_PROXIMITY_RULES.get(guest.relationship_type, ()):
            key = (pref.element_type, pref.preference)
            if key not in added:
                added.add(key)
                preferences.append(pref)

    logger.debug("head table %s reserved for %d guests", head.name, len(vips))
    return GuestGroup(
        id=HEAD_TABLE_GROUP_ID,
        guests=vips,
        priority=HEAD_TABLE_PRIORITY,
        preferred_side=Side.MIXED,
        dietary_restrictions=merge_dietary(vips),
        relationship_type=RelationshipType.BRIDE,
        proximity_preferences=preferences,
    )


def build_groups(
    guests: Sequence[Guest],
    constraints: ArrangementConstraints,
    tables: Sequence[Table] = (),
) -> List[GuestGroup]:
    """Partition accepted guests into seating groups, highest priority first."""
    groups: List[GuestGroup] = []
    placed: set = set()

    if constraints.reserve_head_table:
        head = build_head_table_group(guests, tables)
        if head is not None:
            groups.append(head)
            placed.update(head.guest_ids)

    remaining = [g for g in unique_guests(guests) if g.id not in placed]
    if constraints.keep_families_together:
        families: Dict[Tuple[Side, RelationshipType], List[Guest]] = {}
        for guest in remaining:
            families.setdefault((guest.side, guest.relationship_type), []).append(guest)
        for (side, relationship), members in families.items():
            groups.append(group_from_family(members, side, relationship))
    else:
        for guest in remaining:
            groups.append(singleton_group(guest))

    # sorted() is stable so equal priorities keep first-seen order
    groups = sorted(groups, key=lambda grp: -grp.priority)
    logger.debug("built %d groups from %d guests", len(groups), len(guests))
    return groups
