"""Data models for table_arrangement."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
import math


def parse_pipe_list(value: object) -> List[str]:
    """Split a pipe separated string into a list.

    Empty values such as ``""`` or ``None`` return an empty list.
    ``pandas`` often provides ``float('nan')`` for missing values which is
    also treated as empty.
    """
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        return []
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return []
    return [part.strip() for part in text.split("|") if part.strip()]


def parse_bool(value: object) -> bool:
    """Parse common truthy strings into bool."""
    return str(value).strip().lower() in ("true", "1", "yes")


class RsvpStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    NO_RESPONSE = "no_response"
    NOT_INVITED = "not_invited"


class RelationshipType(str, Enum):
    BRIDE = "bride"
    GROOM = "groom"
    PARENT = "parent"
    SIBLING = "sibling"
    GRANDPARENT = "grandparent"
    GRANDUNCLE = "granduncle"
    GRANDAUNT = "grandaunt"
    UNCLE = "uncle"
    AUNT = "aunt"
    COUSIN = "cousin"
    COLLEAGUE = "colleague"
    FRIEND = "friend"
    OTHER = "other"


class Side(str, Enum):
    BRIDE = "bride"
    GROOM = "groom"
    MIXED = "mixed"


class ElementType(str, Enum):
    STAGE = "stage"
    DANCE_FLOOR = "dance_floor"
    BAR = "bar"
    ENTRANCE = "entrance"
    WALKWAY = "walkway"
    DECORATION = "decoration"


class Preference(str, Enum):
    CLOSE = "close"
    FAR = "far"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def distance_to(self, other: "Position") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass
class Guest:
    """Representation of an event guest."""

    id: str
    name: str
    rsvp_status: RsvpStatus = RsvpStatus.PENDING
    relationship_type: RelationshipType = RelationshipType.OTHER
    side: Side = Side.BRIDE
    dietary_restrictions: List[str] = field(default_factory=list)
    additional_guest_count: int = 0
    table_id: Optional[str] = None

    @property
    def seats(self) -> int:
        """Seats taken by the guest and everyone accompanying them."""
        return 1 + self.additional_guest_count


@dataclass
class Table:
    """Physical seating table."""

    id: str
    name: str
    capacity: int
    position: Position = field(default_factory=Position)
    is_locked: bool = False
    assigned_guests: List[str] = field(default_factory=list)


@dataclass
class VenueElement:
    """Fixed venue feature used for proximity scoring."""

    id: str
    element_type: ElementType
    position: Position = field(default_factory=Position)


@dataclass
class ArrangementConstraints:
    """Caller supplied switches and tuning values for an arrangement run."""

    respect_relationships: bool = True
    consider_dietary_restrictions: bool = True
    keep_families_together: bool = True
    optimize_venue_proximity: bool = True
    min_guests_per_table: int = 2
    preferred_table_distance: float = 100.0
    # Seat the couple and close family at the lowest numbered table first.
    reserve_head_table: bool = False


@dataclass(frozen=True)
class ProximityPreference:
    element_type: ElementType
    preference: Preference
    weight: float


@dataclass
class GuestGroup:
    """Guests that must be seated at the same table."""

    id: str
    guests: List[Guest]
    priority: float
    preferred_side: Side
    dietary_restrictions: List[str] = field(default_factory=list)
    relationship_type: RelationshipType = RelationshipType.OTHER
    proximity_preferences: List[ProximityPreference] = field(default_factory=list)

    @property
    def required_seats(self) -> int:
        return sum(g.seats for g in self.guests)

    @property
    def guest_ids(self) -> List[str]:
        return [g.id for g in self.guests]


@dataclass(frozen=True)
class ScoreFactors:
    capacity: float
    balance: float
    dietary: float
    proximity: float
    relationship: float


@dataclass(frozen=True)
class TableScore:
    """Fitness of one table for one group."""

    table_id: str
    score: float
    factors: ScoreFactors


@dataclass
class Conflict:
    """Post-hoc diagnostic about a produced assignment."""

    kind: str
    severity: str
    message: str
    affected_guests: List[str] = field(default_factory=list)
    affected_tables: List[str] = field(default_factory=list)


@dataclass
class ArrangementResult:
    """Outcome of a single arrangement run."""

    success: bool
    message: str
    arranged_guests: int = 0
    assignments: Dict[str, List[str]] = field(default_factory=dict)
    conflicts: List[Conflict] = field(default_factory=list)
    score: float = 0.0
