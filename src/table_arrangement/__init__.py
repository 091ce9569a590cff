"""table_arrangement package."""
from .models import (
    ArrangementConstraints,
    ArrangementResult,
    Conflict,
    ElementType,
    Guest,
    GuestGroup,
    Position,
    RelationshipType,
    RsvpStatus,
    Side,
    Table,
    TableScore,
    VenueElement,
)
from .csv_loader import (
    load_guests,
    load_tables,
    load_venue_elements,
    load_all,
)
from .solver import ArrangementModel, apply_assignment, arrange

__all__ = [
    "ArrangementConstraints",
    "ArrangementResult",
    "Conflict",
    "ElementType",
    "Guest",
    "GuestGroup",
    "Position",
    "RelationshipType",
    "RsvpStatus",
    "Side",
    "Table",
    "TableScore",
    "VenueElement",
    "load_guests",
    "load_tables",
    "load_venue_elements",
    "load_all",
    "ArrangementModel",
    "apply_assignment",
    "arrange",
]
