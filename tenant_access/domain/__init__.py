"""Domain layer package exposing pure business abstractions."""

from . import entities
from . import events
from . import interfaces
from . import repositories

__all__ = [
    "entities",
    "events",
    "interfaces",
    "repositories",
]
