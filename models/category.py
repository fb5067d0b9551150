"""Category model for game collections."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Category:
    """Represents a named collection of games.

    Attributes:
        id: Unique identifier assigned by the category service (UUID string).
        name: Display name. Only changed through a rename.
        is_system: Protected categories cannot be deleted or renamed.
        game_count: Number of games in the category, computed by the service.
        created_at: ISO-8601 creation timestamp.
        updated_at: ISO-8601 timestamp of the last change, never before created_at.
        emoji: Optional icon shown next to the name.
    """

    id: str
    name: str
    is_system: bool = False
    game_count: Optional[int] = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    emoji: Optional[str] = None
