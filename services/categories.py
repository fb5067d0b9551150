"""Category service for database operations."""

import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from models.category import Category
from logger import get_logger

logger = get_logger()

_SELECT_WITH_COUNT = """
    SELECT c.id, c.name, c.is_system, c.created_at, c.updated_at, c.emoji,
           COUNT(gc.game_id) AS game_count
    FROM categories c
    LEFT JOIN game_categories gc ON c.id = gc.category_id
"""

_GROUP_BY = " GROUP BY c.id, c.name, c.is_system, c.created_at, c.updated_at, c.emoji"


def _now() -> str:
    """Current UTC time in a fixed-width, lexicographically sortable format."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _row_to_category(row) -> Category:
    return Category(
        id=row[0],
        name=row[1],
        is_system=bool(row[2]),
        created_at=row[3],
        updated_at=row[4],
        emoji=row[5],
        game_count=row[6],
    )


class CategoryService:
    """Service for managing categories and their game membership."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self) -> List[Category]:
        """Get all categories from the database.

        Returns:
            List of Category objects with game counts, in creation order.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                _SELECT_WITH_COUNT + _GROUP_BY + " ORDER BY c.created_at, c.rowid"
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: str) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                _SELECT_WITH_COUNT + " WHERE c.id = ?" + _GROUP_BY,
                (category_id,),
            )
            row = cursor.fetchone()
            return _row_to_category(row) if row else None

    def find_by_name(self, name: str) -> Optional[Category]:
        """Get a single category by exact name."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                _SELECT_WITH_COUNT + " WHERE c.name = ?" + _GROUP_BY + " ORDER BY c.created_at",
                (name,),
            )
            row = cursor.fetchone()
            return _row_to_category(row) if row else None

    def create(
        self,
        name: str,
        emoji: Optional[str] = None,
        is_system: bool = False,
    ) -> Category:
        """Create a new category.

        The ID and timestamps are generated here; new categories start empty.

        Args:
            name: Category name.
            emoji: Optional icon.
            is_system: Whether the category is protected.

        Returns:
            The created Category object.
        """
        category_id = str(uuid.uuid4())
        now = _now()
        with self.db_manager.connect() as conn:
            conn.execute(
                "INSERT INTO categories (id, name, emoji, is_system, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (category_id, name, emoji, int(is_system), now, now),
            )
            conn.commit()

        logger.debug(f"Created category '{name}' ({category_id})")
        return Category(
            id=category_id,
            name=name,
            is_system=is_system,
            game_count=0,
            created_at=now,
            updated_at=now,
            emoji=emoji,
        )

    def update(
        self, category_id: str, name: str, emoji: Optional[str] = None
    ) -> Category:
        """Rename an existing category.

        Args:
            category_id: The category ID to update.
            name: New category name.
            emoji: New icon (None keeps the current one).

        Returns:
            The updated Category object.

        Raises:
            ValueError: If the category is not found or is a system category.
        """
        existing = self.find(category_id)
        if existing is None:
            raise ValueError(f"Category with ID {category_id} not found")
        if existing.is_system:
            raise ValueError(f"Cannot modify system category '{existing.name}'")

        with self.db_manager.connect() as conn:
            conn.execute(
                "UPDATE categories SET name = ?, emoji = COALESCE(?, emoji), updated_at = ? "
                "WHERE id = ?",
                (name, emoji, _now(), category_id),
            )
            conn.commit()

        return self.find(category_id)

    def delete(self, category_id: str) -> bool:
        """Delete a category and its game membership.

        Args:
            category_id: The category ID to delete.

        Returns:
            True if category was deleted, False if not found.

        Raises:
            ValueError: If the category is a system category.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT is_system, name FROM categories WHERE id = ?", (category_id,)
            ).fetchone()
            if row is None:
                return False
            if row[0]:
                logger.warning(f"Attempt to delete system category '{row[1]}'")
                raise ValueError(f"Cannot delete system category '{row[1]}'")

            try:
                conn.execute(
                    "DELETE FROM game_categories WHERE category_id = ?", (category_id,)
                )
                cursor = conn.execute(
                    "DELETE FROM categories WHERE id = ?", (category_id,)
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            return cursor.rowcount > 0

    def add_game(self, category_id: str, game_id: str) -> bool:
        """Add a game to a category.

        Returns:
            True if the game was added, False if it was already a member.

        Raises:
            ValueError: If the category does not exist.
        """
        with self.db_manager.connect() as conn:
            if not self._exists(conn, category_id):
                raise ValueError(f"Category with ID {category_id} not found")
            now = _now()
            cursor = conn.execute(
                "INSERT OR IGNORE INTO game_categories (game_id, category_id, added_at) "
                "VALUES (?, ?, ?)",
                (game_id, category_id, now),
            )
            if cursor.rowcount > 0:
                self._touch(conn, category_id, now)
            conn.commit()
            return cursor.rowcount > 0

    def remove_game(self, category_id: str, game_id: str) -> bool:
        """Remove a game from a category.

        Returns:
            True if the game was removed, False if it was not a member.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM game_categories WHERE game_id = ? AND category_id = ?",
                (game_id, category_id),
            )
            if cursor.rowcount > 0:
                self._touch(conn, category_id, _now())
            conn.commit()
            return cursor.rowcount > 0

    def find_game_ids(self, category_id: str) -> List[str]:
        """List the games in a category, most recently added first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT game_id FROM game_categories WHERE category_id = ? "
                "ORDER BY added_at DESC, game_id",
                (category_id,),
            )
            return [row[0] for row in cursor.fetchall()]

    def find_by_game(self, game_id: str) -> List[Category]:
        """List the categories a game belongs to, in creation order.

        Game counts are the full counts of each category, not just this game.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                _SELECT_WITH_COUNT
                + " WHERE c.id IN (SELECT category_id FROM game_categories WHERE game_id = ?)"
                + _GROUP_BY
                + " ORDER BY c.created_at, c.rowid",
                (game_id,),
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def ensure_system_categories(self, names: Iterable[str]) -> List[Category]:
        """Create any missing system categories.

        Args:
            names: Names of the protected categories that must exist.

        Returns:
            The system categories that were created (empty if all existed).
        """
        created = []
        for name in names:
            with self.db_manager.connect() as conn:
                row = conn.execute(
                    "SELECT COUNT(*) FROM categories WHERE is_system = 1 AND name = ?",
                    (name,),
                ).fetchone()
            if row[0] == 0:
                created.append(self.create(name, is_system=True))
                logger.info(f"Created system category '{name}'")
        return created

    @staticmethod
    def _exists(conn, category_id: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM categories WHERE id = ?", (category_id,)
        ).fetchone()
        return row is not None

    @staticmethod
    def _touch(conn, category_id: str, now: str) -> None:
        conn.execute(
            "UPDATE categories SET updated_at = ? WHERE id = ?", (now, category_id)
        )
