"""User-initiated category changes.

Writes are not optimistic: the store only changes once the service has
acknowledged the write and a refresh has brought back the new state,
including server-computed fields such as game_count and updated_at.
"""

from dataclasses import dataclass
from typing import Optional
from models.category import Category
from services.errors import FetchError, MutationError
from services.remote import RemoteCategoryService
from services.store import CategoryStore
from logger import get_logger

logger = get_logger()


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a create, rename or delete.

    Attributes:
        ok: True when the service acknowledged the write.
        category: The category returned by the service (create and rename).
        error: Why the mutation failed or was rejected.
        stale: The write succeeded but the follow-up refresh failed, so the
            store still shows the previous snapshot.
        cancelled: The user declined the confirmation; nothing was sent.
        refresh_error: The refresh failure behind a stale result.
    """

    ok: bool
    category: Optional[Category] = None
    error: Optional[MutationError] = None
    stale: bool = False
    cancelled: bool = False
    refresh_error: Optional[FetchError] = None


def _rejected(message: str) -> MutationResult:
    logger.warning(message)
    return MutationResult(ok=False, error=MutationError(message))


def _failed(e: Exception, message: str) -> MutationResult:
    error = e if isinstance(e, MutationError) else MutationError(f"{message}: {e}", cause=e)
    logger.error(f"{message}: {error}")
    return MutationResult(ok=False, error=error)


class MutationController:
    """Validates user changes, sends them to the service and refreshes the store.

    Args:
        remote: Category service that performs the writes.
        store: Store to refresh after every acknowledged write.
    """

    def __init__(self, remote: RemoteCategoryService, store: CategoryStore):
        self.remote = remote
        self.store = store

    async def create(self, name: str, emoji: Optional[str] = None) -> MutationResult:
        """Create a category named name (surrounding whitespace removed).

        A blank name is rejected without calling the service. On failure the
        caller should keep its input so the user can retry.
        """
        trimmed = (name or "").strip()
        if not trimmed:
            return _rejected("Category name cannot be empty.")

        try:
            category = await self.remote.create_category(trimmed, emoji)
        except Exception as e:
            return _failed(e, f"Error creating category '{trimmed}'")

        logger.info(f"Created category '{category.name}' ({category.id})")
        return await self._after_write(category)

    async def rename(self, category: Category, name: str) -> MutationResult:
        """Rename a category. System categories and blank names are rejected locally."""
        if category.is_system:
            return _rejected(f"Cannot rename system category '{category.name}'.")

        trimmed = (name or "").strip()
        if not trimmed:
            return _rejected("Category name cannot be empty.")

        try:
            updated = await self.remote.update_category(category.id, trimmed)
        except Exception as e:
            return _failed(e, f"Error renaming category '{category.name}'")

        logger.info(f"Renamed category '{category.name}' to '{updated.name}'")
        return await self._after_write(updated)

    async def delete(self, category: Category, confirmed: bool) -> MutationResult:
        """Delete a category once the user has confirmed.

        System categories are rejected before confirmation is considered and
        never reach the service. An unconfirmed delete is cancelled.
        """
        if category.is_system:
            return _rejected(f"Cannot delete system category '{category.name}'.")

        if not confirmed:
            logger.info(f"Deletion of '{category.name}' cancelled")
            return MutationResult(ok=False, cancelled=True)

        try:
            await self.remote.delete_category(category.id)
        except Exception as e:
            return _failed(e, f"Error deleting category '{category.name}'")

        logger.info(f"Deleted category '{category.name}' ({category.id})")
        return await self._after_write(category)

    async def _after_write(self, category: Category) -> MutationResult:
        refresh = await self.store.refresh()
        if not refresh.ok:
            logger.warning(
                "Change saved but the category list could not be reloaded; "
                "showing the previous list"
            )
        return MutationResult(
            ok=True,
            category=category,
            stale=not refresh.ok,
            refresh_error=refresh.error,
        )
