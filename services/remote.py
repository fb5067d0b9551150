"""Asynchronous boundary to the category service.

The store and mutation controller only talk to a RemoteCategoryService.
LocalCategoryBackend serves it from the sqlite CategoryService, running
each call on a worker thread so the event loop is never blocked.
"""

import asyncio
import sqlite3
from abc import ABC, abstractmethod
from typing import List, Optional
from models.category import Category
from services.categories import CategoryService
from services.errors import FetchError, MutationError
from logger import get_logger

logger = get_logger()


class RemoteCategoryService(ABC):
    """Abstract base class for category backends.

    Read failures are raised as FetchError, write failures as MutationError.
    """

    @abstractmethod
    async def list_categories(self) -> List[Category]:
        """Return every category, in the service's order.

        Raises:
            FetchError: If the categories could not be listed.
        """

    @abstractmethod
    async def create_category(self, name: str, emoji: Optional[str] = None) -> Category:
        """Create a category. The service assigns id and timestamps.

        Raises:
            MutationError: If the category could not be created.
        """

    @abstractmethod
    async def update_category(
        self, category_id: str, name: str, emoji: Optional[str] = None
    ) -> Category:
        """Rename a category.

        Raises:
            MutationError: If the category is missing, protected, or the write failed.
        """

    @abstractmethod
    async def delete_category(self, category_id: str) -> None:
        """Delete a category.

        Raises:
            MutationError: If the category is missing, protected, or the write failed.
        """

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        """Look up a single category, or None if it does not exist.

        Raises:
            FetchError: If the lookup failed.
        """


class LocalCategoryBackend(RemoteCategoryService):
    """RemoteCategoryService backed by the local sqlite CategoryService.

    Args:
        categories: The synchronous category service to delegate to.
    """

    def __init__(self, categories: CategoryService):
        self.categories = categories

    async def list_categories(self) -> List[Category]:
        try:
            return await asyncio.to_thread(self.categories.find_all)
        except sqlite3.Error as e:
            logger.error(f"Failed to list categories: {e}")
            raise FetchError("Failed to load categories", cause=e) from e

    async def get_category(self, category_id: str) -> Optional[Category]:
        try:
            return await asyncio.to_thread(self.categories.find, category_id)
        except sqlite3.Error as e:
            logger.error(f"Failed to load category {category_id}: {e}")
            raise FetchError(f"Failed to load category {category_id}", cause=e) from e

    async def create_category(self, name: str, emoji: Optional[str] = None) -> Category:
        try:
            return await asyncio.to_thread(self.categories.create, name, emoji)
        except sqlite3.Error as e:
            logger.error(f"Failed to create category '{name}': {e}")
            raise MutationError(f"Failed to create category '{name}'", cause=e) from e

    async def update_category(
        self, category_id: str, name: str, emoji: Optional[str] = None
    ) -> Category:
        try:
            return await asyncio.to_thread(
                self.categories.update, category_id, name, emoji
            )
        except (ValueError, sqlite3.Error) as e:
            logger.error(f"Failed to update category {category_id}: {e}")
            raise MutationError(str(e), cause=e) from e

    async def delete_category(self, category_id: str) -> None:
        try:
            deleted = await asyncio.to_thread(self.categories.delete, category_id)
        except (ValueError, sqlite3.Error) as e:
            logger.error(f"Failed to delete category {category_id}: {e}")
            raise MutationError(str(e), cause=e) from e

        if not deleted:
            raise MutationError(f"Category with ID {category_id} not found")
