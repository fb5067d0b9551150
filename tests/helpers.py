"""Helper utilities for tests."""

import asyncio
from collections import deque
from dataclasses import replace
from typing import List, Optional

from models.category import Category
from services.errors import FetchError, MutationError
from services.remote import RemoteCategoryService


def make_category(
    name: str,
    game_count: Optional[int] = 0,
    category_id: Optional[str] = None,
    is_system: bool = False,
    created_at: Optional[str] = "2024-01-01T00:00:00.000000Z",
    updated_at: Optional[str] = None,
) -> Category:
    """Build a Category with sensible defaults for tests."""
    return Category(
        id=category_id or f"id-{name.lower()}",
        name=name,
        is_system=is_system,
        game_count=game_count,
        created_at=created_at,
        updated_at=updated_at or created_at,
    )


class FakeRemote(RemoteCategoryService):
    """In-memory category backend with scripted list responses.

    Every call is recorded in ``calls``. Set the ``fail_*`` flags to make the
    matching operation raise. ``script_list`` queues a response for the next
    list call, optionally held until an asyncio.Event is set, so tests can
    control the order in which concurrent refreshes complete.
    """

    def __init__(self, categories: Optional[List[Category]] = None):
        self.categories = list(categories or [])
        self.calls = []
        self.fail_list = False
        self.fail_create = False
        self.fail_update = False
        self.fail_delete = False
        self._scripted = deque()
        self._next_id = 1

    def script_list(self, categories: List[Category], gate: Optional[asyncio.Event] = None):
        self._scripted.append((list(categories), gate))

    async def list_categories(self) -> List[Category]:
        self.calls.append(("list",))
        if self._scripted:
            categories, gate = self._scripted.popleft()
            if gate is not None:
                await gate.wait()
            return categories
        if self.fail_list:
            raise FetchError("backend unavailable")
        return list(self.categories)

    async def get_category(self, category_id: str) -> Optional[Category]:
        self.calls.append(("get", category_id))
        return next((c for c in self.categories if c.id == category_id), None)

    async def create_category(self, name: str, emoji: Optional[str] = None) -> Category:
        self.calls.append(("create", name))
        if self.fail_create:
            raise MutationError("create rejected by backend")
        category = replace(
            make_category(name, category_id=f"new-{self._next_id}"), emoji=emoji
        )
        self._next_id += 1
        self.categories.append(category)
        return category

    async def update_category(
        self, category_id: str, name: str, emoji: Optional[str] = None
    ) -> Category:
        self.calls.append(("update", category_id, name))
        if self.fail_update:
            raise MutationError("update rejected by backend")
        for index, category in enumerate(self.categories):
            if category.id == category_id:
                renamed = replace(category, name=name)
                self.categories[index] = renamed
                return renamed
        raise MutationError(f"Category with ID {category_id} not found")

    async def delete_category(self, category_id: str) -> None:
        self.calls.append(("delete", category_id))
        if self.fail_delete:
            raise MutationError("delete rejected by backend")
        remaining = [c for c in self.categories if c.id != category_id]
        if len(remaining) == len(self.categories):
            raise MutationError(f"Category with ID {category_id} not found")
        self.categories = remaining

    def remote_calls(self, kind: str):
        return [call for call in self.calls if call[0] == kind]
