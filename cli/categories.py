#!/usr/bin/env python3

import sys
import asyncio
from typing import Optional
from dateutil.parser import isoparse
from models.category import Category
from models.view import SortKey, SortOrder
from services.errors import FetchError
from services.query import derive_view
from logger import get_logger

logger = get_logger()


def format_timestamp(value: Optional[str]) -> str:
    """Render a stored ISO timestamp for display."""
    if not value:
        return "-"
    try:
        return isoparse(value).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


def _label(category: Category) -> str:
    prefix = f"{category.emoji} " if category.emoji else ""
    suffix = " [system]" if category.is_system else ""
    return f"{prefix}{category.name}{suffix}"


async def _load(services) -> bool:
    result = await services.store.refresh()
    if not result.ok:
        logger.error(f"Error loading categories: {result.error}")
    return result.ok


async def _find(services, category_id: str) -> Optional[Category]:
    try:
        category = await services.remote.get_category(category_id)
    except FetchError as e:
        logger.error(f"Error loading category: {e}")
        return None
    if category is None:
        logger.error(f"Category with ID {category_id} not found.")
    return category


def _lookup(services, category_ref: str) -> Optional[Category]:
    """Find a category by ID, falling back to an exact name match."""
    category = services.categories.find(category_ref)
    if category is None:
        category = services.categories.find_by_name(category_ref)
    if category is None:
        logger.error(f"No category with ID or name '{category_ref}'.")
    return category


def cmd_list(args, services):
    """List categories, optionally filtered and sorted."""
    if not asyncio.run(_load(services)):
        sys.exit(1)

    categories = derive_view(
        services.store.current_snapshot(), args.search or "", args.sort, args.order
    )

    if not categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in categories:
        logger.info(f"ID: {category.id}")
        logger.info(f"Name: {_label(category)}")
        logger.info(f"Games: {category.game_count or 0}")
        logger.info(f"Created: {format_timestamp(category.created_at)}")
        logger.info(f"Updated: {format_timestamp(category.updated_at)}")
        logger.info("-" * 80)

    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_create(args, services):
    """Create a new category."""
    result = asyncio.run(services.mutations.create(args.name, args.emoji))
    if not result.ok:
        logger.error(f"Error creating category: {result.error}")
        sys.exit(1)

    logger.info(f"✓ Category created successfully with ID: {result.category.id}")
    logger.info(f"  Name: {_label(result.category)}")
    if result.stale:
        logger.warning("Category list could not be reloaded.")


def cmd_rename(args, services):
    """Rename a category."""
    category = asyncio.run(_find(services, args.category_id))
    if category is None:
        sys.exit(1)

    result = asyncio.run(services.mutations.rename(category, args.name))
    if not result.ok:
        logger.error(f"Error renaming category: {result.error}")
        sys.exit(1)

    logger.info(f"✓ Category renamed to '{result.category.name}'.")


def cmd_delete(args, services):
    """Delete a category by ID after confirmation."""
    category = asyncio.run(_find(services, args.category_id))
    if category is None:
        sys.exit(1)

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {_label(category)}")
    logger.info(f"  Games: {category.game_count or 0}")

    confirmed = args.yes
    if not confirmed and not category.is_system:
        answer = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        confirmed = answer == "yes"

    result = asyncio.run(services.mutations.delete(category, confirmed))
    if result.cancelled:
        logger.info("Deletion cancelled.")
        return
    if not result.ok:
        logger.error(f"Error deleting category: {result.error}")
        sys.exit(1)

    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def cmd_add_game(args, services):
    """Add a game to a category."""
    try:
        added = services.categories.add_game(args.category_id, args.game_id)
    except ValueError as e:
        logger.error(f"Error adding game: {e}")
        sys.exit(1)

    if added:
        logger.info(f"✓ Added game {args.game_id} to category {args.category_id}.")
    else:
        logger.info(f"⊘ Game {args.game_id} is already in category {args.category_id}.")


def cmd_remove_game(args, services):
    """Remove a game from a category."""
    if services.categories.remove_game(args.category_id, args.game_id):
        logger.info(f"✓ Removed game {args.game_id} from category {args.category_id}.")
    else:
        logger.error(f"Game {args.game_id} is not in category {args.category_id}.")
        sys.exit(1)


def cmd_show(args, services):
    """Show one category and the games in it."""
    category = _lookup(services, args.category)
    if category is None:
        sys.exit(1)

    logger.info(f"\n{_label(category)}")
    logger.info("=" * 80)
    logger.info(f"ID: {category.id}")
    logger.info(f"Created: {format_timestamp(category.created_at)}")
    logger.info(f"Updated: {format_timestamp(category.updated_at)}")

    game_ids = services.categories.find_game_ids(category.id)
    if not game_ids:
        logger.info("No games in this category.")
        return

    logger.info(f"Games ({len(game_ids)}):")
    for game_id in game_ids:
        logger.info(f"  {game_id}")


def cmd_for_game(args, services):
    """List the categories a game belongs to."""
    categories = services.categories.find_by_game(args.game_id)
    if not categories:
        logger.info(f"Game {args.game_id} is not in any category.")
        return

    logger.info(f"\nCategories for game {args.game_id}:")
    for category in categories:
        logger.info(f"  {_label(category)} ({category.id})")


def setup_parser(subparsers, config=None):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
        config: Optional config supplying the default sort key and order
    """
    default_sort = config.default_sort if config else SortKey.NAME.value
    default_order = config.default_order if config else SortOrder.ASC.value

    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="List, create, rename and delete game categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="List categories")
    list_parser.add_argument(
        "--search", "-s", help="Only show categories whose name contains this text"
    )
    list_parser.add_argument(
        "--sort",
        choices=[key.value for key in SortKey],
        default=default_sort,
        help=f"Field to sort by (default: {default_sort})",
    )
    list_parser.add_argument(
        "--order",
        choices=[order.value for order in SortOrder],
        default=default_order,
        help=f"Sort direction (default: {default_order})",
    )
    list_parser.set_defaults(func=cmd_list)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category"
    )
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("--emoji", help="Optional icon for the category")
    create_parser.set_defaults(func=cmd_create)

    # categories rename
    rename_parser = categories_subparsers.add_parser(
        "rename", help="Rename a category"
    )
    rename_parser.add_argument("category_id", help="ID of the category to rename")
    rename_parser.add_argument("name", help="New category name")
    rename_parser.set_defaults(func=cmd_rename)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument("category_id", help="ID of the category to delete")
    delete_parser.add_argument(
        "--yes", "-y", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories add-game
    add_game_parser = categories_subparsers.add_parser(
        "add-game", help="Add a game to a category"
    )
    add_game_parser.add_argument("category_id", help="Category ID")
    add_game_parser.add_argument("game_id", help="Game ID")
    add_game_parser.set_defaults(func=cmd_add_game)

    # categories remove-game
    remove_game_parser = categories_subparsers.add_parser(
        "remove-game", help="Remove a game from a category"
    )
    remove_game_parser.add_argument("category_id", help="Category ID")
    remove_game_parser.add_argument("game_id", help="Game ID")
    remove_game_parser.set_defaults(func=cmd_remove_game)

    # categories show
    show_parser = categories_subparsers.add_parser(
        "show", help="Show a category and its games"
    )
    show_parser.add_argument("category", help="Category ID or exact name")
    show_parser.set_defaults(func=cmd_show)

    # categories for-game
    for_game_parser = categories_subparsers.add_parser(
        "for-game", help="List the categories a game belongs to"
    )
    for_game_parser.add_argument("game_id", help="Game ID")
    for_game_parser.set_defaults(func=cmd_for_game)
