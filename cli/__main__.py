#!/usr/bin/env python3
"""
Curio CLI - command-line interface for managing game categories.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   List, search and manage categories
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories list --search rpg --sort game_count --order desc
    python -m cli categories create "Backlog" --emoji 🎮
    python -m cli categories delete <category-id>
"""

import sys
import locale
import argparse
from cli import categories, migrate
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging, get_logger


def build_parser(config=None):
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Curio - Game collection category management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers, config)
    migrate.setup_parser(subparsers)
    return parser


def use_system_collation():
    """Sort names with the user's locale collation rather than codepoint order."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        get_logger().warning(f"Could not apply system locale for sorting: {e}")


def main():
    """Main CLI entry point with subcommands."""
    try:
        config = load_config()
    except Exception as e:
        print(f"Error loading configuration: {e}")
        sys.exit(1)

    parser = build_parser(config)
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        setup_logging(config)
        use_system_collation()

        if args.command == "migrate":
            # Migrate commands need db_manager for raw database operations
            args.func(args, DatabaseManager(config))
        else:
            services = Services(config)
            services.ensure_system_categories()
            args.func(args, services)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
