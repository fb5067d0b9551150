"""Errors reported by the category store and mutation controller."""

from typing import Optional


class CategoryError(Exception):
    """Base class for category operation failures.

    Args:
        message: Human readable description.
        cause: The underlying exception, if any.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class FetchError(CategoryError):
    """Listing categories from the category service failed."""


class MutationError(CategoryError):
    """A create, rename or delete failed or was rejected before reaching the service."""
