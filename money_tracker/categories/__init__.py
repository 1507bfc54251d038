"""Category management package."""

from money_tracker.categories.manager import CategoryManager

__all__ = ["CategoryManager"]
