"""
SQLite Adapter - Content catalog with FTS5 keyword search.
"""

from .repository import ContentRepository, build_match_expression

__all__ = ["ContentRepository", "build_match_expression"]
