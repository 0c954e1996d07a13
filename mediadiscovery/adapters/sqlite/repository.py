"""
SQLite Repository - Content catalog storage with FTS5 search.

Features:
- Async operations via aiosqlite
- Full-text search with FTS5 / BM25
- Filter push-down through parameterised WHERE clauses
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from mediadiscovery.config import StorageError

if TYPE_CHECKING:
    from mediadiscovery.domains.search.filters import SearchFilters
    from mediadiscovery.domains.search.models import ContentSummary

logger = logging.getLogger(__name__)

__all__ = ["ContentRepository", "build_match_expression"]

_TERM_RE = re.compile(r"\w+", re.UNICODE)


def build_match_expression(query: str) -> str | None:
    """
    Turn free text into a safe FTS5 MATCH expression.

    Every word is quoted and OR-ed, so FTS operators and punctuation in
    user input cannot cause syntax errors. Returns None if no words remain.
    """
    terms = _TERM_RE.findall(query.lower())
    if not terms:
        return None
    return " OR ".join(f'"{term}"' for term in dict.fromkeys(terms))


class ContentRepository:
    """
    SQLite repository for the content catalog.

    Example:
        >>> repo = ContentRepository("data/mediadiscovery.db")
        >>> await repo.initialize()
        >>> await repo.upsert_content(ContentSummary(id="tt0113277", title="Heat"))
        >>> rows = await repo.search_fts("heist thriller")
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize repository.

        Args:
            db_path: Path to SQLite database file (":memory:" for tests)
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection: aiosqlite.Connection | None = None

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            try:
                self._connection = await aiosqlite.connect(self.db_path)
            except aiosqlite.Error as e:
                raise StorageError(f"Cannot open database: {self.db_path}") from e
            self._connection.row_factory = aiosqlite.Row
        return self._connection

    async def initialize(self) -> None:
        """Initialize database schema."""
        conn = await self._get_connection()

        await conn.executescript("""
            -- Content catalog
            CREATE TABLE IF NOT EXISTS content (
                pk INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                overview TEXT NOT NULL DEFAULT '',
                release_year INTEGER,
                genres TEXT NOT NULL DEFAULT '[]',
                platforms TEXT NOT NULL DEFAULT '[]',
                average_rating REAL,
                popularity_score REAL NOT NULL DEFAULT 0
            );

            -- FTS5 virtual table for full-text search
            CREATE VIRTUAL TABLE IF NOT EXISTS content_fts USING fts5(
                title,
                overview,
                content='content',
                content_rowid='pk',
                tokenize='porter'
            );

            -- Triggers to keep FTS in sync
            CREATE TRIGGER IF NOT EXISTS content_ai AFTER INSERT ON content BEGIN
                INSERT INTO content_fts(rowid, title, overview)
                VALUES (new.pk, new.title, new.overview);
            END;

            CREATE TRIGGER IF NOT EXISTS content_ad AFTER DELETE ON content BEGIN
                INSERT INTO content_fts(content_fts, rowid, title, overview)
                VALUES ('delete', old.pk, old.title, old.overview);
            END;

            CREATE TRIGGER IF NOT EXISTS content_au AFTER UPDATE ON content BEGIN
                INSERT INTO content_fts(content_fts, rowid, title, overview)
                VALUES ('delete', old.pk, old.title, old.overview);
                INSERT INTO content_fts(rowid, title, overview)
                VALUES (new.pk, new.title, new.overview);
            END;

            CREATE INDEX IF NOT EXISTS idx_content_release_year ON content(release_year);
        """)

        await conn.commit()
        logger.info("Database initialized: %s", self.db_path)

    async def upsert_content(self, content: ContentSummary) -> None:
        """Insert or update a catalog record."""
        conn = await self._get_connection()

        await conn.execute(
            """
            INSERT INTO content
                (id, title, overview, release_year, genres, platforms, average_rating, popularity_score)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                overview = excluded.overview,
                release_year = excluded.release_year,
                genres = excluded.genres,
                platforms = excluded.platforms,
                average_rating = excluded.average_rating,
                popularity_score = excluded.popularity_score
            """,
            (
                content.id,
                content.title,
                content.overview,
                content.release_year,
                json.dumps(content.genres),
                json.dumps(content.platforms),
                content.average_rating,
                content.popularity_score,
            ),
        )

        await conn.commit()

    async def get_content(self, content_id: str) -> ContentSummary | None:
        """Get content by ID."""
        from mediadiscovery.domains.search.models import ContentSummary

        conn = await self._get_connection()

        cursor = await conn.execute("SELECT * FROM content WHERE id = ?", (content_id,))
        row = await cursor.fetchone()

        if row:
            return ContentSummary.model_validate(self._row_to_dict(row))
        return None

    async def search_fts(
        self,
        query: str,
        limit: int = 20,
        filters: SearchFilters | None = None,
    ) -> list[dict[str, Any]]:
        """
        Full-text search using FTS5.

        Args:
            query: Free-text query
            limit: Maximum results
            filters: Filters pushed into the SQL WHERE clause

        Returns:
            Matching rows, best first, with 'score' = -bm25 (higher is better)
        """
        match = build_match_expression(query)
        if match is None:
            return []

        where, where_params = ("1=1", [])
        if filters is not None and not filters.is_empty():
            where, where_params = filters.to_sql_where_clause("c")

        conn = await self._get_connection()
        sql = f"""
            SELECT c.*, -bm25(content_fts) AS score
            FROM content_fts
            JOIN content c ON content_fts.rowid = c.pk
            WHERE content_fts MATCH ? AND {where}
            ORDER BY score DESC, c.pk
            LIMIT ?
        """

        cursor = await conn.execute(sql, (match, *where_params, limit))
        rows = await cursor.fetchall()

        return [self._row_to_dict(row) for row in rows]

    async def get_content_count(self) -> int:
        """Get total content count."""
        conn = await self._get_connection()
        cursor = await conn.execute("SELECT COUNT(*) FROM content")
        row = await cursor.fetchone()
        return row[0] if row else 0

    @staticmethod
    def _row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
        data = dict(row)
        data.pop("pk", None)
        data["genres"] = json.loads(data.get("genres") or "[]")
        data["platforms"] = json.loads(data.get("platforms") or "[]")
        return data

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None
