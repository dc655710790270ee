"""Article and category storage."""

import json
from datetime import datetime
from typing import Optional, Sequence

from psycopg import Connection

from ..models import Article, Category, LocalizedText, SourceRef


def _sources_json(sources: Sequence[SourceRef]) -> str:
    return json.dumps([source.model_dump() for source in sources])


class ArticleStorage:
    """Handle article storage and source-URL lookups."""

    def get_article(self, conn: Connection, article_id: int) -> Optional[Article]:
        """Get article by ID."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM news WHERE id = %s", (article_id,))
            row = cur.fetchone()
            return Article.model_validate(row) if row else None

    def create_placeholder(
        self,
        conn: Connection,
        titles: LocalizedText,
        body: str,
        published_at: datetime,
        sources: Sequence[SourceRef],
        category_id: Optional[int],
    ) -> Article:
        """Insert an unpublished article with the same body in every language."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO news (
                    title_en, title_cn, title_my,
                    content_en, content_cn, content_my,
                    news_date, sources, category_id,
                    is_published, is_highlight
                ) VALUES (
                    %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s, FALSE, FALSE
                )
                RETURNING *
                """,
                (
                    titles.en,
                    titles.cn,
                    titles.my,
                    body,
                    body,
                    body,
                    published_at,
                    _sources_json(sources),
                    category_id,
                ),
            )
            return Article.model_validate(cur.fetchone())

    def update_content(
        self,
        conn: Connection,
        article_id: int,
        titles: LocalizedText,
        bodies: LocalizedText,
        sources: Sequence[SourceRef],
        image_url: Optional[str],
        category_id: Optional[int],
    ) -> Optional[Article]:
        """Replace generated content. Returns None if the article is gone."""
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE news
                SET
                    title_en = %s, title_cn = %s, title_my = %s,
                    content_en = %s, content_cn = %s, content_my = %s,
                    sources = %s::jsonb,
                    image_url = %s,
                    category_id = %s
                WHERE id = %s
                RETURNING *
                """,
                (
                    titles.en,
                    titles.cn,
                    titles.my,
                    bodies.en,
                    bodies.cn,
                    bodies.my,
                    _sources_json(sources),
                    image_url,
                    category_id,
                    article_id,
                ),
            )
            row = cur.fetchone()
            return Article.model_validate(row) if row else None

    def source_url_exists(
        self, conn: Connection, url: str, exclude_ids: Sequence[int] = ()
    ) -> bool:
        """Check whether any article outside ``exclude_ids`` lists the URL among its sources."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT n.id
                FROM news n, jsonb_array_elements(n.sources) AS src
                WHERE src->>'url' = %s AND NOT (n.id = ANY(%s::int[]))
                LIMIT 1
                """,
                (url, list(exclude_ids)),
            )
            return cur.fetchone() is not None

    def delete_articles(self, conn: Connection, article_ids: Sequence[int]) -> int:
        """Delete articles by ID. Returns the number deleted."""
        if not article_ids:
            return 0
        with conn.cursor() as cur:
            cur.execute("DELETE FROM news WHERE id = ANY(%s)", (list(article_ids),))
            return cur.rowcount

    def get_category(self, conn: Connection, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM categories WHERE id = %s", (category_id,))
            row = cur.fetchone()
            return Category.model_validate(row) if row else None

    def create_category(
        self,
        conn: Connection,
        name_en: str,
        description_en: Optional[str] = None,
    ) -> Category:
        """Insert a category."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO categories (name_en, description_en)
                VALUES (%s, %s)
                RETURNING *
                """,
                (name_en, description_en),
            )
            return Category.model_validate(cur.fetchone())
