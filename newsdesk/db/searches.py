"""Scheduled search management in database."""

import json
from datetime import datetime
from typing import List, Optional

from psycopg import Connection

from ..models import ScheduledSearch, SearchLog


class SearchManager:
    """Manage scheduled topic searches."""

    def create_search(
        self,
        conn: Connection,
        topic: str,
        interval_hours: int,
        category_id: Optional[int] = None,
    ) -> ScheduledSearch:
        """Create an active scheduled search."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO scheduled_searches (topic, interval_hours, category_id, active)
                VALUES (%s, %s, %s, TRUE)
                RETURNING *
                """,
                (topic, interval_hours, category_id),
            )
            return ScheduledSearch.model_validate(cur.fetchone())

    def list_due(self, conn: Connection, now: datetime) -> List[ScheduledSearch]:
        """Get active searches whose interval has elapsed (or never ran)."""
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT * FROM scheduled_searches
                WHERE active = TRUE
                  AND (
                    last_run_at IS NULL
                    OR %s >= last_run_at + (interval_hours * INTERVAL '1 hour')
                  )
                ORDER BY id
                """,
                (now,),
            )
            return [ScheduledSearch.model_validate(row) for row in cur.fetchall()]

    def mark_run(self, conn: Connection, search_id: int, when: datetime) -> None:
        """Stamp the last run time."""
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE scheduled_searches SET last_run_at = %s WHERE id = %s",
                (when, search_id),
            )

    def insert_log(self, conn: Connection, log: SearchLog) -> SearchLog:
        """Insert a search run audit record."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO search_logs
                    (search_id, topic, time_span, raw_response, items_found,
                     items_processed, status, error)
                VALUES (%s, %s, %s, %s::jsonb, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    log.search_id,
                    log.topic,
                    log.time_span,
                    json.dumps(log.raw_response) if log.raw_response is not None else None,
                    log.items_found,
                    log.items_processed,
                    log.status.value,
                    log.error,
                ),
            )
            return SearchLog.model_validate(cur.fetchone())

    def list_logs(
        self,
        conn: Connection,
        search_id: Optional[int] = None,
        limit: int = 50,
    ) -> List[SearchLog]:
        """Get recent search logs, newest first."""
        query = "SELECT * FROM search_logs"
        params: tuple = ()
        if search_id is not None:
            query += " WHERE search_id = %s"
            params += (search_id,)
        query += " ORDER BY id DESC LIMIT %s"
        params += (limit,)

        with conn.cursor() as cur:
            cur.execute(query, params)
            return [SearchLog.model_validate(row) for row in cur.fetchall()]
