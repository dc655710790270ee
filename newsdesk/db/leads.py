"""Lead management in database."""

import json
from typing import List, Optional, Sequence

from psycopg import Connection

from ..models import Lead, LeadStatus


class LeadManager:
    """Manage headline leads in database."""

    def get_lead(self, conn: Connection, lead_id: int) -> Optional[Lead]:
        """Get lead by ID."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM news_leads WHERE id = %s", (lead_id,))
            row = cur.fetchone()
            return Lead.model_validate(row) if row else None

    def list_for_task(self, conn: Connection, task_id: int) -> List[Lead]:
        """Get leads owned by a task."""
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM news_leads WHERE task_id = %s ORDER BY id",
                (task_id,),
            )
            return [Lead.model_validate(row) for row in cur.fetchall()]

    def list_by_status(
        self,
        conn: Connection,
        status: LeadStatus,
        limit: Optional[int] = None,
    ) -> List[Lead]:
        """Get leads in a status, oldest first."""
        query = "SELECT * FROM news_leads WHERE status = %s ORDER BY id"
        params: tuple = (status.value,)
        if limit is not None:
            query += " LIMIT %s"
            params += (limit,)

        with conn.cursor() as cur:
            cur.execute(query, params)
            return [Lead.model_validate(row) for row in cur.fetchall()]

    def get_for_article(self, conn: Connection, article_id: int) -> Optional[Lead]:
        """Get the lead linked to an article."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM news_leads WHERE article_id = %s", (article_id,))
            row = cur.fetchone()
            return Lead.model_validate(row) if row else None

    def insert_lead(self, conn: Connection, lead: Lead) -> Optional[Lead]:
        """
        Insert a lead.

        Returns:
            The stored lead, or None if the headline already exists for the task
        """
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO news_leads (task_id, headline, source, published_at, status)
                VALUES (%s, %s, %s::jsonb, %s, %s)
                ON CONFLICT (task_id, headline) DO NOTHING
                RETURNING *
                """,
                (
                    lead.task_id,
                    lead.headline,
                    json.dumps(lead.source.model_dump()),
                    lead.published_at,
                    lead.status.value,
                ),
            )
            row = cur.fetchone()
            return Lead.model_validate(row) if row else None

    def link_article(
        self,
        conn: Connection,
        lead_id: int,
        article_id: int,
        status: LeadStatus,
    ) -> None:
        """Link lead to its article and set status."""
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE news_leads SET article_id = %s, status = %s WHERE id = %s",
                (article_id, status.value, lead_id),
            )

    def update_status(self, conn: Connection, lead_id: int, status: LeadStatus) -> None:
        """Update lead status."""
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE news_leads SET status = %s WHERE id = %s",
                (status.value, lead_id),
            )

    def delete_leads(self, conn: Connection, lead_ids: Sequence[int]) -> int:
        """Delete leads by ID. Returns the number deleted."""
        if not lead_ids:
            return 0
        with conn.cursor() as cur:
            cur.execute("DELETE FROM news_leads WHERE id = ANY(%s)", (list(lead_ids),))
            return cur.rowcount
