"""Task management in database."""

from typing import List, Optional

from psycopg import Connection

from ..models import Task, TaskStatus


class TaskManager:
    """Manage discovery tasks in database."""

    def create_task(
        self,
        conn: Connection,
        query: str,
        account_name: Optional[str] = None,
        collection_uuid: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> Task:
        """Create a new task record in pending status."""
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO news_tasks (query, account_name, collection_uuid, category_id, status)
                VALUES (%s, %s, %s, %s, 'pending')
                RETURNING *
                """,
                (query, account_name, collection_uuid, category_id),
            )
            return Task.model_validate(cur.fetchone())

    def get_task(self, conn: Connection, task_id: int) -> Optional[Task]:
        """Get task by ID."""
        with conn.cursor() as cur:
            cur.execute("SELECT * FROM news_tasks WHERE id = %s", (task_id,))
            row = cur.fetchone()
            return Task.model_validate(row) if row else None

    def list_tasks(self, conn: Connection, limit: int = 50) -> List[Task]:
        """Get recent tasks."""
        with conn.cursor() as cur:
            cur.execute(
                "SELECT * FROM news_tasks ORDER BY id DESC LIMIT %s",
                (limit,),
            )
            return [Task.model_validate(row) for row in cur.fetchall()]

    def update_status(
        self,
        conn: Connection,
        task_id: int,
        status: TaskStatus,
        error: Optional[str] = None,
    ) -> None:
        """Update task status and error message."""
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE news_tasks SET status = %s, error = %s WHERE id = %s",
                (status.value, error, task_id),
            )
