"""
Queries used by the review surface (admin dashboard).

The dashboard itself, its login and its HTML live elsewhere; this module is the
boundary it talks to. Only status and admin_notes are ever updated.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

from intake.repository import TABLE_NAME, connect
from intake.schema import SubmissionRecord, SubmissionStatus

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


class ReviewQueries:
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    def get_submission(self, submission_id: str) -> Optional[SubmissionRecord]:
        conn = connect(self.db_path)
        try:
            row = conn.execute(
                f"SELECT * FROM {TABLE_NAME} WHERE submission_id = ?",
                (submission_id,),
            ).fetchone()
        finally:
            conn.close()
        return SubmissionRecord.from_row(dict(row)) if row else None

    def list_submissions(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> Dict:
        """
        Page through submissions, newest first.

        Args:
            status: Filter by status; None or "all" means no filter
            search: Substring matched against name, email and artwork title
            page: 1-based page number
            per_page: Page size, capped at MAX_PER_PAGE

        Returns:
            dict with records, total, page, per_page, pages
        """
        page = max(1, int(page))
        per_page = min(max(1, int(per_page)), MAX_PER_PAGE)

        conditions = []
        params: List = []
        if status and status != "all":
            conditions.append("status = ?")
            params.append(SubmissionStatus(status).value)
        if search:
            like = f"%{search.strip()}%"
            conditions.append(
                "(first_name LIKE ? OR last_name LIKE ? OR email LIKE ? OR artwork_title LIKE ?)"
            )
            params.extend([like, like, like, like])
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        conn = connect(self.db_path)
        try:
            total = conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME} {where}", params).fetchone()[0]
            rows = conn.execute(
                f"SELECT * FROM {TABLE_NAME} {where} ORDER BY submission_date DESC LIMIT ? OFFSET ?",
                params + [per_page, (page - 1) * per_page],
            ).fetchall()
        finally:
            conn.close()

        return {
            "records": [SubmissionRecord.from_row(dict(r)) for r in rows],
            "total": total,
            "page": page,
            "per_page": per_page,
            "pages": (total + per_page - 1) // per_page,
        }

    def status_counts(self) -> Dict[str, int]:
        counts = {s.value: 0 for s in SubmissionStatus}
        conn = connect(self.db_path)
        try:
            for row in conn.execute(f"SELECT status, COUNT(*) AS count FROM {TABLE_NAME} GROUP BY status"):
                counts[row["status"]] = row["count"]
        finally:
            conn.close()
        return counts

    def update_review(self, submission_id: str, status: str, admin_notes: str = "") -> bool:
        """
        Set status and admin notes for one submission.

        Returns:
            True if a row was updated

        Raises:
            ValueError: status is not one of pending/reviewed/accepted/rejected
        """
        new_status = SubmissionStatus(status)
        conn = connect(self.db_path)
        try:
            cursor = conn.execute(
                f"UPDATE {TABLE_NAME} SET status = ?, admin_notes = ?, updated_at = CURRENT_TIMESTAMP "
                "WHERE submission_id = ?",
                (new_status.value, admin_notes or "", submission_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def all_submission_ids(self) -> List[str]:
        conn = connect(self.db_path)
        try:
            return [r["submission_id"] for r in conn.execute(f"SELECT submission_id FROM {TABLE_NAME}")]
        finally:
            conn.close()
