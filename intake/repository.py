"""
SQLite repository for submission records.

Intake only ever inserts. Status and admin notes are changed by the review
surface (see intake.review), never here.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Union

from intake.errors import ConfigurationError, DuplicateIdentity, PersistenceError
from intake.schema import SubmissionRecord

logger = logging.getLogger(__name__)

TABLE_NAME = "submissions"

COLUMNS = (
    "submission_id", "first_name", "last_name", "email", "phone", "website", "address",
    "artwork_title", "medium", "dimensions", "year_created", "price", "description",
    "artist_statement", "image_files", "submission_date", "status", "admin_notes",
)

SCHEMA = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        submission_id TEXT PRIMARY KEY,
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        email TEXT NOT NULL,
        phone TEXT DEFAULT '',
        website TEXT DEFAULT '',
        address TEXT DEFAULT '',
        artwork_title TEXT NOT NULL,
        medium TEXT NOT NULL,
        dimensions TEXT DEFAULT '',
        year_created TEXT DEFAULT '',
        price TEXT DEFAULT '',
        description TEXT NOT NULL,
        artist_statement TEXT DEFAULT '',
        image_files TEXT NOT NULL,
        submission_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'reviewed', 'accepted', 'rejected')),
        admin_notes TEXT DEFAULT '',
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
"""

INDEXES = (
    f"CREATE INDEX IF NOT EXISTS idx_submissions_status ON {TABLE_NAME}(status)",
    f"CREATE INDEX IF NOT EXISTS idx_submissions_date ON {TABLE_NAME}(submission_date)",
)


def connect(db_path: Union[str, Path]) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), timeout=10)
    conn.row_factory = sqlite3.Row
    return conn


class SubmissionRepository:
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)

    def init_schema(self) -> None:
        """Create the submissions table and its indexes if they do not exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = None
        try:
            conn = connect(self.db_path)
            conn.execute(SCHEMA)
            for statement in INDEXES:
                conn.execute(statement)
            conn.commit()
        except sqlite3.Error as e:
            raise ConfigurationError(f"Could not initialize database {self.db_path}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    def verify_unique_constraint(self) -> None:
        """
        Confirm that submission_id is unique at the storage layer.

        Without it an id collision would silently produce two rows for one
        directory, so its absence is treated as a configuration error.

        Raises:
            ConfigurationError: table missing, or submission_id not a primary
                key and not covered by a single-column unique index
        """
        conn = connect(self.db_path)
        try:
            columns = conn.execute(f"PRAGMA table_info({TABLE_NAME})").fetchall()
            if not columns:
                raise ConfigurationError(f"Table {TABLE_NAME} does not exist in {self.db_path}")

            pk_columns = [c["name"] for c in columns if c["pk"]]
            if pk_columns == ["submission_id"]:
                return

            for index in conn.execute(f"PRAGMA index_list({TABLE_NAME})").fetchall():
                if not index["unique"]:
                    continue
                indexed = [i["name"] for i in conn.execute(f"PRAGMA index_info('{index['name']}')").fetchall()]
                if indexed == ["submission_id"]:
                    return
        finally:
            conn.close()

        raise ConfigurationError(
            f"{TABLE_NAME}.submission_id has no uniqueness constraint",
            {"table": TABLE_NAME, "database": str(self.db_path)},
        )

    def insert(self, record: SubmissionRecord) -> None:
        """
        Insert one submission row.

        Raises:
            DuplicateIdentity: submission_id already exists
            PersistenceError: any other database failure
        """
        if not record.image_files:
            raise PersistenceError(
                "Refusing to insert a submission without images",
                {"submission_id": record.submission_id},
            )

        row = record.to_row()
        placeholders = ", ".join("?" for _ in COLUMNS)
        sql = f"INSERT INTO {TABLE_NAME} ({', '.join(COLUMNS)}) VALUES ({placeholders})"

        conn = None
        try:
            conn = connect(self.db_path)
            conn.execute(sql, tuple(row[c] for c in COLUMNS))
            conn.commit()
        except sqlite3.IntegrityError as e:
            if conn is not None:
                conn.rollback()
            if "UNIQUE" in str(e).upper() and "submission_id" in str(e):
                raise DuplicateIdentity(record.submission_id) from e
            raise PersistenceError(
                f"Database insertion failed: {e}",
                {"submission_id": record.submission_id},
            ) from e
        except sqlite3.Error as e:
            if conn is not None:
                conn.rollback()
            raise PersistenceError(
                f"Database insertion failed: {e}",
                {"submission_id": record.submission_id},
            ) from e
        finally:
            if conn is not None:
                conn.close()

        logger.info(f"💾 Saved submission {record.submission_id} ({len(record.image_files)} images)")
