"""
Artifact store: owns the per-submission directory on disk.

Layout:
    <submissions_root>/<submission_id>/
        artwork_1_<ts>.<ext> ... artwork_N_<ts>.<ext>   uploaded images
        submission_details.html                          human-readable detail document
        submission_data.json                             structured snapshot of the record
"""

import json
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path
from typing import List

from werkzeug.utils import secure_filename

from intake.config import IntakeSettings
from intake.errors import DuplicateIdentity, QuotaExceeded, StorageError
from intake.schema import SubmissionRecord, UploadedFile
from intake.templating import render

logger = logging.getLogger(__name__)

DETAIL_DOCUMENT_NAME = "submission_details.html"
SNAPSHOT_NAME = "submission_data.json"
DIRECTORY_MODE = 0o755

# Used only when the original filename carries no extension
MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")
_SAFE_EXT = re.compile(r"[^a-z0-9]")


def stored_extension(original_name: str, content_type: str = "") -> str:
    """Extension taken from the original filename, never sniffed from content."""
    raw_name = (original_name or "").replace("\\", "/")
    suffix = _SAFE_EXT.sub("", Path(raw_name).suffix.lower())
    if not suffix:
        suffix = _SAFE_EXT.sub("", Path(secure_filename(raw_name)).suffix.lower())
    if suffix:
        return suffix
    return MIME_EXTENSIONS.get((content_type or "").split(";")[0].strip().lower(), "bin")


def stored_filename(index: int, original_name: str, created_at: datetime, content_type: str = "") -> str:
    """artwork_<index+1>_<unix timestamp>.<ext>"""
    timestamp = int(created_at.timestamp())
    return f"artwork_{index + 1}_{timestamp}.{stored_extension(original_name, content_type)}"


class ArtifactStore:
    def __init__(self, settings: IntakeSettings):
        self.root = Path(settings.submissions_root)
        self.max_file_size = settings.max_file_size
        self.site_name = settings.site_name
        self.tzinfo = settings.tzinfo

    def directory_for(self, submission_id: str) -> Path:
        if not submission_id or not _SAFE_ID.match(submission_id):
            raise StorageError(
                f"Refusing unsafe submission id {submission_id!r}",
                {"submission_id": submission_id},
            )
        return self.root / submission_id

    def exists(self, submission_id: str) -> bool:
        return self.directory_for(submission_id).is_dir()

    def create_directory(self, submission_id: str) -> Path:
        """
        Create the submission directory.

        Raises:
            DuplicateIdentity: a directory for this id already exists (it belongs
                to another submission and must not be touched)
            StorageError: the directory could not be created
        """
        path = self.directory_for(submission_id)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Could not create submissions root {self.root}: {e}",
                {"submission_id": submission_id, "path": str(self.root)},
            ) from e

        try:
            path.mkdir(mode=DIRECTORY_MODE)
        except FileExistsError:
            raise DuplicateIdentity(submission_id)
        except OSError as e:
            raise StorageError(
                f"Could not create submission directory {path}: {e}",
                {"submission_id": submission_id, "path": str(path)},
            ) from e
        logger.info(f"📁 Created submission directory {path}")
        return path

    def save_file(self, submission_id: str, index: int, upload: UploadedFile, created_at: datetime) -> str:
        """
        Write one uploaded image under the submission directory.

        Args:
            submission_id: Owning submission
            index: Zero-based position in the upload
            upload: File name, declared type and bytes
            created_at: Submission creation time, used in the stored name

        Returns:
            Stored filename, relative to the submission directory

        Raises:
            QuotaExceeded: the actual payload is larger than max_file_size
            StorageError: the write failed
        """
        if len(upload.data) > self.max_file_size:
            raise QuotaExceeded(
                f"File {upload.filename} is too large. "
                f"Maximum size is {round(self.max_file_size / (1024 * 1024), 1)}MB",
                limit=self.max_file_size,
                filename=upload.filename,
                index=index,
                size=len(upload.data),
            )

        filename = stored_filename(index, upload.filename, created_at, upload.content_type)
        path = self.directory_for(submission_id) / filename
        try:
            with open(path, "xb") as f:
                f.write(upload.data)
        except OSError as e:
            raise StorageError(
                f"Failed to upload {upload.filename}: {e}",
                {"submission_id": submission_id, "filename": upload.filename, "index": index},
            ) from e
        return filename

    def write_detail_document(self, submission_id: str, record: SubmissionRecord) -> Path:
        """Render the static HTML page for a committed record."""
        html = render(
            "submission_details.html",
            record=record,
            site_name=self.site_name,
            submitted=self._display_date(record),
        )
        path = self.directory_for(submission_id) / DETAIL_DOCUMENT_NAME
        self._write_text(path, html, submission_id)
        return path

    def write_snapshot(self, submission_id: str, record: SubmissionRecord) -> Path:
        """Write the full record as pretty-printed JSON next to the images."""
        path = self.directory_for(submission_id) / SNAPSHOT_NAME
        payload = json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False)
        self._write_text(path, payload, submission_id)
        return path

    def load_snapshot(self, submission_id: str) -> SubmissionRecord:
        path = self.directory_for(submission_id) / SNAPSHOT_NAME
        with open(path, "r", encoding="utf-8") as f:
            return SubmissionRecord.model_validate(json.load(f))

    def list_files(self, submission_id: str) -> List[str]:
        path = self.directory_for(submission_id)
        if not path.is_dir():
            return []
        return sorted(p.name for p in path.iterdir())

    def list_submission_ids(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_dir())

    def rollback(self, submission_id: str) -> bool:
        """
        Remove every file in the submission directory, then the directory itself.

        Best-effort: failures are logged and never raised, since the caller is
        already handling an earlier error.

        Returns:
            True if the directory no longer exists afterwards
        """
        try:
            path = self.directory_for(submission_id)
        except StorageError:
            logger.error(f"❌ Rollback skipped for unsafe id {submission_id!r}")
            return False

        if not path.exists():
            return True

        for entry in path.iterdir():
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                logger.error(f"❌ Rollback could not remove {entry}: {e}", exc_info=True)

        try:
            path.rmdir()
        except OSError as e:
            logger.error(f"❌ Rollback could not remove directory {path}: {e}", exc_info=True)
            return False

        logger.info(f"🗑️ Rolled back submission directory {path}")
        return True

    def _display_date(self, record: SubmissionRecord) -> str:
        submitted = record.submission_date
        if submitted.tzinfo is not None:
            submitted = submitted.astimezone(self.tzinfo)
        return submitted.strftime("%Y-%m-%d %H:%M:%S")

    def _write_text(self, path: Path, content: str, submission_id: str) -> None:
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(content)
        except OSError as e:
            raise StorageError(
                f"Failed to write {path.name}: {e}",
                {"submission_id": submission_id, "path": str(path)},
            ) from e
