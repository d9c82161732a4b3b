"""Pytest fixtures for the submission intake. Each test gets its own submissions root and SQLite file."""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from intake.artifacts import ArtifactStore
from intake.config import IntakeSettings
from intake.email_notification import EmailNotifier
from intake.identity import IdentityAllocator
from intake.repository import SubmissionRepository
from intake.review import ReviewQueries
from intake.runner import IntakePipeline
from intake.schema import UploadedFile

FIXED_NOW = datetime(2026, 10, 17, 12, 30, 0, tzinfo=timezone.utc)
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 96


@pytest.fixture
def settings(tmp_path):
    return IntakeSettings(
        submissions_root=tmp_path / "submissions",
        database_path=tmp_path / "submissions.db",
        max_file_size=1024,
        max_files_per_submission=10,
    )


@pytest.fixture
def store(settings):
    return ArtifactStore(settings)


@pytest.fixture
def repository(settings):
    repo = SubmissionRepository(settings.database_path)
    repo.init_schema()
    return repo


@pytest.fixture
def review(settings, repository):
    return ReviewQueries(settings.database_path)


@pytest.fixture
def notifier():
    mock = MagicMock(spec=EmailNotifier)
    mock.notify.return_value = True
    return mock


@pytest.fixture
def pipeline(settings, store, repository, notifier):
    return IntakePipeline(
        settings=settings,
        store=store,
        repository=repository,
        notifier=notifier,
        allocator=IdentityAllocator(),
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def form_data():
    return {
        "firstName": "  Ada ",
        "lastName": "Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "website": "https://ada.example.com",
        "address": "12 Analytical Row\nLondon",
        "artworkTitle": "Engine Study No. 3",
        "medium": "Oil on canvas",
        "dimensions": "60x90cm",
        "yearCreated": "2025",
        "price": "1200",
        "description": "A study of gears in warm light.",
        "artistStatement": "I paint machines.",
    }


@pytest.fixture
def make_upload():
    def _make(filename="painting.jpg", content_type="image/jpeg", data=JPEG_BYTES, size=None):
        return UploadedFile(
            filename=filename,
            content_type=content_type,
            size=len(data) if size is None else size,
            data=data,
        )
    return _make


@pytest.fixture
def submission_dirs(settings):
    """Callable listing submission directory names currently on disk."""
    def _list():
        root = settings.submissions_root
        if not root.exists():
            return []
        return sorted(p.name for p in root.iterdir())
    return _list
