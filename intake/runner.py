"""
Pipeline runner: orchestrates one submission from request to committed record.

Stages:
    VALIDATING → ALLOCATING → CREATING_DIRECTORY → SAVING_FILES → PERSISTING_RECORD
    → WRITING_ARTIFACTS → NOTIFYING → COMMITTED
with FAILED reachable from every stage before COMMITTED.

Everything up to and including the record insert is reversed on failure (the
submission directory is rolled back). After the insert the submission is
committed: artifact and notification failures are logged, never reported.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Sequence

from intake.artifacts import ArtifactStore
from intake.config import IntakeSettings
from intake.email_notification import EmailNotifier
from intake.errors import (
    DuplicateIdentity,
    IntakeError,
    PersistenceError,
    StorageError,
)
from intake.identity import IdentityAllocator
from intake.repository import SubmissionRepository
from intake.schema import IntakeResult, SubmissionRecord, SubmissionStatus, UploadedFile
from intake.validation_policy import QuotaPolicy, validate_submission

logger = logging.getLogger(__name__)

# Allocation attempts before a repeated id collision is reported as a failure
MAX_ID_ATTEMPTS = 3

SUCCESS_MESSAGE = "Submission received successfully"


class IntakeStage(str, Enum):
    VALIDATING = "validating"
    ALLOCATING = "allocating"
    CREATING_DIRECTORY = "creating_directory"
    SAVING_FILES = "saving_files"
    PERSISTING_RECORD = "persisting_record"
    WRITING_ARTIFACTS = "writing_artifacts"
    NOTIFYING = "notifying"
    COMMITTED = "committed"
    FAILED = "failed"


class IntakePipeline:
    """
    Runs the intake stages for one request at a time. Holds no per-request
    state, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        settings: IntakeSettings,
        store: ArtifactStore,
        repository: SubmissionRepository,
        notifier: EmailNotifier,
        allocator: Optional[IdentityAllocator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.settings = settings
        self.policy = QuotaPolicy.from_settings(settings)
        self.store = store
        self.repository = repository
        self.notifier = notifier
        self.allocator = allocator or IdentityAllocator()
        self._clock = clock or (lambda: datetime.now(settings.tzinfo))

    def process_submission(self, form: Mapping[str, Any], files: Sequence[UploadedFile]) -> IntakeResult:
        """
        Run the full pipeline for one submission.

        Args:
            form: Form fields keyed by request name (firstName, artworkTitle, ...)
            files: Uploaded images in submission order

        Returns:
            IntakeResult with submission_id on success, or category + message on failure
        """
        stage = IntakeStage.VALIDATING
        try:
            fields = validate_submission(form, files, self.policy)
        except IntakeError as e:
            return self._failure(e, stage)

        created_at = self._clock()
        record: Optional[SubmissionRecord] = None
        last_collision: Optional[DuplicateIdentity] = None

        for attempt in range(1, MAX_ID_ATTEMPTS + 1):
            stage = IntakeStage.ALLOCATING
            submission_id = self.allocator.allocate(created_at)

            stage = IntakeStage.CREATING_DIRECTORY
            try:
                self.store.create_directory(submission_id)
            except DuplicateIdentity as e:
                # Directory belongs to someone else; leave it alone and reallocate
                last_collision = e
                logger.warning(f"⚠️ Directory for {submission_id} already exists (attempt {attempt}/{MAX_ID_ATTEMPTS})")
                continue
            except IntakeError as e:
                return self._failure(e, stage)
            except Exception as e:
                return self._failure(StorageError(f"Unexpected error creating directory: {e}"), stage, exc=e)

            try:
                stage = IntakeStage.SAVING_FILES
                image_files = self._save_files(submission_id, files, created_at)

                stage = IntakeStage.PERSISTING_RECORD
                record = SubmissionRecord(
                    submission_id=submission_id,
                    applicant=fields.applicant,
                    artwork=fields.artwork,
                    image_files=image_files,
                    submission_date=created_at,
                    status=SubmissionStatus.PENDING,
                )
                self.repository.insert(record)
            except DuplicateIdentity as e:
                last_collision = e
                record = None
                logger.warning(f"⚠️ Submission id collision on {submission_id} (attempt {attempt}/{MAX_ID_ATTEMPTS}), retrying")
                self._rollback(submission_id)
                continue
            except IntakeError as e:
                self._rollback(submission_id)
                return self._failure(e, stage)
            except Exception as e:
                self._rollback(submission_id)
                wrapped = (
                    PersistenceError(f"Unexpected error saving record: {e}", {"submission_id": submission_id})
                    if stage == IntakeStage.PERSISTING_RECORD
                    else StorageError(f"Unexpected error saving files: {e}", {"submission_id": submission_id})
                )
                return self._failure(wrapped, stage, exc=e)
            break

        if record is None:
            return self._failure(
                last_collision or DuplicateIdentity("unallocated"),
                IntakeStage.ALLOCATING,
            )

        # Committed from here on: nothing below can fail the submission.
        self._write_artifacts(record)
        self._notify(record)

        logger.info(f"✅ Submission {record.submission_id} committed ({len(record.image_files)} images)")
        return IntakeResult(
            success=True,
            message=SUCCESS_MESSAGE,
            submission_id=record.submission_id,
            stage=IntakeStage.COMMITTED.value,
        )

    def _save_files(self, submission_id: str, files: Sequence[UploadedFile], created_at: datetime) -> List[str]:
        saved = []
        for index, upload in enumerate(files):
            saved.append(self.store.save_file(submission_id, index, upload, created_at))
        return saved

    def _rollback(self, submission_id: str) -> None:
        try:
            removed = self.store.rollback(submission_id)
        except Exception as e:
            logger.error(f"❌ Rollback of {submission_id} raised: {e}", exc_info=True)
            return
        if not removed:
            logger.error(f"❌ Rollback of {submission_id} incomplete; directory may be orphaned")

    def _write_artifacts(self, record: SubmissionRecord) -> None:
        for name, write in (
            ("detail document", self.store.write_detail_document),
            ("snapshot", self.store.write_snapshot),
        ):
            try:
                write(record.submission_id, record)
            except Exception as e:
                logger.warning(
                    f"⚠️ Could not write {name} for committed submission {record.submission_id}: {e}",
                    exc_info=True,
                )

    def _notify(self, record: SubmissionRecord) -> None:
        try:
            self.notifier.notify(record)
        except Exception as e:
            logger.warning(f"⚠️ Notifier raised for {record.submission_id}: {e}", exc_info=True)

    def _failure(self, error: IntakeError, stage: IntakeStage, exc: Optional[BaseException] = None) -> IntakeResult:
        if error.client_fixable:
            logger.info(f"Submission rejected at {stage.value}: {error.message}")
        else:
            logger.error(f"❌ Submission failed at {stage.value}: {error.message}", exc_info=exc)

        if self.settings.debug_mode:
            message = error.message
            detail = error.to_dict()
        else:
            message = error.public_message
            detail = None

        return IntakeResult(
            success=False,
            message=message,
            category=error.category,
            stage=stage.value,
            detail=detail,
        )


def build_pipeline(settings: IntakeSettings) -> IntakePipeline:
    """
    Wire the default collaborators for settings.

    Creates the submissions table if needed and refuses to start when
    submission_id is not unique at the storage layer.
    """
    repository = SubmissionRepository(settings.database_path)
    repository.init_schema()
    repository.verify_unique_constraint()
    return IntakePipeline(
        settings=settings,
        store=ArtifactStore(settings),
        repository=repository,
        notifier=EmailNotifier(settings),
    )
