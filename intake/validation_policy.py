"""
Validation and quota policy for incoming submissions.

Pure rules, no I/O. Rules run in a fixed order and the first violation wins:
    1. required fields are non-empty after trimming
    2. email is well-formed
    3. at least one file
    4. file count within max_files
    5. per file, in upload order: MIME type allowed, declared size within max_file_size
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Sequence

from intake.config import ALLOWED_MIME_TYPES, IntakeSettings
from intake.errors import QuotaExceeded, ValidationError
from intake.schema import FORM_FIELDS, ApplicantInfo, ArtworkInfo, SubmissionFields, UploadedFile

# Checked in this order
REQUIRED_FIELDS = ("firstName", "lastName", "email", "artworkTitle", "medium", "description")

EMAIL_PATTERN = re.compile(
    r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+(?:\.[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+)*"
    r"@(?:[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?\.)+[A-Za-z]{2,63}$"
)
MAX_EMAIL_LENGTH = 254


@dataclass(frozen=True)
class QuotaPolicy:
    max_files: int
    max_file_size: int
    allowed_mime_types: FrozenSet[str] = ALLOWED_MIME_TYPES

    @classmethod
    def from_settings(cls, settings: IntakeSettings) -> QuotaPolicy:
        return cls(
            max_files=settings.max_files_per_submission,
            max_file_size=settings.max_file_size,
            allowed_mime_types=settings.allowed_mime_types,
        )

    @property
    def max_file_size_mb(self) -> float:
        return round(self.max_file_size / (1024 * 1024), 1)

    @property
    def allowed_types_label(self) -> str:
        """Allowed subtypes for messages, e.g. GIF, JPEG, PNG, WEBP."""
        return ", ".join(t.split("/")[-1].upper() for t in sorted(self.allowed_mime_types))


def is_valid_email(value: str) -> bool:
    if not value or len(value) > MAX_EMAIL_LENGTH:
        return False
    return EMAIL_PATTERN.match(value) is not None


def normalize_fields(form: Mapping[str, Any]) -> dict:
    """Trim every known form field; missing optional fields become empty strings."""
    sections: dict = {"applicant": {}, "artwork": {}}
    for form_key, (section, attr) in FORM_FIELDS.items():
        raw = form.get(form_key)
        sections[section][attr] = str(raw).strip() if raw is not None else ""
    return sections


def check_file(index: int, upload: UploadedFile, policy: QuotaPolicy) -> None:
    """
    Apply the per-file rules (rule 5) to a single upload.

    Raises:
        QuotaExceeded: wrong MIME type or declared size over the limit
    """
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in policy.allowed_mime_types:
        raise QuotaExceeded(
            f"Invalid file type for {upload.filename} (allowed: {policy.allowed_types_label})",
            limit=sorted(policy.allowed_mime_types),
            filename=upload.filename,
            index=index,
            content_type=upload.content_type,
        )
    if upload.size > policy.max_file_size:
        raise QuotaExceeded(
            f"File {upload.filename} is too large. Maximum size is {policy.max_file_size_mb}MB",
            limit=policy.max_file_size,
            filename=upload.filename,
            index=index,
            size=upload.size,
        )


def validate_submission(
    form: Mapping[str, Any],
    files: Sequence[UploadedFile],
    policy: QuotaPolicy,
) -> SubmissionFields:
    """
    Validate a proposed submission and return its normalized fields.

    Args:
        form: Inbound form fields keyed by their request names (firstName, ...)
        files: Uploaded images in submission order
        policy: File limits

    Returns:
        SubmissionFields with every value trimmed

    Raises:
        ValidationError: missing required field, malformed email, no files
        QuotaExceeded: too many files, disallowed type, file too large
    """
    sections = normalize_fields(form)

    for form_key in REQUIRED_FIELDS:
        section, attr = FORM_FIELDS[form_key]
        if not sections[section][attr]:
            raise ValidationError(f"Required field '{form_key}' is missing", field=form_key)

    if not is_valid_email(sections["applicant"]["email"]):
        raise ValidationError("Invalid email address", field="email")

    if not files:
        raise ValidationError("At least one artwork image is required", field="artworkImages")

    if len(files) > policy.max_files:
        raise QuotaExceeded(
            f"Maximum {policy.max_files} files allowed per submission",
            limit=policy.max_files,
            count=len(files),
        )

    for index, upload in enumerate(files):
        check_file(index, upload, policy)

    return SubmissionFields(
        applicant=ApplicantInfo(**sections["applicant"]),
        artwork=ArtworkInfo(**sections["artwork"]),
    )
