"""
Settings for the intake pipeline.

Values are read from the environment once, at process start, and handed to the
pipeline and its collaborators as an explicit IntakeSettings value. Nothing in
the core reads os.environ on its own.

Environment variables (a local .env file is loaded first):
    SUBMISSIONS_DIR            directory holding one folder per submission
    DATABASE_PATH              SQLite file for submission records
    MAX_FILE_SIZE              bytes per image (default 5MB)
    MAX_FILES_PER_SUBMISSION   images per submission (default 10)
    TIMEZONE                   IANA zone used for submission timestamps
    SITE_NAME                  shown on the detail document
    DEBUG_MODE                 true/false, exposes internal failure detail
    SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD, NOTIFICATION_EMAIL
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from intake.errors import ConfigurationError

DEFAULT_MAX_FILE_SIZE = 5 * 1024 * 1024
DEFAULT_MAX_FILES = 10

ALLOWED_MIME_TYPES: FrozenSet[str] = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
})


@dataclass(frozen=True)
class IntakeSettings:
    """Everything the intake pipeline needs to know about its environment."""

    submissions_root: Path = Path("submissions")
    database_path: Path = Path("submissions.db")
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_files_per_submission: int = DEFAULT_MAX_FILES
    allowed_mime_types: FrozenSet[str] = field(default=ALLOWED_MIME_TYPES)
    timezone: str = "UTC"
    site_name: str = "Gallery Art Submissions"
    debug_mode: bool = False

    # Notification
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    notification_email: Optional[str] = None
    smtp_timeout: float = 10.0

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def max_file_size_mb(self) -> float:
        return round(self.max_file_size / (1024 * 1024), 1)


def _parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}", {"key": key})
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {value}", {"key": key})
    return value


def _clean(env: Mapping[str, str], key: str) -> Optional[str]:
    value = (env.get(key) or "").strip().strip("\"'")
    return value or None


def load_settings(env: Optional[Mapping[str, str]] = None) -> IntakeSettings:
    """
    Build IntakeSettings from environment variables.

    Args:
        env: Mapping to read from. Defaults to os.environ after loading .env.

    Returns:
        IntakeSettings

    Raises:
        ConfigurationError: if a numeric value or the timezone is invalid
    """
    if env is None:
        load_dotenv()
        env = os.environ

    timezone = _clean(env, "TIMEZONE") or "UTC"
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown TIMEZONE {timezone!r}", {"key": "TIMEZONE"})

    return IntakeSettings(
        submissions_root=Path(_clean(env, "SUBMISSIONS_DIR") or "submissions"),
        database_path=Path(_clean(env, "DATABASE_PATH") or "submissions.db"),
        max_file_size=_parse_int(env, "MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
        max_files_per_submission=_parse_int(env, "MAX_FILES_PER_SUBMISSION", DEFAULT_MAX_FILES),
        timezone=timezone,
        site_name=_clean(env, "SITE_NAME") or "Gallery Art Submissions",
        debug_mode=_parse_bool(env.get("DEBUG_MODE")),
        smtp_host=_clean(env, "SMTP_HOST"),
        smtp_port=_parse_int(env, "SMTP_PORT", 587),
        smtp_username=_clean(env, "SMTP_USERNAME"),
        smtp_password=_clean(env, "SMTP_PASSWORD"),
        notification_email=_clean(env, "NOTIFICATION_EMAIL"),
    )
