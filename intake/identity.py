"""
Submission identity allocation.

Ids look like SUB_2026_5f0c9a1e7b3d4c21: the calendar year at allocation time
followed by 64 random bits from the secrets module. Uniqueness against storage
is enforced by the repository's primary key, not here.
"""

import re
import secrets
from datetime import datetime
from typing import Callable, Optional

TOKEN_BYTES = 8
SUBMISSION_ID_PATTERN = re.compile(r"^SUB_(\d{4})_([0-9a-f]{16})$")


def new_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


class IdentityAllocator:
    """Produces submission ids. clock and token_factory are injectable for tests."""

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        token_factory: Callable[[], str] = new_token,
    ):
        self._clock = clock or datetime.now
        self._token_factory = token_factory

    def allocate(self, now: Optional[datetime] = None) -> str:
        year = (now or self._clock()).year
        return f"SUB_{year:04d}_{self._token_factory()}"


def is_submission_id(value: str) -> bool:
    """True if value has the SUB_<year>_<token> shape. Guards directory names."""
    return bool(value) and SUBMISSION_ID_PATTERN.match(value) is not None
