"""
Confirmation records - One-time codes bound to a member.

A record proves email ownership: it binds a 6-digit code to a member
until its expiry. All checks here are pure; the caller supplies `now`.

A record also counts the wrong codes submitted while it was live. Once
that count reaches the attempt limit the record is exhausted and can no
longer confirm anything, even with the right code.
"""

import re
import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from uuid import UUID, uuid4

CODE_PATTERN = re.compile(r"[0-9]{6}")
DEFAULT_CODE_TTL = timedelta(hours=24)
DEFAULT_MAX_FAILED_ATTEMPTS = 3
DEFAULT_RESEND_COOLDOWN = timedelta(seconds=60)


@dataclass(frozen=True)
class ConfirmationRecord:
    """Code and expiry issued to a member."""

    member_id: UUID
    code: str
    created_at: datetime
    expires_at: datetime
    failed_attempts: int = 0
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not CODE_PATTERN.fullmatch(self.code):
            raise ValueError("Confirmation code must be exactly 6 digits")
        if self.expires_at <= self.created_at:
            raise ValueError("Confirmation expiry must be later than its creation")
        if self.failed_attempts < 0:
            raise ValueError("Failed attempt count cannot be negative")

    @classmethod
    def issue(
        cls,
        member_id: UUID,
        code: str,
        *,
        now: datetime,
        ttl: timedelta = DEFAULT_CODE_TTL,
    ) -> "ConfirmationRecord":
        """Create a record valid from `now` for `ttl`."""
        return cls(member_id=member_id, code=code, created_at=now, expires_at=now + ttl)

    def is_expired(self, now: datetime) -> bool:
        """True once `now` reaches expires_at (boundary inclusive)."""
        return now >= self.expires_at

    def is_valid_code(self, submitted: str | None) -> bool:
        """
        Compare the submitted code with the stored one.

        Uses constant-time comparison.

        Raises:
            ValueError: If no code was submitted (caller contract violation)
        """
        if submitted is None:
            raise ValueError("Submitted confirmation code cannot be None")
        return secrets.compare_digest(self.code.encode(), submitted.encode())

    def is_valid(self, submitted: str | None, now: datetime) -> bool:
        """True only when the record is unexpired AND the code matches."""
        # Both checks always run.
        code_matches = self.is_valid_code(submitted)
        expired = self.is_expired(now)
        return code_matches and not expired

    def with_failed_attempt(self) -> "ConfirmationRecord":
        """Count one more wrong code submitted while this record was live."""
        return replace(self, failed_attempts=self.failed_attempts + 1)

    def is_exhausted(self, max_attempts: int) -> bool:
        """True once the record has absorbed max_attempts wrong codes."""
        return self.failed_attempts >= max_attempts

    def minutes_until_expiration(self, now: datetime) -> int:
        """Whole minutes left before expiry; 0 once expired."""
        if self.is_expired(now):
            return 0
        return int((self.expires_at - now).total_seconds() // 60)


@dataclass(frozen=True)
class ConfirmationResult:
    """
    Outcome of a successful confirmation or token request.

    temporary_token is None when the token issuer was unavailable; the
    member is confirmed regardless and may request a token later.
    """

    member_id: UUID
    message: str
    temporary_token: str | None
    expires_in_seconds: int

    @property
    def token_issued(self) -> bool:
        return self.temporary_token is not None
