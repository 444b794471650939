"""
Member aggregate - Account with confirmation and password-set status.

Lifecycle
=========

    Unconfirmed --confirm()--> Confirmed --mark_password_as_set()--> Active

Both transitions are one-way and happen exactly once; a second attempt
raises a ConflictError subclass instead of silently succeeding.

Members are immutable values. Every operation returns a new Member, so a
failed transition leaves the original untouched.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID

from .exceptions import (
    InvalidMemberUpdate,
    MemberAlreadyConfirmed,
    MemberNotConfirmed,
    PasswordAlreadySet,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    """
    Normalize email address for consistent storage and lookup.

    Applies: strip whitespace + lowercase
    """
    return email.strip().lower()


class Role(str, Enum):
    """Member role. Ordinary members are MEMBER."""

    MEMBER = "MEMBER"
    ADMIN = "ADMIN"


class _Unset(Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


# Marks a partial-update field as absent (no change).
UNSET = _Unset.UNSET


@dataclass(frozen=True)
class MembershipRegistration:
    """Data submitted at registration."""

    first_name: str
    last_name: str
    email: str
    address: str | None = None


@dataclass(frozen=True)
class MembershipUpdate:
    """
    Partial profile update.

    Each field is either UNSET (keep the current value) or a new value.

    Empty-value policy:
    - address: None or a blank string clears the stored address.
    - first_name, last_name, email: None or a blank string is rejected.
    """

    first_name: str | None | _Unset = UNSET
    last_name: str | None | _Unset = UNSET
    email: str | None | _Unset = UNSET
    address: str | None | _Unset = UNSET

    def is_empty(self) -> bool:
        return all(
            value is UNSET for value in (self.first_name, self.last_name, self.email, self.address)
        )


@dataclass(frozen=True)
class Member:
    """Aggregate root for a membership account."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    address: str | None = None
    role: Role = Role.MEMBER
    confirmed: bool = False
    confirmed_at: datetime | None = None
    password_set: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def register(
        cls, registration: MembershipRegistration, *, member_id: UUID, now: datetime
    ) -> "Member":
        """Build a new unconfirmed member from registration data."""
        return cls(
            id=member_id,
            email=normalize_email(registration.email),
            first_name=registration.first_name.strip(),
            last_name=registration.last_name.strip(),
            address=_clean_address(registration.address),
            created_at=now,
            updated_at=now,
        )

    def confirm(self, now: datetime | None = None) -> "Member":
        """
        Transition to confirmed.

        Raises:
            MemberAlreadyConfirmed: If the member is already confirmed
        """
        if self.confirmed:
            raise MemberAlreadyConfirmed(str(self.id))
        now = now or utc_now()
        return replace(self, confirmed=True, confirmed_at=now, updated_at=now)

    def mark_password_as_set(self, now: datetime | None = None) -> "Member":
        """
        Record that the member has set a password.

        Only a confirmed member can reach the Active state.

        Raises:
            MemberNotConfirmed: If the member is still unconfirmed
            PasswordAlreadySet: If already recorded
        """
        if not self.confirmed:
            raise MemberNotConfirmed(str(self.id))
        if self.password_set:
            raise PasswordAlreadySet(str(self.id))
        return replace(self, password_set=True, updated_at=now or utc_now())

    def with_updated_fields(self, update: MembershipUpdate, now: datetime | None = None) -> "Member":
        """
        Apply a partial update.

        UNSET fields keep their current value. updated_at always moves
        forward, even when the clock has not advanced since the last write.
        created_at and confirmed_at are never touched.

        Raises:
            InvalidMemberUpdate: If a required field is cleared
        """
        now = now or utc_now()
        if now <= self.updated_at:
            now = self.updated_at + timedelta(microseconds=1)

        changes: dict[str, object] = {"updated_at": now}
        if update.first_name is not UNSET:
            changes["first_name"] = _required("first_name", update.first_name)
        if update.last_name is not UNSET:
            changes["last_name"] = _required("last_name", update.last_name)
        if update.email is not UNSET:
            changes["email"] = normalize_email(_required("email", update.email))
        if update.address is not UNSET:
            changes["address"] = _clean_address(update.address)
        return replace(self, **changes)


def _required(name: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise InvalidMemberUpdate(f"{name} cannot be empty")
    return value.strip()


def _clean_address(address: str | None) -> str | None:
    if address is None or not address.strip():
        return None
    return address.strip()
