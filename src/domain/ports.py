"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols through
structural subtyping; none of them inherit from the Protocol classes.
"""

from collections.abc import Callable
from datetime import datetime
from types import TracebackType
from typing import Protocol
from uuid import UUID

from .confirmation import ConfirmationRecord
from .member import Member

Clock = Callable[[], datetime]


class MemberRepository(Protocol):
    """Port interface for member persistence."""

    def find_by_id(self, member_id: UUID, *, for_update: bool = False) -> Member | None:
        """
        Load a member by id.

        Args:
            member_id: Member identifier
            for_update: Lock the member row until the unit of work ends.
                Used by confirm so concurrent attempts are serialized.

        Returns:
            The member, or None if absent
        """
        ...

    def find_by_email(self, email: str) -> Member | None:
        """Load a member by normalized email."""
        ...

    def exists_by_email(self, email: str) -> bool:
        """Check whether a normalized email is already registered."""
        ...

    def find_by_confirmed_status(self, confirmed: bool) -> list[Member]:
        """List members with the given confirmation status."""
        ...

    def find_all(self) -> list[Member]:
        """List all members, oldest first."""
        ...

    def find_page(
        self, confirmed: bool | None = None, *, offset: int = 0, limit: int = 20
    ) -> list[Member]:
        """
        List one page of members, oldest first.

        Args:
            confirmed: Restrict to this confirmation status; None lists all
            offset: Number of members to skip
            limit: Maximum number of members returned
        """
        ...

    def count_by_confirmed_status(self, confirmed: bool) -> int:
        """Count members with the given confirmation status."""
        ...

    def count_all(self) -> int:
        """Count every member."""
        ...

    def save(self, member: Member) -> Member:
        """
        Insert or update a member.

        Raises:
            EmailAlreadyRegistered: If the email belongs to another member
        """
        ...

    def delete(self, member: Member) -> None:
        """Remove a member."""
        ...


class ConfirmationRepository(Protocol):
    """Port interface for confirmation record persistence."""

    def find_by_member_id(self, member_id: UUID) -> list[ConfirmationRecord]:
        """List every record issued to a member, newest first."""
        ...

    def find_by_member_id_and_code(self, member_id: UUID, code: str) -> list[ConfirmationRecord]:
        """List the member's records carrying exactly this code, newest first."""
        ...

    def find_by_code(self, code: str) -> list[ConfirmationRecord]:
        """List records carrying this code across all members."""
        ...

    def exists_by_member_id(self, member_id: UUID) -> bool:
        """Check whether a member has any outstanding record."""
        ...

    def find_expired_confirmations(self, now: datetime) -> list[ConfirmationRecord]:
        """List records with expires_at <= now."""
        ...

    def count_pending_confirmations(self, now: datetime) -> int:
        """Count records that have not expired at `now`."""
        ...

    def save(self, record: ConfirmationRecord) -> ConfirmationRecord:
        """Insert a record, or update the attempt count of an existing one."""
        ...

    def delete(self, record: ConfirmationRecord) -> None:
        """Remove a single record."""
        ...

    def delete_by_member_id(self, member_id: UUID) -> int:
        """Remove every record of a member, returning how many were removed."""
        ...

    def delete_expired_confirmations(self, now: datetime) -> int:
        """Remove records with expires_at <= now, returning how many were removed."""
        ...


class UnitOfWork(Protocol):
    """
    Port interface for a transaction spanning both repositories.

    Changes become visible to other units of work only after commit().
    Leaving the context without commit() rolls everything back.
    """

    members: MemberRepository
    confirmations: ConfirmationRepository

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


UnitOfWorkFactory = Callable[[], UnitOfWork]


class CodeGenerator(Protocol):
    """Port interface for confirmation code generation."""

    def generate_code(self) -> str:
        """Return a 6-digit decimal code, leading zeros preserved."""
        ...


class Notifier(Protocol):
    """Port interface for message delivery."""

    def send_code(self, email: str, code: str, first_name: str) -> None:
        """
        Deliver a confirmation code.

        Raises:
            DeliveryFailure: On transport failure or timeout
        """
        ...

    def send_welcome(self, email: str, first_name: str) -> None:
        """
        Deliver the welcome message sent after confirmation.

        Raises:
            DeliveryFailure: On transport failure or timeout
        """
        ...


class TokenIssuer(Protocol):
    """Port interface for the external authentication module."""

    def generate_temporary_token(self, email: str) -> str:
        """
        Obtain a short-lived token allowing the member to set a password.

        Raises:
            DependencyFailure: On failure or timeout. Implementations must
                never return a placeholder token instead.
        """
        ...

    def verify_temporary_token(self, email: str, token: str) -> bool:
        """
        Ask whether a temporary token is currently valid for this email.

        Returns:
            False when the token is rejected or expired

        Raises:
            DependencyFailure: If the authentication module cannot answer
        """
        ...
