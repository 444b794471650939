"""
Member profile service - Lookups, partial updates and administration.

Confirmation itself lives in ConfirmationService; this service covers the
rest of the member lifecycle.
"""

import logging
from dataclasses import dataclass
from math import ceil
from uuid import UUID

from .exceptions import EmailAlreadyRegistered, MemberNotFound
from .member import Member, MembershipUpdate, normalize_email, utc_now
from .ports import Clock, UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class MemberPage:
    """One zero-based page of members, oldest first."""

    items: list[Member]
    page: int
    size: int
    total_elements: int

    @property
    def total_pages(self) -> int:
        return ceil(self.total_elements / self.size)

    @property
    def first(self) -> bool:
        return self.page == 0

    @property
    def last(self) -> bool:
        return self.page >= self.total_pages - 1


@dataclass
class MemberService:
    """Domain service for member profile operations."""

    unit_of_work: UnitOfWorkFactory
    clock: Clock = utc_now

    def get_member(self, member_id: UUID) -> Member:
        """
        Raises:
            MemberNotFound: If the member does not exist
        """
        with self.unit_of_work() as uow:
            return self._get_or_raise(uow, member_id)

    def find_by_email(self, email: str) -> Member:
        """
        Raises:
            MemberNotFound: If no member has this email
        """
        normalized_email = normalize_email(email)
        with self.unit_of_work() as uow:
            member = uow.members.find_by_email(normalized_email)
        if member is None:
            raise MemberNotFound(normalized_email)
        return member

    def is_email_confirmed(self, email: str) -> bool:
        """False for unknown emails as well as unconfirmed ones."""
        with self.unit_of_work() as uow:
            member = uow.members.find_by_email(normalize_email(email))
        return member is not None and member.confirmed

    def list_members(
        self, confirmed: bool | None = None, *, page: int = 0, size: int = DEFAULT_PAGE_SIZE
    ) -> MemberPage:
        """
        List one page of members, optionally filtered by confirmation status.

        Raises:
            ValueError: If page is negative or size is not positive
        """
        if page < 0:
            raise ValueError("page cannot be negative")
        if size < 1:
            raise ValueError("size must be at least 1")
        with self.unit_of_work() as uow:
            items = uow.members.find_page(confirmed, offset=page * size, limit=size)
            if confirmed is None:
                total = uow.members.count_all()
            else:
                total = uow.members.count_by_confirmed_status(confirmed)
        return MemberPage(items=items, page=page, size=size, total_elements=total)

    def count_members(self, confirmed: bool) -> int:
        with self.unit_of_work() as uow:
            return uow.members.count_by_confirmed_status(confirmed)

    def update_member(self, member_id: UUID, update: MembershipUpdate) -> Member:
        """
        Apply a partial profile update.

        Raises:
            MemberNotFound: If the member does not exist
            InvalidMemberUpdate: If a required field is cleared
            EmailAlreadyRegistered: If the new email belongs to another member
        """
        with self.unit_of_work() as uow:
            member = self._get_or_raise(uow, member_id, for_update=True)
            updated = member.with_updated_fields(update, self.clock())
            if updated.email != member.email and uow.members.exists_by_email(updated.email):
                raise EmailAlreadyRegistered(updated.email)
            updated = uow.members.save(updated)
            uow.commit()
        logger.info("Member updated: %s", member_id)
        return updated

    def mark_password_set(self, member_id: UUID) -> Member:
        """
        Record that the member finished setting a password.

        Raises:
            MemberNotFound: If the member does not exist
            MemberNotConfirmed: If the member is still unconfirmed
            PasswordAlreadySet: If already recorded
        """
        with self.unit_of_work() as uow:
            member = self._get_or_raise(uow, member_id, for_update=True)
            member = uow.members.save(member.mark_password_as_set(self.clock()))
            uow.commit()
        logger.info("Password set for member %s", member_id)
        return member

    def delete_member(self, member_id: UUID) -> None:
        """
        Administrative removal of a member and its outstanding codes.

        Raises:
            MemberNotFound: If the member does not exist
        """
        with self.unit_of_work() as uow:
            member = self._get_or_raise(uow, member_id, for_update=True)
            uow.confirmations.delete_by_member_id(member_id)
            uow.members.delete(member)
            uow.commit()
        logger.info("Member deleted: %s", member_id)

    def _get_or_raise(self, uow: UnitOfWork, member_id: UUID, *, for_update: bool = False) -> Member:
        member = uow.members.find_by_id(member_id, for_update=for_update)
        if member is None:
            raise MemberNotFound(str(member_id))
        return member
