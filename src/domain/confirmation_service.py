"""
Confirmation domain service - Registration and confirmation state machine.

This module contains the core business logic for member registration and
email-code confirmation.

Confirmation State Machine (Forward-Only Transitions)
=====================================================

States (per member):
- UNCONFIRMED: Initial state after registration (code issued, pending confirmation)
- CONFIRMED: Terminal state after a valid code was submitted

Valid Transitions:
    UNCONFIRMED -> CONFIRMED   (valid, unexpired code submitted)

Invalid Transitions (never allowed):
    CONFIRMED -> any           (a second confirmation raises MemberAlreadyConfirmed)

Code Guessing
=============

Every wrong code counts against the member's live records. After
max_failed_attempts wrong codes the records are exhausted: further attempts,
the right code included, raise ConfirmationLocked until a new code is sent.
Resends are throttled by resend_cooldown, measured from the newest record.

Atomicity
=========

The already-confirmed check, record validation, state flip and record
invalidation run inside one unit of work with the member row locked
(SELECT FOR UPDATE in PostgreSQL). Two concurrent confirmations with a
valid code produce exactly one success.

Side channels
=============

Notification and token issuance happen after the commit. Their failures
are logged and degrade the result but never undo the state change.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from math import ceil
from uuid import UUID, uuid4

from .confirmation import (
    DEFAULT_CODE_TTL,
    DEFAULT_MAX_FAILED_ATTEMPTS,
    DEFAULT_RESEND_COOLDOWN,
    ConfirmationRecord,
    ConfirmationResult,
)
from .exceptions import (
    ConfirmationLocked,
    DeliveryFailure,
    DependencyFailure,
    EmailAlreadyRegistered,
    InvalidOrExpiredCode,
    InvalidTemporaryToken,
    MemberAlreadyConfirmed,
    MemberEmailMismatch,
    MemberNotConfirmed,
    MemberNotFound,
    PasswordAlreadySet,
    ResendTooSoon,
)
from .member import Member, MembershipRegistration, normalize_email, utc_now
from .ports import (
    Clock,
    CodeGenerator,
    Notifier,
    TokenIssuer,
    UnitOfWork,
    UnitOfWorkFactory,
)

logger = logging.getLogger(__name__)

CONFIRMED_MESSAGE = "Account confirmed"
TOKEN_PENDING_MESSAGE = "Account confirmed; temporary token unavailable, request one later"
TOKEN_ISSUED_MESSAGE = "Temporary token issued"


@dataclass
class ConfirmationService:
    """
    Domain service for registration and confirmation.

    Orchestrates member creation, code issuance, confirmation attempts
    and the post-confirmation side channels.
    """

    unit_of_work: UnitOfWorkFactory
    code_generator: CodeGenerator
    notifier: Notifier
    token_issuer: TokenIssuer
    code_ttl: timedelta = DEFAULT_CODE_TTL
    token_ttl_seconds: int = 900
    max_failed_attempts: int = DEFAULT_MAX_FAILED_ATTEMPTS
    resend_cooldown: timedelta = DEFAULT_RESEND_COOLDOWN
    clock: Clock = utc_now
    id_factory: Callable[[], UUID] = uuid4

    def register_member(self, registration: MembershipRegistration) -> Member:
        """
        Register a new unconfirmed member and issue a confirmation code.

        The member and its record are committed before delivery is
        attempted; a delivery failure leaves an unconfirmed member whose
        code can be re-sent.

        Args:
            registration: Submitted profile data (email will be normalized)

        Returns:
            The created member

        Raises:
            EmailAlreadyRegistered: If the email is already registered
        """
        now = self.clock()
        member = Member.register(registration, member_id=self.id_factory(), now=now)

        with self.unit_of_work() as uow:
            if uow.members.exists_by_email(member.email):
                raise EmailAlreadyRegistered(member.email)
            member = uow.members.save(member)
            record = self._issue_code(uow, member, now)
            uow.commit()

        logger.info("New member registered: %s", member.id)
        self._deliver_code_best_effort(member, record.code)
        return member

    def confirm_member(self, member_id: UUID, submitted_code: str) -> ConfirmationResult:
        """
        Confirm a member with a submitted code.

        Args:
            member_id: Member to confirm
            submitted_code: Code received by email

        Returns:
            ConfirmationResult; temporary_token is None when the token
            issuer failed (the member is confirmed regardless)

        Raises:
            ValueError: If submitted_code is None
            MemberNotFound: If the member does not exist
            MemberAlreadyConfirmed: If the member is already confirmed
            InvalidOrExpiredCode: If no matching unexpired record exists
            ConfirmationLocked: If too many wrong codes were submitted since
                the last code was issued
        """
        if submitted_code is None:
            raise ValueError("Submitted confirmation code cannot be None")

        with self.unit_of_work() as uow:
            member = self._get_member_or_raise(uow, member_id, for_update=True)
            if member.confirmed:
                raise MemberAlreadyConfirmed(str(member_id))

            now = self.clock()
            live = [
                record
                for record in uow.confirmations.find_by_member_id(member_id)
                if not record.is_expired(now)
            ]
            usable = [r for r in live if not r.is_exhausted(self.max_failed_attempts)]
            if live and not usable:
                logger.warning("Confirmation attempt on locked code for member %s", member_id)
                raise ConfirmationLocked(str(member_id))

            if not any(record.is_valid(submitted_code, now) for record in usable):
                if uow.confirmations.find_by_member_id_and_code(member_id, submitted_code):
                    logger.info("Expired confirmation code submitted for member %s", member_id)
                else:
                    logger.info("Unknown confirmation code submitted for member %s", member_id)
                locked = self._record_failed_attempt(uow, usable)
                uow.commit()
                if locked:
                    logger.warning(
                        "Confirmation locked for member %s after %d failed attempt(s)",
                        member_id,
                        self.max_failed_attempts,
                    )
                    raise ConfirmationLocked(str(member_id))
                raise InvalidOrExpiredCode()

            member = uow.members.save(member.confirm(now))
            removed = uow.confirmations.delete_by_member_id(member_id)
            uow.commit()

        logger.info("Member confirmed: %s (%d code(s) invalidated)", member_id, removed)

        token = self._issue_token_best_effort(member)
        self._send_welcome_best_effort(member)

        if token is None:
            return ConfirmationResult(
                member_id=member_id,
                message=TOKEN_PENDING_MESSAGE,
                temporary_token=None,
                expires_in_seconds=0,
            )
        return ConfirmationResult(
            member_id=member_id,
            message=CONFIRMED_MESSAGE,
            temporary_token=token,
            expires_in_seconds=self.token_ttl_seconds,
        )

    def resend_confirmation_code(self, member_id: UUID) -> ConfirmationRecord:
        """
        Replace the member's outstanding codes with a fresh one and send it.

        Returns:
            The newly issued record

        Raises:
            MemberNotFound: If the member does not exist
            MemberAlreadyConfirmed: If no code is needed any more
            ResendTooSoon: If the newest code was issued less than
                resend_cooldown ago
            DeliveryFailure: If the code could not be sent (the record
                stays committed)
        """
        with self.unit_of_work() as uow:
            member = self._get_member_or_raise(uow, member_id, for_update=True)
            if member.confirmed:
                raise MemberAlreadyConfirmed(str(member_id))
            now = self.clock()
            self._check_resend_cooldown(uow, member_id, now)
            uow.confirmations.delete_by_member_id(member_id)
            record = self._issue_code(uow, member, now)
            uow.commit()

        logger.info("Confirmation code re-issued for member %s", member_id)
        self.notifier.send_code(member.email, record.code, member.first_name)
        return record

    def request_temporary_token(self, member_id: UUID) -> ConfirmationResult:
        """
        Request a password-setup token for a confirmed member.

        This is the retry path when confirmation could not obtain a token.

        Raises:
            MemberNotFound: If the member does not exist
            MemberNotConfirmed: If the member is still unconfirmed
            PasswordAlreadySet: If the token is no longer needed
            DependencyFailure: If the token issuer fails
        """
        with self.unit_of_work() as uow:
            member = self._get_member_or_raise(uow, member_id)

        if not member.confirmed:
            raise MemberNotConfirmed(str(member_id))
        if member.password_set:
            raise PasswordAlreadySet(str(member_id))

        token = self.token_issuer.generate_temporary_token(member.email)
        return ConfirmationResult(
            member_id=member_id,
            message=TOKEN_ISSUED_MESSAGE,
            temporary_token=token,
            expires_in_seconds=self.token_ttl_seconds,
        )

    def authorize_password_setup(self, member_id: UUID, email: str, temporary_token: str) -> Member:
        """
        Check that a caller may record the member's password as set.

        The email must belong to the addressed member, the member must be
        confirmed without a password yet, and the authentication module
        must accept the temporary token for that email.

        Returns:
            The member as loaded before the token check

        Raises:
            MemberNotFound: If the member does not exist
            MemberEmailMismatch: If the email belongs to someone else
            MemberNotConfirmed: If the member is still unconfirmed
            PasswordAlreadySet: If the password is already recorded
            InvalidTemporaryToken: If the token is empty or rejected
            DependencyFailure: If the authentication module cannot answer
        """
        with self.unit_of_work() as uow:
            member = self._get_member_or_raise(uow, member_id)

        if member.email != normalize_email(email):
            raise MemberEmailMismatch(str(member_id))
        if not member.confirmed:
            raise MemberNotConfirmed(str(member_id))
        if member.password_set:
            raise PasswordAlreadySet(str(member_id))
        if not temporary_token or not self.token_issuer.verify_temporary_token(
            member.email, temporary_token
        ):
            logger.warning("Temporary token rejected for member %s", member_id)
            raise InvalidTemporaryToken(str(member_id))
        return member

    def purge_expired_confirmations(self) -> int:
        """
        Delete expired confirmation records.

        Entry point for an external scheduler.

        Returns:
            Number of records removed
        """
        with self.unit_of_work() as uow:
            removed = uow.confirmations.delete_expired_confirmations(self.clock())
            uow.commit()
        logger.info("Purged %d expired confirmation code(s)", removed)
        return removed

    def _issue_code(self, uow: UnitOfWork, member: Member, now: datetime) -> ConfirmationRecord:
        record = ConfirmationRecord.issue(
            member.id,
            self.code_generator.generate_code(),
            now=now,
            ttl=self.code_ttl,
        )
        return uow.confirmations.save(record)

    def _record_failed_attempt(self, uow: UnitOfWork, usable: list[ConfirmationRecord]) -> bool:
        """Count a wrong code against every usable record; True once they are all exhausted."""
        exhausted = True
        for record in usable:
            record = uow.confirmations.save(record.with_failed_attempt())
            exhausted = exhausted and record.is_exhausted(self.max_failed_attempts)
        return bool(usable) and exhausted

    def _check_resend_cooldown(self, uow: UnitOfWork, member_id: UUID, now: datetime) -> None:
        records = uow.confirmations.find_by_member_id(member_id)
        if not records:
            return
        available_at = records[0].created_at + self.resend_cooldown
        if now < available_at:
            wait = ceil((available_at - now).total_seconds())
            raise ResendTooSoon(str(member_id), retry_after_seconds=wait)

    def _get_member_or_raise(
        self, uow: UnitOfWork, member_id: UUID, *, for_update: bool = False
    ) -> Member:
        member = uow.members.find_by_id(member_id, for_update=for_update)
        if member is None:
            raise MemberNotFound(str(member_id))
        return member

    def _deliver_code_best_effort(self, member: Member, code: str) -> None:
        try:
            self.notifier.send_code(member.email, code, member.first_name)
        except DeliveryFailure as exc:
            logger.warning("Confirmation code delivery failed for member %s: %s", member.id, exc)
        except Exception:
            logger.exception("Unexpected notifier error for member %s", member.id)

    def _send_welcome_best_effort(self, member: Member) -> None:
        try:
            self.notifier.send_welcome(member.email, member.first_name)
        except DeliveryFailure as exc:
            logger.warning("Welcome message delivery failed for member %s: %s", member.id, exc)
        except Exception:
            logger.exception("Unexpected notifier error for member %s", member.id)

    def _issue_token_best_effort(self, member: Member) -> str | None:
        try:
            return self.token_issuer.generate_temporary_token(member.email)
        except DependencyFailure as exc:
            logger.warning("Temporary token unavailable for member %s: %s", member.id, exc)
        except Exception:
            logger.exception("Unexpected token issuer error for member %s", member.id)
        return None
