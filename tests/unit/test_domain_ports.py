"""
Unit tests for domain ports and exceptions.

Tests verify:
- Port interfaces are properly defined
- Adapters satisfy the ports structurally
- Exceptions are properly structured
- Domain purity (zero framework imports)
"""

import subprocess

import pytest

from src.adapters.repository.memory import (
    InMemoryConfirmationRepository,
    InMemoryMemberRepository,
    InMemoryStore,
)
from src.domain.exceptions import (
    ConfirmationLocked,
    ConflictError,
    DeliveryFailure,
    DependencyFailure,
    EmailAlreadyRegistered,
    InvalidMemberUpdate,
    InvalidOrExpiredCode,
    InvalidTemporaryToken,
    MemberAlreadyConfirmed,
    MemberEmailMismatch,
    MemberNotConfirmed,
    MemberNotFound,
    MembershipError,
    PasswordAlreadySet,
    ResendTooSoon,
    ThrottledError,
)
from src.domain.ports import (
    CodeGenerator,
    ConfirmationRepository,
    MemberRepository,
    Notifier,
    TokenIssuer,
    UnitOfWork,
)


def public_methods(cls: type) -> set[str]:
    return {name for name in vars(cls) if not name.startswith("_") and callable(getattr(cls, name))}


class TestMemberRepositoryProtocol:
    """Tests for MemberRepository protocol."""

    @pytest.mark.parametrize(
        "method",
        [
            "find_by_id",
            "find_by_email",
            "exists_by_email",
            "find_by_confirmed_status",
            "find_all",
            "find_page",
            "count_by_confirmed_status",
            "count_all",
            "save",
            "delete",
        ],
    )
    def test_defines_method(self, method: str) -> None:
        assert hasattr(MemberRepository, method)

    def test_in_memory_adapter_covers_port(self) -> None:
        """In-memory adapter implements every port method without inheriting."""
        assert public_methods(MemberRepository) <= public_methods(InMemoryMemberRepository)
        assert MemberRepository not in InMemoryMemberRepository.__mro__


class TestConfirmationRepositoryProtocol:
    """Tests for ConfirmationRepository protocol."""

    @pytest.mark.parametrize(
        "method",
        [
            "find_by_member_id",
            "find_by_member_id_and_code",
            "find_by_code",
            "exists_by_member_id",
            "find_expired_confirmations",
            "count_pending_confirmations",
            "save",
            "delete",
            "delete_by_member_id",
            "delete_expired_confirmations",
        ],
    )
    def test_defines_method(self, method: str) -> None:
        assert hasattr(ConfirmationRepository, method)

    def test_in_memory_adapter_covers_port(self) -> None:
        assert public_methods(ConfirmationRepository) <= public_methods(
            InMemoryConfirmationRepository
        )


class TestUnitOfWorkProtocol:
    """Tests for UnitOfWork protocol."""

    def test_defines_transaction_methods(self) -> None:
        for method in ("__enter__", "__exit__", "commit", "rollback"):
            assert hasattr(UnitOfWork, method)

    def test_in_memory_unit_of_work_exposes_repositories(self) -> None:
        with InMemoryStore().unit_of_work() as uow:
            assert isinstance(uow.members, InMemoryMemberRepository)
            assert isinstance(uow.confirmations, InMemoryConfirmationRepository)


class TestCollaboratorProtocols:
    """Tests for CodeGenerator, Notifier and TokenIssuer protocols."""

    def test_code_generator(self) -> None:
        assert hasattr(CodeGenerator, "generate_code")

    def test_notifier(self) -> None:
        assert hasattr(Notifier, "send_code")
        assert hasattr(Notifier, "send_welcome")

    def test_token_issuer(self) -> None:
        assert hasattr(TokenIssuer, "generate_temporary_token")
        assert hasattr(TokenIssuer, "verify_temporary_token")

    def test_structural_implementation(self) -> None:
        """Any object with matching methods can serve as a notifier."""

        class MockNotifier:
            def send_code(self, email: str, code: str, first_name: str) -> None:
                pass

            def send_welcome(self, email: str, first_name: str) -> None:
                pass

        notifier: Notifier = MockNotifier()
        # Should not raise
        notifier.send_code("test@example.com", "123456", "Ada")
        notifier.send_welcome("test@example.com", "Ada")


class TestDomainExceptions:
    """Tests for domain exceptions."""

    @pytest.mark.parametrize(
        "exc_type",
        [
            MemberNotFound,
            ConflictError,
            InvalidOrExpiredCode,
            InvalidMemberUpdate,
            DeliveryFailure,
            DependencyFailure,
            MemberEmailMismatch,
            InvalidTemporaryToken,
            ThrottledError,
        ],
    )
    def test_inherits_membership_error(self, exc_type: type) -> None:
        assert issubclass(exc_type, MembershipError)

    @pytest.mark.parametrize(
        "exc_type",
        [EmailAlreadyRegistered, MemberAlreadyConfirmed, PasswordAlreadySet, MemberNotConfirmed],
    )
    def test_conflicts_share_base(self, exc_type: type) -> None:
        assert issubclass(exc_type, ConflictError)

    def test_invalid_update_is_value_error(self) -> None:
        assert issubclass(InvalidMemberUpdate, ValueError)

    @pytest.mark.parametrize("exc_type", [ConfirmationLocked, ResendTooSoon])
    def test_throttles_carry_retry_hint(self, exc_type: type) -> None:
        exc = exc_type("member-1", retry_after_seconds=30)
        assert isinstance(exc, ThrottledError)
        assert exc.retry_after_seconds == 30
        assert exc_type("member-1").retry_after_seconds is None

    def test_invalid_code_message_is_generic(self) -> None:
        assert str(InvalidOrExpiredCode()) == "Invalid or expired confirmation code"

    def test_email_already_registered_can_be_raised(self) -> None:
        with pytest.raises(ConflictError):
            raise EmailAlreadyRegistered("test@example.com")


class TestDomainPurity:
    """Tests for domain purity - zero framework imports."""

    @pytest.mark.parametrize(
        "pattern",
        [
            "from fastapi",
            "import fastapi",
            "from pydantic",
            "import pydantic",
            "from psycopg",
            "import psycopg",
            "import httpx",
            "import smtplib",
        ],
    )
    def test_no_infrastructure_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(
            ["grep", "-r", pattern, "src/domain/"],
            capture_output=True,
            text=True,
        )
        assert result.returncode != 0, f"Infrastructure import found: {result.stdout}"
