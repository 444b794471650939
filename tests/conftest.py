"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock
- Deterministic collaborators (code generator, notifier, token issuer)
- In-memory persistence and services wired on top of it
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

import pytest

from src.adapters.repository.memory import InMemoryStore
from src.domain.confirmation_service import ConfirmationService
from src.domain.exceptions import DeliveryFailure, DependencyFailure
from src.domain.member import MembershipRegistration
from src.domain.member_service import MemberService

START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class SequenceCodeGenerator:
    """Returns predetermined codes in order, then repeats the last one."""

    def __init__(self, codes: Iterable[str]) -> None:
        self._codes = list(codes)
        self.calls = 0

    def generate_code(self) -> str:
        index = min(self.calls, len(self._codes) - 1)
        self.calls += 1
        return self._codes[index]


class RecordingNotifier:
    """Records deliveries; optionally fails with DeliveryFailure."""

    def __init__(self, fail_codes: bool = False, fail_welcome: bool = False) -> None:
        self.codes: list[tuple[str, str, str]] = []
        self.welcomes: list[tuple[str, str]] = []
        self.fail_codes = fail_codes
        self.fail_welcome = fail_welcome

    def send_code(self, email: str, code: str, first_name: str) -> None:
        if self.fail_codes:
            raise DeliveryFailure("smtp down")
        self.codes.append((email, code, first_name))

    def send_welcome(self, email: str, first_name: str) -> None:
        if self.fail_welcome:
            raise DeliveryFailure("smtp down")
        self.welcomes.append((email, first_name))

    def last_code_for(self, email: str) -> str:
        return [code for to, code, _ in self.codes if to == email][-1]


class StubTokenIssuer:
    """Returns a fixed token or raises DependencyFailure; accepts only that token back."""

    def __init__(self, token: str = "temp-token-123", fail: bool = False) -> None:
        self.token = token
        self.fail = fail
        self.requests: list[str] = []
        self.verifications: list[tuple[str, str]] = []

    def generate_temporary_token(self, email: str) -> str:
        self.requests.append(email)
        if self.fail:
            raise DependencyFailure("auth module timeout")
        return self.token

    def verify_temporary_token(self, email: str, token: str) -> bool:
        self.verifications.append((email, token))
        if self.fail:
            raise DependencyFailure("auth module timeout")
        return token == self.token


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def codes() -> SequenceCodeGenerator:
    return SequenceCodeGenerator(["000123", "456789", "999999"])


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def token_issuer() -> StubTokenIssuer:
    return StubTokenIssuer()


@pytest.fixture
def confirmation_service(
    store: InMemoryStore,
    codes: SequenceCodeGenerator,
    notifier: RecordingNotifier,
    token_issuer: StubTokenIssuer,
    clock: FrozenClock,
) -> ConfirmationService:
    return ConfirmationService(
        unit_of_work=store.unit_of_work,
        code_generator=codes,
        notifier=notifier,
        token_issuer=token_issuer,
        clock=clock,
    )


@pytest.fixture
def member_service(store: InMemoryStore, clock: FrozenClock) -> MemberService:
    return MemberService(unit_of_work=store.unit_of_work, clock=clock)


@pytest.fixture
def registration() -> MembershipRegistration:
    return MembershipRegistration(
        first_name="Ada",
        last_name="Lovelace",
        email="a@b.com",
        address="12 St James's Square, London",
    )
