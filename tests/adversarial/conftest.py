"""
Shared fixtures for adversarial tests.

Attacks run against the services over the in-memory store, whose units of
work are serialized the same way PostgreSQL row locks serialize them.
"""

from datetime import timedelta

import pytest

from src.adapters.repository.memory import InMemoryStore
from src.adapters.smtp.console import ConsoleNotifier
from src.domain.codes import SecureCodeGenerator
from src.domain.confirmation_service import ConfirmationService


class FixedTokenIssuer:
    def generate_temporary_token(self, email: str) -> str:
        return "temp-token"

    def verify_temporary_token(self, email: str, token: str) -> bool:
        return token == "temp-token"


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def service(store: InMemoryStore) -> ConfirmationService:
    return ConfirmationService(
        unit_of_work=store.unit_of_work,
        code_generator=SecureCodeGenerator(),
        notifier=ConsoleNotifier(),
        token_issuer=FixedTokenIssuer(),
    )


@pytest.fixture
def unthrottled_service(store: InMemoryStore) -> ConfirmationService:
    """Service that re-issues codes without waiting between resends."""
    return ConfirmationService(
        unit_of_work=store.unit_of_work,
        code_generator=SecureCodeGenerator(),
        notifier=ConsoleNotifier(),
        token_issuer=FixedTokenIssuer(),
        resend_cooldown=timedelta(0),
    )
