"""Repository adapters - Database and in-memory implementations."""

from .memory import InMemoryStore, InMemoryUnitOfWork
from .postgres import (
    PostgresConfirmationRepository,
    PostgresMemberRepository,
    PostgresUnitOfWork,
    run_migrations,
)

__all__ = [
    "InMemoryStore",
    "InMemoryUnitOfWork",
    "PostgresConfirmationRepository",
    "PostgresMemberRepository",
    "PostgresUnitOfWork",
    "run_migrations",
]
