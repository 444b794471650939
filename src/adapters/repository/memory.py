"""
In-memory repository adapter - Implements the domain persistence ports.

Used for development (REPOSITORY_BACKEND=memory) and tests. Units of work
are fully serialized by a re-entrant lock held for their whole duration,
which gives the same guarantees PostgreSQL gives with SELECT FOR UPDATE:
a confirmation observes either the state before or after any other one.

Each unit works on private copies of the tables; commit() publishes them.
Stored values are frozen dataclasses, so shallow copies are sufficient.
"""

import threading
from datetime import datetime
from types import TracebackType
from uuid import UUID

from src.domain.confirmation import ConfirmationRecord
from src.domain.exceptions import EmailAlreadyRegistered
from src.domain.member import Member


class InMemoryStore:
    """Shared tables plus the lock serializing units of work."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.members: dict[UUID, Member] = {}
        self.confirmations: dict[UUID, ConfirmationRecord] = {}

    def unit_of_work(self) -> "InMemoryUnitOfWork":
        """UnitOfWorkFactory for services."""
        return InMemoryUnitOfWork(self)

    def clear(self) -> None:
        with self.lock:
            self.members = {}
            self.confirmations = {}


class InMemoryMemberRepository:
    """Implements MemberRepository protocol over a dict keyed by id."""

    def __init__(self, members: dict[UUID, Member]) -> None:
        self._members = members

    def find_by_id(self, member_id: UUID, *, for_update: bool = False) -> Member | None:
        # The unit of work already holds the store lock.
        return self._members.get(member_id)

    def find_by_email(self, email: str) -> Member | None:
        return next((m for m in self._members.values() if m.email == email), None)

    def exists_by_email(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def find_by_confirmed_status(self, confirmed: bool) -> list[Member]:
        return [m for m in self.find_all() if m.confirmed == confirmed]

    def find_all(self) -> list[Member]:
        return sorted(self._members.values(), key=lambda m: (m.created_at, str(m.id)))

    def find_page(
        self, confirmed: bool | None = None, *, offset: int = 0, limit: int = 20
    ) -> list[Member]:
        members = self.find_all() if confirmed is None else self.find_by_confirmed_status(confirmed)
        return members[offset : offset + limit]

    def count_by_confirmed_status(self, confirmed: bool) -> int:
        return len(self.find_by_confirmed_status(confirmed))

    def count_all(self) -> int:
        return len(self._members)

    def save(self, member: Member) -> Member:
        """
        Raises:
            EmailAlreadyRegistered: If another member already uses the email
        """
        existing = self.find_by_email(member.email)
        if existing is not None and existing.id != member.id:
            raise EmailAlreadyRegistered(member.email)
        self._members[member.id] = member
        return member

    def delete(self, member: Member) -> None:
        self._members.pop(member.id, None)


class InMemoryConfirmationRepository:
    """Implements ConfirmationRepository protocol over a dict keyed by id."""

    def __init__(self, confirmations: dict[UUID, ConfirmationRecord]) -> None:
        self._confirmations = confirmations

    def _newest_first(self, records) -> list[ConfirmationRecord]:
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def find_by_member_id(self, member_id: UUID) -> list[ConfirmationRecord]:
        return self._newest_first(
            r for r in self._confirmations.values() if r.member_id == member_id
        )

    def find_by_member_id_and_code(self, member_id: UUID, code: str) -> list[ConfirmationRecord]:
        return [r for r in self.find_by_member_id(member_id) if r.code == code]

    def find_by_code(self, code: str) -> list[ConfirmationRecord]:
        return self._newest_first(r for r in self._confirmations.values() if r.code == code)

    def exists_by_member_id(self, member_id: UUID) -> bool:
        return any(r.member_id == member_id for r in self._confirmations.values())

    def find_expired_confirmations(self, now: datetime) -> list[ConfirmationRecord]:
        expired = (r for r in self._confirmations.values() if r.is_expired(now))
        return sorted(expired, key=lambda r: r.expires_at)

    def count_pending_confirmations(self, now: datetime) -> int:
        return sum(1 for r in self._confirmations.values() if not r.is_expired(now))

    def save(self, record: ConfirmationRecord) -> ConfirmationRecord:
        self._confirmations[record.id] = record
        return record

    def delete(self, record: ConfirmationRecord) -> None:
        self._confirmations.pop(record.id, None)

    def delete_by_member_id(self, member_id: UUID) -> int:
        return self._delete_where(lambda r: r.member_id == member_id)

    def delete_expired_confirmations(self, now: datetime) -> int:
        return self._delete_where(lambda r: r.is_expired(now))

    def _delete_where(self, predicate) -> int:
        doomed = [record_id for record_id, r in self._confirmations.items() if predicate(r)]
        for record_id in doomed:
            del self._confirmations[record_id]
        return len(doomed)


class InMemoryUnitOfWork:
    """Implements UnitOfWork protocol over an InMemoryStore."""

    members: InMemoryMemberRepository
    confirmations: InMemoryConfirmationRepository

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def __enter__(self) -> "InMemoryUnitOfWork":
        self._store.lock.acquire()
        self._begin()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._store.lock.release()

    def commit(self) -> None:
        self._store.members = self._members
        self._store.confirmations = self._confirmations
        self._begin()

    def rollback(self) -> None:
        self._begin()

    def _begin(self) -> None:
        self._members = dict(self._store.members)
        self._confirmations = dict(self._store.confirmations)
        self.members = InMemoryMemberRepository(self._members)
        self.confirmations = InMemoryConfirmationRepository(self._confirmations)
