"""
PostgreSQL repository adapter - Implements the domain persistence ports.

This module provides the PostgreSQL implementation of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design:
-------------------
A PostgresUnitOfWork borrows one pooled connection and runs every
repository call of the unit in a single transaction.

1. **SELECT ... FOR UPDATE**: find_by_id(for_update=True) locks the member
   row until commit/rollback. Concurrent confirmations of the same member
   are serialized; the second one sees confirmed = TRUE and fails.

2. **Unique index on members.email**: email uniqueness is enforced by the
   database. A UniqueViolation is translated to EmailAlreadyRegistered, so
   concurrent registrations of one email create exactly one member.

3. **Explicit commit**: leaving the unit of work without commit() rolls
   back, so a failed confirmation never leaves a half-applied state.
"""

import logging
from datetime import datetime
from pathlib import Path
from types import TracebackType
from uuid import UUID

from psycopg import Connection, errors
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from src.adapters.repository.mapping import (
    CONFIRMATION_COLUMNS,
    MEMBER_COLUMNS,
    confirmation_from_row,
    confirmation_to_row,
    member_from_row,
    member_to_row,
)
from src.domain.confirmation import ConfirmationRecord
from src.domain.exceptions import EmailAlreadyRegistered
from src.domain.member import Member

logger = logging.getLogger(__name__)

_MEMBER_SELECT = f"SELECT {', '.join(MEMBER_COLUMNS)} FROM members"
_CONFIRMATION_SELECT = f"SELECT {', '.join(CONFIRMATION_COLUMNS)} FROM member_confirmations"


class PostgresMemberRepository:
    """
    Implements MemberRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, conn: Connection) -> None:
        """
        Initialize repository with a connection owned by a unit of work.

        Args:
            conn: psycopg3 connection; the caller controls the transaction
        """
        self._conn = conn

    def find_by_id(self, member_id: UUID, *, for_update: bool = False) -> Member | None:
        sql = f"{_MEMBER_SELECT} WHERE id = %s"
        if for_update:
            sql += " FOR UPDATE"
        with self._conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (member_id,))
            row = cursor.fetchone()
        return member_from_row(row) if row is not None else None

    def find_by_email(self, email: str) -> Member | None:
        with self._conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(f"{_MEMBER_SELECT} WHERE email = %s", (email,))
            row = cursor.fetchone()
        return member_from_row(row) if row is not None else None

    def exists_by_email(self, email: str) -> bool:
        with self._conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM members WHERE email = %s", (email,))
            return cursor.fetchone() is not None

    def find_by_confirmed_status(self, confirmed: bool) -> list[Member]:
        with self._conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(
                f"{_MEMBER_SELECT} WHERE confirmed = %s ORDER BY created_at, id", (confirmed,)
            )
            return [member_from_row(row) for row in cursor.fetchall()]

    def find_all(self) -> list[Member]:
        with self._conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(f"{_MEMBER_SELECT} ORDER BY created_at, id")
            return [member_from_row(row) for row in cursor.fetchall()]

    def find_page(
        self, confirmed: bool | None = None, *, offset: int = 0, limit: int = 20
    ) -> list[Member]:
        if confirmed is None:
            sql = f"{_MEMBER_SELECT} ORDER BY created_at, id LIMIT %s OFFSET %s"
            params: tuple = (limit, offset)
        else:
            sql = (
                f"{_MEMBER_SELECT} WHERE confirmed = %s "
                "ORDER BY created_at, id LIMIT %s OFFSET %s"
            )
            params = (confirmed, limit, offset)
        with self._conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            return [member_from_row(row) for row in cursor.fetchall()]

    def count_by_confirmed_status(self, confirmed: bool) -> int:
        with self._conn.cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM members WHERE confirmed = %s", (confirmed,))
            row = cursor.fetchone()
        return row[0] if row is not None else 0

    def count_all(self) -> int:
        with self._conn.cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM members")
            row = cursor.fetchone()
        return row[0] if row is not None else 0

    def save(self, member: Member) -> Member:
        """
        Upsert a member keyed by id.

        The id never changes; an email change updates the stored value only.

        Raises:
            EmailAlreadyRegistered: If another member already uses the email
        """
        sql = """
            INSERT INTO members (
                id, email, first_name, last_name, address, role,
                confirmed, confirmed_at, password_set, created_at, updated_at
            )
            VALUES (
                %(id)s, %(email)s, %(first_name)s, %(last_name)s, %(address)s, %(role)s,
                %(confirmed)s, %(confirmed_at)s, %(password_set)s, %(created_at)s, %(updated_at)s
            )
            ON CONFLICT (id) DO UPDATE
            SET email = EXCLUDED.email,
                first_name = EXCLUDED.first_name,
                last_name = EXCLUDED.last_name,
                address = EXCLUDED.address,
                role = EXCLUDED.role,
                confirmed = EXCLUDED.confirmed,
                confirmed_at = EXCLUDED.confirmed_at,
                password_set = EXCLUDED.password_set,
                updated_at = EXCLUDED.updated_at
        """
        try:
            with self._conn.cursor() as cursor:
                cursor.execute(sql, member_to_row(member))
        except errors.UniqueViolation as exc:
            raise EmailAlreadyRegistered(member.email) from exc
        return member

    def delete(self, member: Member) -> None:
        with self._conn.cursor() as cursor:
            cursor.execute("DELETE FROM members WHERE id = %s", (member.id,))


class PostgresConfirmationRepository:
    """
    Implements ConfirmationRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def _fetch(self, sql: str, params: tuple) -> list[ConfirmationRecord]:
        with self._conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            return [confirmation_from_row(row) for row in cursor.fetchall()]

    def find_by_member_id(self, member_id: UUID) -> list[ConfirmationRecord]:
        return self._fetch(
            f"{_CONFIRMATION_SELECT} WHERE member_id = %s ORDER BY created_at DESC", (member_id,)
        )

    def find_by_member_id_and_code(self, member_id: UUID, code: str) -> list[ConfirmationRecord]:
        return self._fetch(
            f"{_CONFIRMATION_SELECT} WHERE member_id = %s AND code = %s ORDER BY created_at DESC",
            (member_id, code),
        )

    def find_by_code(self, code: str) -> list[ConfirmationRecord]:
        return self._fetch(
            f"{_CONFIRMATION_SELECT} WHERE code = %s ORDER BY created_at DESC", (code,)
        )

    def exists_by_member_id(self, member_id: UUID) -> bool:
        with self._conn.cursor() as cursor:
            cursor.execute("SELECT 1 FROM member_confirmations WHERE member_id = %s", (member_id,))
            return cursor.fetchone() is not None

    def find_expired_confirmations(self, now: datetime) -> list[ConfirmationRecord]:
        return self._fetch(
            f"{_CONFIRMATION_SELECT} WHERE expires_at <= %s ORDER BY expires_at", (now,)
        )

    def count_pending_confirmations(self, now: datetime) -> int:
        with self._conn.cursor() as cursor:
            cursor.execute("SELECT COUNT(*) FROM member_confirmations WHERE expires_at > %s", (now,))
            row = cursor.fetchone()
        return row[0] if row is not None else 0

    def save(self, record: ConfirmationRecord) -> ConfirmationRecord:
        """Insert a record; an existing id only has its attempt count updated."""
        sql = """
            INSERT INTO member_confirmations (
                id, member_id, code, created_at, expires_at, failed_attempts
            )
            VALUES (
                %(id)s, %(member_id)s, %(code)s, %(created_at)s, %(expires_at)s,
                %(failed_attempts)s
            )
            ON CONFLICT (id) DO UPDATE
            SET failed_attempts = EXCLUDED.failed_attempts
        """
        with self._conn.cursor() as cursor:
            cursor.execute(sql, confirmation_to_row(record))
        return record

    def delete(self, record: ConfirmationRecord) -> None:
        with self._conn.cursor() as cursor:
            cursor.execute("DELETE FROM member_confirmations WHERE id = %s", (record.id,))

    def delete_by_member_id(self, member_id: UUID) -> int:
        with self._conn.cursor() as cursor:
            cursor.execute("DELETE FROM member_confirmations WHERE member_id = %s", (member_id,))
            return cursor.rowcount

    def delete_expired_confirmations(self, now: datetime) -> int:
        with self._conn.cursor() as cursor:
            cursor.execute("DELETE FROM member_confirmations WHERE expires_at <= %s", (now,))
            return cursor.rowcount


class PostgresUnitOfWork:
    """
    Implements UnitOfWork protocol over one pooled connection.

    Usage:
        with PostgresUnitOfWork(pool) as uow:
            member = uow.members.find_by_id(member_id, for_update=True)
            ...
            uow.commit()
    """

    members: PostgresMemberRepository
    confirmations: PostgresConfirmationRepository

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool
        self._conn_context = None
        self._conn: Connection | None = None

    def __enter__(self) -> "PostgresUnitOfWork":
        self._conn_context = self._pool.connection()
        self._conn = self._conn_context.__enter__()
        self.members = PostgresMemberRepository(self._conn)
        self.confirmations = PostgresConfirmationRepository(self._conn)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            # Anything not explicitly committed is discarded.
            self.rollback()
        finally:
            self._conn_context.__exit__(exc_type, exc, tb)
            self._conn_context = None
            self._conn = None

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info("Migration complete: %s", sql_file.name)
        except Exception as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
