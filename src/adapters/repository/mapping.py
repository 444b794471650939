"""
Row mappers between domain values and database rows.

Pure functions, no database access. Column names match the migrations.
"""

from collections.abc import Mapping
from typing import Any

from src.domain.confirmation import ConfirmationRecord
from src.domain.member import Member, Role

MEMBER_COLUMNS = (
    "id",
    "email",
    "first_name",
    "last_name",
    "address",
    "role",
    "confirmed",
    "confirmed_at",
    "password_set",
    "created_at",
    "updated_at",
)

CONFIRMATION_COLUMNS = ("id", "member_id", "code", "created_at", "expires_at", "failed_attempts")


def member_to_row(member: Member) -> dict[str, Any]:
    return {
        "id": member.id,
        "email": member.email,
        "first_name": member.first_name,
        "last_name": member.last_name,
        "address": member.address,
        "role": member.role.value,
        "confirmed": member.confirmed,
        "confirmed_at": member.confirmed_at,
        "password_set": member.password_set,
        "created_at": member.created_at,
        "updated_at": member.updated_at,
    }


def member_from_row(row: Mapping[str, Any]) -> Member:
    return Member(
        id=row["id"],
        email=row["email"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        address=row["address"],
        role=Role(row["role"]),
        confirmed=row["confirmed"],
        confirmed_at=row["confirmed_at"],
        password_set=row["password_set"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def confirmation_to_row(record: ConfirmationRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "member_id": record.member_id,
        "code": record.code,
        "created_at": record.created_at,
        "expires_at": record.expires_at,
        "failed_attempts": record.failed_attempts,
    }


def confirmation_from_row(row: Mapping[str, Any]) -> ConfirmationRecord:
    return ConfirmationRecord(
        id=row["id"],
        member_id=row["member_id"],
        code=row["code"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        failed_attempts=row["failed_attempts"],
    )
