"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.domain.confirmation import ConfirmationResult
from src.domain.member import UNSET, Member, MembershipRegistration, MembershipUpdate, Role
from src.domain.member_service import MemberPage


class RegisterMemberRequest(BaseModel):
    """Request model for member registration."""

    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    address: str | None = Field(None, max_length=200)

    def to_registration(self) -> MembershipRegistration:
        return MembershipRegistration(
            first_name=self.first_name,
            last_name=self.last_name,
            email=str(self.email),
            address=self.address,
        )


class UpdateMemberRequest(BaseModel):
    """
    Request model for partial member update.

    Omitted fields are left unchanged. An explicit null or empty address
    clears it; names and email cannot be cleared.
    """

    first_name: str | None = Field(None, max_length=50)
    last_name: str | None = Field(None, max_length=50)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=200)

    def to_update(self) -> MembershipUpdate:
        sent = self.model_fields_set
        return MembershipUpdate(
            first_name=self.first_name if "first_name" in sent else UNSET,
            last_name=self.last_name if "last_name" in sent else UNSET,
            email=(str(self.email) if self.email is not None else None) if "email" in sent else UNSET,
            address=self.address if "address" in sent else UNSET,
        )


class MemberResponse(BaseModel):
    """Response model describing a member."""

    id: UUID
    email: str
    first_name: str
    last_name: str
    address: str | None
    role: Role
    confirmed: bool
    confirmed_at: datetime | None
    password_set: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_member(cls, member: Member) -> "MemberResponse":
        return cls(
            id=member.id,
            email=member.email,
            first_name=member.first_name,
            last_name=member.last_name,
            address=member.address,
            role=member.role,
            confirmed=member.confirmed,
            confirmed_at=member.confirmed_at,
            password_set=member.password_set,
            created_at=member.created_at,
            updated_at=member.updated_at,
        )


class MemberPageResponse(BaseModel):
    """One zero-based page of members."""

    content: list[MemberResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    number_of_elements: int
    empty: bool

    @classmethod
    def from_page(cls, page: MemberPage) -> "MemberPageResponse":
        return cls(
            content=[MemberResponse.from_member(m) for m in page.items],
            page=page.page,
            size=page.size,
            total_elements=page.total_elements,
            total_pages=page.total_pages,
            first=page.first,
            last=page.last,
            number_of_elements=len(page.items),
            empty=not page.items,
        )


class RegisterMemberResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    member: MemberResponse
    code_expires_in_hours: int


class ConfirmRequest(BaseModel):
    """Request model for member confirmation."""

    code: str = Field(
        ...,
        min_length=6,
        max_length=6,
        pattern=r"^[0-9]{6}$",
        description="6-digit confirmation code",
    )


class PasswordSetRequest(BaseModel):
    """
    Request model for recording a password as set.

    The email must be the member's own; the temporary token travels in
    the Authorization header.
    """

    email: EmailStr


class ConfirmationResponse(BaseModel):
    """
    Response model for confirmation and token requests.

    token_pending is true when the member is confirmed but no temporary
    token could be obtained; POST .../temporary-token retries.
    """

    message: str
    temporary_token: str | None
    expires_in: int
    token_pending: bool
    password_endpoint: str

    @classmethod
    def from_result(cls, result: ConfirmationResult) -> "ConfirmationResponse":
        return cls(
            message=result.message,
            temporary_token=result.temporary_token,
            expires_in=result.expires_in_seconds,
            token_pending=not result.token_issued,
            password_endpoint=f"/v1/members/{result.member_id}/password-set",
        )


class ResendCodeResponse(BaseModel):
    """Response model for a re-issued confirmation code."""

    message: str
    expires_in_minutes: int


class ConfirmationStatusResponse(BaseModel):
    """Response model for the confirmation-status query."""

    confirmed: bool


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
