"""
API v1 routes.

Defines REST endpoints for the membership registration and confirmation API.
Domain exceptions are translated to HTTP responses by the handlers in
src.api.errors.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import (
    get_confirmation_service,
    get_member_service,
    get_temporary_token,
)
from src.api.models import (
    ConfirmationResponse,
    ConfirmationStatusResponse,
    ConfirmRequest,
    ErrorResponse,
    MemberPageResponse,
    MemberResponse,
    PasswordSetRequest,
    RegisterMemberRequest,
    RegisterMemberResponse,
    ResendCodeResponse,
    UpdateMemberRequest,
)
from src.config.settings import Settings, get_settings
from src.domain.confirmation_service import ConfirmationService
from src.domain.member import utc_now
from src.domain.member_service import MemberService

router = APIRouter(tags=["v1"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Member not found"}}
_MAX_PAGE_SIZE = 100


@router.post(
    "/members",
    response_model=RegisterMemberResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
    },
    summary="Register a new member",
    description="Create an unconfirmed member. "
    "A 6-digit confirmation code is sent to the provided email.",
)
async def register_member(
    request_data: RegisterMemberRequest,
    service: ConfirmationService = Depends(get_confirmation_service),
    settings: Settings = Depends(get_settings),
) -> RegisterMemberResponse:
    """
    Register a new member and send a confirmation code.

    - **first_name** / **last_name**: 2 to 50 characters
    - **email**: Valid email address, must not be registered yet
    - **address**: Optional postal address
    """
    member = service.register_member(request_data.to_registration())
    return RegisterMemberResponse(
        message="Member registered, confirmation code sent",
        member=MemberResponse.from_member(member),
        code_expires_in_hours=settings.confirmation_code_ttl_hours,
    )


@router.get(
    "/members",
    response_model=MemberPageResponse,
    summary="List members",
    description="List members one page at a time, oldest first, optionally "
    "filtered by confirmation status. Pages are numbered from 0.",
)
async def list_members(
    confirmed: bool | None = Query(None, description="Filter by confirmation status"),
    page: int = Query(0, ge=0, description="Zero-based page number"),
    size: int = Query(20, ge=1, le=_MAX_PAGE_SIZE, description="Members per page"),
    service: MemberService = Depends(get_member_service),
) -> MemberPageResponse:
    return MemberPageResponse.from_page(service.list_members(confirmed, page=page, size=size))


@router.get(
    "/members/confirmation-status",
    response_model=ConfirmationStatusResponse,
    summary="Check whether an email is confirmed",
)
async def confirmation_status(
    email: str = Query(..., min_length=3),
    service: MemberService = Depends(get_member_service),
) -> ConfirmationStatusResponse:
    return ConfirmationStatusResponse(confirmed=service.is_email_confirmed(email))


@router.get(
    "/members/{member_id}",
    response_model=MemberResponse,
    responses=_NOT_FOUND,
    summary="Get a member",
)
async def get_member(
    member_id: UUID,
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    return MemberResponse.from_member(service.get_member(member_id))


@router.patch(
    "/members/{member_id}",
    response_model=MemberResponse,
    responses={
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Email already registered"},
        422: {"description": "Validation error"},
    },
    summary="Update a member",
    description="Partial update: omitted fields are left unchanged.",
)
async def update_member(
    member_id: UUID,
    request_data: UpdateMemberRequest,
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    member = service.update_member(member_id, request_data.to_update())
    return MemberResponse.from_member(member)


@router.delete(
    "/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=_NOT_FOUND,
    summary="Delete a member",
)
async def delete_member(
    member_id: UUID,
    service: MemberService = Depends(get_member_service),
) -> Response:
    service.delete_member(member_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/members/{member_id}/confirmation",
    response_model=ConfirmationResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired code"},
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Member already confirmed"},
        422: {"description": "Validation error"},
        429: {"model": ErrorResponse, "description": "Too many wrong codes, request a new one"},
    },
    summary="Confirm a member with a confirmation code",
    description="Submit the 6-digit code received by email. On success a "
    "temporary token for setting the password is returned when available. "
    "Too many wrong codes lock the outstanding code until a new one is sent.",
)
async def confirm_member(
    member_id: UUID,
    request_data: ConfirmRequest,
    service: ConfirmationService = Depends(get_confirmation_service),
) -> ConfirmationResponse:
    result = service.confirm_member(member_id, request_data.code)
    return ConfirmationResponse.from_result(result)


@router.post(
    "/members/{member_id}/confirmation/resend",
    response_model=ResendCodeResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Member already confirmed"},
        429: {"model": ErrorResponse, "description": "A code was sent too recently"},
        503: {"model": ErrorResponse, "description": "Code could not be delivered"},
    },
    summary="Send a new confirmation code",
)
async def resend_confirmation_code(
    member_id: UUID,
    service: ConfirmationService = Depends(get_confirmation_service),
) -> ResendCodeResponse:
    record = service.resend_confirmation_code(member_id)
    return ResendCodeResponse(
        message="Confirmation code sent",
        expires_in_minutes=record.minutes_until_expiration(utc_now()),
    )


@router.post(
    "/members/{member_id}/temporary-token",
    response_model=ConfirmationResponse,
    responses={
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Member not confirmed or password already set"},
        503: {"model": ErrorResponse, "description": "Authentication module unavailable"},
    },
    summary="Request a temporary token for password setup",
    description="Retry path when confirmation succeeded without a token.",
)
async def request_temporary_token(
    member_id: UUID,
    service: ConfirmationService = Depends(get_confirmation_service),
) -> ConfirmationResponse:
    return ConfirmationResponse.from_result(service.request_temporary_token(member_id))


@router.post(
    "/members/{member_id}/password-set",
    response_model=MemberResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Email does not match the member"},
        401: {"model": ErrorResponse, "description": "Invalid or expired temporary token"},
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Member not confirmed or password already set"},
        503: {"model": ErrorResponse, "description": "Authentication module unavailable"},
    },
    summary="Record that the member has set a password",
    description="Requires the temporary token obtained at confirmation as a "
    "Bearer token, and the member's own email in the body.",
)
async def mark_password_set(
    member_id: UUID,
    request_data: PasswordSetRequest,
    temporary_token: str = Depends(get_temporary_token),
    confirmation_service: ConfirmationService = Depends(get_confirmation_service),
    member_service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    confirmation_service.authorize_password_setup(
        member_id, str(request_data.email), temporary_token
    )
    return MemberResponse.from_member(member_service.mark_password_set(member_id))
