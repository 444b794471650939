"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from datetime import timedelta
from functools import lru_cache
from typing import cast

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.adapters.auth.http import HttpTokenIssuer, UnconfiguredTokenIssuer
from src.adapters.smtp.client import SmtpNotifier
from src.adapters.smtp.console import ConsoleNotifier
from src.config.settings import Settings, get_settings
from src.domain.codes import SecureCodeGenerator
from src.domain.confirmation_service import ConfirmationService
from src.domain.exceptions import InvalidTemporaryToken
from src.domain.instrumentation import InstrumentedService
from src.domain.member_service import MemberService
from src.domain.ports import CodeGenerator, Notifier, TokenIssuer, UnitOfWorkFactory

# Module-level singleton - SecureCodeGenerator is stateless
_code_generator = SecureCodeGenerator()

# Bearer scheme for OpenAPI documentation; missing headers are handled below
http_bearer = HTTPBearer(auto_error=False)


def get_unit_of_work_factory(request: Request) -> UnitOfWorkFactory:
    """
    Get unit-of-work factory from app state.

    The factory is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.unit_of_work_factory


def get_temporary_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
) -> str:
    """
    Extract the temporary token from an "Authorization: Bearer ..." header.

    Raises:
        InvalidTemporaryToken: If the header is missing, uses another
            scheme or carries an empty token
    """
    if credentials is None or not credentials.credentials:
        raise InvalidTemporaryToken("Missing bearer token")
    return credentials.credentials


def get_code_generator() -> CodeGenerator:
    """Get secure code generator (singleton)."""
    return _code_generator


@lru_cache
def get_notifier() -> Notifier:
    """Build the configured notifier (console or SMTP)."""
    settings = get_settings()
    if settings.notifier_backend == "smtp" and settings.smtp_host:
        return SmtpNotifier(
            settings.smtp_host,
            settings.smtp_port,
            settings.mail_from,
            user=settings.smtp_user,
            password=settings.smtp_password,
            app_name=settings.app_name,
            code_ttl_hours=settings.confirmation_code_ttl_hours,
            timeout=settings.notifier_timeout_seconds,
        )
    return ConsoleNotifier()


@lru_cache
def get_token_issuer() -> TokenIssuer:
    """Build the token issuer for the configured authentication module."""
    settings = get_settings()
    if not settings.auth_service_url:
        return UnconfiguredTokenIssuer()
    return HttpTokenIssuer(
        settings.auth_service_url,
        path=settings.auth_temporary_token_path,
        verify_path=settings.auth_token_verification_path,
        timeout=settings.token_issuer_timeout_seconds,
    )


def get_confirmation_service(
    unit_of_work: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    code_generator: CodeGenerator = Depends(get_code_generator),
    notifier: Notifier = Depends(get_notifier),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    settings: Settings = Depends(get_settings),
) -> ConfirmationService:
    """
    Create confirmation service with injected dependencies.

    The service is wrapped for operation logging and timing.
    """
    service = ConfirmationService(
        unit_of_work=unit_of_work,
        code_generator=code_generator,
        notifier=notifier,
        token_issuer=token_issuer,
        code_ttl=timedelta(hours=settings.confirmation_code_ttl_hours),
        token_ttl_seconds=settings.temporary_token_ttl_seconds,
        max_failed_attempts=settings.max_confirmation_attempts,
        resend_cooldown=timedelta(seconds=settings.resend_cooldown_seconds),
    )
    return cast(
        ConfirmationService,
        InstrumentedService(service, slow_threshold_ms=settings.slow_operation_threshold_ms),
    )


def get_member_service(
    unit_of_work: UnitOfWorkFactory = Depends(get_unit_of_work_factory),
    settings: Settings = Depends(get_settings),
) -> MemberService:
    """Create member service with injected dependencies."""
    service = MemberService(unit_of_work=unit_of_work)
    return cast(
        MemberService,
        InstrumentedService(service, slow_threshold_ms=settings.slow_operation_threshold_ms),
    )
