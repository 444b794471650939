"""
Domain layer - Pure business logic with zero framework imports.

This package contains the membership confirmation state machine:
the Member aggregate, confirmation records, code generation and the
services orchestrating them. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .codes import SecureCodeGenerator
from .confirmation import ConfirmationRecord, ConfirmationResult
from .confirmation_service import ConfirmationService
from .exceptions import (
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
from .instrumentation import InstrumentedService, log_execution
from .member import UNSET, Member, MembershipRegistration, MembershipUpdate, Role
from .member_service import MemberPage, MemberService
from .ports import (
    CodeGenerator,
    ConfirmationRepository,
    MemberRepository,
    Notifier,
    TokenIssuer,
    UnitOfWork,
)

__all__ = [
    "UNSET",
    "CodeGenerator",
    "ConfirmationRecord",
    "ConfirmationRepository",
    "ConfirmationResult",
    "ConfirmationLocked",
    "ConfirmationService",
    "ConflictError",
    "DeliveryFailure",
    "DependencyFailure",
    "EmailAlreadyRegistered",
    "InstrumentedService",
    "InvalidMemberUpdate",
    "InvalidOrExpiredCode",
    "InvalidTemporaryToken",
    "Member",
    "MemberAlreadyConfirmed",
    "MemberEmailMismatch",
    "MemberNotConfirmed",
    "MemberNotFound",
    "MemberPage",
    "MemberRepository",
    "MemberService",
    "MembershipError",
    "MembershipRegistration",
    "MembershipUpdate",
    "Notifier",
    "PasswordAlreadySet",
    "ResendTooSoon",
    "Role",
    "SecureCodeGenerator",
    "ThrottledError",
    "TokenIssuer",
    "UnitOfWork",
    "log_execution",
]
