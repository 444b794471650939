"""
Domain exceptions - Semantic error types for membership confirmation.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Propagation policy:
- State-machine violations (MemberNotFound, ConflictError subclasses,
  InvalidOrExpiredCode, ThrottledError subclasses) are always raised to the
  caller.
- Side-channel failures (DeliveryFailure, DependencyFailure) are raised by
  adapters and isolated by the services after the state change is committed.
"""


class MembershipError(Exception):
    """Base class for membership domain errors."""

    pass


class MemberNotFound(MembershipError):
    """Referenced member does not exist."""

    pass


class ConflictError(MembershipError):
    """Terminal, non-retryable state conflict."""

    pass


class EmailAlreadyRegistered(ConflictError):
    """Email already belongs to another member."""

    pass


class MemberAlreadyConfirmed(ConflictError):
    """Member has already been confirmed."""

    pass


class PasswordAlreadySet(ConflictError):
    """Member password has already been marked as set."""

    pass


class MemberNotConfirmed(ConflictError):
    """Operation requires a confirmed member."""

    pass


class InvalidOrExpiredCode(MembershipError):
    """
    Submitted code is mismatched or expired.

    The message is deliberately generic so callers cannot tell a wrong
    code from an expired one.
    """

    def __init__(self, message: str = "Invalid or expired confirmation code") -> None:
        super().__init__(message)


class InvalidMemberUpdate(MembershipError, ValueError):
    """Partial update carries a value that cannot be applied."""

    pass


class DeliveryFailure(MembershipError):
    """Notifier could not deliver a message."""

    pass


class DependencyFailure(MembershipError):
    """External dependency (token issuer) failed or timed out."""

    pass


class MemberEmailMismatch(MembershipError, ValueError):
    """Submitted email does not belong to the addressed member."""

    pass


class InvalidTemporaryToken(MembershipError):
    """Temporary token was missing, rejected or expired."""

    pass


class ThrottledError(MembershipError):
    """
    Request refused until the caller slows down.

    retry_after_seconds is None when waiting alone will not help
    (a locked code must be replaced by a resend).
    """

    def __init__(self, message: str, retry_after_seconds: int | None = None) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class ConfirmationLocked(ThrottledError):
    """Too many wrong codes were submitted against the outstanding code."""

    pass


class ResendTooSoon(ThrottledError):
    """A new code was requested before the resend cooldown elapsed."""

    pass
