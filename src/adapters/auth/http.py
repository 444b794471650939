"""
HTTP token issuer adapter - Implements TokenIssuer protocol.

Calls the external authentication module to obtain the temporary token a
newly confirmed member uses to set a password, and to check such a token
before the password is recorded as set. Failures and timeouts are surfaced
as DependencyFailure; no placeholder token is ever returned.
"""

import logging

import httpx

from src.domain.exceptions import DependencyFailure

logger = logging.getLogger(__name__)

_REJECTED_STATUSES = frozenset({401, 403, 410})


class HttpTokenIssuer:
    """
    Implements TokenIssuer protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        base_url: str,
        *,
        path: str = "/auth/temporary-token",
        verify_path: str = "/auth/temporary-token/verify",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._path = path
        self._verify_path = verify_path
        self._timeout = timeout
        self._transport = transport

    def generate_temporary_token(self, email: str) -> str:
        """
        POST {"email": ...} and read "temporaryToken" from the JSON reply.

        Raises:
            DependencyFailure: On transport error, timeout, non-2xx status
                or malformed response
        """
        try:
            with httpx.Client(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = client.post(self._path, json={"email": email})
                response.raise_for_status()
                token = response.json()["temporaryToken"]
        except httpx.HTTPError as exc:
            logger.warning("Authentication module call failed: %s", exc)
            raise DependencyFailure(f"Token issuer unavailable: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Authentication module returned an unexpected payload: %s", exc)
            raise DependencyFailure("Token issuer returned an invalid response") from exc

        if not isinstance(token, str) or not token:
            raise DependencyFailure("Token issuer returned an empty token")
        return token

    def verify_temporary_token(self, email: str, token: str) -> bool:
        """
        POST {"email": ..., "temporaryToken": ...} to the verification path.

        2xx means valid; 401, 403 and 410 mean rejected or expired.

        Raises:
            DependencyFailure: On transport error, timeout or any other status
        """
        try:
            with httpx.Client(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = client.post(
                    self._verify_path, json={"email": email, "temporaryToken": token}
                )
        except httpx.HTTPError as exc:
            logger.warning("Authentication module call failed: %s", exc)
            raise DependencyFailure(f"Token verification unavailable: {exc}") from exc

        if response.is_success:
            return True
        if response.status_code in _REJECTED_STATUSES:
            return False
        logger.warning("Token verification answered %d", response.status_code)
        raise DependencyFailure(f"Token verification failed with status {response.status_code}")


class UnconfiguredTokenIssuer:
    """
    Implements TokenIssuer protocol when no authentication module is configured.

    Every call fails, so confirmations degrade to "request a token later".
    """

    def generate_temporary_token(self, email: str) -> str:
        raise DependencyFailure("No authentication module configured")

    def verify_temporary_token(self, email: str, token: str) -> bool:
        raise DependencyFailure("No authentication module configured")
