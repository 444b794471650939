"""Confirmation code generation."""

import secrets

CODE_SPACE = 1_000_000


class SecureCodeGenerator:
    """
    Implements CodeGenerator protocol with the secrets module.

    Stateless and safe to share across threads; uniqueness across calls
    is not guaranteed.
    """

    def generate_code(self) -> str:
        """
        Generate a cryptographically secure 6-digit code.

        Returns string to preserve leading zeros.
        """
        return f"{secrets.randbelow(CODE_SPACE):06d}"
