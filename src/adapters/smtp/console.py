"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging confirmation codes to stdout for demo purposes.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints confirmation codes to stdout.
    """

    def send_code(self, email: str, code: str, first_name: str) -> None:
        """
        Log confirmation code to console (simulates email delivery).

        The code is logged at INFO level to be visible in docker-compose logs.

        Args:
            email: Recipient email address (normalized by domain layer)
            code: 6-digit confirmation code
            first_name: Recipient first name
        """
        logger.info("[CONFIRMATION] Email: %s Name: %s Code: %s", email, first_name, code)

    def send_welcome(self, email: str, first_name: str) -> None:
        """Log the welcome message sent after confirmation."""
        logger.info("[WELCOME] Email: %s Name: %s", email, first_name)
