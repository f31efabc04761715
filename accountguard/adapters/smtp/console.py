"""
Console email sender adapter - Implements EmailSender protocol.

This module provides a console-based implementation of the domain's
email sender port, logging account emails instead of delivering them.
"""

import logging

logger = logging.getLogger(__name__)


class ConsoleEmailSender:
    """
    Implements EmailSender protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - links are logged at INFO level so
    they are visible in docker-compose logs.
    """

    def __init__(self, client_url: str = "http://localhost:3000") -> None:
        """
        Args:
            client_url: Base URL of the frontend that handles email links
        """
        self._client_url = client_url.rstrip("/")

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        """Log the verification link (simulates email delivery)."""
        link = f"{self._client_url}/verify-email?token={token}"
        logger.info("[VERIFICATION] Email: %s Name: %s Link: %s", email, name, link)

    def send_password_reset_email(self, email: str, name: str, token: str) -> None:
        """Log the password reset link (simulates email delivery)."""
        link = f"{self._client_url}/reset-password?token={token}"
        logger.info("[PASSWORD RESET] Email: %s Name: %s Link: %s", email, name, link)

    def send_password_change_confirmation(self, email: str, name: str) -> None:
        """Log the password change confirmation (simulates email delivery)."""
        logger.info("[PASSWORD CHANGED] Email: %s Name: %s", email, name)
