"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging activation tokens for demo purposes.
"""

import logging
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints activation tokens to the log.
    """

    def __init__(self, activation_base_url: str | None = None) -> None:
        """
        Args:
            activation_base_url: When set, an activation link
                ``<base>?token=<token>`` is logged alongside the token
        """
        self._activation_base_url = activation_base_url

    def activation_link(self, token: str) -> str | None:
        """Build the activation link for a token, if a base URL is configured."""
        if not self._activation_base_url:
            return None
        separator = "&" if "?" in self._activation_base_url else "?"
        return f"{self._activation_base_url}{separator}{urlencode({'token': token})}"

    def send_activation(self, destination: str, token: str) -> None:
        """
        Log activation token to console (simulates email delivery).

        In production, this would be replaced with an SMTP adapter.
        The token is logged at INFO level to be visible in the service logs.

        Args:
            destination: Recipient email address (normalized by domain layer)
            token: Activation token
        """
        link = self.activation_link(token)
        if link is None:
            logger.info("[ACTIVATION] Email: %s Token: %s", destination, token)
        else:
            logger.info("[ACTIVATION] Email: %s Token: %s Link: %s", destination, token, link)
