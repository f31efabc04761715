"""
Background notifier - fire-and-forget wrapper around an EmailSender.

Each email is submitted to a thread pool and the caller returns at once.
A failed delivery is reported through the future's done-callback, which
logs it; it never reaches the account operation that triggered it.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Executor, Future

from accountguard.domain.ports import EmailSender

logger = logging.getLogger(__name__)


class BackgroundNotifier:
    """
    Implements EmailSender protocol by deferring to another sender.

    The executor is owned by the application lifespan, not by this class.
    """

    def __init__(self, sender: EmailSender, executor: Executor) -> None:
        self._sender = sender
        self._executor = executor

    def send_verification_email(self, email: str, name: str, token: str) -> None:
        self._submit("verification email", self._sender.send_verification_email, email, name, token)

    def send_password_reset_email(self, email: str, name: str, token: str) -> None:
        self._submit("password reset email", self._sender.send_password_reset_email, email, name, token)

    def send_password_change_confirmation(self, email: str, name: str) -> None:
        self._submit(
            "password change confirmation",
            self._sender.send_password_change_confirmation,
            email,
            name,
        )

    def _submit(self, kind: str, send: Callable[..., None], *args: str) -> Future:
        future = self._executor.submit(send, *args)
        future.add_done_callback(lambda done: self._log_failure(kind, done))
        return future

    @staticmethod
    def _log_failure(kind: str, future: Future) -> None:
        if future.cancelled():
            logger.warning("Cancelled %s before delivery", kind)
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to send %s: %s", kind, exc, exc_info=exc)
