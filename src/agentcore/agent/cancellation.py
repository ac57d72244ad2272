"""Cooperative cancellation for agent runs."""

import asyncio


class CancellationToken:
    """One-shot cancellation signal shared by everything a run awaits.

    Cancellation is cooperative: nothing is interrupted, code checks the
    token at its own yield points (between iterations, before a model call).

    Usage:
        token = CancellationToken()
        ...
        token.cancel()
        if token.is_cancelled:
            ...
    """

    def __init__(self):
        """Initialize an uncancelled token."""
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._event.is_set()

    def cancel(self, reason: str = "Run cancelled") -> None:
        """Signal cancellation (idempotent)."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    def __repr__(self) -> str:
        """String representation of the token."""
        return f"CancellationToken(cancelled={self.is_cancelled})"
