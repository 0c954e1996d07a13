"""
Backoff schedule for embedding API retries.

Kept free of I/O so the schedule can be tested without sleeping.
"""

from __future__ import annotations

from tenacity import RetryCallState

__all__ = ["backoff_delay_ms", "BackoffWait"]


def backoff_delay_ms(attempt: int, initial_ms: int = 100) -> int:
    """
    Delay to wait after failed attempt ``attempt`` (1-based).

    Doubles each attempt: 100, 200, 400, ...
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return initial_ms * 2 ** (attempt - 1)


class BackoffWait:
    """tenacity ``wait`` strategy backed by :func:`backoff_delay_ms`."""

    def __init__(self, initial_ms: int = 100) -> None:
        self.initial_ms = initial_ms

    def __call__(self, retry_state: RetryCallState) -> float:
        return backoff_delay_ms(retry_state.attempt_number, self.initial_ms) / 1000.0
