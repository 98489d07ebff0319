"""Cancellation token shared by every provider call of one optimization."""

from __future__ import annotations

import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Callable, TypeVar

from ...errors import OperationCancelled

T = TypeVar("T")

POLL_SECONDS = 0.05


class CancellationToken:
    """Cooperative cancellation with an optional absolute deadline.

    Provider calls ask the token for a timeout so that no single request can
    outlive the optimization it belongs to.
    """

    def __init__(self, deadline_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._event = threading.Event()
        self._deadline = clock() + deadline_seconds if deadline_seconds is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.remaining() == 0.0

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - self._clock())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Optimization was cancelled by the caller.")
        if self.remaining() == 0.0:
            raise OperationCancelled("Optimization deadline exceeded.")

    def timeout(self, provider_timeout: float) -> float:
        """Return the provider timeout clipped to the remaining deadline."""
        self.raise_if_cancelled()
        remaining = self.remaining()
        if remaining is None:
            return provider_timeout
        return min(provider_timeout, remaining)

    def sleep(self, seconds: float) -> None:
        """Back off for ``seconds``, waking early and raising if cancelled."""
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(max(seconds, 0.0))
        self.raise_if_cancelled()


def wait_for(future: "Future[T]", token: CancellationToken, cancel_on_abort: bool = True) -> T:
    """Wait for ``future`` while honouring cancellation of ``token``."""
    while True:
        try:
            return future.result(timeout=POLL_SECONDS)
        except FuturesTimeout:
            if future.done():
                return future.result()
            if token.cancelled:
                if cancel_on_abort:
                    future.cancel()
                token.raise_if_cancelled()
