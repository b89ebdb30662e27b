"""
kadmin - retry orchestration

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from kadmin.errors import LeaderWaitTimeoutError
from kadmin.structs import default_dataclass
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    TryAgain,
    wait_exponential,
    wait_fixed,
    wait_random,
)
from tenacity.stop import stop_base
from tenacity.wait import wait_base
from typing import Any, TypeVar

import aiokafka.errors as Errors
import asyncio
import logging
import time

__all__ = ("RetryContext", "RetryOrchestrator", "RetryPolicy", "RetryStrategy", "wait_for")

LOG = logging.getLogger(__name__)

T = TypeVar("T")

ErrorTypes = tuple[type[BaseException], ...]


@default_dataclass
class RetryPolicy:
    retries: int = 5
    initial_retry_time_ms: int = 300
    max_retry_time_ms: int = 30000
    factor: float = 0.2
    multiplier: float = 2
    max_elapsed_time_ms: int | None = None

    def stop(self) -> stop_base:
        stop: stop_base = stop_after_attempt(self.retries + 1)
        if self.max_elapsed_time_ms is not None:
            stop = stop | stop_after_delay(self.max_elapsed_time_ms / 1000)
        return stop

    def wait(self) -> wait_base:
        initial = self.initial_retry_time_ms / 1000
        return wait_exponential(
            multiplier=initial,
            exp_base=self.multiplier,
            max=self.max_retry_time_ms / 1000,
        ) + wait_random(0, initial * self.factor)


@default_dataclass
class RetryStrategy:
    """How one call site classifies the errors of its attempts.

    Errors in `retriable` are retried, errors in `tolerated` end the operation
    with `tolerated_result`, anything else is fatal and propagates unchanged.
    `fatal_hints` pairs fatal error types with operator guidance that is logged
    before the error propagates.
    """

    action: str
    retriable: ErrorTypes = (Errors.NotControllerError,)
    tolerated: ErrorTypes = ()
    tolerated_result: Any = False
    fatal_hints: tuple[tuple[type[BaseException], str], ...] = ()

    def is_retriable(self, error: BaseException) -> bool:
        return isinstance(error, self.retriable)

    def hint_for(self, error: BaseException) -> str | None:
        for error_type, hint in self.fatal_hints:
            if isinstance(error, error_type):
                return hint
        return None


@dataclass
class RetryContext:
    started: float = field(default_factory=time.monotonic)
    attempt: int = 0
    last_error: BaseException | None = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


class RetryOrchestrator:
    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy

    def _retrying(self, strategy: RetryStrategy) -> AsyncRetrying:
        return AsyncRetrying(
            stop=self.policy.stop(),
            wait=self.policy.wait(),
            retry=retry_if_exception(strategy.is_retriable),
            reraise=True,
        )

    async def execute(self, operation: Callable[[RetryContext], Awaitable[T]], strategy: RetryStrategy) -> T:
        context = RetryContext()
        async for attempt in self._retrying(strategy):
            with attempt:
                context.attempt = attempt.retry_state.attempt_number - 1
                return await self._attempt(operation, strategy, context)
        raise AssertionError("Retry loop ended without an outcome")

    async def _attempt(
        self,
        operation: Callable[[RetryContext], Awaitable[T]],
        strategy: RetryStrategy,
        context: RetryContext,
    ) -> T:
        try:
            return await operation(context)
        except strategy.tolerated as exc:
            LOG.debug("Tolerated %r while trying to %s", exc, strategy.action)
            return strategy.tolerated_result
        except Exception as exc:
            context.last_error = exc
            if strategy.is_retriable(exc):
                LOG.warning(
                    "Could not %s: %s (retry count %s, retry time %.0fms)",
                    strategy.action,
                    exc,
                    context.attempt,
                    context.elapsed * 1000,
                )
            else:
                hint = strategy.hint_for(exc)
                if hint is not None:
                    LOG.error(
                        "%s: %s (retry count %s, retry time %.0fms)",
                        hint,
                        exc,
                        context.attempt,
                        context.elapsed * 1000,
                    )
            raise


async def wait_for(
    condition: Callable[[], Awaitable[bool]],
    *,
    delay_ms: int,
    timeout_ms: int,
    timeout_message: str,
) -> None:
    """Poll `condition` every `delay_ms` until it returns True.

    This loop is independent from any enclosing `RetryOrchestrator`: it has its
    own timeout, which also bounds a poll that never returns, and reports expiry
    with `LeaderWaitTimeoutError(timeout_message)`. Errors raised by `condition`
    propagate immediately.
    """

    async def _poll() -> None:
        retrying = AsyncRetrying(
            wait=wait_fixed(delay_ms / 1000),
            retry=retry_if_exception_type(TryAgain),
        )
        async for attempt in retrying:
            with attempt:
                if not await condition():
                    raise TryAgain()

    try:
        await asyncio.wait_for(_poll(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as exc:
        raise LeaderWaitTimeoutError(timeout_message) from exc
