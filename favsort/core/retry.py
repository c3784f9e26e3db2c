import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from ..errors import PaginationOverrun, RetryExhausted, ValidationError
from ..events import RunObserver

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]

# Errors that no amount of retrying can fix.
NON_RETRYABLE: Tuple[Type[BaseException], ...] = (ValidationError, PaginationOverrun)


class RetryExecutor:
    """
    Run an async action up to ``max_attempts`` times.

    After failed attempt ``n`` the executor waits ``base_delay * n`` seconds
    (linear, not exponential) before trying again. The action must be safe to
    re-run; nothing is carried over between attempts.
    """

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 0.5,
                 *,
                 observer: Optional[RunObserver] = None,
                 sleep: Sleep = asyncio.sleep,
                 non_retryable: Tuple[Type[BaseException], ...] = NON_RETRYABLE) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.observer = observer or RunObserver()
        self._sleep = sleep
        self._non_retryable = non_retryable

    async def run(self, action: Callable[[], Awaitable[T]], label: str) -> T:
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await action()
            except self._non_retryable:
                raise
            except Exception as err:
                last_error = err
                self.observer.attempt_failed(label, attempt, self.max_attempts, err)
                if attempt < self.max_attempts:
                    await self._sleep(self.base_delay * attempt)

        raise RetryExhausted(label, self.max_attempts, last_error) from last_error
