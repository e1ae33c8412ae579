# lotus_backend/core/result.py
import functools
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from lotus_backend.core.errors import BusinessRuleError

T = TypeVar("T")

logger = logging.getLogger("lotus-rewards.result")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an engine operation: a value, or the business rule it broke."""

    value: Optional[T] = None
    error: Optional[BusinessRuleError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: BusinessRuleError) -> "Result[T]":
        return cls(error=error)


def returns_result(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[Result[T]]]:
    """Capture business-rule errors of an async operation into a Result.

    Infrastructure errors are not captured and keep propagating.
    """

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs) -> Result[T]:
        try:
            value = await fn(*args, **kwargs)
        except BusinessRuleError as exc:
            logger.info(f"{fn.__qualname__} rejected: {exc.code}: {exc.message}")
            return Result.failure(exc)
        return Result.success(value)

    return wrapper
