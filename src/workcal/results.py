from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StageError(Exception):
    """Expected business failure inside a pipeline stage."""


class InvariantViolation(RuntimeError):
    """Internal consistency breach. Never converted into a failure result."""


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: str | None = None
    stage: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, message: str, *, stage: str | None = None) -> Result[T]:
        return cls(error=message, stage=stage)

    def unwrap(self) -> T:
        if not self.ok:
            raise StageError(f"[{self.stage}] {self.error}")
        return self.value


def stage(name: str) -> Callable[[Callable[..., T]], Callable[..., Result[T]]]:
    """
    Wrap a pipeline stage so it always returns a Result.

    - StageError -> failure naming the stage
    - InvariantViolation -> re-raised
    - anything else -> logged with traceback, then failure
    """

    def decorator(fn: Callable[..., T]) -> Callable[..., Result[T]]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Result[T]:
            logger.debug("stage %s: start", name)
            try:
                value = fn(*args, **kwargs)
            except InvariantViolation:
                raise
            except StageError as exc:
                logger.info("stage %s failed: %s", name, exc)
                return Result.failure(str(exc), stage=name)
            except Exception as exc:
                logger.exception("stage %s: unexpected error", name)
                return Result.failure(f"Error inesperado: {exc}", stage=name)
            logger.debug("stage %s: done", name)
            return Result.success(value)

        return wrapper

    return decorator
