"""Tagged results returned by marketplace operations.

Operations return ``Ok(value)`` or ``Err(kind, reason)``. Inside the services
business-rule failures are raised as ``MarketError`` subclasses, each carrying
its error kind; ``to_result`` converts them into ``Err`` values at the
operation boundary.
"""

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar('T')

class ErrorKind(str, Enum):
    BAD_REQUEST = "BadRequest"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"

@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    reason: str

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise ValueError(f"Called unwrap on {self.kind.value}: {self.reason}")

    def to_dict(self) -> dict:
        return {self.kind.value: self.reason}

Result = Union[Ok[T], Err]

class MarketError(Exception):
    """Base exception for rejected marketplace operations."""
    kind = ErrorKind.BAD_REQUEST

    def to_err(self) -> Err:
        return Err(self.kind, str(self))

def to_result(func):
    """Wrap an async operation so that it returns Ok/Err instead of raising MarketError."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return Ok(await func(*args, **kwargs))
        except MarketError as e:
            logger.warning(f"{func.__name__} rejected: {e.kind.value}: {e}")
            return e.to_err()
    return wrapper

__all__ = [
    'ErrorKind', 'Ok', 'Err', 'Result',
    'MarketError',
    'to_result'
]
