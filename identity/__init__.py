"""Call context and id generation.

Every operation receives a ``CallContext`` naming the already-verified caller
and the time of the call. Record ids come from an injected ``IdGenerator``.
"""

import itertools
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

@dataclass(frozen=True)
class CallContext:
    """The caller identity and timestamp of one operation."""
    caller: str
    now: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if not self.caller:
            raise ValueError("Caller identity is required")
        if self.now.tzinfo is None:
            raise ValueError("Call timestamp must be timezone-aware")

    @classmethod
    def for_caller(cls, caller: str, clock: Optional[Callable[[], datetime]] = None) -> 'CallContext':
        """Build a context for caller stamped with the current time."""
        return cls(caller=caller, now=(clock or utcnow)())

class IdGenerator(ABC):
    """Source of unique record ids."""

    @abstractmethod
    def new_id(self) -> str:
        """Return an id that has never been returned before."""

class UUIDGenerator(IdGenerator):
    """Random UUID4 ids."""

    def new_id(self) -> str:
        return str(uuid.uuid4())

class SequentialIdGenerator(IdGenerator):
    """Deterministic ids: ``<prefix>-000001``, ``<prefix>-000002``, ..."""

    def __init__(self, prefix: str = 'id', start: int = 1) -> None:
        self.prefix = prefix
        self._counter = itertools.count(start)

    def new_id(self) -> str:
        return f"{self.prefix}-{next(self._counter):06d}"

__all__ = ['CallContext', 'IdGenerator', 'UUIDGenerator', 'SequentialIdGenerator', 'utcnow']
