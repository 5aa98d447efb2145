"""Keyed collections and transactions for the marketplace store.

The store holds six ordered key/value collections:
- listings: listing id -> listing record
- accounts: identity -> balance
- sold_items: item id -> buyer identity
- comments: comment id -> comment record
- enquiries: enquiry id -> enquiry record
- retired_listings: id of a removed listing -> removal record

All access goes through ``Store.transaction()``. A write transaction either
commits every staged write or none of them; a read-only transaction sees the
state left by some prefix of committed write transactions.
"""
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from .exceptions import ReadOnlyTransactionError, StoreClosedError

logger = logging.getLogger(__name__)

COLLECTIONS = ('listings', 'accounts', 'sold_items', 'comments', 'enquiries', 'retired_listings')

class Collection(ABC):
    """An ordered key/value collection bound to one transaction."""

    name: str

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the value stored under key, or None if absent."""

    @abstractmethod
    async def insert(self, key: str, value: Any) -> None:
        """Insert or replace the value stored under key."""

    @abstractmethod
    async def remove(self, key: str) -> Optional[Any]:
        """Remove key and return its previous value, or None if absent."""

    @abstractmethod
    async def items(self) -> List[Tuple[str, Any]]:
        """Return all (key, value) pairs ordered by key."""

    async def contains(self, key: str) -> bool:
        return await self.get(key) is not None

    async def values(self) -> List[Any]:
        return [value for _, value in await self.items()]

    async def keys(self) -> List[str]:
        return [key for key, _ in await self.items()]

    async def count(self) -> int:
        return len(await self.items())

    async def filter(self, field: str, value: Any) -> List[Any]:
        """Return record values whose ``field`` equals ``value``, ordered by key."""
        return [
            record for record in await self.values()
            if isinstance(record, dict) and record.get(field) == value
        ]

class Session:
    """The collections visible inside one transaction."""

    def __init__(self, collections: Dict[str, Collection], readonly: bool = False) -> None:
        self.readonly = readonly
        self._collections = collections
        self.listings = collections['listings']
        self.accounts = collections['accounts']
        self.sold_items = collections['sold_items']
        self.comments = collections['comments']
        self.enquiries = collections['enquiries']
        self.retired_listings = collections['retired_listings']

    def __getitem__(self, name: str) -> Collection:
        return self._collections[name]

class Store(ABC):
    """Owner of the persistent collections."""

    @abstractmethod
    def transaction(self, readonly: bool = False):
        """Return an async context manager yielding a ``Session``."""

    @abstractmethod
    async def close(self) -> None:
        """Release the resources held by the store."""

class MemoryCollection(Collection):
    """Collection view over committed data with staged writes.

    Values are deep-copied on the way in and out so that callers never
    share mutable state with the committed data.
    """

    def __init__(self, name: str, committed: Dict[str, Any], readonly: bool = False) -> None:
        self.name = name
        self.readonly = readonly
        self._committed = committed
        self._writes: Dict[str, Any] = {}
        self._removed = set()

    def _check_writable(self) -> None:
        if self.readonly:
            raise ReadOnlyTransactionError(
                f"Cannot modify {self.name} in a read-only transaction"
            )

    async def get(self, key: str) -> Optional[Any]:
        if key in self._writes:
            return copy.deepcopy(self._writes[key])
        if key in self._removed:
            return None
        value = self._committed.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def insert(self, key: str, value: Any) -> None:
        self._check_writable()
        self._removed.discard(key)
        self._writes[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> Optional[Any]:
        self._check_writable()
        current = await self.get(key)
        if current is None:
            return None
        self._writes.pop(key, None)
        self._removed.add(key)
        return current

    async def items(self) -> List[Tuple[str, Any]]:
        merged = {
            key: value for key, value in self._committed.items()
            if key not in self._removed
        }
        merged.update(self._writes)
        return [(key, copy.deepcopy(merged[key])) for key in sorted(merged)]

    def apply(self) -> None:
        """Apply staged writes to the committed data."""
        for key in self._removed:
            self._committed.pop(key, None)
        self._committed.update(self._writes)
        self._writes = {}
        self._removed = set()

class MemoryStore(Store):
    """In-process store.

    Write transactions are serialized by a lock and their writes are applied
    without suspending, so no reader can observe a half-applied commit.
    Read-only transactions work on a snapshot taken when they open.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {name: {} for name in COLLECTIONS}
        self._write_lock = asyncio.Lock()
        self._closed = False

    @asynccontextmanager
    async def transaction(self, readonly: bool = False) -> AsyncIterator[Session]:
        if self._closed:
            raise StoreClosedError("Store has been closed")

        if readonly:
            snapshot = {name: dict(values) for name, values in self._data.items()}
            yield Session(
                {name: MemoryCollection(name, snapshot[name], readonly=True) for name in COLLECTIONS},
                readonly=True
            )
            return

        async with self._write_lock:
            collections = {name: MemoryCollection(name, self._data[name]) for name in COLLECTIONS}
            yield Session(collections)
            for collection in collections.values():
                collection.apply()

    async def close(self) -> None:
        self._closed = True
        logger.debug("Memory store closed")
