"""PostgreSQL / CockroachDB backed store.

Each collection maps to one table. Write transactions run at SERIALIZABLE
isolation and lock the rows they read, so a validation read and the writes
that depend on it commit as one unit.
"""
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from asyncpg.exceptions import PostgresError
from asyncpg.pool import Pool

from .exceptions import DatabaseError, ReadOnlyTransactionError, StoreClosedError
from .store import Collection, Session, Store

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TableSpec:
    """How a collection is laid out in its table."""
    collection: str
    table: str
    key_column: str
    value_column: str
    value_type: str  # 'record', 'balance' or 'text'
    index_columns: Tuple[str, ...] = ()

TABLES = {
    'listings': TableSpec('listings', 'listings', 'id', 'record', 'record'),
    'accounts': TableSpec('accounts', 'accounts', 'identity', 'balance', 'balance'),
    'sold_items': TableSpec('sold_items', 'sold_items', 'item_id', 'buyer', 'text'),
    'comments': TableSpec('comments', 'comments', 'id', 'record', 'record', ('item_id',)),
    'enquiries': TableSpec('enquiries', 'enquiries', 'id', 'record', 'record', ('business_id',)),
    'retired_listings': TableSpec('retired_listings', 'retired_listings', 'id', 'record', 'record'),
}

def _encode(spec: TableSpec, value: Any) -> Any:
    if spec.value_type == 'record':
        return json.dumps(value)
    if spec.value_type == 'balance':
        return Decimal(int(value))
    return str(value)

def _decode(spec: TableSpec, value: Any) -> Any:
    if value is None:
        return None
    if spec.value_type == 'record':
        return json.loads(value) if isinstance(value, str) else value
    if spec.value_type == 'balance':
        return int(value)
    return value

class PostgresCollection(Collection):
    """Collection backed by a table, bound to one connection and transaction."""

    def __init__(self, conn, spec: TableSpec, readonly: bool = False) -> None:
        self.name = spec.collection
        self.spec = spec
        self.readonly = readonly
        self._conn = conn

    def _check_writable(self) -> None:
        if self.readonly:
            raise ReadOnlyTransactionError(
                f"Cannot modify {self.name} in a read-only transaction"
            )

    async def get(self, key: str) -> Optional[Any]:
        spec = self.spec
        query = f'SELECT {spec.value_column} FROM {spec.table} WHERE {spec.key_column} = $1'
        if not self.readonly:
            # Lock the row until commit so the value read stays valid
            query += ' FOR UPDATE'
        row = await self._conn.fetchrow(query, key)
        return _decode(spec, row[spec.value_column]) if row else None

    async def insert(self, key: str, value: Any) -> None:
        self._check_writable()
        spec = self.spec
        columns = [spec.key_column, spec.value_column, *spec.index_columns]
        params = [key, _encode(spec, value), *(value[column] for column in spec.index_columns)]
        placeholders = [f'${i}' for i in range(1, len(params) + 1)]
        if spec.value_type == 'record':
            placeholders[1] += '::JSONB'
        updates = ', '.join(f'{column} = EXCLUDED.{column}' for column in columns[1:])
        await self._conn.execute(
            f'''
            INSERT INTO {spec.table} ({', '.join(columns)})
            VALUES ({', '.join(placeholders)})
            ON CONFLICT ({spec.key_column}) DO UPDATE SET {updates}
            ''',
            *params
        )

    async def remove(self, key: str) -> Optional[Any]:
        self._check_writable()
        spec = self.spec
        row = await self._conn.fetchrow(
            f'DELETE FROM {spec.table} WHERE {spec.key_column} = $1 RETURNING {spec.value_column}',
            key
        )
        return _decode(spec, row[spec.value_column]) if row else None

    async def items(self) -> List[Tuple[str, Any]]:
        spec = self.spec
        rows = await self._conn.fetch(
            f'SELECT {spec.key_column}, {spec.value_column} FROM {spec.table} ORDER BY {spec.key_column}'
        )
        return [(row[spec.key_column], _decode(spec, row[spec.value_column])) for row in rows]

    async def count(self) -> int:
        return await self._conn.fetchval(f'SELECT count(*) FROM {self.spec.table}')

    async def filter(self, field: str, value: Any) -> List[Any]:
        spec = self.spec
        if field not in spec.index_columns:
            return await super().filter(field, value)
        rows = await self._conn.fetch(
            f'''
            SELECT {spec.value_column} FROM {spec.table}
            WHERE {field} = $1
            ORDER BY {spec.key_column}
            ''',
            value
        )
        return [_decode(spec, row[spec.value_column]) for row in rows]

class PostgresStore(Store):
    """Store backed by an asyncpg connection pool."""

    def __init__(self, pool: Pool) -> None:
        self.pool = pool

    @asynccontextmanager
    async def transaction(self, readonly: bool = False) -> AsyncIterator[Session]:
        if self.pool is None:
            raise StoreClosedError("Store has been closed")

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction(isolation='serializable', readonly=readonly):
                    yield Session(
                        {name: PostgresCollection(conn, spec, readonly) for name, spec in TABLES.items()},
                        readonly=readonly
                    )
        except PostgresError as e:
            logger.error(f"Database error in transaction: {e}")
            raise DatabaseError(f"Transaction failed: {e}")

    async def close(self) -> None:
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("Database pool closed")
