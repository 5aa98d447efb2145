"""Database module for the marketplace ledger store.

This module handles:
- Store construction for the configured backend (memory or postgres)
- Database connection pool initialization
- Schema management
- Store lifecycle
"""

import logging
import ssl
from typing import Optional, Dict, Any
import backoff
import asyncpg
from urllib.parse import urlparse, parse_qs

from .exceptions import DatabaseError, DatabaseSchemaError, ReadOnlyTransactionError, StoreClosedError
from .lib.schema_manager import SchemaManager
from .store import Store, Session, Collection, MemoryStore, COLLECTIONS
from .postgres import PostgresStore

logger = logging.getLogger(__name__)

def _get_ssl_context() -> ssl.SSLContext:
    """Create SSL context for CockroachDB Cloud connections."""
    ssl_context = ssl.create_default_context()
    ssl_context.verify_mode = ssl.CERT_REQUIRED
    ssl_context.check_hostname = True
    return ssl_context

def _get_connection_kwargs(db_url: str) -> Dict[str, Any]:
    """Get connection kwargs from database URL.

    Args:
        db_url: Database connection URL

    Returns:
        Dict of connection parameters
    """
    parsed = urlparse(db_url)
    params = parse_qs(parsed.query)

    kwargs: Dict[str, Any] = {
        'server_settings': {
            'statement_timeout': '60000',  # 1 minute
        }
    }

    sslmode = params.get('sslmode', ['require'])[0]
    if sslmode != 'disable':
        kwargs['ssl'] = _get_ssl_context()

    return kwargs

def _database_name(db_url: str) -> str:
    parsed = urlparse(db_url)
    db_name = parsed.path.strip('/')
    if not db_name:
        params = parse_qs(parsed.query)
        db_name = params.get('database', ['defaultdb'])[0]
    return db_name

@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def create_database_if_not_exists(db_url: str) -> None:
    """Create the database if it doesn't exist.

    Args:
        db_url: Database connection URL

    Raises:
        Exception: If database creation fails after retries
    """
    db_name = _database_name(db_url)
    if db_name == 'defaultdb':
        return

    base_url = urlparse(db_url)._replace(path='/defaultdb').geturl()
    logger.info(f"Connecting to defaultdb to create {db_name} if needed")

    conn = await asyncpg.connect(base_url, **_get_connection_kwargs(base_url))
    try:
        exists = await conn.fetchval(
            'SELECT EXISTS(SELECT 1 FROM pg_database WHERE datname = $1)',
            db_name
        )
        if not exists:
            await conn.execute(f'CREATE DATABASE "{db_name}"')
            logger.info(f"Created database {db_name}")
    finally:
        await conn.close()

@backoff.on_exception(
    backoff.expo,
    (asyncpg.exceptions.PostgresConnectionError, asyncpg.exceptions.CannotConnectNowError, OSError),
    max_tries=5
)
async def create_pool(db_url: str) -> asyncpg.Pool:
    """Create the connection pool and bring the schema up to date.

    Args:
        db_url: Database connection URL

    Returns:
        The connection pool
    """
    await create_database_if_not_exists(db_url)

    pool = await asyncpg.create_pool(
        db_url,
        min_size=2,          # Minimum idle connections
        max_size=20,         # Maximum connections
        max_inactive_connection_lifetime=300.0,  # 5 minutes
        command_timeout=60.0,  # 1 minute command timeout
        **_get_connection_kwargs(db_url)
    )

    schema_manager = SchemaManager(pool)
    try:
        await schema_manager.initialize()
    except DatabaseSchemaError:
        await pool.close()
        raise

    return pool

async def init_db(settings: Optional[Dict[str, Any]] = None) -> Store:
    """Construct the store for the configured backend.

    Args:
        settings: Optional settings dict. If not provided, will use settings.conf.

    Returns:
        The initialized store

    Raises:
        ValueError: If the backend is unknown or the database URL is missing
        DatabaseError: If the database cannot be initialized
    """
    if settings is None:
        # Import here to avoid reading settings.conf on import
        from config import settings_conf
        settings = settings_conf

    backend = settings.get('store_backend', 'memory')
    if backend == 'memory':
        logger.info("Using in-memory store")
        return MemoryStore()

    if backend != 'postgres':
        raise ValueError(f"Unknown store backend: {backend}")

    url = settings.get('db_url')
    if not url:
        raise ValueError("Database URL not provided")

    try:
        pool = await create_pool(url)
    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise DatabaseError(f"Failed to initialize database: {e}")

    logger.info("Using PostgreSQL store")
    return PostgresStore(pool)

async def close(store: Optional[Store]) -> None:
    """Close a store returned by init_db."""
    if store is not None:
        await store.close()

# Export public interface
__all__ = [
    'init_db', 'close', 'create_pool',
    'Store', 'Session', 'Collection', 'MemoryStore', 'PostgresStore', 'COLLECTIONS',
    'DatabaseError', 'DatabaseSchemaError', 'ReadOnlyTransactionError', 'StoreClosedError'
]
