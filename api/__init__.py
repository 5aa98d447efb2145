"""REST API module for the marketplace ledger.

This module provides HTTP endpoints for:
- Creating, reading and removing listings
- Buying listings
- Buyer comments and enquiries
- Account balances
"""

import logging
from typing import Any, Dict, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import IdentityVerifier
from database import Store, init_db, close as db_close
from identity import IdGenerator
from marketplace import Marketplace

logger = logging.getLogger(__name__)

def create_app(
    settings: Optional[Dict[str, Any]] = None,
    store: Optional[Store] = None,
    id_generator: Optional[IdGenerator] = None
) -> FastAPI:
    """Create the API application.

    Args:
        settings: Optional settings dict. If not provided, will use settings.conf.
        store: Optional store. If not provided, one is opened from settings on
            startup and closed on shutdown.
        id_generator: Optional id source for new records

    Returns:
        The FastAPI application
    """
    if settings is None:
        from config import settings_conf
        settings = settings_conf

    # Lifecycle management
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store on startup if none was injected, close it on shutdown."""
        owned_store = None
        if getattr(app.state, 'marketplace', None) is None:
            logger.info("Initializing store...")
            owned_store = await init_db(settings)
            app.state.marketplace = Marketplace.from_settings(owned_store, settings, id_generator)

        yield

        if owned_store is not None:
            logger.info("Closing store...")
            await db_close(owned_store)
            app.state.marketplace = None

    app = FastAPI(
        title="Marketplace Ledger API",
        description="Listings, purchases and buyer feedback over an internal token ledger",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.verifier = IdentityVerifier(settings['jwt_secret'], settings['jwt_algorithm'])
    app.state.marketplace = (
        Marketplace.from_settings(store, settings, id_generator) if store is not None else None
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {
            "name": "Marketplace Ledger API",
            "version": "1.0.0",
            "status": "running"
        }

    from .listings import router as listings_router
    from .orders import router as orders_router
    from .feedback import router as feedback_router
    from .accounts import router as accounts_router

    app.include_router(listings_router)
    app.include_router(orders_router)
    app.include_router(feedback_router)
    app.include_router(accounts_router)

    return app

__all__ = ['create_app']
