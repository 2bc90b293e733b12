"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import accounts, auth, banks, plaid, transfers
from api.helpers import get_dwolla_client, get_plaid_client
from config import settings
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Report missing provider credentials on startup; close clients on shutdown."""
    for name, factory in (("Plaid", get_plaid_client), ("Dwolla", get_dwolla_client)):
        if not factory().is_configured():
            logger.warning("%s credentials are not configured", name)
    yield
    get_dwolla_client().close()


app = FastAPI(
    title="linkbank",
    description="Bank linking and ACH transfers",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(auth.router)
app.include_router(plaid.router)
app.include_router(banks.router)
app.include_router(accounts.router)
app.include_router(transfers.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
