from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import auth, health, organization, policies, signing, transactions, wallets
from .config import settings
from .core.wallet import OwnershipIndex
from .errors import register_exception_handlers
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .providers.turnkey import TurnkeyProvider


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.turnkey.aclose()


def create_app(
    *,
    turnkey: Optional[TurnkeyProvider] = None,
    ownership_index: Optional[OwnershipIndex] = None,
) -> FastAPI:
    app = FastAPI(
        title="WalletDesk API",
        description="Gateway to a custodial wallet API with per-user wallet ownership",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.turnkey = turnkey if turnkey is not None else TurnkeyProvider()
    app.state.ownership_index = ownership_index if ownership_index is not None else OwnershipIndex()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["Health"])
    app.include_router(wallets.router)
    app.include_router(policies.router)
    app.include_router(organization.router)
    app.include_router(signing.router)
    app.include_router(transactions.router)
    app.include_router(auth.router)

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": "WalletDesk API",
            "version": "0.1.0",
            "description": "Gateway to a custodial wallet API with per-user wallet ownership",
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "walletdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
