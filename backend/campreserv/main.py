"""Campreserv Rules: FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from campreserv.api.v1.blackouts import router as blackouts_router
from campreserv.api.v1.campgrounds import router as campgrounds_router
from campreserv.api.v1.demand_bands import router as demand_bands_router
from campreserv.api.v1.pricing_rules import router as pricing_rules_router
from campreserv.api.v1.promotions import router as promotions_router
from campreserv.api.v1.quotes import router as quotes_router
from campreserv.api.v1.seasonal_rates import router as seasonal_rates_router
from campreserv.api.v1.stay_rules import router as stay_rules_router
from campreserv.api.v1.tax_rules import router as tax_rules_router
from campreserv.config import settings
from campreserv.errors import CampreserveError

# Configure root logger so all campreserv.* loggers output to stderr.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    yield
    # Shutdown: dispose engine connections
    from campreserv.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Pricing, tax, stay-length, blackout and promotion rules for campground reservations.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CampreserveError)
async def domain_error_handler(request: Request, exc: CampreserveError) -> JSONResponse:
    """Render domain errors as ``{"detail", "kind", ...}`` with their HTTP status."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Routers
app.include_router(campgrounds_router)
app.include_router(pricing_rules_router)
app.include_router(demand_bands_router)
app.include_router(tax_rules_router)
app.include_router(seasonal_rates_router)
app.include_router(stay_rules_router)
app.include_router(blackouts_router)
app.include_router(promotions_router)
app.include_router(quotes_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("campreserv.main:app", host=settings.host, port=settings.port, reload=settings.debug)
