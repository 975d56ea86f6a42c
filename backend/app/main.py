import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(levelname)s %(name)s %(message)s",
)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.database import engine
from app.models.base import Base
import app.models  # noqa: F401 - register all tables for create_all
from app.api.endpoints import auctions, disposals, vehicles
from app.services.errors import DisposalError

logger = logging.getLogger(__name__)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="Fleet Disposal API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DisposalError)
async def disposal_error_handler(request: Request, exc: DisposalError):
    """Typed workflow errors -> HTTP with a message the UI can show directly."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


app.include_router(vehicles.router)
app.include_router(disposals.router)
app.include_router(auctions.router)


@app.get("/health")
def health():
    """Health check endpoint for load balancers and readiness probes."""
    return {
        "status": "ok",
        "service": "fleet-disposal-backend",
        "database": engine.url.get_backend_name(),
    }
