"""
Concert Wishlist API — FastAPI Application

Bands are imported from Ticketmaster, their events are reconciled into a
shared concert catalogue, and wishlists project those concerts back per band.
"""
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from domain.enums import ErrorKind
from domain.errors import DomainError
from routes import bands, health, wishlists

# ── Logging ─────────────────────────────────────────────────────────

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: validate settings, create DB tables."""
    # Ensure data/ directory exists for SQLite
    os.makedirs("data", exist_ok=True)

    settings.validate_production_settings()

    from database import init_db
    await init_db()
    logger.info("Database initialized")

    yield  # app runs here

    logger.info("Shutting down")


# ── App Factory ─────────────────────────────────────────────────────

app = FastAPI(
    title="Concert Wishlist API",
    description="Ticketmaster-backed band concerts and wishlists",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routes ──────────────────────────────────────────────────────────

app.include_router(health.router)
app.include_router(bands.router)
app.include_router(wishlists.router)


# ── Exception Handlers ──────────────────────────────────────────────

def _error_response(status_code: int, code: str, message: str, details=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details,
            },
        },
        headers=headers,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """
    Catch-all for unhandled exceptions.

    Never returns raw exception details to clients; the traceback is
    logged server-side.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return _error_response(500, ErrorKind.INTERNAL.value, "Internal server error")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    """Malformed bodies and query parameters use the domain envelope (400)."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return _error_response(400, ErrorKind.VALIDATION.value, "Invalid request", details={"errors": errors})


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """
    Standardize HTTPException responses for frontend consumers.

    Keeps the original HTTP status code and headers, but wraps the payload.
    """
    if isinstance(exc, DomainError):
        return _error_response(
            exc.status_code, exc.kind.value, exc.message,
            details=exc.details, headers=exc.headers,
        )

    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    return _error_response(
        exc.status_code, "http_error", message,
        details=detail if not isinstance(detail, str) else None,
        headers=getattr(exc, "headers", None),
    )


# ── Entrypoint ──────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")
