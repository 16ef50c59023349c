"""Event Admission API."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admission.core.config import settings
from admission.core.database import create_db_and_tables
from admission.core.errors import AdmissionError, Unauthenticated
from admission.routes import admin, approvals, checkpoint, events, registrations, users

# Configure logging
log_dir = Path.home() / ".logs" / "admission"
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    logger.info("Starting Event Admission application")
    create_db_and_tables()
    yield
    logger.info("Event Admission application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Registration authorization and checkpoint attendance verification for scheduled events",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for the registrant and checkpoint clients
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AdmissionError)
async def admission_error_handler(request: Request, exc: AdmissionError):
    """Render domain errors as ``{"detail", "code"}`` with the mapped status."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


# Include routers
app.include_router(registrations.router)
app.include_router(events.router)
app.include_router(approvals.router)
app.include_router(checkpoint.router)
app.include_router(admin.router)
app.include_router(users.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
