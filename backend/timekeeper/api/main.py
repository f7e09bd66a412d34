from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import logging

from ..auth.errors import PinFlowError, NotAuthenticated
from ..database.connection import create_tables, database_available
from .routes import auth, pin, profiles, time_tracking

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

# Initialize FastAPI app with metadata
app = FastAPI(
    title="Timekeeper API",
    description="Time tracking API with billing profiles, clock in/out, earnings reports, and PIN-protected administrative actions.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "User registration, login, and the current user"
        },
        {
            "name": "PIN",
            "description": "PIN setup, change, reset, and verification of protected actions"
        },
        {
            "name": "Profiles",
            "description": "Billing profiles with hourly rates"
        },
        {
            "name": "Clock",
            "description": "Clock in and out against a profile"
        },
        {
            "name": "Time Entries",
            "description": "Time entry listing, manual entry, editing, and deletion"
        },
        {
            "name": "Reports",
            "description": "Earnings reports"
        }
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# PIN flow exception handler
@app.exception_handler(PinFlowError)
async def pin_flow_exception_handler(request: Request, exc: PinFlowError):
    """Render PIN flow errors with the status each one carries."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message},
        headers=headers
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and perform startup tasks."""
    logger.info("Starting up Timekeeper API...")

    try:
        create_tables()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Perform cleanup tasks on shutdown."""
    logger.info("Shutting down Timekeeper API...")


# Health check endpoint
@app.get("/", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns basic API status and version information.
    """
    return {
        "message": "Timekeeper API is healthy",
        "version": "1.0.0",
        "status": "operational"
    }


@app.get("/health", tags=["Health"])
def detailed_health_check():
    """
    Detailed health check endpoint.

    Returns health status including database connectivity.
    """
    if not database_available():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )
    return {
        "status": "healthy",
        "version": "1.0.0",
        "database": "connected"
    }


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(pin.router, prefix="/api/v1")
app.include_router(profiles.router, prefix="/api/v1")
app.include_router(time_tracking.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "timekeeper.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
