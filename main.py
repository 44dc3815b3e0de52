"""
CareXchange - Medicine Donation REST API
Backend for donating and requesting surplus medicines
"""

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from contextlib import asynccontextmanager
from typing import Optional
import logging
import os
from datetime import datetime

from app.config import Settings
from app.database import Database
from app.auth.auth_handler import AuthHandler
from app.auth.hashing import PasswordHasher
from app.auth.session_gate import SessionGateMiddleware
from app.routers import auth, medicines, donations, requests, users, pages
from app.services.email_service import EmailService
from app.services.file_storage import FileStorage, UPLOADS_URL_PREFIX
from app.utils.error_handler import AppError, ErrorHandler
from app.utils.rate_limit import limiter

# Models must be imported so their tables are registered on Base.metadata
from app.models import user, medicine, donation, request, activity_log  # noqa: F401

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; the database handle lives for the app's lifespan"""
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management"""
        # Startup
        logger.info(f"Starting {settings.APP_NAME} API...")
        app.state.database = Database(settings.DATABASE_URL)
        app.state.database.create_all()

        yield

        # Shutdown
        logger.info(f"Shutting down {settings.APP_NAME} API...")
        app.state.database.dispose()

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="REST API for donating and requesting surplus medicines",
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.auth_handler = AuthHandler.from_settings(settings)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.email_service = EmailService(settings)
    app.state.file_storage = FileStorage(settings.UPLOAD_DIR, settings.MAX_AVATAR_SIZE)

    # Rate limiting
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Error responses are always {"error": "..."}
    app.add_exception_handler(AppError, ErrorHandler.app_error)
    app.add_exception_handler(StarletteHTTPException, ErrorHandler.http_error)
    app.add_exception_handler(RequestValidationError, ErrorHandler.request_validation_error)
    app.add_exception_handler(Exception, ErrorHandler.unhandled_error)

    app.add_middleware(SessionGateMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["authentication"])
    app.include_router(medicines.router, prefix="/api/medicines", tags=["medicines"])
    app.include_router(donations.router, prefix="/api/donations", tags=["donations"])
    app.include_router(requests.router, prefix="/api/requests", tags=["requests"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])
    app.include_router(pages.router)

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.get("/health")
    @limiter.limit("30/minute")
    async def health_check(request: Request):
        """Health check endpoint"""
        return {
            "status": "healthy",
            "timestamp": datetime.utcnow().isoformat()
        }

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
