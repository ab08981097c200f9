"""
InstaProperty API application: routers, middleware, media serving, error
handlers, and the service-level health endpoints.
"""

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError as PydanticValidationError
import logging
import os

from app.config import settings
from app.database import create_tables, test_database_connection, close_db_connection
from app.documents import DocumentStore, get_document_store
from app.routers import auth_router, listings_router, images_router, mirror_router
from app.utils.exceptions import APIException
from app.services.error_handler import ErrorHandlerService
from app.services.session import session_events, log_session_event
from app.middleware.timing import RequestTimingMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the mirror tables and the session listener, then clean up."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")

    if await test_database_connection():
        await create_tables()
    else:
        logger.error("Failed to connect to the relational mirror on startup")

    unsubscribe = session_events.subscribe(log_session_event)

    yield

    logger.info(f"Stopping {settings.app_name}")
    unsubscribe()
    await close_db_connection()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Real-estate listing marketplace API.

    ## Features

    * **Listings**: Post, browse, filter, edit and delete property listings
    * **Images**: Upload listing photos and remove them individually
    * **Engagement**: Reveal owner contact details and shortlist properties
    * **Relational mirror**: Every listing write is mirrored into a relational store
    * **Authentication**: JWT tokens bound to server-side sessions

    ## Authentication

    Sign up at `/api/auth/signup` or log in at `/api/auth/login`, then send the
    access token in the Authorization header as `Bearer <token>`.
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "Sign-up, login, sessions and profile"
        },
        {
            "name": "Listings",
            "description": "Listing browse, submission, editing and engagement"
        },
        {
            "name": "Images",
            "description": "Listing image upload"
        },
        {
            "name": "Relational mirror",
            "description": "ORM-backed copy of property records and shortlists"
        },
        {
            "name": "Health",
            "description": "System health endpoints"
        }
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Processing-Time"],
)

app.add_middleware(RequestTimingMiddleware, slow_request_threshold=2.0)

for router in (auth_router, listings_router, images_router, mirror_router):
    app.include_router(router, prefix=settings.api_prefix)

# Serve stored images
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(settings.media_url_prefix, StaticFiles(directory=settings.upload_dir), name="media")


async def validation_exception_handler(request: Request, exc):
    """Request models and service-side pydantic models both fail as 400."""
    return ErrorHandlerService.handle_validation_error(exc.errors(), request)


app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(PydanticValidationError, validation_exception_handler)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    return ErrorHandlerService.handle_database_error(exc, request)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Application errors keep their own code; framework errors get a generic one."""
    if isinstance(exc, APIException):
        return ErrorHandlerService.handle_api_exception(exc, request)
    return ErrorHandlerService.handle_http_exception(exc, request)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    return ErrorHandlerService.handle_unexpected_error(exc, request)


@app.get("/", tags=["Health"])
async def root():
    """Service name, version, and where to find the docs."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
        "status": "healthy",
        "documentation": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        },
        "api_prefix": settings.api_prefix
    }


@app.get("/health", tags=["Health"])
async def health_check(store: DocumentStore = Depends(get_document_store)):
    """Report 503 unless both the relational mirror and the primary store answer."""
    db_healthy = await test_database_connection()
    store_healthy = store.is_available()

    if not (db_healthy and store_healthy):
        logger.error(f"Health check failed: database={db_healthy} documents={store_healthy}")
        raise StarletteHTTPException(
            status_code=503,
            detail="Service unhealthy: "
                   f"database {'connected' if db_healthy else 'unavailable'}, "
                   f"document store {'available' if store_healthy else 'unavailable'}"
        )

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
        "database": "connected",
        "document_store": "available"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
