import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from storefront.api import orders_router, products_router
from storefront.config import Settings, get_settings
from storefront.core.exceptions import StorefrontError, StorageError
from storefront.models.database import Database

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the API around an explicit settings object and storage handle.

    Run with: uvicorn --factory storefront.main:create_app
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)
    database = database or Database.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.create_all()
        yield
        database.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Storefront backend: catalogue and all-or-nothing order checkout",
        version=settings.VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database

    # CORS middleware configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_payload()
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": f"{location}: {first.get('msg', 'invalid request')}",
                "category": "validation",
                "retriable": False,
            }
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_handler(request: Request, exc: SQLAlchemyError):
        logger.error(f"Unhandled database error: {str(exc)}")
        return JSONResponse(
            status_code=503,
            content=StorageError("Database error occurred").to_payload()
        )

    # Include routers
    app.include_router(products_router, prefix=f"{settings.API_PREFIX}/products", tags=["products"])
    app.include_router(orders_router, prefix=f"{settings.API_PREFIX}/orders", tags=["orders"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app
