"""Main FastAPI application"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from http import HTTPStatus
import logging

from pymongo.errors import PyMongoError

from app.config import settings
from app.core.errors import StorefrontError
from app.database import connect_to_mongo, close_mongo_connection, database
from app.api.v1 import auth, products, orders, settings as store_settings, address, checkout, webhooks

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events"""
    logger.info(f"Starting up {settings.app_name}...")
    await connect_to_mongo()
    logger.info("Application ready!")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await close_mongo_connection()
    logger.info("Shutdown complete!")


app = FastAPI(
    title=settings.app_name,
    version=VERSION,
    description="""
    Storefront API for a food delivery shop.

    ## Features

    * **Catalog**: Categories and products with sizes and add-ons
    * **Delivery**: Postal code and address lookup, route distance and delivery fee quotes
    * **Scheduling**: Operating hours, special dates and bookable delivery windows
    * **Checkout**: Step validation and server-priced order submission
    * **Back office**: Orders, catalog, delivery and schedule settings, webhooks

    ## Authentication

    Back-office endpoints require an admin JWT obtained through a magic link:
    ```
    Authorization: Bearer <your_jwt_token>
    ```
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url] if not settings.debug else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check endpoints
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint to verify the API is running.
    """
    return {
        "success": True,
        "status": "healthy",
        "version": VERSION,
        "app": settings.app_name
    }


@app.get("/liveness", tags=["Health"])
async def liveness_probe():
    """
    Liveness probe endpoint.
    Returns 200 if the application is alive.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat()
    }


@app.get("/readiness", tags=["Health"])
async def readiness_probe():
    """
    Readiness probe endpoint.
    Returns 503 until the database answers a ping.
    """
    if database.db is None:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not ready",
                "database": "not connected",
                "timestamp": datetime.utcnow().isoformat()
            }
        )

    try:
        await database.db.command("ping")
    except PyMongoError as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=503,
            content={
                "status": "not ready",
                "error": str(e),
                "timestamp": datetime.utcnow().isoformat()
            }
        )

    return {
        "status": "ready",
        "database": "connected",
        "timestamp": datetime.utcnow().isoformat()
    }


# Include routers
app.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["Authentication"]
)

app.include_router(
    products.router,
    prefix="/api",
    tags=["Catalog"]
)

app.include_router(
    address.router,
    prefix="/api",
    tags=["Address & Delivery"]
)

app.include_router(
    store_settings.router,
    prefix="/api",
    tags=["Schedule"]
)

app.include_router(
    checkout.router,
    prefix="/api",
    tags=["Checkout"]
)

app.include_router(
    orders.router,
    prefix="/api",
    tags=["Orders"]
)

app.include_router(
    webhooks.router,
    prefix="/api",
    tags=["Webhooks"]
)

app.include_router(
    products.admin_router,
    prefix="/api/admin",
    tags=["Admin - Catalog"]
)

app.include_router(
    orders.admin_router,
    prefix="/api/admin",
    tags=["Admin - Orders"]
)

app.include_router(
    store_settings.admin_router,
    prefix="/api/admin",
    tags=["Admin - Settings"]
)

app.include_router(
    webhooks.admin_router,
    prefix="/api/admin",
    tags=["Admin - Webhooks"]
)


# Error handlers
@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    """Domain errors raised by the core"""
    if exc.status_code >= 500:
        logger.error(f"{exc.error} on {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Itemized field errors for malformed requests"""
    fields = {}
    for error in exc.errors():
        location = [str(part) for part in error["loc"] if part != "body"]
        fields[".".join(location) or "body"] = error["msg"]

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "Validation Error",
            "detail": "Some fields are invalid",
            "fields": fields
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Request-level errors raised by the routers"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": HTTPStatus(exc.status_code).phrase,
            "detail": exc.detail
        },
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc: Exception):
    """Custom 500 handler"""
    logger.error(f"Internal server error: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred. Please try again later."
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
