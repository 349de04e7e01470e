import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .appwrite_client import AppwriteClient, AppwriteException, get_appwrite_client
from .cache import get_cache_stats
from .domain.account.router import router as auth_router
from .domain.account.service import AccountService
from .domain.bookings.router import router as bookings_router
from .domain.cart.router import router as cart_router
from .domain.checkout.router import router as checkout_router
from .exceptions import ConfigurationError, StorageUnavailableError
from .routes.catalog import router as catalog_router
from .routes.notifications import router as notifications_router
from .security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    if not config.APPWRITE_PROJECT_ID:
        logger.warning("⚠️ APPWRITE_PROJECT_ID not set - auth and bookings will fail")
    try:
        config.get_database_config()
    except ConfigurationError as e:
        logger.warning(f"⚠️ {e}")

    try:
        from .rate_limiter import get_redis_client

        get_redis_client()  # Connection test
        logger.info("Redis connection established")
    except Exception as e:
        logger.warning(f"Redis unavailable - carts and rate limits are kept in memory: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="ServiceHub API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Convert 422 validation errors from HTTPBearer to 401 authentication errors
    when the issue is with the Authorization header
    """
    for error in exc.errors():
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(
                status_code=401,
                content={"detail": "Not authenticated. Please sign in again."},
            )

    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(AppwriteException)
async def appwrite_exception_handler(request: Request, exc: AppwriteException):
    """Surface backend errors with their own status (4xx) and message"""
    status_code = exc.code if exc.code and 400 <= exc.code < 500 else 502
    logger.error(f"❌ Appwrite error on {request.method} {request.url.path}: [{exc.code}] {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "type": exc.type})


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    logger.error(f"❌ Configuration error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(StorageUnavailableError)
async def storage_exception_handler(request: Request, exc: StorageUnavailableError):
    logger.error(f"❌ Storage unavailable on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Cart storage is temporarily unavailable. Please try again."},
    )


if SECURITY_HEADERS_ENABLED:
    app.add_middleware(
        SecurityHeadersMiddleware, exclude_paths=["/health", "/docs", "/openapi.json"]
    )
    logger.info("Security headers enabled")
else:
    logger.warning("Security headers DISABLED - only use in development!")


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{config.FRONTEND_URL},http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(catalog_router)
app.include_router(auth_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(bookings_router)
app.include_router(notifications_router)


@app.get("/")
def root():
    return {"message": "ServiceHub API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/health/backend")
async def backend_health_check(client: AppwriteClient = Depends(get_appwrite_client)):
    """Check Appwrite reachability and database configuration"""
    start_time = time.time()
    connection = await AccountService(client).check_connection()
    response_time = (time.time() - start_time) * 1000

    try:
        db = config.get_database_config()
        database = {
            "configured": True,
            "database_id": db.database_id,
            "collections": {
                "purchases": db.purchases_collection_id,
                "items": db.items_collection_id,
                "users": db.users_collection_id,
                "appointments": db.appointments_collection_id,
            },
        }
    except ConfigurationError as e:
        database = {"configured": False, "error": str(e)}

    healthy = connection["reachable"] and database["configured"]
    return {
        "status": "healthy" if healthy else "unhealthy",
        "endpoint": config.APPWRITE_ENDPOINT,
        "project_configured": bool(config.APPWRITE_PROJECT_ID),
        "api_key_configured": bool(config.APPWRITE_API_KEY),
        "response_time_ms": round(response_time, 2),
        "backend": connection,
        "database": database,
    }


@app.get("/health/redis")
async def redis_health_check():
    """Check the cart/rate-limit store for monitoring"""
    stats = get_cache_stats()
    return {"status": "healthy" if stats.get("available") else "degraded", "redis": stats}
