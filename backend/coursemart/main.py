"""
CourseMart API application.

Run with ``uvicorn coursemart.main:app`` from the ``backend`` directory.
"""

from contextlib import asynccontextmanager
from pathlib import Path
import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from coursemart.core.config import settings
from coursemart.core.database import DatabaseManager, check_database_connection
from coursemart.core.logging_config import setup_logging
from coursemart.core.payments import PaymentGatewayError, PaymentVerificationError
from coursemart.routers import api_router


setup_logging()
logger = logging.getLogger("coursemart")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not settings.TESTING:
        DatabaseManager.create_all_tables()
    if not settings.payments_enabled:
        logger.warning("Razorpay credentials missing: paid purchases are disabled")
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description=settings.DESCRIPTION,
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    try:
        response = await call_next(request)
        ms = int((time.time() - start) * 1000)
        logger.info("%s %s -> %s (%dms)", request.method, request.url.path, response.status_code, ms)
        return response
    except Exception:
        ms = int((time.time() - start) * 1000)
        logger.exception("Unhandled error %s %s (%dms)", request.method, request.url.path, ms)
        raise


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PaymentGatewayError)
async def payment_gateway_error_handler(request: Request, exc: PaymentGatewayError):
    logger.error(f"Payment gateway error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": str(exc) or "Payment gateway error"},
    )


@app.exception_handler(PaymentVerificationError)
async def payment_verification_error_handler(request: Request, exc: PaymentVerificationError):
    logger.warning(f"Payment verification failed on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc) or "Payment verification failed"},
    )


# Uploaded thumbnails
Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)
app.mount(settings.MEDIA_URL, StaticFiles(directory=settings.MEDIA_DIR), name="media")

# Routers
app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    return {"message": f"{settings.PROJECT_NAME} API is running!"}


@app.get("/health")
def health():
    database_ok = check_database_connection()
    content = {
        "status": "ok" if database_ok else "degraded",
        "database": database_ok,
        "payments": settings.payments_enabled,
    }
    if database_ok and settings.DEBUG:
        content["tables"] = DatabaseManager.get_table_stats()

    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=content,
    )
