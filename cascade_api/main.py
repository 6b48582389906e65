import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_chat,  # noqa: F401
    models_contacts,  # noqa: F401
    models_integrations,  # noqa: F401
    models_push,  # noqa: F401
    models_sms,  # noqa: F401
)
from .config import get_settings
from .database import Base, get_engine
from .domain.books import clients_router, expenses_router, invoices_router
from .domain.chat import router as chat_router
from .routes.contacts import router as contacts_router
from .routes.email import router as email_router
from .routes.gusto import router as gusto_router
from .routes.payments import router as payments_router
from .routes.push import router as push_router
from .routes.sms import router as sms_router
from .routes.upload import router as upload_router
from .routes.voice import router as voice_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    if get_settings().database_url:
        try:
            Base.metadata.create_all(bind=get_engine(), checkfirst=True)
            logger.info("Database tables created successfully")
        except Exception as e:
            # Ignore "already exists" errors from race conditions between workers
            error_msg = str(e)
            if "already exists" in error_msg or "duplicate key" in error_msg:
                logger.info("Database tables already exist (created by another worker)")
            else:
                logger.error(f"Failed to create database tables: {e}")
    else:
        logger.warning("DATABASE_URL not set - skipping table creation")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Cascade Connect API", version="1.0.0", lifespan=lifespan)


def error_body(detail) -> dict:
    # Vendor failures carry {"error", "details"} already
    if isinstance(detail, dict) and "error" in detail:
        return detail
    return {"error": detail}


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {exc.status_code}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Report request-schema failures as 400, or 401 when the Authorization
    header is the failing field.
    """
    errors = exc.errors()
    for error in errors:
        if error.get("loc") and "authorization" in str(error.get("loc")).lower():
            logger.warning(
                f"Authentication failed for {request.url.path}: Missing or invalid Authorization header"
            )
            return JSONResponse(status_code=401, content={"error": "Unauthorized. Please sign in."})

    logger.warning(f"Validation error for {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid field '{field}': {message}" if field else message},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Must stay registered before CORSMiddleware so 500s still carry CORS headers
    try:
        return await call_next(request)
    except Exception as e:
        logger.exception(f"{request.method} {request.url.path} - Error: {str(e)}")
        return JSONResponse(status_code=500, content={"error": str(e)})


# CORS Configuration
_settings = get_settings()
logger.info(f"CORS allowed origins: {list(_settings.allowed_origins)}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(_settings.allowed_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Routes
app.include_router(invoices_router)
app.include_router(expenses_router)
app.include_router(clients_router)
app.include_router(payments_router)
app.include_router(email_router)
app.include_router(voice_router)
app.include_router(contacts_router)
app.include_router(gusto_router)
app.include_router(upload_router)
app.include_router(push_router)
app.include_router(chat_router)
app.include_router(sms_router)


@app.get("/")
def root():
    return {"message": "Cascade Connect API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
