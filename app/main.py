import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Import all models to ensure they're registered with SQLAlchemy Base
from . import (
    models,  # noqa: F401
    models_sms,  # noqa: F401
)
from .config import (
    EMAIL_FROM_ADDRESS,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
    TWILIO_ACCOUNT_SID,
    TWILIO_AUTH_TOKEN,
    TWILIO_MESSAGING_SERVICE_SID,
    TWILIO_PHONE_NUMBER,
)
from .database import Base, engine
from .domain.appointments.errors import AppointmentError
from .domain.appointments.router import router as appointments_router
from .domain.sms.router import router as sms_router
from .email_service import EmailGateway, SmtpSettings
from .services.twilio_service import TwilioSmsGateway

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_email_gateway() -> EmailGateway:
    smtp = None
    if SMTP_HOST:
        smtp = SmtpSettings(
            host=SMTP_HOST,
            port=SMTP_PORT,
            username=SMTP_USERNAME,
            password=SMTP_PASSWORD,
            use_tls=SMTP_USE_TLS,
        )
    return EmailGateway(from_address=EMAIL_FROM_ADDRESS, resend_api_key=RESEND_API_KEY, smtp=smtp)


def build_sms_gateway() -> TwilioSmsGateway:
    return TwilioSmsGateway(
        account_sid=TWILIO_ACCOUNT_SID,
        auth_token=TWILIO_AUTH_TOKEN,
        from_number=TWILIO_PHONE_NUMBER,
        messaging_service_sid=TWILIO_MESSAGING_SERVICE_SID,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    # Notification gateways are built once and shared by every request
    app.state.email_gateway = build_email_gateway()
    app.state.sms_gateway = build_sms_gateway()
    logger.info(
        f"📧 Email configured: {app.state.email_gateway.is_configured}, "
        f"📱 SMS configured: {app.state.sms_gateway.is_configured}"
    )

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="HomeLube Assist API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(AppointmentError)
async def appointment_error_handler(request: Request, exc: AppointmentError):
    """Map lifecycle errors onto HTTP status codes"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code, content={"success": False, "message": exc.message}
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400)"""
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": message, "errors": jsonable_encoder(errors)},
    )


# CORS Configuration
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Routes
app.include_router(appointments_router)
app.include_router(sms_router)


@app.get("/")
def root():
    return {"message": "HomeLube Assist API is running"}


@app.get("/health")
def health():
    return {"status": "healthy"}
