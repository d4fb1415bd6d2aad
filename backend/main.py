import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import config
from api.admin import router as admin_router
from api.bookings import router as bookings_router
from api.doctors import router as doctors_router
from api.users import router as users_router
from database.connection import Base, engine
from integrations.notifications import NotificationSender
from integrations.razorpay_gateway import RazorpayGateway
from integrations.video_rooms import VideoRoomProvisioner
from services.errors import BookingError
from services.metrics import MetricsSink, PrometheusMetrics
from services.outbox import NotificationOutbox

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)
    yield
    # Let in-flight notifications finish before the loop goes away
    await app.state.outbox.drain()


async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Rejected input is not echoed; it may hold values JSON cannot carry (inf, nan)
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "code": "validation_error", "errors": jsonable_encoder(errors)},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "code": "server_error"},
    )


def create_app(
    gateway=None,
    rooms=None,
    notifier=None,
    metrics: MetricsSink = None,
    minor_unit_exponents: dict = None,
) -> FastAPI:
    """Build the API. Provider adapters default to the ones configured from the environment."""
    app = FastAPI(
        title="Telehealth Booking API",
        description="Bookings, doctor assignment and video consult rooms",
        version="1.0.0",
        lifespan=lifespan,
    )

    metrics = metrics or PrometheusMetrics()
    app.state.metrics = metrics
    app.state.outbox = NotificationOutbox(metrics)
    app.state.minor_unit_exponents = (
        config.MINOR_UNIT_EXPONENTS if minor_unit_exponents is None else minor_unit_exponents
    )
    app.state.gateway = gateway or RazorpayGateway(
        config.RAZORPAY_KEY_ID,
        config.RAZORPAY_KEY_SECRET,
        timeout=config.PROVIDER_TIMEOUT_SECONDS,
    )
    app.state.rooms = rooms or VideoRoomProvisioner(
        config.HMS_TOKEN,
        config.HMS_TEMPLATE_ID,
        api_base=config.HMS_API_BASE,
        meeting_host=config.VIDEO_MEETING_HOST,
        timeout=config.PROVIDER_TIMEOUT_SECONDS,
    )
    app.state.notifier = notifier or NotificationSender(
        config.TWILIO_ACCOUNT_SID,
        config.TWILIO_AUTH_TOKEN,
        config.TWILIO_FROM,
        whatsapp_from=config.TWILIO_WHATSAPP_FROM,
        default_country_code=config.DEFAULT_COUNTRY_CODE,
        timeout=config.PROVIDER_TIMEOUT_SECONDS,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    app.include_router(bookings_router)
    app.include_router(admin_router)
    app.include_router(doctors_router)
    app.include_router(users_router)

    @app.get("/")
    async def root():
        return {
            "message": "Telehealth Booking API",
            "status": "running",
            "version": "1.0.0",
            "endpoints": {
                "bookings": "/api/bookings",
                "admin": "/api/admin",
                "doctor": "/api/doctor",
                "user": "/api/user",
                "docs": "/docs",
            },
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "pending_notifications": app.state.outbox.pending}

    if isinstance(metrics, PrometheusMetrics):
        @app.get("/metrics", include_in_schema=False)
        async def prometheus_metrics():
            body, content_type = metrics.exposition()
            return Response(content=body, media_type=content_type)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
