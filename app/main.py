from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging

from app.core.config import settings
from app.core.database import init_db
from app.core.exceptions import BookingAppError
from app.api import bookings, companies, users
from app.services.reminder_scanner import build_reminder_scheduler

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Interview Booking API...")
    await init_db()
    scheduler = None
    if settings.reminder_enabled:
        scheduler = build_reminder_scheduler()
        scheduler.start()
    yield
    # Shutdown
    logger.info("Shutting down Interview Booking API...")
    if scheduler:
        scheduler.shutdown(wait=False)

app = FastAPI(
    title="Interview Booking API",
    description="Interview slot booking with per-user limits, booking windows and daily reminders",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Every error leaves the API in the {success, message} envelope
@app.exception_handler(BookingAppError)
async def booking_error_handler(request: Request, exc: BookingAppError):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.message})

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [f"{'.'.join(str(p) for p in err['loc'][1:])}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(status_code=400, content={"success": False, "message": "; ".join(messages)})

@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})

# Include API routes
app.include_router(bookings.router, prefix="/api/v1/bookings", tags=["bookings"])
app.include_router(companies.router, prefix="/api/v1/companies", tags=["companies"])
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])

@app.get("/")
async def root():
    return {"message": "Interview Booking API is running"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
