import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from typing import Optional
import logging
import sys
import time

from attendance_api.api.v1.attendance import router
from attendance_api.api.v1.students import str_router
from attendance_api.config import Settings
from attendance_api.dependencies import create_storage
from attendance_api.exceptions import ApiError
from attendance_api.services.attendance import AttendanceStore
from attendance_api.services.roster import RosterStore
from attendance_api.utils.dates import utc_now_iso

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    storage = app.state.storage
    logger.info(f"Starting application with {storage.name} storage...")
    try:
        await storage.open()
        logger.info("Storage opened")
    except Exception as e:
        logger.error(f"Error during startup: {e}", exc_info=True)

    app.state.started_at = time.monotonic()
    logger.info("Application startup complete")
    yield

    logger.info("Shutting down application...")
    try:
        await storage.close()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")
    logger.info("Application shutdown complete")


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Malformed request",
                "details": [str(error.get("msg")) for error in exc.errors()]
            }
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Endpoint not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"}
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    app = FastAPI(
        title="Class Attendance API",
        description="Student roster and per-date attendance sheets",
        version="1.0.0",
        lifespan=lifespan
    )

    storage = create_storage(settings)
    app.state.settings = settings
    app.state.storage = storage
    app.state.roster_store = RosterStore(storage, strict=settings.strict_validation)
    app.state.attendance_store = AttendanceStore(storage, strict=settings.strict_validation)
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(str_router)
    app.include_router(router)
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        return {
            "message": "Welcome to Class Attendance API",
            "version": "1.0.0",
            "endpoints": {
                "students": "/api/students",
                "attendance": "/api/attendance",
                "attendance_dates": "/api/attendance/dates",
                "search": "/api/attendance/search/{studentName}",
                "overview": "/api/attendance/stats/overview",
                "health": "/api/health"
            }
        }

    @app.get("/api/health")
    async def health_check(request: Request):
        storage = request.app.state.storage
        try:
            connected = await storage.check_connection()
        except Exception as e:
            logger.error(f"Health check error: {e}")
            connected = False

        return {
            "status": "OK",
            "timestamp": utc_now_iso(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "database": "connected" if connected else "disconnected",
            "storage": storage.name
        }

    return app


app = create_app()


def run():
    settings = app.state.settings
    logger.info(f"Server running with {settings.validation_mode} validation")
    uvicorn.run("attendance_api.main:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    run()
