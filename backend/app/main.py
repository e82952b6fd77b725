import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.api.routes import (
    activity,
    attendance,
    faculty,
    health,
    leaves,
    notifications,
    rearrangements,
    schedule,
    timetable,
)
from app.core.config import get_settings
from app.core.exceptions import AppError, InfrastructureUnavailableError
from app.core.middleware import RequestContextMiddleware, RequestSizeLimitMiddleware
from app.db.bootstrap import ensure_runtime_schema_compatibility

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema_compatibility()
    yield


def _error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "code": exc.code, "details": exc.details},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _error_response(exc)


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.exception("Database unavailable while handling %s %s", request.method, request.url.path)
    return _error_response(InfrastructureUnavailableError())


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(OperationalError, operational_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(RequestContextMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(faculty.router, prefix=settings.api_prefix, tags=["faculty"])
app.include_router(timetable.router, prefix=f"{settings.api_prefix}/timetable", tags=["timetable"])
app.include_router(leaves.router, prefix=settings.api_prefix, tags=["leaves"])
app.include_router(attendance.router, prefix=settings.api_prefix, tags=["attendance"])
app.include_router(rearrangements.router, prefix=f"{settings.api_prefix}/rearrangements", tags=["rearrangements"])
app.include_router(schedule.router, prefix=f"{settings.api_prefix}/schedule", tags=["schedule"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
