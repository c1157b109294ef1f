# orgstruct/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from orgstruct.core.config import get_settings
from orgstruct.core.logging import setup_logging
from orgstruct.db import create_schema
from orgstruct.errors import ConflictError, InvalidInputError, NotFoundError, OrgStructError, UnauthorizedError
from orgstruct.routers import departments, system

logger = logging.getLogger("orgstruct.http")

tags_metadata = [
    {"name": "System", "description": "Service health and metadata."},
    {"name": "Departments", "description": "Department tree: create, read, move, delete."},
    {"name": "Employees", "description": "Employees bound to a department."},
]

# checked in order, first match wins
STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
)

INTERNAL_ERROR = "internal server error"


def status_for(exc: OrgStructError) -> int:
    for cls, code in STATUS_BY_ERROR:
        if isinstance(exc, cls):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def orgstruct_error_handler(request: Request, exc: OrgStructError):
    code = status_for(exc)
    logger.error(
        str(exc),
        extra={"op": exc.op, "kind": exc.kind, "method": request.method, "path": request.url.path},
    )
    message = exc.message if code < 500 else INTERNAL_ERROR
    return JSONResponse(status_code=code, content={"error": message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(part) for part in first.get("loc", ()))
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else "invalid request"
    logger.error("request validation failed", extra={"path": request.url.path, "error": message})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # routing errors (unknown path, wrong method) in the same envelope
    logger.warning("http error", extra={"path": request.url.path, "status_code": exc.status_code})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled exception",
        exc_info=exc,
        extra={"method": request.method, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.ENV)
    logger.info("starting service", extra={"env": settings.ENV, "version": settings.APP_VERSION})
    if settings.CREATE_SCHEMA_ON_STARTUP:
        create_schema()
        logger.info("database schema ensured")
    yield
    logger.info("stopping service")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=settings.APP_DESCRIPTION,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    # Redirect "/" -> "/docs"
    @app.get("/", include_in_schema=False)
    def root():
        return RedirectResponse(url="/docs")

    app.add_exception_handler(OrgStructError, orgstruct_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(system.router, prefix=settings.API_PREFIX)
    app.include_router(departments.router, prefix=settings.API_PREFIX)
    # mounts and included routers may carry no path of their own
    for r in app.routes:
        logger.debug(
            "route registered",
            extra={"path": getattr(r, "path", None), "methods": sorted(getattr(r, "methods", None) or [])},
        )
    return app


app = create_app()
