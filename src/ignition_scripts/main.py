from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import uuid
import time
from .config import settings
from .core.errors import ScriptsError
from .utils.logging import configure_logging, get_logger
from .utils.responses import error_response
from .api.middleware import ErrorHandlingMiddleware, ValidationErrorHandler, scripts_error_response
from .api.routes import health, scripts, conflicts
from .storage.inmemory import InMemoryConflictSessionStore

logger = get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.request_id = str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-Id"] = request.state.request_id
        return response


start_time = time.time()


def uptime_seconds() -> int:
    return int(time.time() - start_time)


# Configure logging
configure_logging(settings.log_level)

app = FastAPI(
    title="Ignition Scripts API",
    version=settings.api_version,
    openapi_url="/openapi.json"
)

app.state.session_store = InMemoryConflictSessionStore(max_sessions=settings.max_sessions)
app.state.uptime_seconds = uptime_seconds

# Middleware
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(scripts.router)
app.include_router(conflicts.router)


# Exception handlers
@app.exception_handler(ScriptsError)
async def scripts_error_handler(request: Request, exc: ScriptsError):
    return scripts_error_response(request, exc)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        code = exc.detail.get("code", "HTTP_ERROR")
        message = exc.detail.get("message", "")
    elif exc.status_code == 404:
        code, message = "NOT_FOUND", "Requested resource not found"
    else:
        code, message = "HTTP_ERROR", str(exc.detail)
    body = error_response(request, code=code, message=message)
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    body = error_response(
        request,
        code="INVALID_REQUEST",
        message="Validation error",
        details=ValidationErrorHandler.format_validation_error(exc.errors()),
    )
    return JSONResponse(status_code=400, content=body)


@app.get("/")
async def root(request: Request):
    return {
        "message": "Ignition Scripts API",
        "version": settings.api_version,
        "status": "running"
    }


@app.on_event("startup")
async def startup_event():
    logger.info("Ignition Scripts API starting up...")
    logger.info(f"Max document size: {settings.max_document_chars} chars, max sessions: {settings.max_sessions}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Ignition Scripts API shutting down...")
