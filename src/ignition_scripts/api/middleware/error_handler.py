from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import traceback
from ...config import settings
from ...core.errors import ScriptsError
from ...utils.responses import error_response
from ...utils.logging import get_logger

logger = get_logger(__name__)

# error code -> HTTP status for failures raised by the core
SCRIPTS_ERROR_STATUS = {
    "CONFLICT_NOT_FOUND": status.HTTP_409_CONFLICT,
    "CONFLICT_ID_MISMATCH": status.HTTP_409_CONFLICT,
    "FUNCTION_DEFINITION_MODIFIED": 422,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SCRIPT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UPDATE_FAILED": status.HTTP_409_CONFLICT,
    "INVALID_JSON": status.HTTP_400_BAD_REQUEST,
    "INVALID_NOTATION": status.HTTP_400_BAD_REQUEST,
}


def scripts_error_response(request: Request, exc: ScriptsError) -> JSONResponse:
    """Turn a core precondition failure into an error envelope."""
    status_code = SCRIPTS_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    details = {}
    if exc.details:
        details["hint"] = exc.details
    details.update(exc.context)
    body = error_response(request, code=exc.code, message=exc.message, details=details)
    return JSONResponse(status_code=status_code, content=body)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for exceptions no route or handler caught"""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Error handling {request.method} {request.url}: {exc}", exc_info=True)

        error_code = "INTERNAL_ERROR"
        error_message = "An unexpected error occurred"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        details = {}

        if isinstance(exc, ValueError):
            error_code = "INVALID_VALUE"
            error_message = str(exc)
            status_code = status.HTTP_400_BAD_REQUEST
        elif isinstance(exc, KeyError):
            error_code = "MISSING_KEY"
            error_message = f"Required key not found: {str(exc)}"
            status_code = status.HTTP_400_BAD_REQUEST

        # Include stack trace in development
        if settings.app_env == "development":
            details["traceback"] = traceback.format_exc()

        body = error_response(request, code=error_code, message=error_message, details=details)
        return JSONResponse(status_code=status_code, content=body)


class ValidationErrorHandler:
    """Custom validation error handler for better messages"""

    @staticmethod
    def format_validation_error(errors: list) -> dict:
        formatted_errors = []
        for error in errors:
            formatted_errors.append({
                "field": ".".join(str(x) for x in error.get("loc", [])),
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            })
        return {
            "validation_errors": formatted_errors,
            "total_errors": len(formatted_errors),
        }
