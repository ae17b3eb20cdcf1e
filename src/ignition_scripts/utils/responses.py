from datetime import datetime, timezone
from typing import Any, Optional
from fastapi import Request, Response
from ..config import settings
import uuid


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _request_id(request: Request, response: Optional[Response]) -> str:
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    if response is not None:
        response.headers["X-Request-Id"] = request_id
    return request_id


def _metadata(request_id: str) -> dict:
    return {
        "timestamp": utc_now_iso(),
        "request_id": request_id,
        "version": settings.api_version,
    }


def success_response(request: Request, data: Any, response: Optional[Response] = None) -> dict:
    return {
        "success": True,
        "data": data,
        "error": None,
        "metadata": _metadata(_request_id(request, response)),
    }


def error_response(request: Request, code: str, message: str, details: Optional[dict] = None, response: Optional[Response] = None) -> dict:
    return {
        "success": False,
        "data": None,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
        "metadata": _metadata(_request_id(request, response)),
    }
