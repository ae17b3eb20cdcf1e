from fastapi import APIRouter, Request
from ...utils.responses import success_response
from ...config import settings
from ...core.encoder import verify_round_trip

router = APIRouter(prefix="", tags=["Health"])

# exercises every encoding rule at once
_SELF_TEST_SCRIPT = "\tif a <= b and c >= d & 1:\n\t\tlogger.info('x \"y\" \\\\z')\r\f\b"


@router.get("/health")
def health(request: Request):
    codec_ok = verify_round_trip(_SELF_TEST_SCRIPT)
    store = getattr(request.app.state, "session_store", None)
    data = {
        "status": "healthy" if codec_ok else "unhealthy",
        "version": settings.api_version,
        "uptime": request.app.state.uptime_seconds(),
        "checks": {
            "codec_round_trip": "ok" if codec_ok else "failed",
            "open_sessions": len(store.list()) if store is not None else 0,
        },
    }
    return success_response(request, data)
