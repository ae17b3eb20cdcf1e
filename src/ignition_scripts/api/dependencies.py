from fastapi import Header, HTTPException, Request, status
from typing import Optional
from ..config import settings
from ..storage.inmemory import InMemoryConflictSessionStore


def authorize(authorization: Optional[str] = Header(default=None)) -> None:
    if not settings.api_key_required:
        return
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={
            "code": "UNAUTHORIZED",
            "message": "Invalid or missing API key",
        })
    token = authorization.split(" ", 1)[1].strip()
    if not settings.api_key or token != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={
            "code": "UNAUTHORIZED",
            "message": "Invalid API key",
        })


def get_session_store(request: Request) -> InMemoryConflictSessionStore:
    return request.app.state.session_store


def check_document_size(content: str) -> str:
    if len(content) > settings.max_document_chars:
        raise HTTPException(status_code=413, detail={
            "code": "DOCUMENT_TOO_LARGE",
            "message": f"Document exceeds {settings.max_document_chars} characters",
        })
    return content
