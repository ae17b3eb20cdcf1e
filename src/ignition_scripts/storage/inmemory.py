from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Optional
import secrets
import threading

from ..core.conflicts import ScriptConflict, TextEdit, build_encoded_edit, build_resolution_edit
from ..core.encoder import decode_script
from ..core.errors import ConflictIdMismatchError, SessionNotFoundError
from ..core.wrappers import function_definition_for_key, unwrap_script
from ..utils.logging import get_logger

logger = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ConflictSession:
    """One side of a script conflict opened for editing."""
    id: str
    conflict_id: str
    file_path: str
    side: str
    json_key: str
    function_definition: str
    content: str
    original_encoded: str
    has_trailing_comma: bool
    created_at: str
    updated_at: str


class InMemoryConflictSessionStore:
    def __init__(self, max_sessions: int = 256) -> None:
        self._sessions: "OrderedDict[str, ConflictSession]" = OrderedDict()
        self._max_sessions = max(1, max_sessions)
        self._lock = threading.Lock()

    def open(self, conflict: ScriptConflict, side: str, file_path: str = "") -> ConflictSession:
        function_definition = function_definition_for_key(conflict.json_key)
        now = _now()
        session = ConflictSession(
            id=f"sess_{secrets.token_hex(6)}",
            conflict_id=conflict.id,
            file_path=file_path,
            side=side,
            json_key=conflict.json_key,
            function_definition=function_definition,
            content=function_definition + conflict.script_for(side),
            original_encoded=conflict.encoded_for(side),
            has_trailing_comma=conflict.has_trailing_comma,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info(f"Evicted conflict session {evicted}")
        return session

    def get(self, session_id: str) -> Optional[ConflictSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def require(self, session_id: str) -> ConflictSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Conflict session {session_id} not found", session_id=session_id)
        return session

    def find(self, conflict_id: str, side: str) -> Optional[ConflictSession]:
        with self._lock:
            for session in self._sessions.values():
                if session.conflict_id == conflict_id and session.side == side:
                    return session
        return None

    def list(self, conflict_id: Optional[str] = None) -> List[ConflictSession]:
        with self._lock:
            items = list(self._sessions.values())
        if conflict_id is None:
            return items
        return [s for s in items if s.conflict_id == conflict_id]

    def update_content(self, session_id: str, content: str) -> ConflictSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(f"Conflict session {session_id} not found", session_id=session_id)
            session = replace(session, content=content, updated_at=_now())
            self._sessions[session_id] = session
            return session

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def delete_for_conflict(self, conflict_id: str) -> int:
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if s.conflict_id == conflict_id]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)

    def accept(
        self,
        session_id: str,
        conflict_id: str,
        document_text: str,
        content: Optional[str] = None,
    ) -> TextEdit:
        """Build the edit resolving a conflict with this session's script.

        The document is re-parsed and the conflict matched by id, so a stale
        session fails instead of writing over the wrong lines.
        """
        session = self.require(session_id)
        if session.conflict_id != conflict_id:
            raise ConflictIdMismatchError(
                "Conflict ID mismatch",
                details=f"Session {session_id} belongs to {session.conflict_id}",
                session_id=session_id,
                conflict_id=conflict_id,
            )
        text = session.content if content is None else content
        script = unwrap_script(text, session.function_definition)
        if script == decode_script(session.original_encoded):
            # untouched side keeps its original escapes
            edit = build_encoded_edit(document_text, conflict_id, session.original_encoded, session.file_path)
        else:
            edit = build_resolution_edit(
                document_text,
                conflict_id,
                text,
                function_definition=session.function_definition,
                file_path=session.file_path,
            )
        removed = self.delete_for_conflict(conflict_id)
        logger.info(f"Resolved {conflict_id} with {session.side} script ({removed} session(s) closed)")
        return edit
