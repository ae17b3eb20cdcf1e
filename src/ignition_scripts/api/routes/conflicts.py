from fastapi import APIRouter, Depends, Request, Response, status
from dataclasses import asdict

from ...api.dependencies import authorize, check_document_size, get_session_store
from ...api.schemas.request import (
    AcceptSessionRequest,
    AcceptSideRequest,
    ConflictDocumentRequest,
    OpenSessionRequest,
    ResolveConflictRequest,
    UpdateSessionRequest,
)
from ...api.schemas.response import (
    ConflictParseData,
    ConflictSessionModel,
    MergeConflictModel,
    ResolutionData,
    ScriptConflictModel,
    TextEditModel,
)
from ...core.conflicts import (
    ScriptConflict,
    TextEdit,
    apply_text_edit,
    build_resolution_edit,
    build_side_edit,
    get_conflict_by_id,
    parse_conflicts,
)
from ...core.errors import ConflictNotFoundError
from ...core.wrappers import function_definition_for_key
from ...storage.inmemory import ConflictSession, InMemoryConflictSessionStore
from ...utils.logging import get_logger
from ...utils.responses import success_response

router = APIRouter(prefix="/conflicts", tags=["Conflicts"], dependencies=[Depends(authorize)])
logger = get_logger(__name__)

_MERGE_FIELDS = set(MergeConflictModel.model_fields)


def _script_conflict_model(conflict: ScriptConflict, include_wrapped: bool) -> ScriptConflictModel:
    data = {k: v for k, v in asdict(conflict).items() if k in ScriptConflictModel.model_fields}
    if include_wrapped:
        header = function_definition_for_key(conflict.json_key)
        data["function_definition"] = header
        data["current_wrapped"] = header + conflict.current_script
        data["incoming_wrapped"] = header + conflict.incoming_script
    return ScriptConflictModel(**data)


def _resolution(document: str, conflict_id: str, edit: TextEdit) -> dict:
    data = ResolutionData(
        conflict_id=conflict_id,
        edit=TextEditModel(**asdict(edit)),
        content=apply_text_edit(document, edit),
    )
    return data.model_dump()


def _session_model(session: ConflictSession) -> dict:
    return ConflictSessionModel(**{k: v for k, v in asdict(session).items() if k in ConflictSessionModel.model_fields}).model_dump()


@router.post("/parse")
def parse_document_conflicts(request: Request, body: ConflictDocumentRequest):
    check_document_size(body.content)
    result = parse_conflicts(body.content, body.file_path or "")
    data = ConflictParseData(
        has_conflicts=result.has_conflicts,
        conflicts=[
            MergeConflictModel(**{k: v for k, v in asdict(c).items() if k in _MERGE_FIELDS})
            for c in result.conflicts
        ],
        script_conflicts=[_script_conflict_model(c, bool(body.include_wrapped)) for c in result.script_conflicts],
        errors=list(result.errors),
    )
    return success_response(request, data.model_dump())


@router.post("/resolve")
def resolve_document_conflict(request: Request, body: ResolveConflictRequest):
    check_document_size(body.content)
    edit = build_resolution_edit(
        body.content,
        body.conflict_id,
        body.resolved_text,
        function_definition=body.function_definition,
        file_path=body.file_path or "",
    )
    logger.info(f"Resolved conflict {body.conflict_id}")
    return success_response(request, _resolution(body.content, body.conflict_id, edit))


@router.post("/accept-side")
def accept_conflict_side(
    request: Request,
    body: AcceptSideRequest,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    check_document_size(body.content)
    session = store.find(body.conflict_id, body.side)
    if session is not None:
        # an open session holds the edited version of that side
        edit = store.accept(session.id, body.conflict_id, body.content)
    else:
        edit = build_side_edit(body.content, body.conflict_id, body.side, body.file_path or "")
        store.delete_for_conflict(body.conflict_id)
    logger.info(f"Resolved conflict {body.conflict_id} with {body.side} side")
    return success_response(request, _resolution(body.content, body.conflict_id, edit))


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
def open_session(
    request: Request,
    body: OpenSessionRequest,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    check_document_size(body.content)
    conflict = get_conflict_by_id(parse_conflicts(body.content, body.file_path or ""), body.conflict_id)
    if conflict is None:
        raise ConflictNotFoundError("Conflict not found", conflict_id=body.conflict_id)
    session = store.open(conflict, body.side, body.file_path or "")
    return success_response(request, _session_model(session))


@router.get("/sessions")
def list_sessions(
    request: Request,
    conflict_id: str | None = None,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    sessions = [_session_model(s) for s in store.list(conflict_id)]
    return success_response(request, {"sessions": sessions, "total": len(sessions)})


@router.get("/sessions/{session_id}")
def get_session(
    request: Request,
    session_id: str,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    return success_response(request, _session_model(store.require(session_id)))


@router.put("/sessions/{session_id}")
def update_session(
    request: Request,
    session_id: str,
    body: UpdateSessionRequest,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    return success_response(request, _session_model(store.update_content(session_id, body.content)))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: str,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    store.require(session_id)
    store.delete(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/accept")
def accept_session(
    request: Request,
    session_id: str,
    body: AcceptSessionRequest,
    store: InMemoryConflictSessionStore = Depends(get_session_store),
):
    check_document_size(body.document)
    edit = store.accept(session_id, body.conflict_id, body.document, body.content)
    return success_response(request, _resolution(body.document, body.conflict_id, edit))
