from fastapi import APIRouter, Depends, Request
from dataclasses import asdict

from ...api.dependencies import authorize, check_document_size
from ...api.schemas.request import (
    DocumentRequest,
    NotationRequest,
    OpenScriptRequest,
    SaveScriptRequest,
    ScriptValueRequest,
)
from ...api.schemas.response import ExtractionData, ScriptDocumentModel, ScriptLocationModel
from ...core.encoder import decode_script, encode_script, is_encoded_script, verify_round_trip
from ...core.editing import open_script, save_script
from ...core.notation import convert_python_notation
from ...core.path_matcher import (
    ScriptLocation,
    encode_scripts_in_content,
    extract_and_decode_scripts,
    find_script_paths,
    matching_pattern,
)
from ...core.script_types import script_type_for_path
from ...core.errors import ScriptsError
from ...utils.logging import get_logger
from ...utils.responses import success_response
import json

router = APIRouter(prefix="/scripts", tags=["Scripts"], dependencies=[Depends(authorize)])
logger = get_logger(__name__)


def _location_model(location: ScriptLocation) -> ScriptLocationModel:
    script_type = script_type_for_path(location.path)
    pattern = matching_pattern(location.path)
    return ScriptLocationModel(
        path=location.path,
        json_key=location.json_key,
        encoded_value=location.encoded_value,
        decoded_value=location.decoded_value,
        parent_path=location.parent_path,
        script_type=script_type.display_name if script_type else None,
        pattern=pattern.name if pattern else None,
    )


@router.post("/encode-value")
def encode_value(request: Request, body: ScriptValueRequest):
    encoded = encode_script(body.script)
    return success_response(request, {"script": encoded, "round_trip": verify_round_trip(body.script)})


@router.post("/decode-value")
def decode_value(request: Request, body: ScriptValueRequest):
    return success_response(request, {
        "script": decode_script(body.script),
        "was_encoded": is_encoded_script(body.script),
    })


@router.post("/locations")
def list_locations(request: Request, body: DocumentRequest):
    check_document_size(body.content)
    try:
        found = find_script_paths(json.loads(body.content))
    except (ValueError, RecursionError) as e:
        raise ScriptsError(f"Failed to parse JSON: {e}", code="INVALID_JSON")
    locations = [_location_model(loc).model_dump() for loc in found]
    return success_response(request, {"count": len(locations), "script_locations": locations})


@router.post("/decode")
def decode_document(request: Request, body: DocumentRequest):
    check_document_size(body.content)
    result = extract_and_decode_scripts(body.content)
    data = ExtractionData(
        decoded_content=result.decoded_content,
        script_locations=[_location_model(loc) for loc in result.script_locations],
        has_scripts=result.has_scripts,
        errors=list(result.errors),
    )
    return success_response(request, data.model_dump())


@router.post("/encode")
def encode_document(request: Request, body: DocumentRequest):
    check_document_size(body.content)
    encoded = encode_scripts_in_content(body.content)
    return success_response(request, {"content": encoded, "changed": encoded != body.content})


@router.post("/open")
def open_document_script(request: Request, body: OpenScriptRequest):
    check_document_size(body.content)
    document = open_script(body.content, body.path)
    return success_response(request, ScriptDocumentModel(**asdict(document)).model_dump())


@router.post("/save")
def save_document_script(request: Request, body: SaveScriptRequest):
    check_document_size(body.content)
    updated = save_script(body.content, body.path, body.script, body.function_definition)
    logger.info(f"Saved script at {body.path}")
    return success_response(request, {"path": body.path, "content": updated})


@router.post("/convert-notation")
def convert_notation(request: Request, body: NotationRequest):
    check_document_size(body.text)
    result = convert_python_notation(body.text)
    if not result.success:
        raise ScriptsError(result.error, code="INVALID_NOTATION")
    return success_response(request, {"json": result.json})
