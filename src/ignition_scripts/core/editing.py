"""Open a single script field as Python and write an edit back in place.

Saving splices the new encoded value over the old one inside the original
text, so every other byte of the document (key order, number formatting,
whitespace) is preserved.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from .encoder import decode_script, encode_script
from .errors import ScriptNotFoundError, ScriptsError, ScriptUpdateError
from .path_matcher import SCRIPT_KEYS, is_script_path, resolve_path
from .script_types import extract_context, script_type_for_path
from .wrappers import function_definition_for_key, unwrap_script
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScriptDocument:
    path: str
    json_key: str
    script_type: Optional[str]
    function_definition: str
    content: str
    encoded_value: str
    file_name: str
    line: int


def _parse(json_text: str) -> Any:
    try:
        return json.loads(json_text)
    except (ValueError, RecursionError) as e:
        raise ScriptsError(f"Failed to parse JSON: {e}", code="INVALID_JSON")


def _split_parent(path: str) -> Tuple[str, str]:
    if "." not in path:
        return "", path
    parent, key = path.rsplit(".", 1)
    return parent, key


def _iter_string_fields(document: Any, json_key: str, current_path: str = "") -> Iterator[Tuple[str, str]]:
    if isinstance(document, list):
        for index, item in enumerate(document):
            yield from _iter_string_fields(item, json_key, f"{current_path}[{index}]")
    elif isinstance(document, dict):
        for key, value in document.items():
            new_path = f"{current_path}.{key}" if current_path else key
            if key == json_key and isinstance(value, str):
                yield new_path, value
            else:
                yield from _iter_string_fields(value, json_key, new_path)


def _value_pattern(json_key: str) -> "re.Pattern[str]":
    return re.compile(r'"' + re.escape(json_key) + r'":\s*"(?P<value>(?:[^"\\]|\\.)*)"')


def _json_string(body: str) -> Optional[str]:
    try:
        return json.loads(f'"{body}"')
    except ValueError:
        return None


def _locate(json_text: str, path: str) -> Tuple[Any, str, "re.Match[str]"]:
    """Find the raw ``"key": "..."`` occurrence in the text for a script path.

    Occurrences are matched by value and by their ordinal among equal
    values, since text order follows the parsed traversal order.
    """
    parsed = _parse(json_text)
    _parent_path, json_key = _split_parent(path)
    if json_key not in SCRIPT_KEYS or not is_script_path(path):
        raise ScriptNotFoundError(f"Not a script path: {path}", path=path)
    try:
        value = resolve_path(parsed, path)
    except KeyError:
        raise ScriptNotFoundError(f"No value at path: {path}", path=path)
    if not isinstance(value, str):
        raise ScriptNotFoundError(f"Value at {path} is not a script", path=path)

    same_value: List[str] = [p for p, v in _iter_string_fields(parsed, json_key) if v == value]
    ordinal = same_value.index(path)
    matches = [m for m in _value_pattern(json_key).finditer(json_text) if _json_string(m.group("value")) == value]
    if ordinal >= len(matches):
        raise ScriptUpdateError(
            "Could not locate the script in the document text",
            details="The script location in the JSON file may have changed",
            path=path,
        )
    return parsed, json_key, matches[ordinal]


def open_script(json_text: str, path: str) -> ScriptDocument:
    parsed, json_key, match = _locate(json_text, path)
    parent_path, _ = _split_parent(path)
    parent = resolve_path(parsed, parent_path) if parent_path else parsed

    script_type = script_type_for_path(path)
    context = extract_context(parent)
    if script_type is not None:
        function_definition = script_type.function_definition(context)
        file_name = script_type.file_name(context)
    else:
        function_definition = function_definition_for_key(json_key)
        file_name = json_key

    encoded_value = match.group("value")
    return ScriptDocument(
        path=path,
        json_key=json_key,
        script_type=script_type.display_name if script_type else None,
        function_definition=function_definition,
        content=function_definition + decode_script(encoded_value),
        encoded_value=encoded_value,
        file_name=file_name,
        line=json_text.count("\n", 0, match.start()),
    )


def save_script(json_text: str, path: str, edited_text: str, function_definition: Optional[str] = None) -> str:
    """Write an edited script back into the document text.

    ``function_definition`` defaults to the header :func:`open_script` would
    present for this path; the edited text must still start with it.
    """
    if function_definition is None:
        function_definition = open_script(json_text, path).function_definition
    script = unwrap_script(edited_text, function_definition)

    _parsed, _key, match = _locate(json_text, path)
    start, end = match.span("value")
    logger.debug(f"Updating script at {path}")
    return json_text[:start] + encode_script(script) + json_text[end:]
