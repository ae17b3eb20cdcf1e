"""Find and transform script values inside Ignition JSON documents.

A value is a script when its key is ``script`` or ``code``, the value is a
string, and the dotted/bracketed path to it matches one of the known
resource patterns. Paths look like ``root.events.dom.onClick.config.script``
or ``props.value.binding.transforms[0].code``.
"""
import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, List, NamedTuple, Optional, Tuple

from .encoder import decode_script, encode_script
from ..config import settings
from ..utils.logging import get_logger

logger = get_logger(__name__)

SCRIPT_KEYS = frozenset({"script", "code"})


class ScriptPathPattern(NamedTuple):
    name: str
    regex: "re.Pattern[str]"

    def matches(self, json_path: str) -> bool:
        return self.regex.search(json_path) is not None


SCRIPT_KEY_PATTERNS: Tuple[ScriptPathPattern, ...] = (
    ScriptPathPattern("script", re.compile(r"\.script$")),
    ScriptPathPattern("action", re.compile(r"config\.script$")),
    ScriptPathPattern("transform", re.compile(r"transforms\[\d+\]\.code$")),
    ScriptPathPattern("custom_method", re.compile(r"customMethods\[\d+\]\.script$")),
    ScriptPathPattern("message_handler", re.compile(r"messageHandlers\[\d+\]\.script$")),
    ScriptPathPattern("tag_event_script", re.compile(r"eventScripts\[\d+\]\.script$")),
    ScriptPathPattern("property_change", re.compile(r"onChange\.script$")),
    ScriptPathPattern("extension_function", re.compile(r"extensionFunctions\[\d+\]\.script$")),
)

_INDENT_RE = re.compile(r"^([ \t]+)", re.MULTILINE)


@dataclass(frozen=True)
class ScriptLocation:
    path: str
    encoded_value: str
    decoded_value: str
    parent_path: str

    @property
    def json_key(self) -> str:
        return self.path.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class ExtractionResult:
    decoded_content: Any
    script_locations: List[ScriptLocation] = field(default_factory=list)
    has_scripts: bool = False
    errors: List[str] = field(default_factory=list)


def is_script_path(json_path: Any) -> bool:
    if not json_path or not isinstance(json_path, str):
        return False
    return any(pattern.matches(json_path) for pattern in SCRIPT_KEY_PATTERNS)


def matching_pattern(json_path: str) -> Optional[ScriptPathPattern]:
    """Return the most specific pattern for a path (the generic ``.script`` last)."""
    for pattern in SCRIPT_KEY_PATTERNS[1:]:
        if pattern.matches(json_path):
            return pattern
    if SCRIPT_KEY_PATTERNS[0].matches(json_path):
        return SCRIPT_KEY_PATTERNS[0]
    return None


def get_script_key_patterns() -> Tuple[ScriptPathPattern, ...]:
    return SCRIPT_KEY_PATTERNS


def _join(parent: str, key: str) -> str:
    return f"{parent}.{key}" if parent else key


def _index(parent: str, index: int) -> str:
    return f"{parent}[{index}]" if parent else f"[{index}]"


def _is_script_field(key: str, value: Any, json_path: str) -> bool:
    # the type check has to come before any pattern matching
    return key in SCRIPT_KEYS and isinstance(value, str) and is_script_path(json_path)


def iter_script_fields(document: Any, current_path: str = "") -> Iterator[Tuple[dict, str, str, str]]:
    """Yield ``(container, key, path, parent_path)`` for every script field.

    Pre-order, dict insertion order. A matched field is not descended into.
    """
    if isinstance(document, list):
        for index, item in enumerate(document):
            yield from iter_script_fields(item, _index(current_path, index))
    elif isinstance(document, dict):
        for key, value in document.items():
            new_path = _join(current_path, key)
            if _is_script_field(key, value, new_path):
                yield document, key, new_path, current_path
            else:
                yield from iter_script_fields(value, new_path)


def find_script_paths(document: Any) -> List[ScriptLocation]:
    locations: List[ScriptLocation] = []
    for container, key, path, parent_path in iter_script_fields(document):
        encoded_value = container[key]
        locations.append(ScriptLocation(
            path=path,
            encoded_value=encoded_value,
            decoded_value=decode_script(encoded_value),
            parent_path=parent_path,
        ))
    return locations


def has_scripts(document: Any) -> bool:
    return next(iter_script_fields(document), None) is not None


def resolve_path(document: Any, json_path: str) -> Any:
    """Follow a path produced by :func:`find_script_paths` and return the value.

    Raises ``KeyError`` when any segment is missing.
    """
    node = document
    for segment in _split_path(json_path):
        if isinstance(segment, int):
            if not isinstance(node, list) or segment >= len(node):
                raise KeyError(json_path)
            node = node[segment]
        else:
            if not isinstance(node, dict) or segment not in node:
                raise KeyError(json_path)
            node = node[segment]
    return node


_SEGMENT_RE = re.compile(r"\[(\d+)\]|([^.\[\]]+)")


def _split_path(json_path: str) -> List[Any]:
    segments: List[Any] = []
    for index, key in _SEGMENT_RE.findall(json_path):
        segments.append(int(index) if index else key)
    return segments


def _transform_scripts(document: Any, transform: Callable[[str], str]) -> int:
    count = 0
    # materialize first, the containers are mutated while walking
    for container, key, _path, _parent in list(iter_script_fields(document)):
        container[key] = transform(container[key])
        count += 1
    return count


def detect_indent(text: str, default: Optional[int] = None) -> Any:
    """Indentation to re-serialize with, taken from the first indented line.

    Returns a number of spaces, or the whitespace string itself when the
    document is indented with tabs.
    """
    match = _INDENT_RE.search(text or "")
    if not match:
        return settings.default_json_indent if default is None else default
    run = match.group(1)
    if "\t" in run:
        return run
    return len(run)


def _dumps(document: Any, indent: Any) -> str:
    return json.dumps(document, indent=indent, ensure_ascii=False)


def extract_and_decode_scripts(json_content: Any) -> ExtractionResult:
    """Decode every script field of a JSON document for human editing.

    Never raises: invalid input is returned untouched with ``errors`` set.
    """
    if not json_content or not isinstance(json_content, str):
        return ExtractionResult(
            decoded_content=json_content,
            errors=["Invalid JSON content provided"],
        )

    try:
        parsed = json.loads(json_content)
        script_locations = find_script_paths(parsed)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Failed to parse JSON for script extraction: {e}")
        return ExtractionResult(
            decoded_content=json_content,
            errors=[f"Failed to parse JSON: {e}"],
        )

    if not script_locations:
        return ExtractionResult(decoded_content=json_content)

    errors: List[str] = []
    decoded = _transform_scripts(parsed, decode_script)
    try:
        decoded_content = _dumps(parsed, detect_indent(json_content))
    except (TypeError, ValueError, RecursionError) as e:
        errors.append(f"Failed to serialize decoded JSON: {e}")
        decoded_content = json_content

    logger.debug(f"Decoded {decoded} script field(s)")
    return ExtractionResult(
        decoded_content=decoded_content,
        script_locations=script_locations,
        has_scripts=True,
        errors=errors,
    )


def encode_scripts_in_content(decoded_content: Any) -> Any:
    """Re-encode script fields of a decoded document; input returned on failure.

    Every matched field is encoded unconditionally, so the input must be the
    decoded form: encoding twice escapes the backslashes twice.
    """
    if not decoded_content or not isinstance(decoded_content, str):
        return decoded_content

    try:
        parsed = json.loads(decoded_content)
        encoded = _transform_scripts(parsed, encode_script)
    except (ValueError, RecursionError) as e:
        logger.warning(f"Failed to parse JSON for script encoding: {e}")
        return decoded_content

    try:
        result = _dumps(parsed, detect_indent(decoded_content))
    except (TypeError, ValueError, RecursionError) as e:
        logger.warning(f"Failed to serialize encoded JSON: {e}")
        return decoded_content

    logger.debug(f"Encoded {encoded} script field(s)")
    return result
