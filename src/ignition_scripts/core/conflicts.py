"""Locate merge conflicts on script fields and splice resolutions back.

A conflict region looks like::

    <<<<<<< HEAD
        "script": "\\tprint(1)",
    =======
        "script": "\\tprint(2)",
    >>>>>>> feature

Only regions where both sides carry the same script key are script
conflicts; everything else is left to generic merge tooling. Line numbers
are 0-based and go stale on any edit, so every commit re-parses the
document and matches the conflict by id first.
"""
import hashlib
import re
from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional

from .encoder import decode_script, encode_script
from .errors import ConflictNotFoundError
from .path_matcher import SCRIPT_KEYS
from .wrappers import function_definition_for_key, unwrap_script
from ..utils.logging import get_logger

logger = get_logger(__name__)

MARKER_START = re.compile(r"^<{7}(?: (?P<label>.*))?$")
MARKER_BASE = re.compile(r"^\|{7}(?: (?P<label>.*))?$")
MARKER_SEPARATOR = re.compile(r"^={7}$")
MARKER_END = re.compile(r"^>{7}(?: (?P<label>.*))?$")

SIDES = ("current", "incoming")

_NEWLINE_RE = re.compile(r"\r?\n")
_KEYS = "|".join(re.escape(k) for k in sorted(SCRIPT_KEYS))
_SCRIPT_VALUE_RE = re.compile(r'"(?P<key>' + _KEYS + r')":\s*"(?P<value>(?:[^"\\]|\\.)*)"(?P<comma>,?)')
_LEADING_WS_RE = re.compile(r"^(\s*)")


@dataclass(frozen=True)
class MergeConflict:
    id: str
    start_line: int
    end_line: int
    divider_line: int
    base_line: Optional[int]
    current_content: str
    base_content: str
    incoming_content: str
    current_branch: str
    incoming_branch: str

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


@dataclass(frozen=True)
class ScriptConflict(MergeConflict):
    json_key: str
    current_script: str
    incoming_script: str
    current_encoded: str
    incoming_encoded: str
    has_trailing_comma: bool

    def script_for(self, side: str) -> str:
        _check_side(side)
        return self.current_script if side == "current" else self.incoming_script

    def encoded_for(self, side: str) -> str:
        _check_side(side)
        return self.current_encoded if side == "current" else self.incoming_encoded


@dataclass(frozen=True)
class ConflictParseResult:
    conflicts: List[MergeConflict] = field(default_factory=list)
    script_conflicts: List[ScriptConflict] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


@dataclass(frozen=True)
class TextEdit:
    """Replace ``start_line:start_character`` .. ``end_line:end_character``."""
    start_line: int
    start_character: int
    end_line: int
    end_character: int
    new_text: str


def _check_side(side: str) -> None:
    if side not in SIDES:
        raise ValueError(f"side must be one of {', '.join(SIDES)}, got {side!r}")


def split_lines(text: str) -> List[str]:
    return _NEWLINE_RE.split(text)


def _newline_for(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _block(lines: List[str], newline: str) -> str:
    if not lines:
        return ""
    return newline.join(lines) + newline


def generate_conflict_id(file_path: str, start_line: int, end_line: int, current: str, incoming: str) -> str:
    digest = hashlib.sha1(
        "\0".join([file_path, str(start_line), str(end_line), current, incoming]).encode("utf-8")
    ).hexdigest()
    return f"conflict-{digest[:12]}"


def detect_script_in_conflict(conflict: MergeConflict) -> Optional[ScriptConflict]:
    """Upgrade a conflict to a ScriptConflict when both sides share a script key."""
    current = _SCRIPT_VALUE_RE.search(conflict.current_content)
    incoming = _SCRIPT_VALUE_RE.search(conflict.incoming_content)
    if not current or not incoming:
        return None
    if current.group("key") != incoming.group("key"):
        return None

    base = {f.name: getattr(conflict, f.name) for f in fields(MergeConflict)}
    return ScriptConflict(
        **base,
        json_key=current.group("key"),
        current_script=decode_script(current.group("value")),
        incoming_script=decode_script(incoming.group("value")),
        current_encoded=current.group("value"),
        incoming_encoded=incoming.group("value"),
        has_trailing_comma=current.group("comma") == ",",
    )


def parse_conflicts(text: str, file_path: str = "") -> ConflictParseResult:
    conflicts: List[MergeConflict] = []
    script_conflicts: List[ScriptConflict] = []
    errors: List[str] = []

    if not text:
        return ConflictParseResult()

    lines = split_lines(text)
    newline = _newline_for(text)
    i = 0
    while i < len(lines):
        start = MARKER_START.match(lines[i])
        if not start:
            i += 1
            continue

        start_line = i
        sections: Dict[str, List[str]] = {"current": [], "base": [], "incoming": []}
        section = "current"
        divider_line = base_line = None
        end = None
        j = i + 1
        while j < len(lines):
            line = lines[j]
            if MARKER_START.match(line):
                break
            if section == "current" and MARKER_BASE.match(line):
                section, base_line = "base", j
            elif section in ("current", "base") and MARKER_SEPARATOR.match(line):
                section, divider_line = "incoming", j
            elif section == "incoming" and MARKER_END.match(line):
                end = MARKER_END.match(line)
                break
            else:
                sections[section].append(line)
            j += 1

        if end is None or divider_line is None:
            errors.append(f"Unterminated conflict starting at line {start_line}")
            i = start_line + 1
            continue

        current_content = _block(sections["current"], newline)
        incoming_content = _block(sections["incoming"], newline)
        conflict = MergeConflict(
            id=generate_conflict_id(file_path, start_line, j, current_content, incoming_content),
            start_line=start_line,
            end_line=j,
            divider_line=divider_line,
            base_line=base_line,
            current_content=current_content,
            base_content=_block(sections["base"], newline),
            incoming_content=incoming_content,
            current_branch=start.group("label") or "",
            incoming_branch=end.group("label") or "",
        )
        conflicts.append(conflict)

        script_conflict = detect_script_in_conflict(conflict)
        if script_conflict:
            script_conflicts.append(script_conflict)
        i = j + 1

    logger.debug(f"Found {len(conflicts)} conflict(s), {len(script_conflicts)} on scripts")
    return ConflictParseResult(conflicts=conflicts, script_conflicts=script_conflicts, errors=errors)


def get_conflict_by_id(result: ConflictParseResult, conflict_id: str) -> Optional[ScriptConflict]:
    return next((c for c in result.script_conflicts if c.id == conflict_id), None)


def conflict_at_line(result: ConflictParseResult, line: int) -> Optional[MergeConflict]:
    return next((c for c in result.conflicts if c.contains_line(line)), None)


def script_conflict_at_line(result: ConflictParseResult, line: int) -> Optional[ScriptConflict]:
    return next((c for c in result.script_conflicts if c.contains_line(line)), None)


def detect_script_indent(lines: List[str], conflict: ScriptConflict) -> str:
    needle = f'"{conflict.json_key}":'
    for line in split_lines(conflict.current_content):
        if needle in line:
            return _LEADING_WS_RE.match(line).group(1)
    if 0 <= conflict.start_line < len(lines):
        return _LEADING_WS_RE.match(lines[conflict.start_line]).group(1)
    return ""


def _require_conflict(text: str, conflict_id: str, file_path: str) -> ScriptConflict:
    conflict = get_conflict_by_id(parse_conflicts(text, file_path), conflict_id)
    if conflict is None:
        raise ConflictNotFoundError(
            "Conflict no longer exists",
            details="The conflict may have been resolved or the file may have changed",
            conflict_id=conflict_id,
        )
    return conflict


def _replacement_edit(text: str, conflict: ScriptConflict, encoded: str) -> TextEdit:
    lines = split_lines(text)
    indent = detect_script_indent(lines, conflict)
    comma = "," if conflict.has_trailing_comma else ""

    logger.debug(f"Resolving {conflict.id} over lines {conflict.start_line}-{conflict.end_line}")
    return TextEdit(
        start_line=conflict.start_line,
        start_character=0,
        end_line=conflict.end_line,
        end_character=len(lines[conflict.end_line]),
        new_text=f'{indent}"{conflict.json_key}": "{encoded}"{comma}',
    )


def build_resolution_edit(
    text: str,
    conflict_id: str,
    resolved_text: str,
    function_definition: Optional[str] = None,
    file_path: str = "",
) -> TextEdit:
    """Collapse a whole conflict region into one re-encoded script line.

    ``function_definition`` is the header the resolved text was presented
    with; ``None`` means the default header for the conflict's key and an
    empty string means the text is a bare script.
    """
    conflict = _require_conflict(text, conflict_id, file_path)
    if function_definition is None:
        function_definition = function_definition_for_key(conflict.json_key)
    script = unwrap_script(resolved_text, function_definition)
    return _replacement_edit(text, conflict, encode_script(script))


def build_encoded_edit(text: str, conflict_id: str, encoded: str, file_path: str = "") -> TextEdit:
    """Collapse a conflict region onto an already encoded string body, byte for byte."""
    conflict = _require_conflict(text, conflict_id, file_path)
    return _replacement_edit(text, conflict, encoded)


def build_side_edit(text: str, conflict_id: str, side: str, file_path: str = "") -> TextEdit:
    """Accept one side's script unchanged.

    The side's raw string body is kept as is, so JSON escapes the codec does
    not produce (``\\u00e9``, ``\\/``) survive.
    """
    _check_side(side)
    conflict = _require_conflict(text, conflict_id, file_path)
    return _replacement_edit(text, conflict, conflict.encoded_for(side))


def apply_text_edit(text: str, edit: TextEdit) -> str:
    offsets = [0] + [m.end() for m in _NEWLINE_RE.finditer(text)]
    if edit.end_line >= len(offsets) or edit.start_line > edit.end_line:
        raise ValueError(f"Edit range {edit.start_line}-{edit.end_line} is outside the document")
    start = offsets[edit.start_line] + edit.start_character
    end = offsets[edit.end_line] + edit.end_character
    return text[:start] + edit.new_text + text[end:]


def resolve_conflict(
    text: str,
    conflict_id: str,
    resolved_text: str,
    function_definition: Optional[str] = None,
    file_path: str = "",
) -> str:
    edit = build_resolution_edit(text, conflict_id, resolved_text, function_definition, file_path)
    return apply_text_edit(text, edit)


def resolve_with_side(text: str, conflict_id: str, side: str, file_path: str = "") -> str:
    return apply_text_edit(text, build_side_edit(text, conflict_id, side, file_path))
