import json

import pytest

from ignition_scripts.core.conflicts import (
    TextEdit,
    apply_text_edit,
    build_encoded_edit,
    build_resolution_edit,
    conflict_at_line,
    generate_conflict_id,
    parse_conflicts,
    resolve_conflict,
    resolve_with_side,
    script_conflict_at_line,
)
from ignition_scripts.core.errors import ConflictNotFoundError, FunctionDefinitionModifiedError

HEADER = "def runAction(self, event):\n"


def _only_script_conflict(text):
    result = parse_conflicts(text, "view.json")
    assert len(result.script_conflicts) == 1
    return result.script_conflicts[0]


def test_extracts_script_conflict(conflicted_view):
    result = parse_conflicts(conflicted_view, "view.json")
    assert result.has_conflicts
    assert result.errors == []
    conflict = result.script_conflicts[0]

    assert (conflict.start_line, conflict.divider_line, conflict.end_line) == (3, 5, 7)
    assert conflict.base_line is None
    assert conflict.current_branch == "HEAD"
    assert conflict.incoming_branch == "feature"
    assert conflict.json_key == "script"
    assert conflict.current_script == "\tprint(1)"
    assert conflict.incoming_script == "\tprint(2)"
    assert conflict.current_encoded == "\\tprint(1)"
    assert conflict.has_trailing_comma
    assert conflict.id.startswith("conflict-") and len(conflict.id) == len("conflict-") + 12


def test_conflict_id_is_stable_and_position_sensitive(conflicted_view):
    first = _only_script_conflict(conflicted_view).id
    assert _only_script_conflict(conflicted_view).id == first
    assert _only_script_conflict("\n" + conflicted_view).id != first
    assert generate_conflict_id("a", 1, 2, "x", "y") != generate_conflict_id("b", 1, 2, "x", "y")


def test_resolution_edit_spans_whole_region(conflicted_view):
    conflict = _only_script_conflict(conflicted_view)
    edit = build_resolution_edit(conflicted_view, conflict.id, HEADER + "\tprint(3)", file_path="view.json")
    assert edit == TextEdit(
        start_line=3,
        start_character=0,
        end_line=7,
        end_character=len(">>>>>>> feature"),
        new_text='      "script": "\\tprint(3)",',
    )


def test_resolve_conflict_produces_valid_json(conflicted_view):
    conflict = _only_script_conflict(conflicted_view)
    resolved = resolve_conflict(conflicted_view, conflict.id, HEADER + "\tif a <= b:\n\t\tprint('x')", file_path="view.json")

    assert "<<<<<<<" not in resolved and ">>>>>>>" not in resolved
    lines = resolved.split("\n")
    assert lines[3] == '      "script": "\\tif a \\u003c\\u003d b:\\n\\t\\tprint(\\u0027x\\u0027)",'
    assert lines[4] == '      "scope": "G"'
    assert json.loads(resolved)["root"]["config"]["scope"] == "G"


def test_last_field_gets_no_comma():
    text = (
        '{\n'
        '  "config": {\n'
        '<<<<<<< ours\n'
        '    "script": "a"\n'
        '=======\n'
        '    "script": "b"\n'
        '>>>>>>> theirs\n'
        '  }\n'
        '}'
    )
    conflict = _only_script_conflict(text)
    assert not conflict.has_trailing_comma
    resolved = resolve_conflict(text, conflict.id, "c", function_definition="", file_path="view.json")
    assert resolved.split("\n")[2] == '    "script": "c"'
    assert json.loads(resolved) == {"config": {"script": "c"}}


def test_transform_conflict_uses_transform_header():
    text = (
        '"transforms": [{\n'
        '<<<<<<< HEAD\n'
        '  "code": "\\treturn value",\n'
        '=======\n'
        '  "code": "\\treturn value * 2",\n'
        '>>>>>>> main\n'
        '  "type": "script"\n'
        '}]\n'
    )
    conflict = _only_script_conflict(text)
    assert conflict.json_key == "code"
    resolved = resolve_conflict(
        text, conflict.id, "def transform(self, value, quality, timestamp):\n\treturn value + 1", file_path="view.json"
    )
    assert resolved.split("\n")[1] == '  "code": "\\treturn value + 1",'


def test_stale_conflict_id_is_rejected(conflicted_view):
    conflict = _only_script_conflict(conflicted_view)
    resolved = resolve_conflict(conflicted_view, conflict.id, HEADER + "\tprint(3)", file_path="view.json")
    with pytest.raises(ConflictNotFoundError) as exc:
        resolve_conflict(resolved, conflict.id, HEADER + "\tprint(4)", file_path="view.json")
    assert exc.value.message == "Conflict no longer exists"
    assert exc.value.code == "CONFLICT_NOT_FOUND"

    with pytest.raises(ConflictNotFoundError):
        build_resolution_edit(conflicted_view, "conflict-000000000000", HEADER)


def test_modified_header_is_rejected(conflicted_view):
    conflict = _only_script_conflict(conflicted_view)
    with pytest.raises(FunctionDefinitionModifiedError) as exc:
        resolve_conflict(conflicted_view, conflict.id, "def runAction(self, evt):\n\tprint(3)", file_path="view.json")
    assert exc.value.code == "FUNCTION_DEFINITION_MODIFIED"
    assert exc.value.context["expected"] == "def runAction(self, event):"


@pytest.mark.parametrize("side,expected", [("current", "\\tprint(1)"), ("incoming", "\\tprint(2)")])
def test_accept_side(conflicted_view, side, expected):
    conflict = _only_script_conflict(conflicted_view)
    resolved = resolve_with_side(conflicted_view, conflict.id, side, "view.json")
    assert resolved.split("\n")[3] == f'      "script": "{expected}",'
    assert parse_conflicts(resolved).has_conflicts is False


def test_accept_side_keeps_escapes_outside_the_codec():
    current = "\\tprint(\\u0027caf\\u00e9\\u0027)  # a\\/b"
    text = (
        '{\n'
        '<<<<<<< HEAD\n'
        f'  "script": "{current}"\n'
        '=======\n'
        '  "script": "\\tprint(2)"\n'
        '>>>>>>> feature\n'
        '}'
    )
    conflict = _only_script_conflict(text)
    resolved = resolve_with_side(text, conflict.id, "current")
    assert resolved.split("\n")[1] == f'  "script": "{current}"'
    assert json.loads(resolved)["script"] == "\tprint('café')  # a/b"


def test_encoded_edit_splices_body_verbatim():
    text = (
        '<<<<<<< HEAD\n'
        '    "code": "\\treturn value",\n'
        '=======\n'
        '    "code": "\\treturn value * 2",\n'
        '>>>>>>> feature\n'
    )
    conflict = _only_script_conflict(text)
    edit = build_encoded_edit(text, conflict.id, "\\treturn \\u0022\\u00e9\\u0022")
    assert edit.new_text == '    "code": "\\treturn \\u0022\\u00e9\\u0022",'
    assert (edit.start_line, edit.end_line) == (0, 4)


def test_accept_unknown_side(conflicted_view):
    conflict = _only_script_conflict(conflicted_view)
    with pytest.raises(ValueError):
        resolve_with_side(conflicted_view, conflict.id, "base", "view.json")


def test_escaped_quotes_inside_script():
    text = (
        '<<<<<<< HEAD\n'
        '"script": "\\tprint(\\"hi\\")",\n'
        '=======\n'
        '"script": "\\tprint(\\"bye\\")",\n'
        '>>>>>>> feature\n'
    )
    conflict = _only_script_conflict(text)
    assert conflict.current_script == '\tprint("hi")'
    assert conflict.incoming_script == '\tprint("bye")'


def test_non_script_conflicts_are_reported_but_not_upgraded():
    text = (
        '<<<<<<< HEAD\n'
        '  "name": "a",\n'
        '=======\n'
        '  "name": "b",\n'
        '>>>>>>> feature\n'
        '<<<<<<< HEAD\n'
        '  "script": "a",\n'
        '=======\n'
        '  "code": "b",\n'
        '>>>>>>> feature\n'
    )
    result = parse_conflicts(text)
    assert len(result.conflicts) == 2
    assert result.script_conflicts == []


def test_diff3_base_section():
    text = (
        '<<<<<<< HEAD\n'
        '    "script": "a",\n'
        '||||||| merged common ancestors\n'
        '    "script": "o",\n'
        '=======\n'
        '    "script": "b",\n'
        '>>>>>>> feature\n'
    )
    conflict = _only_script_conflict(text)
    assert conflict.base_line == 2
    assert conflict.base_content == '    "script": "o",\n'
    assert conflict.current_script == "a"
    assert conflict.incoming_script == "b"


def test_unterminated_conflict_is_reported():
    result = parse_conflicts('<<<<<<< HEAD\n"script": "a",\n=======\n"script": "b",\n')
    assert result.conflicts == []
    assert result.errors == ["Unterminated conflict starting at line 0"]


def test_crlf_document(conflicted_view):
    crlf = conflicted_view.replace("\n", "\r\n")
    conflict = _only_script_conflict(crlf)
    assert conflict.current_script == "\tprint(1)"
    resolved = resolve_conflict(crlf, conflict.id, HEADER + "\tprint(3)", file_path="view.json")

    lf_conflict = _only_script_conflict(conflicted_view)
    expected = resolve_conflict(conflicted_view, lf_conflict.id, HEADER + "\tprint(3)", file_path="view.json")
    assert resolved == expected.replace("\n", "\r\n")


def test_lookup_by_line(conflicted_view):
    result = parse_conflicts(conflicted_view)
    assert conflict_at_line(result, 4) is result.conflicts[0]
    assert script_conflict_at_line(result, 7) is result.script_conflicts[0]
    assert conflict_at_line(result, 0) is None


def test_apply_text_edit_out_of_range():
    with pytest.raises(ValueError):
        apply_text_edit("a\nb", TextEdit(0, 0, 5, 0, "x"))


def test_empty_document():
    result = parse_conflicts("")
    assert not result.has_conflicts
    assert result.errors == []
