"""Turn Python debug output of dicts and lists into JSON.

Gateway logs and ``print`` calls show values as Python reprs::

    {u'name': u'Pump', 'enabled': True, 'path': [default]Pumps/P1, 'fault': None,}

The converter tokenizes that text, quotes bare identifiers, tag paths and
Java-style dates, maps ``True``/``False``/``None`` to their JSON spelling,
drops trailing commas and returns the result pretty-printed.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional, Tuple

from ..utils.logging import get_logger

logger = get_logger(__name__)

_PYTHON_KEYWORDS = {"True": "true", "False": "false", "None": "null"}
_JSON_KEYWORDS = frozenset({"true", "false", "null"})
_DATE_WORDS = frozenset({
    "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun",
    "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
})
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t"}

_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d*)?(?:[eE][+-]?\d*)?")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_DATE_START_RE = re.compile(r"([A-Za-z]+) ")
_PATH_CHAR_RE = re.compile(r"[A-Za-z0-9_/]")
_HEX4_RE = re.compile(r"[0-9a-fA-F]{4}")


@dataclass(frozen=True)
class ConversionResult:
    success: bool
    json: str
    error: Optional[str] = None


class _Token(NamedTuple):
    kind: str
    text: str


def _format(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _read_string(text: str, start: int) -> Tuple[str, int]:
    """Read a quoted string at ``start``; an unterminated one runs to the end."""
    quote = text[start]
    chars: List[str] = []
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == quote:
            return "".join(chars), i + 1
        if ch == "\\":
            i += 1
            if i >= len(text):
                break
            escaped = text[i]
            if escaped == "u" and _HEX4_RE.fullmatch(text[i + 1:i + 5]):
                chars.append(chr(int(text[i + 1:i + 5], 16)))
                i += 5
                continue
            chars.append(_ESCAPES.get(escaped, "\\u" if escaped == "u" else escaped))
        else:
            chars.append(ch)
        i += 1
    return "".join(chars), len(text)


def _read_unquoted(text: str, start: int) -> Tuple[str, int]:
    """Read a bare value (tag path, date) up to the next delimiter outside brackets."""
    i = start
    brackets = parens = 0
    while i < len(text):
        ch = text[i]
        if ch == "[":
            brackets += 1
        elif ch == "]":
            if not brackets:
                break
            brackets -= 1
        elif ch == "(":
            parens += 1
        elif ch == ")":
            if parens:
                parens -= 1
        elif ch in ",}" and not brackets and not parens:
            break
        i += 1
    return text[start:i].strip(), i


def _looks_like_tag_path(text: str, start: int) -> bool:
    # [provider]folder/tag: the closing bracket runs straight into a path
    depth = 0
    for j in range(start, len(text)):
        if text[j] == "[":
            depth += 1
        elif text[j] == "]":
            depth -= 1
            if depth == 0:
                return _PATH_CHAR_RE.match(text, j + 1) is not None
    return False


def _looks_like_date(text: str, start: int) -> bool:
    match = _DATE_START_RE.match(text, start)
    return match is not None and match.group(1) in _DATE_WORDS


def _in_value_position(last: Optional[_Token]) -> bool:
    return last is None or last.kind in ("colon", "comma") or last == _Token("structural", "[")


def _next_token(text: str, i: int, last: Optional[_Token]) -> Tuple[Optional[_Token], int]:
    ch = text[i]
    if ch.isspace():
        match = _WHITESPACE_RE.match(text, i)
        return _Token("whitespace", match.group()), match.end()

    value_position = _in_value_position(last)
    if ch == "[":
        if value_position and _looks_like_tag_path(text, i):
            value, end = _read_unquoted(text, i)
            return _Token("identifier", value), end
        return _Token("structural", ch), i + 1
    if ch in "{}]":
        return _Token("structural", ch), i + 1
    if ch == ":":
        return _Token("colon", ch), i + 1
    if ch == ",":
        return _Token("comma", ch), i + 1

    if ch == "u" and text[i + 1:i + 2] in ("'", '"'):
        value, end = _read_string(text, i + 1)
        return _Token("string", value), end
    if ch in ("'", '"'):
        value, end = _read_string(text, i)
        return _Token("string", value), end

    number = _NUMBER_RE.match(text, i)
    if number:
        return _Token("number", number.group()), number.end()

    identifier = _IDENTIFIER_RE.match(text, i)
    if identifier:
        if value_position and _looks_like_date(text, i):
            value, end = _read_unquoted(text, i)
            return _Token("identifier", value), end
        word = identifier.group()
        if word in _PYTHON_KEYWORDS:
            return _Token("keyword", _PYTHON_KEYWORDS[word]), identifier.end()
        if word in _JSON_KEYWORDS:
            return _Token("keyword", word), identifier.end()
        return _Token("identifier", word), identifier.end()

    # anything else (``<``, ``=``, stray ``)``) is dropped
    return None, i + 1


def _tokenize(text: str) -> List[_Token]:
    tokens: List[_Token] = []
    last: Optional[_Token] = None
    i = 0
    while i < len(text):
        token, i = _next_token(text, i, last)
        if token is None:
            continue
        tokens.append(token)
        if token.kind != "whitespace":
            last = token
    return tokens


def _drop_trailing_commas(tokens: List[_Token]) -> List[_Token]:
    kept: List[_Token] = []
    for index, token in enumerate(tokens):
        if token.kind == "comma":
            following = next((t for t in tokens[index + 1:] if t.kind != "whitespace"), None)
            if following is not None and following.kind == "structural" and following.text in "}]":
                continue
        kept.append(token)
    return kept


def _assemble(tokens: List[_Token]) -> str:
    parts = []
    for token in tokens:
        if token.kind in ("string", "identifier"):
            parts.append(json.dumps(token.text, ensure_ascii=False))
        else:
            parts.append(token.text)
    return "".join(parts)


def convert_python_notation(text: str) -> ConversionResult:
    """Convert Python repr output to indented JSON. Never raises."""
    trimmed = text.strip() if isinstance(text, str) else ""
    if not trimmed:
        return ConversionResult(success=False, json="", error="Empty input")

    try:
        return ConversionResult(success=True, json=_format(json.loads(trimmed)))
    except ValueError:
        logger.debug("Input is not JSON, converting Python notation")
    except RecursionError as e:
        return ConversionResult(success=False, json="", error=f"Conversion failed: {e}")

    try:
        parsed = json.loads(_assemble(_drop_trailing_commas(_tokenize(trimmed))))
        return ConversionResult(success=True, json=_format(parsed))
    except (ValueError, RecursionError) as e:
        logger.debug(f"Python notation conversion failed: {e}")
        return ConversionResult(success=False, json="", error=f"Conversion failed: {e}")
