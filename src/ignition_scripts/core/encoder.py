"""Encode and decode Ignition's HTML-safe script format.

Python scripts embedded in Perspective views, transforms and tag event
handlers are stored as escaped string values. Encoding escapes JSON string
specials and turns the HTML-sensitive characters into Unicode escapes::

    encode_script("\\tlogger.info('Hello')")
    # '\\\\tlogger.info(\\\\u0027Hello\\\\u0027)'

Both tables are ordered. Encoding must escape the backslash first, otherwise
the backslashes introduced by later rules would be escaped again. Decoding
tries the Unicode escapes first and un-escapes ``\\\\`` last.
"""
import re
from typing import Any, Dict, Tuple

EncodingRule = Tuple[str, str]

# (decoded, encoded), backslash must be first
ENCODING_RULES: Tuple[EncodingRule, ...] = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("\t", "\\t"),
    ("\n", "\\n"),
    ("\r", "\\r"),
    ("\f", "\\f"),
    ("\b", "\\b"),
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("=", "\\u003d"),
    ("'", "\\u0027"),
)

# (encoded, decoded), Unicode escapes first and backslash last
DECODING_RULES: Tuple[EncodingRule, ...] = (
    ("\\u003c", "<"),
    ("\\u003e", ">"),
    ("\\u0026", "&"),
    ("\\u003d", "="),
    ("\\u0027", "'"),
    ("\\t", "\t"),
    ("\\n", "\n"),
    ("\\r", "\r"),
    ("\\f", "\f"),
    ("\\b", "\b"),
    ('\\"', '"'),
    ("\\\\", "\\"),
)

# Alternatives are tried in table order at each position, so an escaped
# backslash is consumed whole and never feeds a later sequence.
_DECODE_RE = re.compile("|".join(re.escape(encoded) for encoded, _ in DECODING_RULES))
_DECODE_LOOKUP: Dict[str, str] = dict(DECODING_RULES)

_ENCODED_PATTERN = re.compile(r"\\u003[cde]|\\u0026|\\u0027|\\n|\\t")


def encode_script(decoded: Any) -> Any:
    """Encode readable Python into the escaped form stored in JSON.

    Empty strings and non-string values are returned unchanged.
    """
    if not decoded or not isinstance(decoded, str):
        return decoded

    encoded = decoded
    for char, escape in ENCODING_RULES:
        encoded = encoded.replace(char, escape)
    return encoded


def decode_script(encoded: Any) -> Any:
    """Decode an escaped script value back to readable Python.

    Unknown escapes (``\\x41``, ``\\u0041``) are left as they are.
    """
    if not encoded or not isinstance(encoded, str):
        return encoded

    return _DECODE_RE.sub(lambda m: _DECODE_LOOKUP[m.group(0)], encoded)


def is_encoded_script(value: Any) -> bool:
    """Best-effort check for escape sequences typical of encoded scripts.

    Source that legitimately contains a literal backslash-n (a regex, say)
    also matches; callers must not treat the answer as proof.
    """
    if not value or not isinstance(value, str):
        return False
    return _ENCODED_PATTERN.search(value) is not None


def verify_round_trip(script: Any) -> bool:
    if not script or not isinstance(script, str):
        return True
    return decode_script(encode_script(script)) == script


def get_encoding_rules() -> Tuple[EncodingRule, ...]:
    return ENCODING_RULES


def get_decoding_rules() -> Tuple[EncodingRule, ...]:
    return DECODING_RULES
