"""Synthetic function headers for presenting conflicting scripts.

The header only gives a Python-aware editor the right indentation context.
It is never written back: :func:`unwrap_script` strips it, and refuses to
guess when the header was edited.
"""
from .errors import FunctionDefinitionModifiedError


def function_definition_for_key(json_key: str) -> str:
    if json_key == "script":
        return "def runAction(self, event):\n"
    if json_key == "code":
        return "def transform(self, value, quality, timestamp):\n"
    return f"def {json_key}(self):\n"


def wrap_script(json_key: str, script: str) -> str:
    return function_definition_for_key(json_key) + (script or "")


def unwrap_script(text: str, function_definition: str) -> str:
    if not function_definition:
        return text
    if not text.startswith(function_definition):
        raise FunctionDefinitionModifiedError(
            "Function definition has been modified",
            details="The function definition line must not be changed. "
                    "Please restore it to its original form.",
            expected=function_definition.rstrip("\n"),
        )
    return text[len(function_definition):]
