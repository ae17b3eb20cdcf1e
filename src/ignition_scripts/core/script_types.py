"""Ignition script kinds and the function headers used to present them.

Only the body of a script is stored in JSON. Editors get a synthetic
``def`` line matching what the gateway wraps the body in at runtime, built
from the parent object where the header depends on it (custom method names
and parameters).
"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

ScriptContext = Dict[str, Any]


@dataclass(frozen=True)
class ScriptType:
    key_pattern: str
    display_name: str
    default_file_name: str
    _definition: Callable[[ScriptContext], str]
    _file_name: Optional[Callable[[ScriptContext], Optional[str]]] = None

    @property
    def json_key(self) -> str:
        return self.key_pattern.rsplit(".", 1)[-1]

    def function_definition(self, context: Optional[ScriptContext] = None) -> str:
        return self._definition(context or {})

    def file_name(self, context: Optional[ScriptContext] = None) -> str:
        if self._file_name is None:
            return self.default_file_name
        return self._file_name(context or {}) or self.default_file_name


def _custom_method_definition(ctx: ScriptContext) -> str:
    name = ctx.get("name") or "customMethod"
    params = ctx.get("params") or []
    param_string = ", ".join(["self", *params]) if params else "self"
    return f"def {name}({param_string}):\n"


SCRIPT_TYPES: Tuple[ScriptType, ...] = (
    ScriptType(
        "config.script", "Script", "runAction",
        lambda ctx: "def runAction(self, event):\n",
    ),
    ScriptType(
        "transforms.code", "Transform", "transform",
        lambda ctx: "def transform(self, value, quality, timestamp):\n",
    ),
    ScriptType(
        "customMethods.script", "Method", "customMethod",
        _custom_method_definition,
        lambda ctx: ctx.get("name"),
    ),
    ScriptType(
        "messageHandlers.script", "Handler", "onMessageReceived",
        lambda ctx: "def onMessageReceived(self, payload):\n",
        lambda ctx: ctx.get("messageType"),
    ),
    ScriptType(
        "eventScripts.script", "Tag Event", "valueChanged",
        lambda ctx: "def valueChanged(tag, tagPath, previousValue, currentValue, initialChange, missedEvents):\n",
        lambda ctx: ctx.get("eventid"),
    ),
    ScriptType(
        "onChange.script", "OnChange", "onChange",
        lambda ctx: "def valueChanged(self, previousValue, currentValue, origin, missedEvents):\n",
        lambda ctx: ctx.get("property"),
    ),
)

_BY_PATTERN: Dict[str, ScriptType] = {st.key_pattern: st for st in SCRIPT_TYPES}
_INDEX_RE = re.compile(r"\[\d+\]")
_CONTEXT_KEYS = ("name", "messageType", "eventid", "property")


def script_type_for_path(json_path: str) -> Optional[ScriptType]:
    """Match the last two path segments, ignoring array indices."""
    parts = _INDEX_RE.sub("", json_path or "").split(".")
    if len(parts) < 2:
        return None
    return _BY_PATTERN.get(f"{parts[-2]}.{parts[-1]}")


def extract_context(parent: Any) -> ScriptContext:
    """Pick the header-relevant properties out of a script's parent object."""
    context: ScriptContext = {}
    if not isinstance(parent, dict):
        return context
    for key in _CONTEXT_KEYS:
        if isinstance(parent.get(key), str):
            context[key] = parent[key]
    params = parent.get("params")
    if isinstance(params, list):
        context["params"] = [str(p) for p in params]
    return context


def list_script_types() -> List[ScriptType]:
    return list(SCRIPT_TYPES)
