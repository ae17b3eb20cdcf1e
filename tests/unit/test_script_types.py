import pytest

from ignition_scripts.core.errors import FunctionDefinitionModifiedError
from ignition_scripts.core.script_types import extract_context, list_script_types, script_type_for_path
from ignition_scripts.core.wrappers import function_definition_for_key, unwrap_script, wrap_script


@pytest.mark.parametrize("path,display_name", [
    ("root.events.dom.onClick.config.script", "Script"),
    ("props.text.binding.transforms[0].code", "Transform"),
    ("root.scripts.customMethods[1].script", "Method"),
    ("root.scripts.messageHandlers[0].script", "Handler"),
    ("tags[0].eventScripts[2].script", "Tag Event"),
    ("propConfig.custom.value.onChange.script", "OnChange"),
])
def test_script_type_for_path(path, display_name):
    assert script_type_for_path(path).display_name == display_name


@pytest.mark.parametrize("path", ["", "script", "a.b.script", "extensionFunctions[0].script"])
def test_unknown_script_type(path):
    assert script_type_for_path(path) is None


def test_headers():
    transform = script_type_for_path("a.transforms[0].code")
    assert transform.function_definition() == "def transform(self, value, quality, timestamp):\n"
    assert transform.file_name() == "transform"

    tag = script_type_for_path("tags[0].eventScripts[0].script")
    assert tag.function_definition().startswith("def valueChanged(tag, tagPath,")
    assert tag.file_name({"eventid": "valueChanged"}) == "valueChanged"


def test_custom_method_header():
    method = script_type_for_path("customMethods[0].script")
    assert method.function_definition({"name": "go", "params": ["a", "b"]}) == "def go(self, a, b):\n"
    assert method.function_definition({"name": "go"}) == "def go(self):\n"
    assert method.function_definition() == "def customMethod(self):\n"
    assert method.file_name({}) == "customMethod"


def test_extract_context():
    parent = {"name": "go", "params": ["a", 1], "messageType": None, "other": 2}
    assert extract_context(parent) == {"name": "go", "params": ["a", "1"]}
    assert extract_context(["not", "a", "dict"]) == {}


def test_script_type_keys():
    assert {t.json_key for t in list_script_types()} == {"script", "code"}


def test_function_definition_for_key():
    assert function_definition_for_key("script") == "def runAction(self, event):\n"
    assert function_definition_for_key("code") == "def transform(self, value, quality, timestamp):\n"
    assert function_definition_for_key("onStartup") == "def onStartup(self):\n"


def test_wrap_and_unwrap():
    wrapped = wrap_script("script", "\tprint(1)")
    assert wrapped == "def runAction(self, event):\n\tprint(1)"
    assert unwrap_script(wrapped, "def runAction(self, event):\n") == "\tprint(1)"
    assert wrap_script("script", None) == "def runAction(self, event):\n"
    assert unwrap_script("\tprint(1)", "") == "\tprint(1)"


def test_unwrap_rejects_edited_header():
    with pytest.raises(FunctionDefinitionModifiedError) as exc:
        unwrap_script("def runAction(self):\n\tprint(1)", "def runAction(self, event):\n")
    assert exc.value.message == "Function definition has been modified"
    assert "must not be changed" in exc.value.details
    assert exc.value.to_dict()["code"] == "FUNCTION_DEFINITION_MODIFIED"
