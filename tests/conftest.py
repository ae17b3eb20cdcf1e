import json

import pytest

# A Perspective view fragment whose action script conflicts between branches.
CONFLICTED_VIEW = (
    '{\n'
    '  "root": {\n'
    '    "config": {\n'
    '<<<<<<< HEAD\n'
    '      "script": "\\tprint(1)",\n'
    '=======\n'
    '      "script": "\\tprint(2)",\n'
    '>>>>>>> feature\n'
    '      "scope": "G"\n'
    '    }\n'
    '  }\n'
    '}\n'
)

VIEW = {
    "root": {
        "events": {
            "dom": {
                "onClick": {
                    "config": {"script": "\\tsystem.perspective.print(\\u0027hi\\u0027)"},
                    "scope": "G",
                    "type": "script",
                }
            }
        },
        "props": {
            "text": {"binding": {"transforms": [{"code": "\\treturn value", "type": "script"}]}}
        },
        "customMethods": [{"name": "refresh", "params": ["force"], "script": "\\tpass"}],
        "messageHandlers": [{"messageType": "reload", "script": "\\tself.refresh()"}],
        "propConfig": {"custom.value": {"onChange": {"script": "\\tpass"}}},
        "script": 42,
        "notes": {"code": "not a script"},
    }
}


@pytest.fixture
def conflicted_view() -> str:
    return CONFLICTED_VIEW


@pytest.fixture
def view() -> dict:
    return json.loads(json.dumps(VIEW))


@pytest.fixture
def view_text() -> str:
    return json.dumps(VIEW, indent=2)
