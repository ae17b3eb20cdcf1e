from typing import Any, Dict, Optional


class ScriptsError(Exception):
    """Base failure raised across the core boundary.

    ``code`` is a stable machine-readable identifier that the API and CLI
    surface unchanged; ``details`` carries a human hint.
    """

    code = "SCRIPTS_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[str] = None, **context: Any):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        if self.context:
            data["context"] = self.context
        return data


class FunctionDefinitionModifiedError(ScriptsError):
    code = "FUNCTION_DEFINITION_MODIFIED"


class ConflictNotFoundError(ScriptsError):
    code = "CONFLICT_NOT_FOUND"


class ConflictIdMismatchError(ScriptsError):
    code = "CONFLICT_ID_MISMATCH"


class SessionNotFoundError(ScriptsError):
    code = "SESSION_NOT_FOUND"


class ScriptNotFoundError(ScriptsError):
    code = "SCRIPT_NOT_FOUND"


class ScriptUpdateError(ScriptsError):
    code = "UPDATE_FAILED"
