from pydantic import BaseModel, Field
from typing import Optional


class ScriptValueRequest(BaseModel):
    script: str


class DocumentRequest(BaseModel):
    content: str


class OpenScriptRequest(BaseModel):
    content: str
    path: str


class SaveScriptRequest(BaseModel):
    content: str
    path: str
    script: str  # edited text, still starting with the function definition
    function_definition: Optional[str] = None


class ConflictDocumentRequest(BaseModel):
    content: str
    file_path: Optional[str] = ""
    include_wrapped: Optional[bool] = True


class ResolveConflictRequest(BaseModel):
    content: str
    conflict_id: str
    resolved_text: str
    # None: default header for the key, "": bare script
    function_definition: Optional[str] = None
    file_path: Optional[str] = ""


class AcceptSideRequest(BaseModel):
    content: str
    conflict_id: str
    side: str = Field(pattern=r"^(current|incoming)$")
    file_path: Optional[str] = ""


class OpenSessionRequest(BaseModel):
    content: str
    conflict_id: str
    side: str = Field(pattern=r"^(current|incoming)$")
    file_path: Optional[str] = ""


class UpdateSessionRequest(BaseModel):
    content: str


class AcceptSessionRequest(BaseModel):
    conflict_id: str
    document: str
    content: Optional[str] = None


class NotationRequest(BaseModel):
    text: str  # Python repr output, e.g. {u'a': True}
