from pydantic import BaseModel
from typing import List, Optional


class ScriptLocationModel(BaseModel):
    path: str
    json_key: str
    encoded_value: str
    decoded_value: str
    parent_path: str
    script_type: Optional[str] = None
    pattern: Optional[str] = None


class ExtractionData(BaseModel):
    decoded_content: str
    script_locations: List[ScriptLocationModel]
    has_scripts: bool
    errors: List[str]


class ScriptDocumentModel(BaseModel):
    path: str
    json_key: str
    script_type: Optional[str] = None
    function_definition: str
    content: str
    encoded_value: str
    file_name: str
    line: int


class MergeConflictModel(BaseModel):
    id: str
    start_line: int
    end_line: int
    divider_line: int
    base_line: Optional[int] = None
    current_branch: str
    incoming_branch: str
    current_content: str
    incoming_content: str


class ScriptConflictModel(MergeConflictModel):
    json_key: str
    current_script: str
    incoming_script: str
    has_trailing_comma: bool
    function_definition: Optional[str] = None
    current_wrapped: Optional[str] = None
    incoming_wrapped: Optional[str] = None


class ConflictParseData(BaseModel):
    has_conflicts: bool
    conflicts: List[MergeConflictModel]
    script_conflicts: List[ScriptConflictModel]
    errors: List[str]


class TextEditModel(BaseModel):
    start_line: int
    start_character: int
    end_line: int
    end_character: int
    new_text: str


class ResolutionData(BaseModel):
    conflict_id: str
    edit: TextEditModel
    content: str


class ConflictSessionModel(BaseModel):
    id: str
    conflict_id: str
    file_path: str
    side: str
    json_key: str
    function_definition: str
    content: str
    has_trailing_comma: bool
    created_at: str
    updated_at: str
