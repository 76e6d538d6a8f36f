from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


APIBodyTypeApplicationJSON = "application/json"


class _PlatformModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- API operations as published by the API market ---

class OperationParameter(_PlatformModel):
    name: str
    in_: str = Field(default="query", alias="in")
    required: bool = False
    description: str = ""
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")


class OperationHeader(_PlatformModel):
    name: str
    required: bool = False
    description: str = ""
    schema_: Optional[Dict[str, Any]] = Field(default=None, alias="schema")


class OperationResponse(_PlatformModel):
    status_code: str = Field(alias="statusCode")
    description: str = ""


class APIOperation(_PlatformModel):
    id: int
    method: str
    path: str
    description: str = ""
    operation_id: str = Field(default="", alias="operationID")
    parameters: List[OperationParameter] = Field(default_factory=list)
    headers: List[OperationHeader] = Field(default_factory=list)
    responses: List[OperationResponse] = Field(default_factory=list)


class APIOperationSummary(_PlatformModel):
    id: int
    operation_id: str = Field(default="", alias="operationID")
    method: str = ""
    path: str = ""


# --- Autotest step value: the API spec executed by a scene step ---

class APIParam(_PlatformModel):
    key: str
    value: Any = ""
    desc: str = ""


class APIBody(_PlatformModel):
    type: str = ""
    content: Any = None


class APIOutParam(_PlatformModel):
    key: str
    source: str = ""
    expression: str = ""
    match_index: str = Field(default="", alias="matchIndex")


class APIAssert(_PlatformModel):
    arg: str
    operator: str
    value: str = ""


class APIInfoV2(_PlatformModel):
    id: str = ""
    name: str = ""
    url: str = ""
    method: str = ""
    headers: List[APIParam] = Field(default_factory=list)
    params: List[APIParam] = Field(default_factory=list)
    body: APIBody = Field(default_factory=APIBody)
    out_params: List[APIOutParam] = Field(default_factory=list)
    asserts: List[APIAssert] = Field(default_factory=list)


class APISpec(_PlatformModel):
    api_info: APIInfoV2 = Field(alias="apiSpec")
    loop: Optional[Dict[str, Any]] = None


# --- Hierarchy records ---

class AutoTestSpace(_PlatformModel):
    id: int
    name: str = ""
    project_id: int = Field(default=0, alias="projectID")


class AutoTestScene(_PlatformModel):
    id: int
    name: str = ""
    space_id: int = Field(alias="spaceID")
    set_id: int = Field(alias="setID")


class SceneSet(_PlatformModel):
    id: int
    name: str = ""
    space_id: int = Field(alias="spaceID")


class StepExpressionValues(_PlatformModel):
    """Variables that a scene step can reference, grouped by origin."""
    scene_inputs: Any = Field(default=None, alias="sceneInputs")
    pre_scene_steps_outputs: Any = Field(default=None, alias="preSceneStepsOutputs")
    pre_config_sheets_outputs: Any = Field(default=None, alias="preConfigSheetsOutputs")
    global_config_outputs: Any = Field(default=None, alias="globalConfigOutputs")
    mock_inputs: Any = Field(default=None, alias="mockInputs")


# --- Write requests ---

class AutoTestSpaceCreateRequest(_PlatformModel):
    name: str
    project_id: int = Field(alias="projectId")
    description: str = ""
    archive_status: str = Field(default="Init", alias="archiveStatus")


class SceneSetRequest(_PlatformModel):
    name: str = ""
    description: str = ""
    space_id: int = Field(default=0, alias="spaceID")
    project_id: int = Field(default=0, alias="projectId")
    user_id: str = Field(default="", alias="userID")


class AutotestSceneRequest(_PlatformModel):
    """Shared request body for scenes, scene inputs/outputs and scene steps."""
    id: int = 0
    space_id: int = Field(default=0, alias="spaceID")
    creator_id: str = Field(default="", alias="creatorID")
    updater_id: str = Field(default="", alias="updaterID")
    name: str = ""
    description: str = ""
    value: str = ""
    temp: str = ""
    scene_id: int = Field(default=0, alias="sceneID")
    set_id: int = Field(default=0, alias="setID")
    api_spec_id: int = Field(default=0, alias="apiSpecID")
    user_id: str = Field(default="", alias="userID")
