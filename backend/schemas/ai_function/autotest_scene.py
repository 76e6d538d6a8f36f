from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional

from schemas.platform.autotest import AutotestSceneRequest


class _AIFunctionModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class InputAPIs(_AIFunctionModel):
    """APIs of one asset version selected for generation.

    The order of ``api_index_ids`` (or ``api_operation_ids``) is the order of
    the generated scene steps. When no index id is given every operation of
    the asset version is generated.
    """
    asset_id: str = Field(default="", alias="apiAssetId")
    version_id: int = Field(default=0, alias="apiVersionId")
    api_index_ids: List[int] = Field(default_factory=list, alias="apiIndexIds")
    api_operation_ids: List[str] = Field(default_factory=list, alias="apiOperationIds")


class OutputAutoTestScene(_AIFunctionModel):
    """Target space / scene set / scene. Zero means "create or look up"."""
    space_id: int = Field(default=0, ge=0, alias="autotestSpaceId")
    scene_set_id: int = Field(default=0, ge=0, alias="autotestSceneSetId")
    scene_id: int = Field(default=0, ge=0, alias="autotestSceneId")

    def is_resolved(self) -> bool:
        return self.space_id > 0 and self.scene_set_id > 0 and self.scene_id > 0


class AutoTestSceneParam(_AIFunctionModel):
    """One requirement of an apply batch."""
    operation_id: int = Field(default=0, alias="operationID")
    prompt: str = ""
    req: Optional[AutotestSceneRequest] = Field(default=None, alias="autoTestSceneCreateReq")
    apis: InputAPIs = Field(default_factory=InputAPIs)
    scene: OutputAutoTestScene = Field(default_factory=OutputAutoTestScene)


class FunctionParams(_AIFunctionModel):
    requirements: List[AutoTestSceneParam] = Field(default_factory=list)
    allow_partial_success: bool = Field(default=False, alias="allowPartialSuccess")


class AutoTestSceneFunctionInput(_AIFunctionModel):
    """Input to generate one scene step for a single API (path + method)."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    asset_id: str
    version_id: int = 0
    api_index_id: int

    # API summary
    api_operation_id: int = 0
    api_name: str = ""
    api_method: str = ""
    api_url: str = ""

    # user who creates the scene step
    user_id: str = ""

    space_name: str = ""
    space_id: int = 0
    scene_set_name: str = ""
    scene_set_id: int = 0
    scene_name: str = ""
    scene_id: int = 0

    prompt: str = ""


class AutoTestSceneMeta(_AIFunctionModel):
    """Generated step together with the hierarchy it belongs to.

    ``scene_step_id`` is only set when the step was committed.
    """
    req: AutotestSceneRequest = Field(alias="autotestSceneCreateReq")
    space_name: str = Field(default="", alias="autotestSpaceName")
    space_id: int = Field(default=0, alias="autotestSpaceID")
    scene_set_name: str = Field(default="", alias="autotestSceneSetName")
    scene_set_id: int = Field(default=0, alias="autotestSceneSetID")
    scene_name: str = Field(default="", alias="autotestSceneName")
    scene_id: int = Field(default=0, alias="autotestSceneID")
    scene_step_id: Optional[int] = Field(default=None, alias="autotestSceneStepID")
