from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime


class Background(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    org_id: int = Field(default=0, alias="orgID")
    project_id: int = Field(default=0, alias="projectID")
    user_id: str = Field(default="", alias="userID")


class ApplyRequest(BaseModel):
    """Generic "apply AI function" envelope."""
    model_config = ConfigDict(populate_by_name=True)

    function_name: str = Field(default="", alias="functionName")
    function_params: Dict[str, Any] = Field(default_factory=dict, alias="functionParams")
    background: Background = Field(default_factory=Background)
    need_adjust: bool = Field(default=False, alias="needAdjust")


class ApplyErrorItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    requirement_index: Optional[int] = Field(default=None, alias="requirementIndex")
    api_index_id: Optional[int] = Field(default=None, alias="apiIndexID")
    operation: str = ""
    message: str


class ApplyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: List[Any] = Field(default_factory=list)
    errors: Optional[List[ApplyErrorItem]] = None
    trace_id: Optional[str] = Field(default=None, alias="traceID")


class AIFunctionTraceSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    function_name: str
    org_id: Optional[int] = None
    project_id: Optional[int] = None
    user_id: Optional[str] = None
    requirement_count: int
    need_adjust: bool
    status: str
    result_count: int
    error_count: int
    error_msg: Optional[str] = None
    duration_seconds: Optional[float] = None
    created_at: Optional[datetime] = None
