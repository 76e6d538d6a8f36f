"""
Client for the test platform that owns spaces, scene sets, scenes, scene
steps and the API market.

``AutoTestBundle`` is the capability interface the AI functions depend on;
``HTTPBundle`` talks to the platform over HTTP.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError as PydanticValidationError

from core.config import PlatformConfigs
from schemas.platform.autotest import (
    APIOperation,
    APIOperationSummary,
    AutoTestScene,
    AutoTestSpace,
    AutoTestSpaceCreateRequest,
    AutotestSceneRequest,
    SceneSet,
    SceneSetRequest,
    StepExpressionValues,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BundleError(Exception):
    """Raised when the platform cannot be reached or answers success=false."""

    def __init__(self, message: str, code: str = "", status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class AutoTestBundle(ABC):
    """Platform capabilities used while generating autotest scenes."""

    @abstractmethod
    def create_test_space(self, req: AutoTestSpaceCreateRequest, user_id: str) -> AutoTestSpace:
        ...

    @abstractmethod
    def create_scene_set(self, req: SceneSetRequest) -> int:
        ...

    @abstractmethod
    def create_autotest_scene(self, req: AutotestSceneRequest) -> int:
        ...

    @abstractmethod
    def get_autotest_scene(self, scene_id: int, user_id: str) -> AutoTestScene:
        ...

    @abstractmethod
    def get_scene_set(self, set_id: int, user_id: str) -> SceneSet:
        ...

    @abstractmethod
    def get_api_operation(self, org_id: int, user_id: str, api_index_id: int) -> APIOperation:
        ...

    @abstractmethod
    def list_api_operations(self, org_id: int, user_id: str, asset_id: str, version_id: int) -> List[APIOperationSummary]:
        ...

    @abstractmethod
    def create_autotest_scene_input(self, req: AutotestSceneRequest) -> int:
        ...

    @abstractmethod
    def create_autotest_scene_output(self, req: AutotestSceneRequest) -> int:
        ...

    @abstractmethod
    def create_autotest_scene_step(self, req: AutotestSceneRequest) -> int:
        ...

    @abstractmethod
    def get_step_expression_values(self, scene_step_id: int, scene_id: int, user_id: str) -> StepExpressionValues:
        ...


class HTTPBundle(AutoTestBundle):
    """
    HTTP implementation of ``AutoTestBundle``.

    Every response is expected in the platform envelope
    ``{"success": bool, "data": ..., "err": {"code": str, "msg": str}}``.
    """

    def __init__(
        self,
        base_url: str = PlatformConfigs.BASE_URL,
        timeout: float = PlatformConfigs.TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, user_id: str = "", org_id: Optional[int] = None) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Internal-Client": PlatformConfigs.INTERNAL_CLIENT,
        }
        if user_id:
            headers["User-ID"] = user_id
        if org_id:
            headers["Org-ID"] = str(org_id)
        return headers

    def _do(
        self,
        method: str,
        path: str,
        user_id: str = "",
        org_id: Optional[int] = None,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        url = self.base_url + path
        logger.debug("bundle: %s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                headers=self._headers(user_id, org_id),
                params=params,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise BundleError(f"{method} {path} failed: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise BundleError(
                f"{method} {path} returned non-JSON body (status={resp.status_code})",
                status_code=resp.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise BundleError(
                f"{method} {path} returned {type(payload).__name__} instead of an envelope (status={resp.status_code})",
                status_code=resp.status_code,
            )

        if not resp.ok or not payload.get("success", False):
            err = payload.get("err") or {}
            raise BundleError(
                f"{method} {path} failed: status={resp.status_code} code={err.get('code', '')} msg={err.get('msg', '')}",
                code=err.get("code", ""),
                status_code=resp.status_code,
            )
        return payload.get("data")

    def _do_id(self, method: str, path: str, **kwargs) -> int:
        data = self._do(method, path, **kwargs)
        if isinstance(data, bool):
            raise BundleError(f"{method} {path} returned {data!r} instead of an id")
        try:
            return int(data)
        except (TypeError, ValueError) as e:
            raise BundleError(f"{method} {path} returned {data!r} instead of an id") from e

    def _do_model(self, model: Type[M], method: str, path: str, **kwargs) -> M:
        data = self._do(method, path, **kwargs)
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise BundleError(f"{method} {path} returned an invalid {model.__name__}: {e}") from e

    @staticmethod
    def _dump(model) -> Dict[str, Any]:
        return model.model_dump(by_alias=True)

    def create_test_space(self, req: AutoTestSpaceCreateRequest, user_id: str) -> AutoTestSpace:
        return self._do_model(AutoTestSpace, "POST", "/api/autotests/spaces", user_id=user_id, body=self._dump(req))

    def create_scene_set(self, req: SceneSetRequest) -> int:
        return self._do_id("POST", "/api/autotests/scenesets", user_id=req.user_id, body=self._dump(req))

    def create_autotest_scene(self, req: AutotestSceneRequest) -> int:
        return self._do_id("POST", "/api/autotests/scenes", user_id=req.user_id, body=self._dump(req))

    def get_autotest_scene(self, scene_id: int, user_id: str) -> AutoTestScene:
        return self._do_model(AutoTestScene, "GET", f"/api/autotests/scenes/{scene_id}", user_id=user_id)

    def get_scene_set(self, set_id: int, user_id: str) -> SceneSet:
        return self._do_model(SceneSet, "GET", f"/api/autotests/scenesets/{set_id}", user_id=user_id)

    def get_api_operation(self, org_id: int, user_id: str, api_index_id: int) -> APIOperation:
        return self._do_model(APIOperation, "GET", f"/api/apim/operations/{api_index_id}", user_id=user_id, org_id=org_id)

    def list_api_operations(self, org_id: int, user_id: str, asset_id: str, version_id: int) -> List[APIOperationSummary]:
        data = self._do(
            "GET",
            "/api/apim/operations",
            user_id=user_id,
            org_id=org_id,
            params={"assetID": asset_id, "versionID": version_id},
        )
        if data is not None and not isinstance(data, list):
            raise BundleError(f"GET /api/apim/operations returned {type(data).__name__} instead of a list")
        try:
            return [APIOperationSummary.model_validate(item) for item in (data or [])]
        except PydanticValidationError as e:
            raise BundleError(f"GET /api/apim/operations returned an invalid APIOperationSummary: {e}") from e

    def create_autotest_scene_input(self, req: AutotestSceneRequest) -> int:
        return self._do_id("POST", f"/api/autotests/scenes/{req.scene_id}/actions/add-input", user_id=req.user_id, body=self._dump(req))

    def create_autotest_scene_output(self, req: AutotestSceneRequest) -> int:
        return self._do_id("POST", f"/api/autotests/scenes/{req.scene_id}/actions/add-output", user_id=req.user_id, body=self._dump(req))

    def create_autotest_scene_step(self, req: AutotestSceneRequest) -> int:
        return self._do_id("POST", f"/api/autotests/scenes/{req.scene_id}/actions/add-step", user_id=req.user_id, body=self._dump(req))

    def get_step_expression_values(self, scene_step_id: int, scene_id: int, user_id: str) -> StepExpressionValues:
        data = self._do(
            "GET",
            f"/api/autotests/scenes/{scene_id}/actions/query-expression-values",
            user_id=user_id,
            params={"stepID": scene_step_id},
        )
        try:
            return StepExpressionValues.model_validate(data or {})
        except PydanticValidationError as e:
            raise BundleError(f"query expression values of scene {scene_id} returned an invalid payload: {e}") from e
