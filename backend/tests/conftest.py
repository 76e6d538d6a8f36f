import itertools
import json
import os
import sys
import tempfile
import threading

import pytest

# Add the parent directory to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../')))

# Keep the app off the real database
_DB_DIR = tempfile.mkdtemp(prefix="scenegen-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'scenegen.db')}"

from schemas.ai_function.apply import Background
from schemas.platform.autotest import (
    APIOperation,
    APIOperationSummary,
    AutoTestScene,
    AutoTestSpace,
    SceneSet,
    StepExpressionValues,
)
from services.ai_functions.context import ApplyContext
from services.llm.function_calling import FunctionCaller
from services.platform.bundle import AutoTestBundle, BundleError


def make_operation(api_index_id: int, path: str = None, method: str = "GET") -> APIOperation:
    return APIOperation.model_validate({
        "id": 1000 + api_index_id,
        "method": method,
        "path": path or f"/pets/{api_index_id}",
        "description": f"pet operation {api_index_id}",
        "operationID": f"op{api_index_id}",
        "parameters": [{"name": "petId", "in": "path", "required": True}],
        "headers": [{"name": "X-Trace"}],
        "responses": [{"statusCode": "200"}, {"statusCode": "404"}],
    })


class FakeBundle(AutoTestBundle):
    """Records every call; ``failures`` maps a method name to the BundleError it raises."""

    def __init__(self, operations=None, scenes=None, scene_sets=None, failures=None, listed=None):
        self.calls = []
        self.operations = operations or {}
        self.scenes = scenes or {}
        self.scene_sets = scene_sets or {}
        self.failures = failures or {}
        self.listed = listed or {}
        self.step_ids = []
        self._ids = itertools.count(100)
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.calls.append((name, args))
        if name in self.failures:
            raise self.failures[name]

    def _next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    def names(self):
        return [name for name, _ in self.calls]

    def requests(self, name):
        return [args[0] for n, args in self.calls if n == name]

    def create_test_space(self, req, user_id):
        self._record("create_test_space", req, user_id)
        return AutoTestSpace(id=self._next_id(), name=req.name, project_id=req.project_id)

    def create_scene_set(self, req):
        self._record("create_scene_set", req)
        return self._next_id()

    def create_autotest_scene(self, req):
        self._record("create_autotest_scene", req)
        return self._next_id()

    def get_autotest_scene(self, scene_id, user_id):
        self._record("get_autotest_scene", scene_id, user_id)
        if scene_id not in self.scenes:
            raise BundleError(f"scene {scene_id} not found", code="NotFound", status_code=404)
        return self.scenes[scene_id]

    def get_scene_set(self, set_id, user_id):
        self._record("get_scene_set", set_id, user_id)
        if set_id not in self.scene_sets:
            raise BundleError(f"scene set {set_id} not found", code="NotFound", status_code=404)
        return self.scene_sets[set_id]

    def get_api_operation(self, org_id, user_id, api_index_id):
        self._record("get_api_operation", org_id, user_id, api_index_id)
        return self.operations.get(api_index_id) or make_operation(api_index_id)

    def list_api_operations(self, org_id, user_id, asset_id, version_id):
        self._record("list_api_operations", org_id, user_id, asset_id, version_id)
        return [APIOperationSummary.model_validate(item) for item in self.listed.get(asset_id, [])]

    def create_autotest_scene_input(self, req):
        self._record("create_autotest_scene_input", req)
        return self._next_id()

    def create_autotest_scene_output(self, req):
        self._record("create_autotest_scene_output", req)
        return self._next_id()

    def create_autotest_scene_step(self, req):
        self._record("create_autotest_scene_step", req)
        step_id = self._next_id()
        with self._lock:
            self.step_ids.append(step_id)
        return step_id

    def get_step_expression_values(self, scene_step_id, scene_id, user_id):
        self._record("get_step_expression_values", scene_step_id, scene_id, user_id)
        return StepExpressionValues.model_validate({
            "sceneInputs": [{"name": "petId", "value": "1"}],
            "preSceneStepsOutputs": {},
            "preConfigSheetsOutputs": None,
            "globalConfigOutputs": {"host": "petstore"},
            "mockInputs": [],
        })


STEP_ARGUMENTS = {
    "name": "ignored",
    "url": "ignored",
    "method": "ignored",
    "headers": [{"key": "X-Trace", "value": ""}],
    "params": [{"key": "petId", "value": "${{ params.petId }}"}],
    "body": {"type": "application/json", "content": "{\"name\": \"kitty\"}"},
    "out_params": [{"key": "status", "source": "status"}],
    "asserts": [{"arg": "status", "operator": "=", "value": "200"}],
}


class FakeFunctionCaller(FunctionCaller):
    """Answers with ``arguments``; fails for any API whose path is in ``fail_paths``."""

    def __init__(self, arguments=None, fail_paths=()):
        self.arguments = arguments if arguments is not None else json.dumps(STEP_ARGUMENTS)
        self.fail_paths = set(fail_paths)
        self.calls = []
        self._lock = threading.Lock()

    def invoke(self, messages, function, model, temperature):
        with self._lock:
            self.calls.append({"messages": messages, "function": function, "model": model, "temperature": temperature})
        swagger = messages[1]["content"]
        for path in self.fail_paths:
            if f'"path":"{path}"' in swagger:
                raise RuntimeError(f"model unavailable for {path}")
        return self.arguments


@pytest.fixture
def background():
    return Background(org_id=1, project_id=2, user_id="u-1")


@pytest.fixture
def ctx(background):
    return ApplyContext.from_background(background)


@pytest.fixture
def bundle():
    return FakeBundle(
        scenes={30: AutoTestScene(id=30, name="existing scene", space_id=10, set_id=20)},
        scene_sets={20: SceneSet(id=20, name="existing set", space_id=10)},
    )


@pytest.fixture
def caller():
    return FakeFunctionCaller()
