import json
import threading
import time

import pytest

from services.ai_functions.autotest_scene.handler import AutoTestSceneHandler
from services.ai_functions.context import ApplyContext
from services.ai_functions.errors import GenerationCancelled, GenerationError, ResolutionError, VariableRegistrationError
from services.platform.bundle import BundleError
from conftest import FakeBundle, FakeFunctionCaller


def _params(*requirements, partial=False):
    return {"requirements": list(requirements), "allowPartialSuccess": partial}


def _req(index_ids, scene=(10, 20, 30), asset="petstore", **extra):
    requirement = {
        "apis": {"apiAssetId": asset, "apiVersionId": 3, "apiIndexIds": list(index_ids)},
        "scene": {"autotestSpaceId": scene[0], "autotestSceneSetId": scene[1], "autotestSceneId": scene[2]},
    }
    requirement.update(extra)
    return requirement


def _api_url(meta):
    return json.loads(meta.req.value)["apiSpec"]["url"]


def test_one_step_per_api_in_input_order(bundle, caller, background):
    handler = AutoTestSceneHandler(bundle, caller, max_workers=4)

    result = handler.apply(_params(_req([3, 1, 2]), _req([5], scene=(10, 20, 0))), background)

    assert [_api_url(m) for m in result.results] == ["/pets/3", "/pets/1", "/pets/2", "/pets/5"]
    assert result.errors == []
    step_ids = [m.scene_step_id for m in result.results]
    assert None not in step_ids
    assert len(set(step_ids)) == 4
    assert sorted(step_ids) == sorted(bundle.step_ids)
    assert len(bundle.requests("create_autotest_scene_step")) == 4


def test_second_requirement_gets_its_created_scene(bundle, caller, background):
    result = AutoTestSceneHandler(bundle, caller).apply(
        _params(_req([1]), _req([2], scene=(10, 20, 0))), background)

    scene_ids = [m.scene_id for m in result.results]
    assert scene_ids[0] == 30
    assert scene_ids[1] != 30
    assert scene_ids[1] > 0
    assert len(bundle.requests("create_autotest_scene")) == 1


def test_need_adjust_never_commits(bundle, caller, background):
    result = AutoTestSceneHandler(bundle, caller).apply(_params(_req([1, 2])), background, need_adjust=True)

    assert len(result.results) == 2
    assert all(m.scene_step_id is None for m in result.results)
    assert "create_autotest_scene_step" not in bundle.names()


def test_variables_registered_for_every_api(bundle, caller, background):
    AutoTestSceneHandler(bundle, caller).apply(_params(_req([1, 2])), background)

    inputs = bundle.requests("create_autotest_scene_input")
    outputs = bundle.requests("create_autotest_scene_output")
    # one path parameter and one header per API
    assert [r.name for r in inputs] == ["petId", "X-Trace", "petId", "X-Trace"]
    assert all(r.value == "" and r.scene_id == 30 and r.set_id == 20 for r in inputs)
    assert [(r.name, r.value) for r in outputs] == [("statusCode", "200"), ("statusCode", "404")] * 2
    assert all(r.creator_id == "u-1" and r.updater_id == "u-1" for r in inputs + outputs)


def test_variable_registration_failure_stops_batch(caller, background):
    bundle = FakeBundle(failures={"create_autotest_scene_output": BundleError("down")})

    with pytest.raises(VariableRegistrationError) as exc_info:
        AutoTestSceneHandler(bundle, caller).apply(_params(_req([4])), background)

    assert exc_info.value.api_index_id == 4
    assert caller.calls == []


def test_first_error_in_input_order_raised(bundle, background):
    caller = FakeFunctionCaller(fail_paths=["/pets/2", "/pets/3"])

    with pytest.raises(GenerationError) as exc_info:
        AutoTestSceneHandler(bundle, caller, max_workers=3).apply(_params(_req([1, 2, 3])), background)

    assert exc_info.value.api_index_id == 2
    assert exc_info.value.requirement_index == 0
    # siblings are not cancelled
    assert len(caller.calls) == 3
    assert len(bundle.requests("create_autotest_scene_step")) == 1


def test_partial_success_reports_errors(bundle, background):
    caller = FakeFunctionCaller(fail_paths=["/pets/2"])

    result = AutoTestSceneHandler(bundle, caller).apply(_params(_req([1, 2, 3]), partial=True), background)

    assert [_api_url(m) for m in result.results] == ["/pets/1", "/pets/3"]
    assert len(result.errors) == 1
    response = result.to_response()
    assert response["success"] is True
    assert response["errors"][0]["apiIndexID"] == 2
    assert response["errors"][0]["operation"] == "invoke model"


def test_resolution_failure_stops_before_generation(caller, background):
    bundle = FakeBundle(failures={"create_test_space": BundleError("quota")})

    with pytest.raises(ResolutionError):
        AutoTestSceneHandler(bundle, caller).apply(_params(_req([1], scene=(0, 0, 0))), background)

    assert caller.calls == []
    assert "get_api_operation" not in bundle.names()


def test_apis_listed_when_no_index_ids(caller, background):
    bundle = FakeBundle(listed={"petstore": [
        {"id": 7, "operationID": "getPet"},
        {"id": 8, "operationID": "addPet"},
    ]})

    result = AutoTestSceneHandler(bundle, caller).apply(_params(_req([])), background)

    assert [_api_url(m) for m in result.results] == ["/pets/7", "/pets/8"]
    assert ("list_api_operations", (1, "u-1", "petstore", 3)) in bundle.calls


def test_operation_ids_select_listed_apis(caller, background):
    bundle = FakeBundle(listed={"petstore": [
        {"id": 7, "operationID": "getPet"},
        {"id": 8, "operationID": "addPet"},
    ]})
    requirement = _req([])
    requirement["apis"]["apiOperationIds"] = ["addPet"]

    result = AutoTestSceneHandler(bundle, caller).apply(_params(requirement), background)

    assert [_api_url(m) for m in result.results] == ["/pets/8"]


def test_unknown_operation_id_is_resolution_error(caller, background):
    bundle = FakeBundle(listed={"petstore": [{"id": 7, "operationID": "getPet"}]})
    requirement = _req([])
    requirement["apis"]["apiOperationIds"] = ["deletePet"]

    with pytest.raises(ResolutionError):
        AutoTestSceneHandler(bundle, caller).apply(_params(requirement), background)


def test_prompt_override_reaches_model(bundle, caller, background):
    AutoTestSceneHandler(bundle, caller).apply(_params(_req([1], prompt="cover 404 only")), background)

    assert caller.calls[0]["messages"][-1]["content"] == "cover 404 only"


def test_replay_requirement_commits_once_without_model(bundle, caller, background):
    adjusted = {"name": "reviewed", "value": "{}", "apiSpecID": 1001}
    requirement = _req([1, 2], autoTestSceneCreateReq=adjusted)

    result = AutoTestSceneHandler(bundle, caller).apply(_params(requirement), background)

    assert len(result.results) == 1
    assert result.results[0].req.name == "reviewed"
    assert result.results[0].req.scene_id == 30
    assert caller.calls == []
    assert "create_autotest_scene_input" not in bundle.names()
    assert len(bundle.requests("create_autotest_scene_step")) == 1


def test_concurrency_bounded_by_max_workers(bundle, background):
    active = {"now": 0, "peak": 0}
    lock = threading.Lock()

    class SlowCaller(FakeFunctionCaller):
        def invoke(self, messages, function, model, temperature):
            with lock:
                active["now"] += 1
                active["peak"] = max(active["peak"], active["now"])
            time.sleep(0.05)
            with lock:
                active["now"] -= 1
            return super().invoke(messages, function, model, temperature)

    result = AutoTestSceneHandler(bundle, SlowCaller(), max_workers=2).apply(_params(_req(range(1, 7))), background)

    assert len(result.results) == 6
    assert active["peak"] <= 2


def test_timeout_cancels_batch(bundle, background):
    release = threading.Event()

    class BlockingCaller(FakeFunctionCaller):
        def invoke(self, messages, function, model, temperature):
            release.wait(2)
            return super().invoke(messages, function, model, temperature)

    ctx = ApplyContext.from_background(background)
    handler = AutoTestSceneHandler(bundle, BlockingCaller(), max_workers=2, timeout=0.1)

    try:
        with pytest.raises(GenerationCancelled):
            handler.apply(_params(_req([1, 2, 3])), background, ctx=ctx)
    finally:
        release.set()

    assert ctx.cancelled


def test_replay_targets_scene_named_by_request(bundle, caller, background):
    requirement = {
        "apis": {"apiAssetId": "petstore"},
        "autoTestSceneCreateReq": {"sceneID": 30, "spaceID": 10, "name": "reviewed", "value": "{}"},
    }

    result = AutoTestSceneHandler(bundle, caller).apply(_params(requirement), background)

    assert bundle.names() == ["get_autotest_scene", "create_autotest_scene_step"]
    meta = result.results[0]
    assert (meta.space_id, meta.scene_set_id, meta.scene_id) == (10, 20, 30)
    assert (meta.req.space_id, meta.req.scene_id) == (10, 30)
    assert meta.scene_name == "existing scene"
    assert meta.scene_step_id == bundle.step_ids[0]


def test_replay_space_must_own_the_scene(bundle, caller, background):
    requirement = {
        "apis": {"apiAssetId": "petstore"},
        "autoTestSceneCreateReq": {"sceneID": 30, "spaceID": 11, "name": "reviewed"},
    }

    with pytest.raises(ResolutionError) as exc_info:
        AutoTestSceneHandler(bundle, caller).apply(_params(requirement), background)

    assert exc_info.value.operation == "resolve adjusted step"
    assert "create_autotest_scene_step" not in bundle.names()


def test_replay_without_scene_resolves_under_request_space(bundle, caller, background):
    requirement = {
        "apis": {"apiAssetId": "petstore"},
        "autoTestSceneCreateReq": {"spaceID": 10, "name": "reviewed"},
    }

    result = AutoTestSceneHandler(bundle, caller).apply(_params(requirement), background)

    assert bundle.names() == ["create_scene_set", "create_autotest_scene", "create_autotest_scene_step"]
    meta = result.results[0]
    assert meta.space_id == 10
    assert meta.scene_id == bundle.requests("create_autotest_scene_step")[0].scene_id
    assert meta.scene_id > 0


def test_unexpected_unit_failure_is_a_located_generation_error(background):
    class BrokenStepBundle(FakeBundle):
        def create_autotest_scene_step(self, req):
            if req.name == "pet operation 2":
                raise TypeError("int() argument must be a string, not 'NoneType'")
            return super().create_autotest_scene_step(req)

    bundle = BrokenStepBundle()

    result = AutoTestSceneHandler(bundle, FakeFunctionCaller()).apply(_params(_req([1, 2]), partial=True), background)

    assert [_api_url(m) for m in result.results] == ["/pets/1"]
    err = result.errors[0]
    assert isinstance(err, GenerationError)
    assert err.operation == "run unit"
    assert (err.requirement_index, err.api_index_id) == (0, 2)
