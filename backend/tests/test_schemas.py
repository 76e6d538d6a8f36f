from schemas.ai_function.autotest_scene import AutoTestSceneMeta, AutoTestSceneParam
from schemas.platform.autotest import APIInfoV2, AutotestSceneRequest


def test_step_result_round_trips_through_wire_names():
    meta = AutoTestSceneMeta(
        req=AutotestSceneRequest(name="get pet", scene_id=30, space_id=10, api_spec_id=7, user_id="u-1"),
        space_name="space",
        space_id=10,
        scene_set_name="set",
        scene_set_id=20,
        scene_name="scene",
        scene_id=30,
        scene_step_id=101,
    )

    dumped = meta.model_dump(by_alias=True)

    assert dumped["autotestSceneStepID"] == 101
    assert dumped["autotestSceneCreateReq"]["sceneID"] == 30
    assert dumped["autotestSceneCreateReq"]["apiSpecID"] == 7
    assert AutoTestSceneMeta.model_validate(dumped) == meta


def test_reviewed_step_can_be_sent_back_as_requirement():
    staged = AutoTestSceneMeta(req=AutotestSceneRequest(name="get pet", value="{}"), scene_id=30)

    requirement = AutoTestSceneParam.model_validate({
        "autoTestSceneCreateReq": staged.model_dump(by_alias=True)["autotestSceneCreateReq"],
        "apis": {"apiAssetId": "petstore"},
    })

    assert requirement.req.name == "get pet"
    assert requirement.scene.is_resolved() is False


def test_api_info_ignores_unknown_fields():
    info = APIInfoV2.model_validate({"params": [{"key": "id", "value": 1}], "extra": True})

    assert info.params[0].key == "id"
    assert info.body.type == ""
