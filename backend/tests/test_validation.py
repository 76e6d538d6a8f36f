import pytest

from services.ai_functions.autotest_scene.handler import AutoTestSceneHandler, parse_function_params, validate_params
from services.ai_functions.errors import ValidationError


def test_empty_requirements_rejected(bundle, caller, background):
    handler = AutoTestSceneHandler(bundle, caller)

    with pytest.raises(ValidationError) as exc_info:
        handler.apply({"requirements": []}, background)

    assert "not set" in str(exc_info.value)
    assert bundle.calls == []
    assert caller.calls == []


def test_missing_requirements_key_rejected(bundle, caller, background):
    with pytest.raises(ValidationError):
        AutoTestSceneHandler(bundle, caller).apply({}, background)
    assert bundle.calls == []


def test_missing_asset_id_names_the_index(bundle, caller, background):
    params = {
        "requirements": [
            {"apis": {"apiAssetId": "petstore", "apiIndexIds": [1]}},
            {"apis": {"apiIndexIds": [2]}},
        ]
    }

    with pytest.raises(ValidationError) as exc_info:
        AutoTestSceneHandler(bundle, caller).apply(params, background)

    err = exc_info.value
    assert err.requirement_index == 1
    assert "requirements[1].apis.apiAssetId" in err.message
    # no side effect, not even for the valid first requirement
    assert bundle.calls == []
    assert caller.calls == []


def test_malformed_params_rejected():
    with pytest.raises(ValidationError) as exc_info:
        parse_function_params({"requirements": "not a list"})
    assert exc_info.value.operation == "parse functionParams"


def test_negative_scene_id_rejected():
    with pytest.raises(ValidationError):
        parse_function_params({"requirements": [{"apis": {"apiAssetId": "a"}, "scene": {"autotestSceneId": -1}}]})


def test_valid_params_pass():
    params = parse_function_params({
        "requirements": [{"apis": {"apiAssetId": "a", "apiIndexIds": [1, 2]}, "prompt": "p"}],
        "allowPartialSuccess": True,
    })

    validate_params(params)

    assert params.allow_partial_success is True
    assert params.requirements[0].apis.api_index_ids == [1, 2]
