from schemas.platform.autotest import StepExpressionValues
from services.ai_functions.autotest_scene.prompt import generate_context_prompt, json_output, pretty_json_output


def test_context_prompt_has_five_labelled_sections(bundle):
    prompt = generate_context_prompt(bundle, 0, 30, "u-1")

    lines = [line for line in prompt.strip().splitlines()]
    assert [line.split(":")[0] for line in lines] == [
        "Scene inputs",
        "Outputs of preceding scene steps",
        "Outputs of preceding config sheets",
        "Global config variables",
        "Mock inputs",
    ]
    assert 'Scene inputs: [{"name": "petId", "value": "1"}]' in prompt
    assert "Outputs of preceding config sheets: null" in prompt
    assert ("get_step_expression_values", (0, 30, "u-1")) in bundle.calls


def test_json_output_uses_aliases_for_models():
    values = StepExpressionValues(scene_inputs=[1])

    assert '"sceneInputs":[1]' in json_output(values)


def test_pretty_json_output():
    assert pretty_json_output('{"a":1}') == '{\n  "a": 1\n}'
    assert pretty_json_output("plain text") == "plain text"
    assert pretty_json_output("") == ""
