import json
import logging
from typing import Any

from pydantic import BaseModel

from services.platform.bundle import AutoTestBundle

logger = logging.getLogger(__name__)

CONTEXT_PROMPT_TEMPLATE = """
Scene inputs: {scene_inputs}
Outputs of preceding scene steps: {pre_scene_steps_outputs}
Outputs of preceding config sheets: {pre_config_sheets_outputs}
Global config variables: {global_config_outputs}
Mock inputs: {mock_inputs}
"""


def json_output(v: Any) -> str:
    if isinstance(v, BaseModel):
        return v.model_dump_json(by_alias=True)
    return json.dumps(v, ensure_ascii=False, default=str)


def pretty_json_output(s: str) -> str:
    """Re-indent a JSON document; text that is not JSON is returned as is."""
    try:
        return json.dumps(json.loads(s), indent=2, ensure_ascii=False)
    except (TypeError, ValueError):
        return s


def generate_context_prompt(bundle: AutoTestBundle, scene_step_id: int, scene_id: int, user_id: str) -> str:
    """
    Describe the variables a scene step can reference.

    The five variable sets come from the platform and are serialized one by
    one into a fixed template. The text is only meant for the model.
    """
    values = bundle.get_step_expression_values(scene_step_id, scene_id, user_id)
    return CONTEXT_PROMPT_TEMPLATE.format(
        scene_inputs=json_output(values.scene_inputs),
        pre_scene_steps_outputs=json_output(values.pre_scene_steps_outputs),
        pre_config_sheets_outputs=json_output(values.pre_config_sheets_outputs),
        global_config_outputs=json_output(values.global_config_outputs),
        mock_inputs=json_output(values.mock_inputs),
    )
