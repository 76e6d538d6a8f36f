import importlib
import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from core.config import AIFunctionConfigs
from core.env_config import get_env_variable
from schemas.ai_function.apply import Background
from schemas.ai_function.autotest_scene import AutoTestSceneFunctionInput, AutoTestSceneMeta
from schemas.platform.autotest import (
    APIBodyTypeApplicationJSON,
    APIInfoV2,
    APISpec,
    AutotestSceneRequest,
)
from services.ai_functions.autotest_scene.prompt import json_output, pretty_json_output
from services.ai_functions.autotest_scene.schema import AUTOTEST_SCENE_STEP_SCHEMA
from services.ai_functions.errors import CommitError, GenerationError
from services.ai_functions.registry import AIFunction, register_function
from services.platform.bundle import AutoTestBundle, BundleError

logger = logging.getLogger(__name__)

NAME = "create-autotest-scene"


def _load_prompt(file_env: str, module_env: str, default_module: str) -> str:
    """Prompt text from a file, else from a module docstring, else from the bundled module."""
    prompt_file = get_env_variable(file_env, "").strip()
    if prompt_file and os.path.exists(prompt_file):
        with open(prompt_file, "r", encoding="utf-8") as f:
            return f.read()

    mod_path = get_env_variable(module_env, "").strip() or default_module
    mod = importlib.import_module(mod_path)
    return (mod.__doc__ or "").strip()


class AutoTestSceneFunction(AIFunction):
    name = NAME
    description = "create autotest scene"

    def __init__(self, bundle: AutoTestBundle, prompt: str = "", background: Optional[Background] = None):
        self.bundle = bundle
        self.prompt = prompt
        self.background = background or Background()

    def system_message(self) -> str:
        return _load_prompt(
            "AUTOTEST_SCENE_SYSTEM_PROMPT_FILE",
            "AUTOTEST_SCENE_SYSTEM_PROMPT_MODULE",
            "services.llm.prompts.autotest_scene_system_prompt",
        )

    def user_message(self) -> str:
        if self.prompt.strip():
            return self.prompt
        return _load_prompt(
            "AUTOTEST_SCENE_USER_PROMPT_FILE",
            "AUTOTEST_SCENE_USER_PROMPT_MODULE",
            "services.llm.prompts.autotest_scene_user_prompt",
        )

    def schema(self) -> Dict[str, Any]:
        return AUTOTEST_SCENE_STEP_SCHEMA

    def completion_options(self) -> Dict[str, Any]:
        return {
            "model": AIFunctionConfigs.MODEL,
            "temperature": AIFunctionConfigs.TEMPERATURE,
        }

    def callback(self, arguments: str, function_input: Any) -> AutoTestSceneMeta:
        """
        Turn the model's arguments into a staged scene step.

        The step request is returned without being created, so it can be
        reviewed and sent back later, or passed to ``commit``.
        """
        if not isinstance(function_input, AutoTestSceneFunctionInput):
            raise GenerationError(
                f"input {function_input!r} with type {type(function_input).__name__} is not valid for AI function {NAME}",
                operation="callback",
            )

        try:
            api_info = APIInfoV2.model_validate(json.loads(arguments))
        except (TypeError, ValueError, PydanticValidationError) as e:
            raise GenerationError(
                f"unmarshal arguments to APIInfoV2 failed: {e}",
                operation="decode arguments",
                api_index_id=function_input.api_index_id,
            ) from e

        api_info.name = function_input.api_name
        api_info.method = function_input.api_method
        api_info.url = function_input.api_url
        if api_info.body.type == APIBodyTypeApplicationJSON:
            content = api_info.body.content
            if isinstance(content, str):
                api_info.body.content = pretty_json_output(content)
            elif content is not None:
                api_info.body.content = json.dumps(content, indent=2, ensure_ascii=False)

        api_step = APISpec(api_info=api_info)
        req = AutotestSceneRequest(
            space_id=function_input.space_id,
            scene_id=function_input.scene_id,
            value=json_output(api_step),
            user_id=function_input.user_id,
            api_spec_id=function_input.api_operation_id,
            name=api_info.name,
        )
        meta = AutoTestSceneMeta(
            req=req,
            space_name=function_input.space_name,
            space_id=function_input.space_id,
            scene_set_name=function_input.scene_set_name,
            scene_set_id=function_input.scene_set_id,
            scene_name=function_input.scene_name,
            scene_id=function_input.scene_id,
        )

        logger.info("autotest_scene: staged step '%s' for scene=%d", req.name, req.scene_id)
        return meta

    def commit(self, meta: AutoTestSceneMeta, api_index_id: Optional[int] = None) -> AutoTestSceneMeta:
        """Create the staged step of ``meta`` and return ``meta`` with the new step id."""
        try:
            step_id = self.bundle.create_autotest_scene_step(meta.req)
        except BundleError as e:
            raise CommitError(
                f"create autotest scene step failed: {e}",
                operation="create scene step",
                api_index_id=api_index_id,
            ) from e

        logger.info("autotest_scene: created step id=%d '%s' for scene=%d", step_id, meta.req.name, meta.req.scene_id)
        return meta.model_copy(update={"scene_step_id": step_id})


def new(prompt: str, background: Background, bundle: AutoTestBundle) -> AutoTestSceneFunction:
    return AutoTestSceneFunction(bundle=bundle, prompt=prompt, background=background)


register_function(NAME, new)
