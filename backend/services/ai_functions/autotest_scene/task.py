import logging

from schemas.ai_function.apply import Background
from schemas.ai_function.autotest_scene import (
    AutoTestSceneFunctionInput,
    AutoTestSceneMeta,
    AutoTestSceneParam,
)
from schemas.platform.autotest import APIOperation
from services.ai_functions.autotest_scene.function import AutoTestSceneFunction
from services.ai_functions.autotest_scene.prompt import generate_context_prompt, json_output
from services.ai_functions.autotest_scene.resolver import ResolvedHierarchy
from services.ai_functions.context import ApplyContext
from services.ai_functions.errors import CommitError, GenerationError
from services.ai_functions.function_call import get_chat_message_function_call_arguments
from services.ai_functions.registry import FunctionFactory
from services.llm.function_calling import FunctionCaller
from services.platform.bundle import AutoTestBundle, BundleError

logger = logging.getLogger(__name__)


class SceneStepTask:
    """Produces the scene step of one (requirement, API) pair."""

    def __init__(
        self,
        bundle: AutoTestBundle,
        caller: FunctionCaller,
        factory: FunctionFactory,
        background: Background,
    ):
        self.bundle = bundle
        self.caller = caller
        self.factory = factory
        self.background = background

    def build_messages(self, function: AutoTestSceneFunction, operation: APIOperation, context_prompt: str) -> list:
        return [
            {
                "role": "system",
                "content": function.system_message(),
                "name": "system",
            },
            {
                "role": "system",
                "content": f"The swagger documentation content of the API selected by the user: {json_output(operation)}",
            },
            {
                "role": "system",
                "content": f"In this test case generation, you can also use these context variables: {context_prompt}",
            },
            {
                "role": "user",
                "content": function.user_message(),
                "name": "user",
            },
        ]

    def generate(
        self,
        ctx: ApplyContext,
        unit_input: AutoTestSceneFunctionInput,
        operation: APIOperation,
        index: int,
        scene_step_id: int = 0,
    ) -> AutoTestSceneMeta:
        """
        Ask the model for the step of ``operation`` and stage or commit it.

        The step is committed only when ``ctx.need_adjust`` is false; a
        staged result never carries a step id.
        """
        api_index_id = unit_input.api_index_id
        function = self.factory(unit_input.prompt, self.background, self.bundle)

        ctx.check_cancelled("build context prompt", requirement_index=index, api_index_id=api_index_id)
        try:
            context_prompt = generate_context_prompt(self.bundle, scene_step_id, unit_input.scene_id, unit_input.user_id)
        except BundleError as e:
            raise GenerationError(
                f"get step expression values failed: {e}",
                operation="build context prompt",
                requirement_index=index,
                api_index_id=api_index_id,
            ) from e

        messages = self.build_messages(function, operation, context_prompt)

        ctx.check_cancelled("invoke model", requirement_index=index, api_index_id=api_index_id)
        logger.info("task: requirements[%d] api=%d %s %s generating step",
                    index, api_index_id, unit_input.api_method, unit_input.api_url)
        staged = get_chat_message_function_call_arguments(function, self.caller, messages, unit_input)

        if ctx.need_adjust:
            return staged

        ctx.check_cancelled("create scene step", requirement_index=index, api_index_id=api_index_id)
        return function.commit(staged, api_index_id=api_index_id)

    def replay(
        self,
        ctx: ApplyContext,
        requirement: AutoTestSceneParam,
        hierarchy: ResolvedHierarchy,
        index: int,
    ) -> AutoTestSceneMeta:
        """
        Commit a step request that was already reviewed, without calling the model.

        Scene, space and user are taken from the resolved hierarchy and the
        acting user only where the request leaves them empty.
        """
        adjusted = requirement.req
        update = {}
        if not adjusted.scene_id:
            update["scene_id"] = hierarchy.scene_id
        if not adjusted.space_id:
            update["space_id"] = hierarchy.space_id
        if not adjusted.user_id:
            update["user_id"] = ctx.user_id
        req = adjusted.model_copy(update=update)

        ctx.check_cancelled("create adjusted scene step", requirement_index=index)
        try:
            step_id = self.bundle.create_autotest_scene_step(req)
        except BundleError as e:
            raise CommitError(
                f"create adjusted autotest scene step failed: {e}",
                operation="create adjusted scene step",
                requirement_index=index,
            ) from e

        logger.info("task: requirements[%d] committed adjusted step id=%d '%s' scene=%d", index, step_id, req.name, req.scene_id)
        return AutoTestSceneMeta(
            req=req,
            space_name=hierarchy.space_name,
            space_id=req.space_id,
            scene_set_name=hierarchy.scene_set_name,
            scene_set_id=hierarchy.scene_set_id,
            scene_name=hierarchy.scene_name,
            scene_id=req.scene_id,
            scene_step_id=step_id,
        )
