"""
Register scene-level inputs and outputs for the APIs of a requirement.

Inputs come from the parameters and headers of an API operation, outputs
from its declared responses. The values are supplied by a ``ValueDeriver``;
the default one leaves inputs empty and exposes each response status code as
a ``statusCode`` output.
"""
import logging
from typing import Optional, Tuple

from schemas.ai_function.autotest_scene import OutputAutoTestScene
from schemas.platform.autotest import (
    APIOperation,
    AutotestSceneRequest,
    OperationHeader,
    OperationParameter,
    OperationResponse,
)
from services.ai_functions.context import ApplyContext
from services.ai_functions.errors import VariableRegistrationError
from services.platform.bundle import AutoTestBundle, BundleError

logger = logging.getLogger(__name__)


class ValueDeriver:
    """Decides the (value, temp) pair of generated scene variables."""

    def parameter_value(self, operation: APIOperation, parameter: OperationParameter) -> Tuple[str, str]:
        return "", ""

    def header_value(self, operation: APIOperation, header: OperationHeader) -> Tuple[str, str]:
        return "", ""

    def response_output(self, operation: APIOperation, response: OperationResponse) -> Tuple[str, str, str]:
        """Return (name, value, temp) of the output registered for ``response``."""
        return "statusCode", response.status_code, response.status_code


class SceneVariableRegistrar:
    def __init__(self, bundle: AutoTestBundle, deriver: Optional[ValueDeriver] = None):
        self.bundle = bundle
        self.deriver = deriver or ValueDeriver()

    def _request(self, scene: OutputAutoTestScene, ctx: ApplyContext, name: str, value: str, temp: str) -> AutotestSceneRequest:
        return AutotestSceneRequest(
            space_id=scene.space_id,
            creator_id=ctx.user_id,
            updater_id=ctx.user_id,
            name=name,
            description="",
            value=value,
            temp=temp,
            scene_id=scene.scene_id,
            set_id=scene.scene_set_id,
            user_id=ctx.user_id,
        )

    def _error(self, what: str, operation: APIOperation, api_index_id: int, index: int, err: Exception) -> VariableRegistrationError:
        return VariableRegistrationError(
            f"{what} for API [index id={api_index_id} method={operation.method} path={operation.path}] failed: {err}",
            operation=what,
            requirement_index=index,
            api_index_id=api_index_id,
        )

    def register(
        self,
        operation: APIOperation,
        api_index_id: int,
        scene: OutputAutoTestScene,
        ctx: ApplyContext,
        index: int,
    ) -> Tuple[int, int]:
        """
        Create the scene inputs and outputs derived from ``operation``.

        Returns:
            (number of inputs created, number of outputs created)
        """
        inputs = []
        for p in operation.parameters:
            inputs.append((p.name, *self.deriver.parameter_value(operation, p)))
        for h in operation.headers:
            inputs.append((h.name, *self.deriver.header_value(operation, h)))

        for name, value, temp in inputs:
            ctx.check_cancelled("create scene input", requirement_index=index, api_index_id=api_index_id)
            try:
                self.bundle.create_autotest_scene_input(self._request(scene, ctx, name, value, temp))
            except BundleError as e:
                raise self._error("create scene input", operation, api_index_id, index, e) from e

        outputs = 0
        for r in operation.responses:
            name, value, temp = self.deriver.response_output(operation, r)
            ctx.check_cancelled("create scene output", requirement_index=index, api_index_id=api_index_id)
            try:
                self.bundle.create_autotest_scene_output(self._request(scene, ctx, name, value, temp))
            except BundleError as e:
                raise self._error("create scene output", operation, api_index_id, index, e) from e
            outputs += 1

        logger.info("variables: requirements[%d] api=%d registered inputs=%d outputs=%d scene=%d",
                    index, api_index_id, len(inputs), outputs, scene.scene_id)
        return len(inputs), outputs
