"""
Apply the ``create-autotest-scene`` AI function to a batch of requirements.

Steps:
1. parse and validate the requirements (no side effect on failure)
2. resolve the space / scene set / scene of every requirement, in order
3. register the scene inputs and outputs derived from every selected API
4. generate one scene step per (requirement, API) pair on a thread pool
5. return the steps in input order
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from core.config import AIFunctionConfigs
from schemas.ai_function.apply import Background
from schemas.ai_function.autotest_scene import (
    AutoTestSceneFunctionInput,
    AutoTestSceneMeta,
    AutoTestSceneParam,
    FunctionParams,
)
from schemas.platform.autotest import APIOperation
from services.ai_functions.autotest_scene.function import NAME
from services.ai_functions.autotest_scene.resolver import HierarchyResolver, ResolvedHierarchy
from services.ai_functions.autotest_scene.task import SceneStepTask
from services.ai_functions.autotest_scene.variables import SceneVariableRegistrar, ValueDeriver
from services.ai_functions.context import ApplyContext
from services.ai_functions.errors import (
    AIFunctionError,
    GenerationCancelled,
    GenerationError,
    ResolutionError,
    ValidationError,
)
from services.ai_functions.registry import FunctionFactory, get_function_factory
from services.llm.function_calling import FunctionCaller
from services.platform.bundle import AutoTestBundle, BundleError

logger = logging.getLogger(__name__)


@dataclass
class GenerationUnit:
    requirement_index: int
    requirement: AutoTestSceneParam
    hierarchy: ResolvedHierarchy
    api_index_id: Optional[int] = None
    operation: Optional[APIOperation] = None
    function_input: Optional[AutoTestSceneFunctionInput] = None

    @property
    def is_replay(self) -> bool:
        return self.requirement.req is not None


@dataclass
class ApplyResult:
    results: List[AutoTestSceneMeta] = field(default_factory=list)
    errors: List[AIFunctionError] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {
            "success": True,
            "data": [r.model_dump(by_alias=True) for r in self.results],
        }
        if self.errors:
            content["errors"] = [e.to_dict() for e in self.errors]
        return content


def parse_function_params(function_params: Dict[str, Any]) -> FunctionParams:
    try:
        return FunctionParams.model_validate(function_params or {})
    except PydanticValidationError as e:
        raise ValidationError(f"unmarshal functionParams to FunctionParams failed: {e}", operation="parse functionParams") from e


def validate_params(params: FunctionParams) -> None:
    """Reject a batch without requirements or with a requirement lacking its asset id."""
    if not params.requirements:
        raise ValidationError(f"AI function functionParams requirements for {NAME} invalid, not set", operation="validate")

    for idx, rs in enumerate(params.requirements):
        if not rs.apis.asset_id:
            raise ValidationError(
                f"AI function functionParams requirements[{idx}].apis.apiAssetId for {NAME} invalid, not set",
                operation="validate",
                requirement_index=idx,
            )


def _locate(err: AIFunctionError, unit: GenerationUnit) -> AIFunctionError:
    if err.requirement_index is None:
        err.requirement_index = unit.requirement_index
    if err.api_index_id is None:
        err.api_index_id = unit.api_index_id
    return err


class AutoTestSceneHandler:
    def __init__(
        self,
        bundle: AutoTestBundle,
        caller: FunctionCaller,
        factory: Optional[FunctionFactory] = None,
        max_workers: int = AIFunctionConfigs.MAX_WORKERS,
        timeout: Optional[float] = AIFunctionConfigs.TIMEOUT_SECONDS,
        deriver: Optional[ValueDeriver] = None,
    ):
        self.bundle = bundle
        self.caller = caller
        self.factory = factory or get_function_factory(NAME)
        self.max_workers = max(1, max_workers)
        self.timeout = timeout
        self.resolver = HierarchyResolver(bundle)
        self.registrar = SceneVariableRegistrar(bundle, deriver)

    def apply(
        self,
        function_params: Dict[str, Any],
        background: Background,
        need_adjust: bool = False,
        ctx: Optional[ApplyContext] = None,
    ) -> ApplyResult:
        """
        Run the whole batch.

        Raises:
            ValidationError: before any platform call
            ResolutionError / VariableRegistrationError: the batch stops
            AIFunctionError: the first failed unit in input order, unless
                ``allowPartialSuccess`` is set; siblings always run to the end
        """
        params = parse_function_params(function_params)
        validate_params(params)
        logger.debug("handler: parsed %d requirements for %s", len(params.requirements), NAME)

        ctx = ctx or ApplyContext.from_background(background, need_adjust=need_adjust)
        started = time.monotonic()

        hierarchies = [
            self.resolver.resolve_adjusted(rs, ctx, idx) if rs.req is not None else self.resolver.resolve(rs, ctx, idx)
            for idx, rs in enumerate(params.requirements)
        ]

        units: List[GenerationUnit] = []
        for idx, rs in enumerate(params.requirements):
            units.extend(self._prepare_units(rs, hierarchies[idx], ctx, idx))

        logger.info("handler: dispatching %d generation units (workers=%d, need_adjust=%s)",
                    len(units), self.max_workers, ctx.need_adjust)
        result = self._dispatch(units, ctx, background)

        logger.info("handler: finished results=%d errors=%d in %.2fs",
                    len(result.results), len(result.errors), time.monotonic() - started)
        if result.errors and not params.allow_partial_success:
            raise result.errors[0]
        return result

    def select_api_index_ids(self, rs: AutoTestSceneParam, ctx: ApplyContext, idx: int) -> List[int]:
        """Index ids of the APIs to generate, in step order."""
        if rs.apis.api_index_ids:
            return list(rs.apis.api_index_ids)

        ctx.check_cancelled("list api operations", requirement_index=idx)
        try:
            operations = self.bundle.list_api_operations(ctx.org_id, ctx.user_id, rs.apis.asset_id, rs.apis.version_id)
        except BundleError as e:
            raise ResolutionError(f"list api operations failed: {e}", operation="list api operations", requirement_index=idx) from e

        if not rs.apis.api_operation_ids:
            return [op.id for op in operations]

        by_operation_id = {op.operation_id: op.id for op in operations}
        selected = []
        for operation_id in rs.apis.api_operation_ids:
            if operation_id not in by_operation_id:
                raise ResolutionError(
                    f"api operation {operation_id} not found in asset {rs.apis.asset_id} version {rs.apis.version_id}",
                    operation="select api operations",
                    requirement_index=idx,
                )
            selected.append(by_operation_id[operation_id])
        return selected

    def _get_api_operation(self, ctx: ApplyContext, idx: int, api_index_id: int) -> APIOperation:
        ctx.check_cancelled("get api operation", requirement_index=idx, api_index_id=api_index_id)
        try:
            return self.bundle.get_api_operation(ctx.org_id, ctx.user_id, api_index_id)
        except BundleError as e:
            raise ResolutionError(
                f"get api info failed: {e}",
                operation="get api operation",
                requirement_index=idx,
                api_index_id=api_index_id,
            ) from e

    def _prepare_units(
        self,
        rs: AutoTestSceneParam,
        hierarchy: ResolvedHierarchy,
        ctx: ApplyContext,
        idx: int,
    ) -> List[GenerationUnit]:
        if rs.req is not None:
            # reviewed step: one commit, inputs/outputs were registered when it was staged
            return [GenerationUnit(requirement_index=idx, requirement=rs, hierarchy=hierarchy)]

        api_index_ids = self.select_api_index_ids(rs, ctx, idx)
        if not api_index_ids:
            logger.warning("handler: requirements[%d] asset=%s has no API to generate", idx, rs.apis.asset_id)

        units = []
        for api_index_id in api_index_ids:
            operation = self._get_api_operation(ctx, idx, api_index_id)
            self.registrar.register(operation, api_index_id, rs.scene, ctx, idx)
            units.append(GenerationUnit(
                requirement_index=idx,
                requirement=rs,
                hierarchy=hierarchy,
                api_index_id=api_index_id,
                operation=operation,
                function_input=AutoTestSceneFunctionInput(
                    asset_id=rs.apis.asset_id,
                    version_id=rs.apis.version_id,
                    api_index_id=api_index_id,
                    api_operation_id=operation.id,
                    api_name=operation.description,
                    api_method=operation.method,
                    api_url=operation.path,
                    user_id=ctx.user_id,
                    space_name=hierarchy.space_name,
                    space_id=hierarchy.space_id,
                    scene_set_name=hierarchy.scene_set_name,
                    scene_set_id=hierarchy.scene_set_id,
                    scene_name=hierarchy.scene_name,
                    scene_id=hierarchy.scene_id,
                    prompt=rs.prompt,
                ),
            ))
        return units

    def _run_unit(self, task: SceneStepTask, unit: GenerationUnit, ctx: ApplyContext) -> AutoTestSceneMeta:
        try:
            if unit.is_replay:
                return task.replay(ctx, unit.requirement, unit.hierarchy, unit.requirement_index)
            return task.generate(ctx, unit.function_input, unit.operation, unit.requirement_index)
        except AIFunctionError as e:
            logger.error("handler: unit failed: %s", _locate(e, unit))
            raise
        except Exception as e:
            err = _locate(GenerationError(f"unexpected failure: {e!r}", operation="run unit"), unit)
            logger.exception("handler: unit failed: %s", err)
            raise err from e

    def _dispatch(self, units: List[GenerationUnit], ctx: ApplyContext, background: Background) -> ApplyResult:
        result = ApplyResult()
        if not units:
            return result

        task = SceneStepTask(self.bundle, self.caller, self.factory, background)
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(units)), thread_name_prefix="scenegen")
        futures = [executor.submit(self._run_unit, task, unit, ctx) for unit in units]
        _, not_done = wait(futures, timeout=self.timeout)
        if not_done:
            ctx.cancel()
            logger.error("handler: batch timed out after %ss, %d units unfinished", self.timeout, len(not_done))
            # running units stop at their next platform or model call
            executor.shutdown(wait=False, cancel_futures=True)
        else:
            executor.shutdown(wait=True)

        if ctx.cancelled:
            raise GenerationCancelled("batch cancelled before all units finished", operation="apply")

        # single writer: only this thread touches the result lists
        for unit, future in zip(units, futures):
            try:
                result.results.append(future.result())
            except AIFunctionError as e:
                result.errors.append(e)
        return result
