"""
Resolve the target space / scene set / scene of a requirement.

A requirement may leave any of the three ids at 0. Which ids are set forms a
3-bit key (space, scene set, scene) and every key maps to exactly one
strategy, so only the missing levels are looked up or created:

    space set scene  strategy
    0     0   0      create space, create scene set, create scene
    0     0   1      get scene -> space, scene set
    0     1   0      get scene set -> space, create scene
    0     1   1      get scene -> space
    1     0   0      create scene set, create scene
    1     0   1      get scene -> scene set
    1     1   0      create scene
    1     1   1      nothing to do
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict

from schemas.ai_function.autotest_scene import AutoTestSceneParam, OutputAutoTestScene
from schemas.platform.autotest import AutoTestSpaceCreateRequest, AutotestSceneRequest, SceneSetRequest
from services.ai_functions.context import ApplyContext
from services.ai_functions.errors import ResolutionError
from services.platform.bundle import AutoTestBundle, BundleError

logger = logging.getLogger(__name__)

SPACE_NAME_PREFIX = "AI_Generated_Space_"
SCENE_SET_NAME_PREFIX = "AI_Generated_SceneSet_"
SCENE_NAME_PREFIX = "AI_Generated_Scene_"

SPACE_DESCRIPTION = "AI Generated AutoTest Space"
SCENE_SET_DESCRIPTION = "AI Generated AutoTest Scene Set"
SCENE_DESCRIPTION = "AI Generated AutoTest Scene"


class ResolutionStrategy(str, Enum):
    CREATE_SPACE_SET_SCENE = "create_space_set_scene"
    INHERIT_FROM_SCENE = "inherit_from_scene"
    INHERIT_FROM_SET_CREATE_SCENE = "inherit_from_set_create_scene"
    SPACE_FROM_SCENE = "space_from_scene"
    CREATE_SET_AND_SCENE = "create_set_and_scene"
    SET_FROM_SCENE = "set_from_scene"
    CREATE_SCENE = "create_scene"
    NOOP = "noop"


# key = (space set) << 2 | (scene set set) << 1 | (scene set)
RESOLUTION_TABLE: Dict[int, ResolutionStrategy] = {
    0b000: ResolutionStrategy.CREATE_SPACE_SET_SCENE,
    0b001: ResolutionStrategy.INHERIT_FROM_SCENE,
    0b010: ResolutionStrategy.INHERIT_FROM_SET_CREATE_SCENE,
    0b011: ResolutionStrategy.SPACE_FROM_SCENE,
    0b100: ResolutionStrategy.CREATE_SET_AND_SCENE,
    0b101: ResolutionStrategy.SET_FROM_SCENE,
    0b110: ResolutionStrategy.CREATE_SCENE,
    0b111: ResolutionStrategy.NOOP,
}


def hierarchy_key(scene: OutputAutoTestScene) -> int:
    return (scene.space_id > 0) << 2 | (scene.scene_set_id > 0) << 1 | (scene.scene_id > 0)


def strategy_for(scene: OutputAutoTestScene) -> ResolutionStrategy:
    return RESOLUTION_TABLE[hierarchy_key(scene)]


@dataclass
class ResolvedHierarchy:
    space_id: int
    scene_set_id: int
    scene_id: int
    space_name: str = ""
    scene_set_name: str = ""
    scene_name: str = ""


class _Resolution:
    """State of resolving one requirement."""

    def __init__(self, bundle: AutoTestBundle, ctx: ApplyContext, requirement: AutoTestSceneParam, index: int):
        self.bundle = bundle
        self.ctx = ctx
        self.requirement = requirement
        self.index = index
        self.asset_id = requirement.apis.asset_id
        self.scene = requirement.scene
        self.names: Dict[str, str] = {}

    def call(self, operation: str, fn: Callable[..., Any], *args) -> Any:
        self.ctx.check_cancelled(operation, requirement_index=self.index)
        try:
            return fn(*args)
        except BundleError as e:
            raise ResolutionError(f"{operation} failed: {e}", operation=operation, requirement_index=self.index) from e

    def create_space(self) -> None:
        name = SPACE_NAME_PREFIX + self.asset_id
        space = self.call("create autotest space", self.bundle.create_test_space, AutoTestSpaceCreateRequest(
            name=name,
            project_id=self.ctx.project_id,
            description=SPACE_DESCRIPTION,
        ), self.ctx.user_id)
        self.scene.space_id = space.id
        self.names["space"] = name

    def create_scene_set(self) -> None:
        name = SCENE_SET_NAME_PREFIX + self.asset_id
        set_id = self.call("create autotest scene set", self.bundle.create_scene_set, SceneSetRequest(
            name=name,
            description=SCENE_SET_DESCRIPTION,
            space_id=self.scene.space_id,
            project_id=self.ctx.project_id,
            user_id=self.ctx.user_id,
        ))
        self.scene.scene_set_id = set_id
        self.names["scene_set"] = name

    def create_scene(self) -> None:
        name = SCENE_NAME_PREFIX + self.asset_id
        scene_id = self.call("create autotest scene", self.bundle.create_autotest_scene, AutotestSceneRequest(
            space_id=self.scene.space_id,
            name=name,
            description=SCENE_DESCRIPTION,
            set_id=self.scene.scene_set_id,
            user_id=self.ctx.user_id,
        ))
        self.scene.scene_id = scene_id
        self.names["scene"] = name

    def get_scene(self):
        scene = self.call("get autotest scene by ID", self.bundle.get_autotest_scene, self.scene.scene_id, self.ctx.user_id)
        self.names["scene"] = scene.name
        return scene

    def get_scene_set(self):
        scene_set = self.call("get autotest scene set by ID", self.bundle.get_scene_set, self.scene.scene_set_id, self.ctx.user_id)
        self.names["scene_set"] = scene_set.name
        return scene_set


def _create_space_set_scene(r: _Resolution) -> None:
    r.create_space()
    r.create_scene_set()
    r.create_scene()


def _inherit_from_scene(r: _Resolution) -> None:
    scene = r.get_scene()
    r.scene.space_id = scene.space_id
    r.scene.scene_set_id = scene.set_id


def _inherit_from_set_create_scene(r: _Resolution) -> None:
    scene_set = r.get_scene_set()
    r.scene.space_id = scene_set.space_id
    r.create_scene()


def _space_from_scene(r: _Resolution) -> None:
    scene = r.get_scene()
    r.scene.space_id = scene.space_id


def _create_set_and_scene(r: _Resolution) -> None:
    r.create_scene_set()
    r.create_scene()


def _set_from_scene(r: _Resolution) -> None:
    scene = r.get_scene()
    r.scene.scene_set_id = scene.set_id


def _create_scene(r: _Resolution) -> None:
    r.create_scene()


def _noop(r: _Resolution) -> None:
    pass


_STRATEGIES: Dict[ResolutionStrategy, Callable[[_Resolution], None]] = {
    ResolutionStrategy.CREATE_SPACE_SET_SCENE: _create_space_set_scene,
    ResolutionStrategy.INHERIT_FROM_SCENE: _inherit_from_scene,
    ResolutionStrategy.INHERIT_FROM_SET_CREATE_SCENE: _inherit_from_set_create_scene,
    ResolutionStrategy.SPACE_FROM_SCENE: _space_from_scene,
    ResolutionStrategy.CREATE_SET_AND_SCENE: _create_set_and_scene,
    ResolutionStrategy.SET_FROM_SCENE: _set_from_scene,
    ResolutionStrategy.CREATE_SCENE: _create_scene,
    ResolutionStrategy.NOOP: _noop,
}


class HierarchyResolver:
    def __init__(self, bundle: AutoTestBundle):
        self.bundle = bundle

    def resolve(self, requirement: AutoTestSceneParam, ctx: ApplyContext, index: int) -> ResolvedHierarchy:
        """
        Fill in the missing hierarchy ids of ``requirement`` in place.

        Raises:
            ResolutionError: a lookup or create call failed; ids resolved
                before the failure stay on the requirement.
        """
        strategy = strategy_for(requirement.scene)
        logger.info("resolver: requirements[%d] asset=%s strategy=%s", index, requirement.apis.asset_id, strategy.value)

        resolution = _Resolution(self.bundle, ctx, requirement, index)
        _STRATEGIES[strategy](resolution)

        scene = requirement.scene
        if not scene.is_resolved():
            raise ResolutionError(
                f"hierarchy still incomplete: space={scene.space_id} sceneSet={scene.scene_set_id} scene={scene.scene_id}",
                operation="resolve hierarchy",
                requirement_index=index,
            )

        logger.info("resolver: requirements[%d] resolved space=%d sceneSet=%d scene=%d",
                    index, scene.space_id, scene.scene_set_id, scene.scene_id)
        return ResolvedHierarchy(
            space_id=scene.space_id,
            scene_set_id=scene.scene_set_id,
            scene_id=scene.scene_id,
            space_name=resolution.names.get("space", ""),
            scene_set_name=resolution.names.get("scene_set", ""),
            scene_name=resolution.names.get("scene", ""),
        )

    def resolve_adjusted(self, requirement: AutoTestSceneParam, ctx: ApplyContext, index: int) -> ResolvedHierarchy:
        """
        Hierarchy of a requirement carrying a reviewed step request.

        The scene named by the request wins and nothing is created for it;
        the requirement's own ``scene`` block is resolved only when the
        request leaves ``sceneID`` at 0.

        Raises:
            ResolutionError: the scene lookup failed, or the request's
                ``spaceID`` is not the space of its scene.
        """
        req = requirement.req
        if not req.scene_id:
            if req.space_id and not requirement.scene.space_id:
                requirement.scene.space_id = req.space_id
            return self.resolve(requirement, ctx, index)

        resolution = _Resolution(self.bundle, ctx, requirement, index)
        scene = resolution.call("get autotest scene by ID", self.bundle.get_autotest_scene, req.scene_id, ctx.user_id)
        if req.space_id and req.space_id != scene.space_id:
            raise ResolutionError(
                f"scene {scene.id} belongs to space {scene.space_id}, not {req.space_id}",
                operation="resolve adjusted step",
                requirement_index=index,
            )

        requirement.scene.space_id = scene.space_id
        requirement.scene.scene_set_id = scene.set_id
        requirement.scene.scene_id = scene.id
        logger.info("resolver: requirements[%d] adjusted step targets space=%d sceneSet=%d scene=%d",
                    index, scene.space_id, scene.set_id, scene.id)
        return ResolvedHierarchy(
            space_id=scene.space_id,
            scene_set_id=scene.set_id,
            scene_id=scene.id,
            scene_name=scene.name,
        )
