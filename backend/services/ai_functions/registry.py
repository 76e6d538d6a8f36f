"""
Registry of AI functions.

An AI function describes one kind of generation: the prompts sent to the
model, the JSON schema its answer must follow, the completion options, and
the callback that turns the model's arguments into platform objects.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from schemas.ai_function.apply import Background
from services.ai_functions.errors import UnknownFunctionError
from services.llm.function_calling import FunctionDefinition
from services.platform.bundle import AutoTestBundle

logger = logging.getLogger(__name__)


class AIFunction(ABC):
    name: str = ""
    description: str = ""

    @abstractmethod
    def system_message(self) -> str:
        ...

    @abstractmethod
    def user_message(self) -> str:
        ...

    @abstractmethod
    def schema(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def completion_options(self) -> Dict[str, Any]:
        """Keyword options for the function call, e.g. ``model`` and ``temperature``."""
        ...

    @abstractmethod
    def callback(self, arguments: str, function_input: Any) -> Any:
        """Turn the model's arguments into a staged result; nothing is written."""
        ...

    @abstractmethod
    def commit(self, staged: Any, api_index_id: Optional[int] = None) -> Any:
        """Write a staged result and return it with its new id."""
        ...

    def definition(self) -> FunctionDefinition:
        return FunctionDefinition(name=self.name, description=self.description, parameters=self.schema())


FunctionFactory = Callable[[str, Background, AutoTestBundle], AIFunction]

_FUNCTIONS: Dict[str, FunctionFactory] = {}


def register_function(name: str, factory: FunctionFactory) -> None:
    if name in _FUNCTIONS:
        logger.warning("registry: AI function %s registered twice, keeping the latest", name)
    _FUNCTIONS[name] = factory


def get_function_factory(name: str) -> FunctionFactory:
    factory = _FUNCTIONS.get(name)
    if factory is None:
        raise UnknownFunctionError(f"AI function {name} not found", operation="lookup function")
    return factory


def list_functions() -> List[str]:
    return sorted(_FUNCTIONS)
