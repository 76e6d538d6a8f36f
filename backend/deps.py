import logging
from db.session import get_db
from services.llm.function_calling import FunctionCaller, get_function_caller
from services.platform.bundle import AutoTestBundle, HTTPBundle

logger = logging.getLogger(__name__)

__all__ = ["get_db", "get_bundle", "get_caller"]


def get_bundle() -> AutoTestBundle:
    """
    Dependency providing the platform client for one request.
    """
    return HTTPBundle()


def get_caller() -> FunctionCaller:
    """
    Dependency providing the function-calling model provider.
    """
    return get_function_caller()
