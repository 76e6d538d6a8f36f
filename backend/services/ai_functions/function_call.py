import logging
from typing import Any, Dict, List

from core.config import AgentLogConfigs
from services.ai_functions.errors import GenerationError
from services.ai_functions.registry import AIFunction
from services.llm.function_calling import FunctionCaller

logger = logging.getLogger(__name__)


def _yellow(text: str) -> str:
    return f"\033[33m{text}\033[0m"


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "... [TRUNCATED]"
    return text


def get_chat_message_function_call_arguments(
    function: AIFunction,
    caller: FunctionCaller,
    messages: List[Dict[str, str]],
    callback_input: Any,
) -> Any:
    """
    Ask the model to call ``function`` and hand its arguments to the function callback.

    Args:
        function: The AI function providing schema, options and callback
        caller: Function-calling provider
        messages: Chat messages, each a dict with 'role', 'content' and optional 'name'
        callback_input: Function specific input passed through to the callback

    Returns:
        The staged result of the function callback
    """
    options = function.completion_options()

    if AgentLogConfigs.LOG_AGENT_SYSTEM_PROMPT:
        system_text = "\n".join(m.get("content", "") for m in messages if m.get("role") == "system")
        logger.info(_yellow("function_call: %s SYSTEM PROMPT (input):\n%s"), function.name,
                    _truncate(system_text, AgentLogConfigs.LOG_AGENT_SYSTEM_PROMPT_MAX_LENGTH))

    try:
        arguments = caller.invoke(messages, function.definition(), **options)
    except Exception as e:
        raise GenerationError(f"invoke function call failed: {e}", operation="invoke model") from e

    if AgentLogConfigs.LOG_AGENT_RAW_OUTPUT:
        logger.info(_yellow("function_call: %s RAW arguments (model=%s):\n%s"), function.name, options.get("model"),
                    _truncate(arguments or "", AgentLogConfigs.LOG_AGENT_RAW_OUTPUT_MAX_LENGTH))

    return function.callback(arguments, callback_input)
