"""
Chat-completion requests with reasoning-model fallback.

Reasoning models reject sampling parameters such as ``temperature`` and
``max_tokens``. Requests are sent with the regular parameters first and, when
the API rejects them for that reason, retried once with the parameters a
reasoning model accepts.
"""

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)

UNSUPPORTED_REASONING_PARAMS = ("temperature", "max_tokens")


class ReasoningModelError(Exception):
    """Raised when a request fails even after adjusting it for a reasoning model."""

    pass


def _error_payload(exception: Exception) -> Any:
    response = getattr(exception, "response", None)
    if response is not None and hasattr(response, "json"):
        try:
            return response.json()
        except ValueError:
            pass
    if hasattr(exception, "body"):
        return exception.body
    return getattr(exception, "error", None)


def is_reasoning_model_error(exception: Exception) -> bool:
    """
    Check if the exception means the model rejected sampling parameters.

    Detects HTTP 400 errors of type ``invalid_request_error`` with code
    ``unsupported_value``/``unsupported_parameter`` on ``temperature`` or
    ``max_tokens``.

    Args:
        exception: Exception from the chat-completion call

    Returns:
        True if the request should be retried with reasoning-model parameters
    """
    if getattr(exception, "status_code", None) != 400:
        return False

    error_data = _error_payload(exception)
    if not isinstance(error_data, dict):
        return False

    # Some clients return the error object itself, others wrap it in {"error": ...}
    error_info = error_data.get("error", error_data)
    if not isinstance(error_info, dict):
        return False

    error_type = str(error_info.get("type") or "").lower()
    error_code = str(error_info.get("code") or "").lower()
    error_param = str(error_info.get("param") or "").lower()

    return (
        error_type == "invalid_request_error"
        and error_code in ("unsupported_value", "unsupported_parameter")
        and error_param in UNSUPPORTED_REASONING_PARAMS
    )


def adjust_llm_params_for_reasoning_model(original_params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Adjust request parameters for reasoning model compatibility.

    Args:
        original_params: Original parameters dict

    Returns:
        Copy without sampling parameters; ``max_tokens`` becomes ``max_completion_tokens``
    """
    adjusted_params = {key: value for key, value in original_params.items() if key not in UNSUPPORTED_REASONING_PARAMS}

    if "max_tokens" in original_params:
        adjusted_params["max_completion_tokens"] = original_params["max_tokens"]

    logger.info(f"Adjusted parameters for reasoning model: {sorted(adjusted_params)}")
    return adjusted_params


def make_llm_request_with_reasoning_fallback(client: Any, original_params: Dict[str, Any]) -> Any:
    """
    Make a chat-completion request, retrying once for reasoning models.

    Args:
        client: OpenAI-compatible client instance
        original_params: Request parameters

    Returns:
        Response from the successful call

    Raises:
        ReasoningModelError: If the adjusted retry fails too
        Exception: The original API error when it is unrelated to reasoning models
    """
    try:
        return client.chat.completions.create(**original_params)
    except Exception as e:
        if not is_reasoning_model_error(e):
            raise

        logger.info("Detected reasoning model error, retrying with adjusted parameters")
        adjusted_params = adjust_llm_params_for_reasoning_model(original_params)
        try:
            return client.chat.completions.create(**adjusted_params)
        except Exception as retry_error:
            raise ReasoningModelError(f"Failed to make LLM request even after adjusting for reasoning model: {retry_error}") from e


def get_response_content(response: Any) -> str:
    """Return the text of the first choice of a chat-completion response, or ''."""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    return (getattr(message, "content", None) or "").strip()
