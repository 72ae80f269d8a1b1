"""Anthropic Messages API adapter (tool-use structured output)."""

import logging
from typing import Any, Optional

import httpx
from anthropic import Anthropic, APIConnectionError, APIStatusError, APITimeoutError
from pydantic import ValidationError

from govuk_rewrite.constants import ANTHROPIC_MAX_TOKENS, DEFAULT_BASE_URLS, PROVIDER_LABELS
from govuk_rewrite.errors import (
    ProviderNetworkError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from govuk_rewrite.models import ProviderOptions, RewriteRequest, RewriteResult, Usage
from govuk_rewrite.system_prompt import TOOL_DEFINITION, TOOL_NAME, build_messages

logger = logging.getLogger(__name__)

LABEL = PROVIDER_LABELS["anthropic"]


def _status_error_message(err: APIStatusError) -> str:
    body = err.body
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"{LABEL} API error: {err.status_code}"


def rewrite(
    options: ProviderOptions,
    request: RewriteRequest,
    client: Optional[httpx.Client] = None,
) -> RewriteResult:
    """Rewrite text with Claude, forcing the rewrite_result tool.

    Args:
        options: Resolved provider options
        request: Rewrite request
        client: Optional httpx client passed to the SDK (used by tests)

    Returns:
        Normalized RewriteResult taken from the tool input, with usage

    Raises:
        ProviderTimeoutError: The request exceeded options.timeout_ms
        ProviderNetworkError: Any other transport failure
        ProviderResponseError: Error status or no tool use in the response
    """
    system_prompt, user_message = build_messages(request)

    sdk_kwargs: dict[str, Any] = {
        "api_key": options.api_key,
        "base_url": options.base_url or DEFAULT_BASE_URLS["anthropic"],
        "timeout": options.timeout_ms / 1000,
        "max_retries": 0,
    }
    if client is not None:
        sdk_kwargs["http_client"] = client

    logger.debug("Anthropic request model=%s timeout=%sms", options.model, options.timeout_ms)

    try:
        response = Anthropic(**sdk_kwargs).messages.create(
            model=options.model,
            max_tokens=ANTHROPIC_MAX_TOKENS,
            system=system_prompt,
            messages=[{"role": "user", "content": user_message}],
            tools=[TOOL_DEFINITION],
            tool_choice={"type": "tool", "name": TOOL_NAME},
        )
    except APITimeoutError as e:
        raise ProviderTimeoutError(options.timeout_ms) from e
    except APIConnectionError as e:
        raise ProviderNetworkError(str(e)) from e
    except APIStatusError as e:
        raise ProviderResponseError(_status_error_message(e), status_code=e.status_code) from e

    # Extract the forced tool call
    tool_input = None
    for block in response.content or []:
        if block.type == "tool_use":
            tool_input = block.input
            break

    if not tool_input:
        raise ProviderResponseError(f"{LABEL} returned no tool use result")

    try:
        result = RewriteResult.model_validate(tool_input)
    except ValidationError as e:
        raise ProviderResponseError(f"{LABEL} returned malformed JSON") from e

    if response.usage is not None:
        result.usage = Usage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

    return result
