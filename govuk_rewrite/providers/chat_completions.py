"""Shared transport for chat-completion style providers (OpenAI, OpenRouter)."""

import json
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from govuk_rewrite.errors import (
    ProviderNetworkError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from govuk_rewrite.models import ProviderOptions, RewriteRequest, RewriteResult, Usage
from govuk_rewrite.system_prompt import JSON_SCHEMA, build_messages

logger = logging.getLogger(__name__)


def build_request_body(model: str, request: RewriteRequest) -> dict[str, Any]:
    """Build a chat-completion request body with JSON-schema constrained output.

    Args:
        model: Model identifier
        request: Rewrite request

    Returns:
        Request body dict
    """
    system_prompt, user_message = build_messages(request)
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ],
        "response_format": {
            "type": "json_schema",
            "json_schema": JSON_SCHEMA,
        },
    }


def _error_message(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return None


def post_chat_completion(
    url: str,
    headers: dict[str, str],
    body: dict[str, Any],
    options: ProviderOptions,
    label: str,
    client: Optional[httpx.Client] = None,
) -> RewriteResult:
    """POST a chat-completion request and normalize the response.

    Args:
        url: Full endpoint URL
        headers: Request headers (auth included)
        body: JSON request body
        options: Provider options (timeout is taken from here)
        label: Human-readable provider name used in error messages
        client: Optional httpx client (a short-lived one is created otherwise)

    Returns:
        Parsed RewriteResult (with usage when the provider reports it)

    Raises:
        ProviderTimeoutError: The request exceeded options.timeout_ms
        ProviderNetworkError: Any other transport failure
        ProviderResponseError: Non-2xx status, empty or malformed payload
    """
    timeout = httpx.Timeout(options.timeout_ms / 1000)
    logger.debug("POST %s model=%s timeout=%sms", url, options.model, options.timeout_ms)

    try:
        if client is None:
            with httpx.Client(timeout=timeout) as owned:
                response = owned.post(url, headers=headers, json=body)
        else:
            response = client.post(url, headers=headers, json=body, timeout=timeout)
    except httpx.TimeoutException as e:
        raise ProviderTimeoutError(options.timeout_ms) from e
    except httpx.HTTPError as e:
        raise ProviderNetworkError(str(e) or e.__class__.__name__) from e

    try:
        data = response.json()
    except ValueError:
        data = None

    if not response.is_success:
        raise ProviderResponseError(
            _error_message(data) or f"{label} API error: {response.status_code}",
            status_code=response.status_code,
        )

    content = None
    if isinstance(data, dict):
        choices = data.get("choices") or []
        if choices and isinstance(choices[0], dict):
            content = (choices[0].get("message") or {}).get("content")

    if not content:
        raise ProviderResponseError(f"{label} returned an empty response")

    try:
        result = RewriteResult.model_validate(json.loads(content))
    except (TypeError, ValueError, ValidationError) as e:
        raise ProviderResponseError(f"{label} returned malformed JSON") from e

    usage = data.get("usage")
    if isinstance(usage, dict) and "prompt_tokens" in usage and "completion_tokens" in usage:
        result.usage = Usage(
            input_tokens=usage["prompt_tokens"],
            output_tokens=usage["completion_tokens"],
        )

    return result
