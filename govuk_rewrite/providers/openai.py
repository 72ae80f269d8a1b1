"""OpenAI chat-completions adapter."""

from typing import Optional

import httpx

from govuk_rewrite.constants import DEFAULT_BASE_URLS, PROVIDER_LABELS
from govuk_rewrite.models import ProviderOptions, RewriteRequest, RewriteResult
from govuk_rewrite.providers.chat_completions import build_request_body, post_chat_completion


def rewrite(
    options: ProviderOptions,
    request: RewriteRequest,
    client: Optional[httpx.Client] = None,
) -> RewriteResult:
    """Rewrite text with the OpenAI chat-completions API.

    Args:
        options: Resolved provider options
        request: Rewrite request
        client: Optional httpx client (used by tests)

    Returns:
        Normalized RewriteResult
    """
    base_url = options.base_url or DEFAULT_BASE_URLS["openai"]
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {options.api_key}",
    }
    return post_chat_completion(
        f"{base_url}/v1/chat/completions",
        headers,
        build_request_body(options.model, request),
        options,
        PROVIDER_LABELS["openai"],
        client=client,
    )
