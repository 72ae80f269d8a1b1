"""OpenRouter adapter (OpenAI-compatible chat completions)."""

from typing import Optional

import httpx

from govuk_rewrite.constants import (
    DEFAULT_BASE_URLS,
    OPENROUTER_REFERER,
    OPENROUTER_TITLE,
    PROVIDER_LABELS,
)
from govuk_rewrite.models import ProviderOptions, RewriteRequest, RewriteResult
from govuk_rewrite.providers.chat_completions import build_request_body, post_chat_completion


def rewrite(
    options: ProviderOptions,
    request: RewriteRequest,
    client: Optional[httpx.Client] = None,
) -> RewriteResult:
    """Rewrite text through OpenRouter.

    OpenRouter speaks the OpenAI wire format but also expects attribution
    headers identifying the calling application.
    """
    base_url = options.base_url or DEFAULT_BASE_URLS["openrouter"]
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {options.api_key}",
        "HTTP-Referer": OPENROUTER_REFERER,
        "X-Title": OPENROUTER_TITLE,
    }
    return post_chat_completion(
        f"{base_url}/v1/chat/completions",
        headers,
        build_request_body(options.model, request),
        options,
        PROVIDER_LABELS["openrouter"],
        client=client,
    )
