"""Engine: option normalization and provider dispatch."""

import logging
import math
from typing import Callable, Optional

from govuk_rewrite.constants import DEFAULT_MODELS, DEFAULT_TIMEOUT_MS
from govuk_rewrite.errors import InvalidTimeoutError, MissingApiKeyError, MissingModelError
from govuk_rewrite.models import (
    EngineOptions,
    NormalizedEngineOptions,
    ProviderOptions,
    RewriteRequest,
    RewriteResult,
)
from govuk_rewrite.providers import anthropic, openai, openrouter

logger = logging.getLogger(__name__)

ProviderAdapter = Callable[[ProviderOptions, RewriteRequest], RewriteResult]

ADAPTERS: dict[str, ProviderAdapter] = {
    "openai": openai.rewrite,
    "anthropic": anthropic.rewrite,
    "openrouter": openrouter.rewrite,
}


def normalize_engine_options(options: EngineOptions) -> NormalizedEngineOptions:
    """Validate engine options and fill in defaults.

    Args:
        options: Caller-supplied options

    Returns:
        NormalizedEngineOptions with key, model and timeout resolved

    Raises:
        MissingApiKeyError: The trimmed API key is empty
        MissingModelError: No model given and no default for the provider
        InvalidTimeoutError: Timeout is non-finite or not positive
    """
    api_key = (options.api_key or "").strip()
    if not api_key:
        raise MissingApiKeyError(options.provider)

    model = (options.model or "").strip() or DEFAULT_MODELS.get(options.provider)
    if not model:
        raise MissingModelError(options.provider)

    timeout_ms = DEFAULT_TIMEOUT_MS if options.timeout_ms is None else options.timeout_ms
    if (
        isinstance(timeout_ms, bool)
        or not isinstance(timeout_ms, (int, float))
        or not math.isfinite(timeout_ms)
        or timeout_ms <= 0
    ):
        raise InvalidTimeoutError()

    base_url = (options.base_url or "").strip()

    return NormalizedEngineOptions(
        provider=options.provider,
        api_key=api_key,
        model=model,
        timeout_ms=int(timeout_ms),
        base_url=base_url or None,
    )


def select_adapter(provider: str) -> ProviderAdapter:
    return ADAPTERS[provider]


def rewrite(request: RewriteRequest, options: EngineOptions) -> RewriteResult:
    """Rewrite (or check) text with the configured provider.

    Args:
        request: Rewrite request
        options: Engine options

    Returns:
        Normalized RewriteResult
    """
    normalized = normalize_engine_options(options)
    logger.debug(
        "Dispatching rewrite provider=%s model=%s check=%s",
        normalized.provider,
        normalized.model,
        request.check,
    )
    adapter = select_adapter(normalized.provider)
    return adapter(normalized.to_provider_options(), request)


class RewriteClient:
    """Rewrite client bound to a fixed set of engine options."""

    def __init__(self, options: EngineOptions):
        self.options = options

    def rewrite(self, request: RewriteRequest) -> RewriteResult:
        return rewrite(request, self.options)


def create_client(
    provider: str,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    timeout_ms: Optional[float] = None,
    base_url: Optional[str] = None,
) -> RewriteClient:
    """Create a RewriteClient from keyword options."""
    return RewriteClient(
        EngineOptions(
            provider=provider,
            api_key=api_key,
            model=model,
            timeout_ms=timeout_ms,
            base_url=base_url,
        )
    )
