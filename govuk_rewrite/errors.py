"""Exception hierarchy and user-facing error messages."""

from typing import Optional

from govuk_rewrite.constants import API_KEY_ENV_VARS, API_KEY_LINKS


class RewriteError(Exception):
    """Base class for all govuk-rewrite errors."""


class EngineOptionsError(RewriteError):
    """Engine options could not be normalized."""


class MissingApiKeyError(EngineOptionsError):
    def __init__(self, provider: str):
        super().__init__(f'Missing apiKey for provider "{provider}"')
        self.provider = provider


class MissingModelError(EngineOptionsError):
    def __init__(self, provider: str):
        super().__init__(f'Missing model for provider "{provider}"')
        self.provider = provider


class InvalidTimeoutError(EngineOptionsError):
    def __init__(self):
        super().__init__("timeoutMs must be a positive number")


class ProviderError(RewriteError):
    """A provider call failed (transport or protocol)."""


class ProviderTimeoutError(ProviderError):
    def __init__(self, timeout_ms: int):
        super().__init__(f"Request timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class ProviderNetworkError(ProviderError):
    def __init__(self, detail: str):
        super().__init__(f"Network error: {detail}")
        self.detail = detail


class ProviderResponseError(ProviderError):
    """Non-2xx status, empty body or malformed payload from a provider."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UsageError(RewriteError):
    """Bad invocation (invalid flag values, missing input, no TTY)."""

    exit_code = 2


class RuntimeFailure(RewriteError):
    """Runtime, provider or configuration failure of an invocation."""

    exit_code = 1


def build_missing_api_key_error_lines(provider: str) -> list[str]:
    """Build the multi-line explanation shown when no API key is available.

    Args:
        provider: Provider whose key is missing

    Returns:
        Message lines (blank lines included as empty strings)
    """
    env_var = API_KEY_ENV_VARS[provider]
    return [
        f'Error: no API key found for provider "{provider}".',
        "",
        f"Set the {env_var} environment variable:",
        f"  export {env_var}=your-key-here",
        "",
        f"Get a key at: {API_KEY_LINKS[provider]}",
        "",
        "Using a different provider? Pass --provider openai | anthropic | openrouter",
        "",
    ]


def build_missing_api_key_error_message(provider: str) -> str:
    return "\n".join(build_missing_api_key_error_lines(provider))
