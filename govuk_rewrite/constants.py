"""Constants and default values for govuk-rewrite."""

from typing import Literal

APP_NAME = "govuk-rewrite"

Provider = Literal["openai", "anthropic", "openrouter"]
ContentMode = Literal[
    "page-body",
    "error-message",
    "hint-text",
    "notification",
    "button",
    "heading",
    "form-label",
]

VALID_PROVIDERS: list[str] = ["openai", "anthropic", "openrouter"]

VALID_MODES: list[str] = [
    "page-body",
    "error-message",
    "hint-text",
    "notification",
    "button",
    "heading",
    "form-label",
]

DEFAULT_PROVIDER = "openai"
DEFAULT_MODE = "page-body"

# Request timeout (milliseconds)
DEFAULT_TIMEOUT_MS = 30000

# Default model per provider
DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4.1-mini",
    "anthropic": "claude-3-5-sonnet-latest",
    "openrouter": "openai/gpt-4.1-mini",
}

DEFAULT_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com",
    "anthropic": "https://api.anthropic.com",
    "openrouter": "https://openrouter.ai/api",
}

PROVIDER_LABELS: dict[str, str] = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
    "openrouter": "OpenRouter",
}

ANTHROPIC_MAX_TOKENS = 8192

OPENROUTER_REFERER = "https://github.com/govuk-rewrite"
OPENROUTER_TITLE = "govuk-rewrite"

# Credentials are only ever read from the environment
API_KEY_ENV_VARS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

API_KEY_LINKS: dict[str, str] = {
    "openai": "https://platform.openai.com/api-keys",
    "anthropic": "https://console.anthropic.com/settings/keys",
    "openrouter": "https://openrouter.ai/keys",
}

ENV_PROVIDER = "GOVUK_REWRITE_PROVIDER"
ENV_MODEL = "GOVUK_REWRITE_MODEL"
ENV_TIMEOUT_MS = "GOVUK_REWRITE_TIMEOUT_MS"
ENV_BASE_URL = "GOVUK_REWRITE_BASE_URL"

CONFIG_FILE_NAME = "config.json"

NO_IMPROVEMENT_MESSAGE = (
    "No improvement suggested. The text is already close to GOV.UK style."
)
NO_IMPROVEMENT_BULLET = (
    "No improvement suggested. The text already aligns with GOV.UK style."
)
NO_ISSUES_MESSAGE = "No issues found."
EXPLAIN_HEADER = "--- why this is better ---"
DIFF_HEADER = "--- diff ---"
ISSUES_HEADER = "Issues found:"

UNKNOWN_COMMAND_MESSAGE = "Unknown command. Run /help to see supported commands."
QUIT_MESSAGE = "Exiting interactive mode."
COPIED_MESSAGE = "(copied to clipboard)"

VERIFICATION_SAMPLE_TEXT = "Please kindly complete the form before Friday."
