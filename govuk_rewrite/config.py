"""Configuration loading and four-tier resolution.

Precedence, lowest to highest: built-in defaults, config file, environment,
CLI flags. API keys are only ever read from the environment.
"""

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

import typer

from govuk_rewrite.constants import (
    API_KEY_ENV_VARS,
    APP_NAME,
    CONFIG_FILE_NAME,
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    DEFAULT_TIMEOUT_MS,
    ENV_BASE_URL,
    ENV_MODEL,
    ENV_PROVIDER,
    ENV_TIMEOUT_MS,
    VALID_PROVIDERS,
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class ResolvedConfig:
    """Result of merging every configuration tier.

    An absent ``api_key`` is a normal outcome: callers offer setup instead
    of failing.
    """

    provider: str
    model: str
    timeout_ms: int
    base_url: Optional[str] = None
    api_key: Optional[str] = None


@dataclass(frozen=True)
class CliOverrides:
    """Values supplied on the command line."""

    provider: Optional[str] = None
    model: Optional[str] = None
    timeout: Optional[int] = None
    config: Optional[str] = None


def get_app_dir() -> Path:
    return Path(typer.get_app_dir(APP_NAME))


def get_default_config_file_path() -> Path:
    """Per-OS user config file location."""
    return get_app_dir() / CONFIG_FILE_NAME


def to_provider(value: Any) -> Optional[str]:
    if isinstance(value, str) and value in VALID_PROVIDERS:
        return value
    return None


def parse_leading_int(value: str) -> Optional[int]:
    """Parse the leading integer of a string ("3000ms" -> 3000)."""
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def read_config_file(custom_path: Optional[str] = None) -> dict[str, Any]:
    """Read the config file, keeping only recognized, well-typed keys.

    Args:
        custom_path: Optional path overriding the default location

    Returns:
        Dict with any of provider, model, timeoutMs, baseUrl. A missing,
        unreadable or malformed file yields an empty dict.
    """
    path = Path(custom_path) if custom_path else get_default_config_file_path()
    try:
        with open(path, encoding="utf-8") as f:
            parsed = json.load(f)
    except (OSError, ValueError):
        return {}

    if not isinstance(parsed, dict):
        return {}

    result: dict[str, Any] = {}
    provider = to_provider(parsed.get("provider"))
    if provider:
        result["provider"] = provider
    if isinstance(parsed.get("model"), str) and parsed["model"]:
        result["model"] = parsed["model"]
    timeout = parsed.get("timeoutMs")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        result["timeoutMs"] = timeout
    if isinstance(parsed.get("baseUrl"), str) and parsed["baseUrl"]:
        result["baseUrl"] = parsed["baseUrl"]
    return result


def write_config_file(config: dict[str, Any], custom_path: Optional[str] = None) -> Path:
    """Write non-secret configuration to disk.

    Args:
        config: Dict with provider and optional model, timeoutMs, baseUrl
        custom_path: Optional path overriding the default location

    Returns:
        Path written
    """
    path = Path(custom_path) if custom_path else get_default_config_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)
        f.write("\n")
    return path


def load_env_config(env: Mapping[str, str]) -> dict[str, Any]:
    """Extract configuration overrides from an environment snapshot."""
    result: dict[str, Any] = {}

    provider = to_provider(env.get(ENV_PROVIDER))
    if provider:
        result["provider"] = provider

    model = env.get(ENV_MODEL)
    if model:
        result["model"] = model

    timeout_raw = env.get(ENV_TIMEOUT_MS)
    if timeout_raw:
        parsed = parse_leading_int(timeout_raw)
        if parsed is not None:
            result["timeoutMs"] = parsed

    base_url = env.get(ENV_BASE_URL)
    if base_url:
        result["baseUrl"] = base_url

    return result


def get_api_key_env_var_for_provider(provider: str) -> str:
    return API_KEY_ENV_VARS[provider]


def resolve_api_key_for_provider(
    provider: str, env: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    """Look up the API key for a provider in the environment.

    Args:
        provider: Provider name
        env: Environment snapshot (defaults to os.environ)

    Returns:
        The key, or None when unset or empty
    """
    env = os.environ if env is None else env
    return env.get(API_KEY_ENV_VARS[provider]) or None


def merge_config(
    overrides: CliOverrides,
    env: Mapping[str, str],
    file_config: Mapping[str, Any],
) -> ResolvedConfig:
    """Merge defaults, file, environment and CLI tiers.

    Pure function of its inputs. The provider default model is applied only
    when no tier set a model explicitly.

    Args:
        overrides: CLI flag values
        env: Environment snapshot
        file_config: Parsed config file (see read_config_file)

    Returns:
        ResolvedConfig
    """
    env_config = load_env_config(env)

    merged: dict[str, Any] = {
        "provider": DEFAULT_PROVIDER,
        "model": DEFAULT_MODELS[DEFAULT_PROVIDER],
        "timeoutMs": DEFAULT_TIMEOUT_MS,
        "baseUrl": None,
    }
    merged.update(file_config)
    merged.update(env_config)

    cli_provider = to_provider(overrides.provider)
    if cli_provider:
        merged["provider"] = cli_provider
    if overrides.model:
        merged["model"] = overrides.model
    if overrides.timeout:
        merged["timeoutMs"] = overrides.timeout

    model_explicitly_set = file_config.get("model") or env_config.get("model") or overrides.model
    if not model_explicitly_set:
        merged["model"] = DEFAULT_MODELS[merged["provider"]]

    return ResolvedConfig(
        provider=merged["provider"],
        model=merged["model"],
        timeout_ms=merged["timeoutMs"],
        base_url=merged["baseUrl"],
        api_key=resolve_api_key_for_provider(merged["provider"], env),
    )


def resolve_config(
    overrides: Optional[CliOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ResolvedConfig:
    """Resolve configuration from the config file and the environment.

    Args:
        overrides: CLI flag values (config path included)
        env: Environment snapshot (defaults to os.environ)

    Returns:
        ResolvedConfig
    """
    overrides = overrides or CliOverrides()
    env = os.environ if env is None else env
    return merge_config(overrides, env, read_config_file(overrides.config))
