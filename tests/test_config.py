"""Tests for configuration loading and resolution."""

import json

from govuk_rewrite.config import (
    CliOverrides,
    load_env_config,
    merge_config,
    read_config_file,
    resolve_api_key_for_provider,
    resolve_config,
    write_config_file,
)


def test_defaults():
    """Test resolution with nothing configured."""
    config = merge_config(CliOverrides(), {}, {})

    assert config.provider == "openai"
    assert config.model == "gpt-4.1-mini"
    assert config.timeout_ms == 30000
    assert config.base_url is None
    assert config.api_key is None


def test_provider_precedence():
    """Test that each tier overrides the ones below it."""
    file_config = {"provider": "anthropic"}
    env = {"GOVUK_REWRITE_PROVIDER": "openrouter"}

    assert merge_config(CliOverrides(), {}, file_config).provider == "anthropic"
    assert merge_config(CliOverrides(), env, file_config).provider == "openrouter"
    assert merge_config(CliOverrides(provider="openai"), env, file_config).provider == "openai"


def test_model_precedence():
    """Test model override order."""
    file_config = {"model": "file-model"}
    env = {"GOVUK_REWRITE_MODEL": "env-model"}

    assert merge_config(CliOverrides(), {}, file_config).model == "file-model"
    assert merge_config(CliOverrides(), env, file_config).model == "env-model"
    assert merge_config(CliOverrides(model="cli-model"), env, file_config).model == "cli-model"


def test_timeout_precedence():
    """Test timeout override order."""
    file_config = {"timeoutMs": 1000}
    env = {"GOVUK_REWRITE_TIMEOUT_MS": "2000"}

    assert merge_config(CliOverrides(), {}, file_config).timeout_ms == 1000
    assert merge_config(CliOverrides(), env, file_config).timeout_ms == 2000
    assert merge_config(CliOverrides(timeout=3000), env, file_config).timeout_ms == 3000


def test_base_url_precedence():
    """Test base URL override order."""
    file_config = {"baseUrl": "https://file.example"}
    env = {"GOVUK_REWRITE_BASE_URL": "https://env.example"}

    assert merge_config(CliOverrides(), {}, file_config).base_url == "https://file.example"
    assert merge_config(CliOverrides(), env, file_config).base_url == "https://env.example"


def test_provider_default_model_follows_provider():
    """Test that the default model matches the final provider."""
    config = merge_config(CliOverrides(provider="anthropic"), {}, {})

    assert config.model == "claude-3-5-sonnet-latest"


def test_explicit_model_survives_provider_change():
    """Test that an explicitly configured model is kept."""
    config = merge_config(CliOverrides(provider="openrouter"), {}, {"model": "my-model"})

    assert config.provider == "openrouter"
    assert config.model == "my-model"


def test_invalid_env_values_are_ignored():
    """Test that bad environment values do not override."""
    env = {
        "GOVUK_REWRITE_PROVIDER": "gemini",
        "GOVUK_REWRITE_TIMEOUT_MS": "soon",
        "GOVUK_REWRITE_MODEL": "",
    }

    assert load_env_config(env) == {}
    config = merge_config(CliOverrides(), env, {})
    assert config.provider == "openai"
    assert config.timeout_ms == 30000


def test_env_timeout_leading_integer():
    """Test that the leading integer of the timeout is used."""
    assert load_env_config({"GOVUK_REWRITE_TIMEOUT_MS": "4500ms"}) == {"timeoutMs": 4500}


def test_api_key_from_environment_only(env):
    """Test per-provider API key lookup."""
    assert resolve_api_key_for_provider("openai", env) == "sk-test"
    assert resolve_api_key_for_provider("anthropic", env) is None
    assert resolve_api_key_for_provider("openai", {"OPENAI_API_KEY": ""}) is None

    config = merge_config(CliOverrides(), env, {})
    assert config.api_key == "sk-test"


def test_write_and_read_config_file(config_path):
    """Test config file round trip and directory creation."""
    written = write_config_file({"provider": "anthropic", "timeoutMs": 5000}, config_path)

    assert str(written) == config_path
    assert written.read_text().endswith("\n")
    assert read_config_file(config_path) == {"provider": "anthropic", "timeoutMs": 5000}


def test_read_config_file_filters_invalid_fields(temp_dir):
    """Test that unknown or badly typed keys are dropped."""
    path = temp_dir / "config.json"
    path.write_text(json.dumps({
        "provider": "gemini",
        "model": 42,
        "timeoutMs": "fast",
        "baseUrl": "https://proxy.example",
        "apiKey": "sk-should-not-load",
    }))

    assert read_config_file(str(path)) == {"baseUrl": "https://proxy.example"}


def test_read_config_file_missing_or_malformed(temp_dir):
    """Test that missing and malformed files yield an empty dict."""
    assert read_config_file(str(temp_dir / "missing.json")) == {}

    bad = temp_dir / "bad.json"
    bad.write_text("{not json")
    assert read_config_file(str(bad)) == {}

    not_object = temp_dir / "list.json"
    not_object.write_text("[1, 2]")
    assert read_config_file(str(not_object)) == {}


def test_resolve_config_uses_file_and_env(config_path):
    """Test full resolution from a config file and an env snapshot."""
    write_config_file({"provider": "anthropic", "model": "claude-3-5-haiku-latest"}, config_path)

    config = resolve_config(
        CliOverrides(config=config_path),
        env={"ANTHROPIC_API_KEY": "sk-ant"},
    )

    assert config.provider == "anthropic"
    assert config.model == "claude-3-5-haiku-latest"
    assert config.api_key == "sk-ant"
