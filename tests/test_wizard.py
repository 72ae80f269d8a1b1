"""Tests for the setup wizard."""

import json

import pytest

from govuk_rewrite.errors import UsageError
from govuk_rewrite.models import RewriteResult
from govuk_rewrite.wizard import (
    SetupResult,
    build_config_to_persist,
    maybe_run_interactive_setup_on_missing_key,
    parse_yes_no,
    run_setup,
)


class ScriptedAsk:
    """Answers questions from a list and records what was asked."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, question):
        self.questions.append(question)
        return self.answers.pop(0)


def run_scripted_setup(config_path, answers, rewrite_impl=None, **kwargs):
    ask = ScriptedAsk(answers)
    lines = []
    result = run_setup(
        config_path=config_path,
        ask=ask,
        write_line=lines.append,
        stdin_is_tty=True,
        stdout_is_tty=True,
        rewrite_impl=rewrite_impl or (lambda request, options: pytest.fail("unexpected rewrite")),
        **kwargs,
    )
    return result, ask, lines


def test_setup_writes_config_without_secret(config_path):
    """Test that the API key is returned but never persisted."""
    result, ask, lines = run_scripted_setup(
        config_path,
        ["anthropic", "", "15000", "https://proxy.example ", "sk-ant-secret", "n"],
    )

    assert result.ran
    assert result.provider == "anthropic"
    assert result.env_var_name == "ANTHROPIC_API_KEY"
    assert result.api_key == "sk-ant-secret"
    assert result.api_key_set

    with open(config_path) as f:
        saved = json.load(f)
    assert saved == {
        "provider": "anthropic",
        "timeoutMs": 15000,
        "baseUrl": "https://proxy.example",
    }
    assert "sk-ant-secret" not in open(config_path).read()
    assert f"Saved config to {config_path}" in lines
    assert "  export ANTHROPIC_API_KEY=your-key-here" in lines


def test_setup_reasks_invalid_answers(config_path):
    """Test that provider, timeout and yes/no are re-asked until valid."""
    result, ask, lines = run_scripted_setup(
        config_path,
        ["gemini", "openrouter", "my-model", "-1", "abc", "", "", "", "maybe", "no"],
    )

    assert result.provider == "openrouter"
    assert result.api_key is None
    assert "Invalid provider. Valid values: openai, anthropic, openrouter" in lines
    assert lines.count("Timeout must be a positive integer.") == 2
    assert "Please answer y or n." in lines

    with open(config_path) as f:
        assert json.load(f) == {"provider": "openrouter", "model": "my-model"}


def test_setup_defaults_to_existing_provider(config_path):
    """Test that a blank provider answer keeps the saved provider."""
    run_scripted_setup(config_path, ["anthropic", "", "", "", "", ""])

    result, ask, _ = run_scripted_setup(config_path, ["", "", "", "", "", ""])

    assert result.provider == "anthropic"
    assert ask.questions[0].startswith("Provider [anthropic]")


def test_setup_verification_success(config_path):
    """Test the verification request uses the chosen settings."""
    calls = []

    def fake_rewrite(request, options):
        calls.append((request, options))
        return RewriteResult(rewritten_text="Complete the form before Friday.")

    _, _, lines = run_scripted_setup(
        config_path, ["openai", "gpt-4o", "", "", "sk-openai", "y"], rewrite_impl=fake_rewrite
    )

    request, options = calls[0]
    assert request.text == "Please kindly complete the form before Friday."
    assert options.api_key == "sk-openai"
    assert options.model == "gpt-4o"
    assert options.timeout_ms == 30000
    assert "Verification successful." in lines


def test_setup_verification_failure_is_reported(config_path):
    """Test that a failed verification does not abort setup."""
    def failing_rewrite(request, options):
        raise RuntimeError("Incorrect API key provided")

    result, _, lines = run_scripted_setup(
        config_path, ["openai", "", "", "", "sk-bad", "yes"], rewrite_impl=failing_rewrite
    )

    assert "Verification failed: Incorrect API key provided" in lines
    assert result.ran
    with open(config_path) as f:
        assert json.load(f) == {"provider": "openai"}


def test_setup_skips_verification_without_key(config_path):
    """Test that verification needs a key."""
    _, _, lines = run_scripted_setup(config_path, ["openai", "", "", "", "", "y"])

    assert "Skipping verification because no API key was provided." in lines


def test_setup_requires_tty(config_path):
    """Test the non-interactive guard."""
    with pytest.raises(UsageError) as exc_info:
        run_setup(config_path=config_path, stdin_is_tty=False, stdout_is_tty=True)

    assert "setup requires interactive stdin and stdout" in str(exc_info.value)
    assert config_path in str(exc_info.value)


def test_parse_yes_no():
    """Test yes/no parsing and defaults."""
    assert parse_yes_no("", True) is True
    assert parse_yes_no("  ", False) is False
    assert parse_yes_no("YES", False) is True
    assert parse_yes_no("n", True) is False
    assert parse_yes_no("sure", True) is None


def test_build_config_to_persist():
    """Test that blank optional fields are omitted."""
    assert build_config_to_persist("openai", model="  ", base_url="") == {"provider": "openai"}


def make_setup_result(api_key):
    return SetupResult(
        ran=True,
        api_key_set=bool(api_key),
        provider="openai",
        env_var_name="OPENAI_API_KEY",
        config_path="/tmp/config.json",
        api_key=api_key,
    )


def test_auto_setup_injects_key():
    """Test that a key typed during setup reaches the environment."""
    environ = {}
    calls = []

    def fake_setup(**kwargs):
        calls.append(kwargs)
        return make_setup_result("sk-typed")

    result = maybe_run_interactive_setup_on_missing_key(
        "openai",
        config_path="/tmp/config.json",
        ask=ScriptedAsk([""]),
        write_line=lambda line: None,
        stdin_is_tty=True,
        stdout_is_tty=True,
        environ=environ,
        run_setup_impl=fake_setup,
    )

    assert result.ran and result.api_key_set
    assert environ == {"OPENAI_API_KEY": "sk-typed"}
    assert calls[0]["preferred_provider"] == "openai"
    assert calls[0]["config_path"] == "/tmp/config.json"


def test_auto_setup_declined():
    """Test declining the setup offer."""
    ask = ScriptedAsk(["n"])

    result = maybe_run_interactive_setup_on_missing_key(
        "openai",
        ask=ask,
        write_line=lambda line: None,
        stdin_is_tty=True,
        stdout_is_tty=True,
        environ={},
        run_setup_impl=lambda **kwargs: pytest.fail("setup should not run"),
    )

    assert not result.ran
    assert ask.questions == ["No API key found. Run setup now? [Y/n]: "]


def test_auto_setup_skipped_without_tty():
    """Test that no offer is made without a terminal."""
    result = maybe_run_interactive_setup_on_missing_key(
        "openai",
        ask=lambda question: pytest.fail("should not ask"),
        stdin_is_tty=False,
        stdout_is_tty=False,
    )

    assert not result.ran
    assert not result.api_key_set


def test_auto_setup_without_key_leaves_environment():
    """Test that a setup run with no key does not touch the environment."""
    environ = {}

    result = maybe_run_interactive_setup_on_missing_key(
        "openai",
        ask=ScriptedAsk(["y"]),
        write_line=lambda line: None,
        stdin_is_tty=True,
        stdout_is_tty=True,
        environ=environ,
        run_setup_impl=lambda **kwargs: make_setup_result(None),
    )

    assert result.ran
    assert not result.api_key_set
    assert environ == {}


def test_setup_rejects_non_ascii_digit_timeout(config_path):
    """Test that digit-like characters int() cannot parse are re-asked."""
    result, ask, lines = run_scripted_setup(
        config_path,
        ["openai", "", "²", "1.5", "5000", "", "", "n"],
    )

    assert result.ran
    assert lines.count("Timeout must be a positive integer.") == 2

    with open(config_path) as f:
        assert json.load(f) == {"provider": "openai", "timeoutMs": 5000}
