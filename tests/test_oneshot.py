"""Tests for one-shot rewriting."""

import io
import json

import pytest
from rich.console import Console

from govuk_rewrite.config import ResolvedConfig
from govuk_rewrite.constants import DIFF_HEADER
from govuk_rewrite.errors import RuntimeFailure, UsageError
from govuk_rewrite.models import RewriteResult, Usage
from govuk_rewrite.oneshot import OneShotOptions, resolve_input_text, run_one_shot
from govuk_rewrite.session import ChatSessionDeps


def make_console():
    return Console(file=io.StringIO(), width=200, force_terminal=False, color_system=None)


def make_deps(rewrite, api_key="sk-test", setup_runner=None):
    return ChatSessionDeps(
        rewrite_impl=rewrite,
        config_resolver=lambda overrides: ResolvedConfig(
            provider=overrides.provider or "openai",
            model=overrides.model or "gpt-4.1-mini",
            timeout_ms=overrides.timeout or 30000,
            api_key=api_key,
        ),
        setup_runner=setup_runner or (lambda **kwargs: pytest.fail("setup should not run")),
        clipboard_writer=lambda text: pytest.fail("clipboard should not be used"),
    )


def test_resolve_input_text():
    """Test that piped stdin wins over arguments."""
    assert resolve_input_text(["Please", "apply"], "", False) == "Please apply"
    assert resolve_input_text(["ignored"], "From stdin", True) == "From stdin"
    assert resolve_input_text([], "", False) == ""


def test_one_shot_plain_output(sample_result):
    """Test rewriting text given as arguments."""
    calls = []

    def fake_rewrite(request, options):
        calls.append((request, options))
        return sample_result

    console, err_console = make_console(), make_console()

    run_one_shot(
        ["Please", "kindly", "complete", "the", "form"],
        OneShotOptions(mode="button", provider="anthropic", timeout=5000),
        console,
        err_console,
        stdin_piped=False,
        deps=make_deps(fake_rewrite),
    )

    assert console.file.getvalue() == "Complete the form by Friday.\n"
    request, options = calls[0]
    assert request.text == "Please kindly complete the form"
    assert request.mode == "button"
    assert options.provider == "anthropic"
    assert options.timeout_ms == 5000


def test_one_shot_json_from_stdin(sample_result):
    """Test piped input with JSON output."""
    console = make_console()

    run_one_shot(
        [],
        OneShotOptions(json=True, explain=True),
        console,
        make_console(),
        stdin_piped=True,
        stdin_reader=lambda: "Please kindly complete the form",
        deps=make_deps(lambda request, options: sample_result),
    )

    payload = json.loads(console.file.getvalue())
    assert payload["rewrittenText"] == "Complete the form by Friday."
    assert payload["provider"] == "openai"
    assert payload["noImprovement"] is False


def test_one_shot_diff_output(sample_result):
    """Test that --diff renders the diff and --json still takes precedence."""
    console = make_console()

    run_one_shot(
        ["Please kindly complete the form"],
        OneShotOptions(diff=True, explain=True),
        console,
        make_console(),
        stdin_piped=False,
        deps=make_deps(lambda request, options: sample_result),
    )

    assert DIFF_HEADER in console.file.getvalue()
    assert "- Please kindly complete the form" in console.file.getvalue()

    console = make_console()
    run_one_shot(
        ["Please kindly complete the form"],
        OneShotOptions(diff=True, json=True),
        console,
        make_console(),
        stdin_piped=False,
        deps=make_deps(lambda request, options: sample_result),
    )

    assert json.loads(console.file.getvalue())["rewrittenText"] == "Complete the form by Friday."


def test_one_shot_tokens(sample_result):
    """Test token counts are written to stderr."""
    err_console = make_console()

    run_one_shot(
        ["Please apply"],
        OneShotOptions(tokens=True),
        make_console(),
        err_console,
        stdin_piped=False,
        deps=make_deps(lambda request, options: sample_result),
    )

    assert "tokens: 120 in / 30 out" in err_console.file.getvalue()


def test_one_shot_requires_input():
    """Test the usage error for empty input."""
    with pytest.raises(UsageError) as exc_info:
        run_one_shot(
            [],
            OneShotOptions(),
            make_console(),
            make_console(),
            stdin_piped=True,
            stdin_reader=lambda: "",
            deps=make_deps(lambda request, options: pytest.fail("no rewrite")),
        )

    assert exc_info.value.exit_code == 2


def test_one_shot_invalid_mode():
    """Test that invalid modes are rejected before any request."""
    with pytest.raises(UsageError):
        run_one_shot(
            ["text"],
            OneShotOptions(mode="essay"),
            make_console(),
            make_console(),
            stdin_piped=False,
            deps=make_deps(lambda request, options: pytest.fail("no rewrite")),
        )


def test_one_shot_missing_key(declined_setup):
    """Test the missing key failure after setup is declined."""
    with pytest.raises(RuntimeFailure) as exc_info:
        run_one_shot(
            ["text"],
            OneShotOptions(),
            make_console(),
            make_console(),
            stdin_piped=False,
            deps=make_deps(
                lambda request, options: pytest.fail("no rewrite"),
                api_key=None,
                setup_runner=declined_setup,
            ),
        )

    assert "export OPENAI_API_KEY=your-key-here" in str(exc_info.value)
    assert exc_info.value.exit_code == 1


def test_one_shot_rewrite_failure():
    """Test that provider errors become runtime failures."""
    def failing_rewrite(request, options):
        raise RuntimeError("Network error: connection refused")

    with pytest.raises(RuntimeFailure) as exc_info:
        run_one_shot(
            ["text"],
            OneShotOptions(),
            make_console(),
            make_console(),
            stdin_piped=False,
            deps=make_deps(failing_rewrite),
        )

    assert str(exc_info.value) == "Error: Network error: connection refused"


def test_one_shot_check_output():
    """Test check mode output."""
    console = make_console()
    result = RewriteResult(
        rewritten_text="", issues=["Passive voice"], usage=Usage(input_tokens=1, output_tokens=1)
    )

    run_one_shot(
        ["It was decided"],
        OneShotOptions(check=True),
        console,
        make_console(),
        stdin_piped=False,
        deps=make_deps(lambda request, options: result),
    )

    assert console.file.getvalue() == "Issues found:\n- Passive voice\n"
