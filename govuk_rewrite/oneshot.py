"""One-shot rewrite of text given as arguments or piped on stdin."""

import sys
from dataclasses import dataclass
from typing import Callable, Optional

from rich.console import Console

from govuk_rewrite.config import CliOverrides
from govuk_rewrite.constants import COPIED_MESSAGE, DEFAULT_MODE
from govuk_rewrite.errors import RuntimeFailure, UsageError, build_missing_api_key_error_message
from govuk_rewrite.models import EngineOptions, RewriteRequest
from govuk_rewrite.output import OutputFlags, format_output, select_output_mode
from govuk_rewrite.session import (
    ChatSessionDeps,
    resolve_config_with_auto_setup,
    validate_mode_and_provider,
)


@dataclass(frozen=True)
class OneShotOptions:
    explain: bool = False
    diff: bool = False
    check: bool = False
    json: bool = False
    context: Optional[str] = None
    mode: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    config: Optional[str] = None
    timeout: Optional[int] = None
    spinner: bool = True
    copy: bool = True
    tokens: bool = False


def resolve_input_text(text_args: list[str], stdin_text: str, stdin_piped: bool) -> str:
    """Piped stdin wins over positional arguments."""
    if stdin_piped:
        return stdin_text
    if text_args:
        return " ".join(text_args)
    return ""


def read_stdin() -> str:
    return sys.stdin.read().strip()


def run_one_shot(
    text_args: list[str],
    opts: OneShotOptions,
    console: Console,
    err_console: Console,
    stdin_piped: Optional[bool] = None,
    stdin_reader: Callable[[], str] = read_stdin,
    deps: Optional[ChatSessionDeps] = None,
) -> None:
    """Rewrite one piece of text and print the formatted result.

    Args:
        text_args: Positional text arguments
        opts: Invocation options
        console: Console for the result (stdout)
        err_console: Console for spinner, notes and errors (stderr)
        stdin_piped: Override stdin detection (tests)
        stdin_reader: Reads piped stdin
        deps: Collaborators (rewrite, config resolver, setup, clipboard)

    Raises:
        UsageError: No input text, or invalid --mode / --provider
        RuntimeFailure: Missing API key or a failed rewrite
    """
    deps = deps or ChatSessionDeps()
    if stdin_piped is None:
        stdin_piped = not sys.stdin.isatty()

    stdin_text = stdin_reader() if stdin_piped else ""
    input_text = resolve_input_text(text_args, stdin_text, stdin_piped)
    if not input_text:
        raise UsageError("Error: no input text. Pass text as arguments or pipe it via stdin.")

    validate_mode_and_provider(opts.mode, opts.provider)

    config = resolve_config_with_auto_setup(
        CliOverrides(
            provider=opts.provider,
            model=opts.model,
            timeout=opts.timeout,
            config=opts.config,
        ),
        deps,
    )
    if not config.api_key:
        raise RuntimeFailure(build_missing_api_key_error_message(config.provider))

    request = RewriteRequest(
        text=input_text,
        explain=opts.explain,
        check=opts.check,
        context=opts.context,
        mode=opts.mode or DEFAULT_MODE,
    )
    options = EngineOptions(
        provider=config.provider,
        api_key=config.api_key,
        model=config.model,
        timeout_ms=config.timeout_ms,
        base_url=config.base_url,
    )

    try:
        if opts.spinner and err_console.is_terminal:
            with err_console.status("Rewriting…"):
                result = deps.rewrite_impl(request, options)
        else:
            result = deps.rewrite_impl(request, options)
    except Exception as e:
        raise RuntimeFailure(f"Error: {e}") from e

    console.print(
        format_output(
            result=result,
            mode=select_output_mode(
                OutputFlags(explain=opts.explain, diff=opts.diff, check=opts.check, json=opts.json)
            ),
            provider=config.provider,
            model=config.model,
            original_text=input_text,
            check_mode=opts.check,
        ),
        markup=False,
        highlight=False,
        soft_wrap=True,
    )

    if opts.tokens and result.usage is not None:
        err_console.print(
            f"tokens: {result.usage.input_tokens} in / {result.usage.output_tokens} out",
            style="dim",
            markup=False,
        )

    if console.is_terminal and opts.copy and not opts.check:
        if deps.clipboard_writer(result.rewritten_text):
            err_console.print(COPIED_MESSAGE, style="dim", markup=False)
