"""Interactive session core: input classification, key bootstrap, rewrite events.

Front-ends submit raw input and render the returned events. Nothing in this
module writes to the terminal.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Literal, Optional

from govuk_rewrite import engine
from govuk_rewrite.chat_input import first_line, first_slash_token, is_multiline
from govuk_rewrite.commands import ChatState, apply_chat_command, is_known_chat_command
from govuk_rewrite.config import (
    CliOverrides,
    ResolvedConfig,
    resolve_api_key_for_provider,
    resolve_config,
)
from govuk_rewrite.constants import (
    COPIED_MESSAGE,
    DEFAULT_MODE,
    NO_IMPROVEMENT_MESSAGE,
    VALID_MODES,
    VALID_PROVIDERS,
)
from govuk_rewrite.errors import (
    RewriteError,
    RuntimeFailure,
    UsageError,
    build_missing_api_key_error_lines,
    build_missing_api_key_error_message,
)
from govuk_rewrite.models import EngineOptions, RewriteRequest
from govuk_rewrite.output import detect_no_improvement, format_output, select_output_mode
from govuk_rewrite.utils.clipboard import write_clipboard
from govuk_rewrite.utils.diffs import normalize_line_endings
from govuk_rewrite.wizard import maybe_run_interactive_setup_on_missing_key

logger = logging.getLogger(__name__)

EventKind = Literal["assistant", "system", "error", "success"]


@dataclass(frozen=True)
class ChatSessionEvent:
    """One unit of session output. Front-ends choose how to style each kind."""

    kind: EventKind
    text: str


@dataclass(frozen=True)
class ChatSubmitResult:
    state: ChatState
    events: list[ChatSessionEvent]
    should_exit: bool = False


@dataclass(frozen=True)
class ChatOptions:
    """Options given when starting a chat session."""

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
    copy: bool = False
    tokens: bool = False


@dataclass(frozen=True)
class ChatBootstrapResult:
    state: ChatState
    config: ResolvedConfig
    overrides: CliOverrides


@dataclass
class ChatSessionDeps:
    """Collaborators of the session core, replaceable in tests and front-ends.

    ``ask`` and ``write_line`` are passed down to the setup wizard.
    """

    setup_runner: Callable = maybe_run_interactive_setup_on_missing_key
    config_resolver: Callable[[CliOverrides], ResolvedConfig] = resolve_config
    resolve_api_key: Callable[[str], Optional[str]] = resolve_api_key_for_provider
    rewrite_impl: Callable = engine.rewrite
    output_formatter: Callable[..., str] = format_output
    output_mode_selector: Callable = select_output_mode
    clipboard_writer: Callable[[str], bool] = write_clipboard
    ask: Optional[Callable[[str], str]] = None
    write_line: Optional[Callable[[str], None]] = None
    setup_kwargs: dict = field(default_factory=dict)


def supports_interactive_session(stdin_is_tty: bool, stdout_is_tty: bool) -> bool:
    return stdin_is_tty and stdout_is_tty


def validate_mode_and_provider(mode: Optional[str], provider: Optional[str]) -> None:
    """Reject invalid --mode / --provider values.

    Raises:
        UsageError: Value not in the allowed set
    """
    if mode and mode not in VALID_MODES:
        raise UsageError(
            f'Error: invalid --mode "{mode}". Valid values: {", ".join(VALID_MODES)}'
        )
    if provider and provider not in VALID_PROVIDERS:
        raise UsageError(
            f'Error: invalid --provider "{provider}". Valid values: {", ".join(VALID_PROVIDERS)}'
        )


def resolve_config_with_auto_setup(
    overrides: CliOverrides,
    deps: Optional[ChatSessionDeps] = None,
) -> ResolvedConfig:
    """Resolve config, offering setup once if no API key is available.

    The config is resolved again after setup ran so saved settings and an
    injected key are picked up.
    """
    deps = deps or ChatSessionDeps()
    config = deps.config_resolver(overrides)

    if not config.api_key:
        auto_setup = deps.setup_runner(
            provider=config.provider,
            config_path=overrides.config,
            ask=deps.ask,
            write_line=deps.write_line,
            **deps.setup_kwargs,
        )
        if auto_setup.ran:
            config = deps.config_resolver(overrides)

    return config


def bootstrap_chat_session(
    opts: ChatOptions, deps: Optional[ChatSessionDeps] = None
) -> ChatBootstrapResult:
    """Validate options, resolve configuration and build the initial state.

    Raises:
        UsageError: Invalid --mode or --provider
        RuntimeFailure: No API key even after the setup offer
    """
    validate_mode_and_provider(opts.mode, opts.provider)

    overrides = CliOverrides(
        provider=opts.provider,
        model=opts.model,
        timeout=opts.timeout,
        config=opts.config,
    )
    config = resolve_config_with_auto_setup(overrides, deps)

    if not config.api_key:
        raise RuntimeFailure(build_missing_api_key_error_message(config.provider))

    state = ChatState(
        provider=config.provider,
        model=config.model,
        timeout_ms=config.timeout_ms,
        base_url=config.base_url,
        mode=opts.mode or DEFAULT_MODE,
        context=opts.context,
        explain=opts.explain,
        check=opts.check,
        diff=opts.diff,
        json=opts.json,
        spinner=opts.spinner,
        copy=opts.copy,
        tokens=opts.tokens,
    )
    return ChatBootstrapResult(state=state, config=config, overrides=overrides)


def _command_result(command_line: str, state: ChatState) -> ChatSubmitResult:
    command = apply_chat_command(command_line, state)
    events = [ChatSessionEvent("system", message) for message in command.messages]
    return ChatSubmitResult(state=command.state, events=events, should_exit=command.quit)


def _bootstrap_api_key(
    state: ChatState,
    overrides: CliOverrides,
    deps: ChatSessionDeps,
    events: list[ChatSessionEvent],
) -> tuple[ChatState, Optional[str]]:
    """Find an API key for the current provider, offering setup if needed.

    Returns:
        Tuple of (possibly refreshed state, api key or None)
    """
    api_key = deps.resolve_api_key(state.provider)
    if api_key:
        return state, api_key

    setup_lines: list[str] = []
    setup_error: Optional[Exception] = None
    try:
        auto_setup = deps.setup_runner(
            provider=state.provider,
            config_path=overrides.config,
            ask=deps.ask,
            write_line=setup_lines.append,
            **deps.setup_kwargs,
        )
        if auto_setup.ran:
            refreshed = deps.config_resolver(overrides)
            # Never switch provider under the user mid-session
            if refreshed.provider == state.provider:
                state = replace(
                    state,
                    model=refreshed.model,
                    timeout_ms=refreshed.timeout_ms,
                    base_url=refreshed.base_url,
                )
    except (RewriteError, OSError, EOFError) as e:
        logger.debug("Setup failed", exc_info=True)
        setup_error = e

    events.extend(ChatSessionEvent("system", line) for line in setup_lines if line.strip())
    if setup_error is not None:
        events.append(ChatSessionEvent("error", f"Error: {setup_error}"))
    return state, deps.resolve_api_key(state.provider)


def handle_submitted_input(
    input_text: str,
    state: ChatState,
    overrides: Optional[CliOverrides] = None,
    deps: Optional[ChatSessionDeps] = None,
) -> ChatSubmitResult:
    """Process one submission from a front-end.

    Slash commands on a single line, or a recognized command on the first
    line of multi-line input, go to the command processor (any further lines
    are ignored). Everything else is rewrite payload. Rewrite failures become
    error events; the session never exits because of them.

    Args:
        input_text: Raw submitted text
        state: Current session state
        overrides: CLI overrides (config path used for setup refresh)
        deps: Collaborators

    Returns:
        ChatSubmitResult with the new state, ordered events and exit flag
    """
    overrides = overrides or CliOverrides()
    deps = deps or ChatSessionDeps()
    events: list[ChatSessionEvent] = []

    normalized = normalize_line_endings(input_text)
    trimmed = normalized.strip()
    if not trimmed:
        return ChatSubmitResult(state=state, events=events)

    multiline = is_multiline(trimmed)
    slash_token = first_slash_token(trimmed)

    if slash_token and (not multiline or is_known_chat_command(slash_token)):
        command_line = first_line(trimmed).strip() if multiline else trimmed
        return _command_result(command_line, state)

    # "/" or "/ help": slash input without a command word
    if not multiline and trimmed.startswith("/"):
        return _command_result(trimmed, state)

    next_state, api_key = _bootstrap_api_key(state, overrides, deps, events)

    if not api_key:
        events.extend(
            ChatSessionEvent("error", line)
            for line in build_missing_api_key_error_lines(next_state.provider)
            if line.strip()
        )
        return ChatSubmitResult(state=next_state, events=events)

    try:
        result = deps.rewrite_impl(
            RewriteRequest(
                text=trimmed,
                explain=next_state.explain,
                check=next_state.check,
                context=next_state.context,
                mode=next_state.mode,
            ),
            EngineOptions(
                provider=next_state.provider,
                api_key=api_key,
                model=next_state.model,
                timeout_ms=next_state.timeout_ms,
                base_url=next_state.base_url,
            ),
        )

        if detect_no_improvement(trimmed, result.rewritten_text, next_state.check):
            events.append(ChatSessionEvent("success", NO_IMPROVEMENT_MESSAGE))
        else:
            output_text = deps.output_formatter(
                result=result,
                mode=deps.output_mode_selector(next_state),
                provider=next_state.provider,
                model=next_state.model,
                original_text=trimmed,
                check_mode=next_state.check,
            )
            events.append(ChatSessionEvent("assistant", output_text))

        if next_state.tokens and result.usage is not None:
            events.append(
                ChatSessionEvent(
                    "system",
                    f"tokens: {result.usage.input_tokens} in / {result.usage.output_tokens} out",
                )
            )

        if next_state.copy and not next_state.check:
            if deps.clipboard_writer(result.rewritten_text):
                events.append(ChatSessionEvent("system", COPIED_MESSAGE))
    except Exception as e:
        logger.debug("Rewrite failed", exc_info=True)
        events.append(ChatSessionEvent("error", f"Error: {e}"))

    return ChatSubmitResult(state=next_state, events=events)
