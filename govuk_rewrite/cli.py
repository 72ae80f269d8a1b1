"""CLI and REPL for govuk-rewrite."""

import sys
from typing import Callable, Optional

import typer
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from govuk_rewrite.chat_input import (
    build_pending_preview_lines,
    first_slash_token,
    is_multiline,
    sanitize_chat_input,
)
from govuk_rewrite.commands import (
    ChatState,
    get_command_guidance,
    get_completed_command_name,
    list_chat_command_suggestions,
)
from govuk_rewrite.config import CliOverrides, get_app_dir
from govuk_rewrite.constants import APP_NAME, VALID_MODES
from govuk_rewrite.errors import RewriteError, RuntimeFailure, UsageError
from govuk_rewrite.oneshot import OneShotOptions, run_one_shot
from govuk_rewrite.session import (
    ChatOptions,
    ChatSessionDeps,
    ChatSessionEvent,
    bootstrap_chat_session,
    handle_submitted_input,
    supports_interactive_session,
)
from govuk_rewrite.utils.logging import SessionLogger, configure_logging
from govuk_rewrite.wizard import run_setup

app = typer.Typer(help="Rewrite text into GOV.UK-style content", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)

EVENT_STYLES = {
    "assistant": None,
    "system": "dim",
    "error": "red",
    "success": "green",
}

MODE_HELP = f"Content type: {' | '.join(VALID_MODES)} (default: page-body)"


def console_ask(question: str) -> str:
    """Question callback for the setup wizard."""
    return console.input(escape(question))


def console_write_line(line: str) -> None:
    err_console.print(line, markup=False, highlight=False)


class SlashCommandCompleter(Completer):
    """Completes slash command names from the command catalog."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/") or " " in text or "\n" in text:
            return
        for suggestion in list_chat_command_suggestions(text[1:]):
            yield Completion(
                suggestion.command,
                start_position=-len(text),
                display_meta=suggestion.description,
            )


class REPL:
    """Interactive REPL for govuk-rewrite."""

    def __init__(
        self,
        state: ChatState,
        overrides: CliOverrides,
        deps: ChatSessionDeps,
        logger: Optional[SessionLogger] = None,
        read_input: Optional[Callable[[], str]] = None,
    ):
        """Initialize REPL.

        Args:
            state: Initial session state
            overrides: CLI overrides used when re-resolving config
            deps: Session collaborators
            logger: Optional transcript logger
            read_input: Input reader (a prompt_toolkit session by default)
        """
        self.state = state
        self.overrides = overrides
        self.deps = deps
        self.logger = logger
        self.read_input = read_input or self._build_prompt_reader()
        self.running = True

    def _build_prompt_reader(self) -> Callable[[], str]:
        session: PromptSession = PromptSession(
            history=InMemoryHistory(),
            completer=SlashCommandCompleter(),
            complete_while_typing=True,
        )

        def toolbar() -> str:
            name = get_completed_command_name(session.default_buffer.text)
            return (name and get_command_guidance(name)) or ""

        return lambda: session.prompt(f"{APP_NAME}> ", bottom_toolbar=toolbar)

    def start(self) -> None:
        """Start the REPL."""
        console.print(Panel.fit(
            f"[bold cyan]{APP_NAME}[/bold cyan] - GOV.UK content rewriter\n"
            f"Provider: {self.state.provider}\n"
            f"Model: {escape(self.state.model)}\n"
            "\n"
            "Enter text to rewrite, or run /help for commands",
            border_style="cyan"
        ))
        if self.logger:
            console.print(f"[dim]Session log: {escape(self.logger.get_log_path())}[/dim]")

        while self.running:
            try:
                user_input = self.read_input()
            except KeyboardInterrupt:
                console.print("[dim]Use /quit to exit[/dim]")
                continue
            except EOFError:
                break

            self.handle_input(user_input)

    def handle_input(self, user_input: str) -> None:
        """Submit one input to the session core and render the events.

        Args:
            user_input: Raw text from the prompt
        """
        text = sanitize_chat_input(user_input)
        if not text.strip():
            return

        if self.logger:
            self.logger.log_input(text)

        if is_multiline(text.strip()):
            preview = build_pending_preview_lines(text.strip())
            console.print(f"[dim]Pasted {preview.line_count} lines[/dim]")
            for line in preview.preview_lines:
                console.print(f"[dim]  {escape(line)}[/dim]")
            if preview.remaining_line_count:
                console.print(f"[dim]  … {preview.remaining_line_count} more[/dim]")

        result = self._submit(text)
        self.state = result.state
        for event in result.events:
            self.render_event(event)

        if result.should_exit:
            self.running = False

    def _submit(self, text: str):
        will_call_provider = (
            self.state.spinner
            and first_slash_token(text.strip()) is None
            and self.deps.resolve_api_key(self.state.provider)
        )
        if will_call_provider:
            with console.status("Rewriting…"):
                return handle_submitted_input(text, self.state, self.overrides, self.deps)
        return handle_submitted_input(text, self.state, self.overrides, self.deps)

    def render_event(self, event: ChatSessionEvent) -> None:
        if self.logger:
            self.logger.log_event(event.kind, event.text)
        target = err_console if event.kind == "error" else console
        target.print(
            event.text,
            style=EVENT_STYLES.get(event.kind),
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


def _exit_with(error: RewriteError, hint: Optional[str] = None) -> None:
    err_console.print(str(error), markup=False, highlight=False)
    if hint:
        err_console.print(hint, markup=False, highlight=False)
    raise typer.Exit(code=getattr(error, "exit_code", 1))


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging on stderr"),
) -> None:
    """Rewrite text into GOV.UK-style content."""
    load_dotenv()
    if verbose:
        configure_logging(verbose, err_console)


@app.command("rewrite")
def rewrite_command(
    text: Optional[list[str]] = typer.Argument(None, help="Text to rewrite (or pipe via stdin)"),
    explain: bool = typer.Option(False, "--explain", help="Include a short explanation of changes"),
    diff: bool = typer.Option(False, "--diff", help="Show a line diff between original and rewritten text"),
    check: bool = typer.Option(False, "--check", help="Audit text for GOV.UK style issues without rewriting"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    context: Optional[str] = typer.Option(None, "--context", help="Service or audience context"),
    mode: Optional[str] = typer.Option(None, "--mode", help=MODE_HELP),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider: openai | anthropic | openrouter"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name for the chosen provider"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to a config.json file"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Request timeout in milliseconds"),
    spinner: bool = typer.Option(True, "--spinner/--no-spinner", help="Show a spinner while waiting"),
    copy: bool = typer.Option(True, "--copy/--no-copy", help="Auto-copy result to clipboard"),
    tokens: bool = typer.Option(False, "--tokens", help="Show input/output token counts"),
) -> None:
    """Rewrite a single piece of text."""
    opts = OneShotOptions(
        explain=explain,
        diff=diff,
        check=check,
        json=json_output,
        context=context,
        mode=mode,
        provider=provider,
        model=model,
        config=config,
        timeout=timeout,
        spinner=spinner,
        copy=copy,
        tokens=tokens,
    )
    deps = ChatSessionDeps(ask=console_ask, write_line=console_write_line)
    try:
        run_one_shot(text or [], opts, console, err_console, deps=deps)
    except UsageError as e:
        _exit_with(e, f"\nRun '{APP_NAME} rewrite --help' for usage information.")
    except RewriteError as e:
        _exit_with(e)
    except OSError as e:
        _exit_with(RuntimeFailure(f"Error: {e}"))


@app.command("chat")
def chat_command(
    explain: bool = typer.Option(False, "--explain", help="Include a short explanation of changes"),
    diff: bool = typer.Option(False, "--diff", help="Show a line diff between original and rewritten text"),
    check: bool = typer.Option(False, "--check", help="Audit text for GOV.UK style issues without rewriting"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
    context: Optional[str] = typer.Option(None, "--context", help="Service or audience context"),
    mode: Optional[str] = typer.Option(None, "--mode", help=MODE_HELP),
    provider: Optional[str] = typer.Option(None, "--provider", help="Provider: openai | anthropic | openrouter"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name for the chosen provider"),
    config: Optional[str] = typer.Option(None, "--config", help="Path to a config.json file"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Request timeout in milliseconds"),
    spinner: bool = typer.Option(True, "--spinner/--no-spinner", help="Show a spinner while waiting"),
    copy: bool = typer.Option(False, "--copy/--no-copy", help="Auto-copy result to clipboard"),
    tokens: bool = typer.Option(False, "--tokens", help="Show input/output token counts"),
    log: bool = typer.Option(False, "--log", help="Write a session transcript to the app directory"),
) -> None:
    """Start interactive rewrite mode."""
    if not supports_interactive_session(sys.stdin.isatty(), sys.stdout.isatty()):
        _exit_with(UsageError("Error: interactive mode requires a TTY for stdin and stdout."))

    opts = ChatOptions(
        explain=explain,
        diff=diff,
        check=check,
        json=json_output,
        context=context,
        mode=mode,
        provider=provider,
        model=model,
        config=config,
        timeout=timeout,
        spinner=spinner,
        copy=copy,
        tokens=tokens,
    )
    deps = ChatSessionDeps(ask=console_ask, write_line=console_write_line)

    try:
        bootstrap = bootstrap_chat_session(opts, deps)
    except RewriteError as e:
        _exit_with(e)
    except OSError as e:
        _exit_with(RuntimeFailure(f"Error: {e}"))

    logger = SessionLogger(get_app_dir() / "runs") if log else None
    REPL(bootstrap.state, bootstrap.overrides, deps, logger=logger).start()


@app.command("setup")
def setup_command(
    config: Optional[str] = typer.Option(None, "--config", help="Path to config.json to write"),
) -> None:
    """Run first-time setup wizard."""
    try:
        run_setup(config_path=config, ask=console_ask, write_line=console_write_line)
    except UsageError as e:
        _exit_with(e)
    except OSError as e:
        _exit_with(RuntimeFailure(f"Error: {e}"))


if __name__ == "__main__":
    app()
