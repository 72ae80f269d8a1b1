"""Chat session state and slash-command processing."""

from dataclasses import dataclass, replace
from typing import Optional

from govuk_rewrite.constants import (
    DEFAULT_MODE,
    DEFAULT_MODELS,
    QUIT_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
    VALID_MODES,
    VALID_PROVIDERS,
)


@dataclass(frozen=True)
class ChatState:
    """Settings of an interactive session.

    Never mutated: every command or rewrite produces a new value.

    Attributes:
        provider: Active provider
        model: Provider-specific model identifier
        timeout_ms: Request deadline in milliseconds
        base_url: Optional base URL override
        mode: Content mode
        context: Optional service or audience description
        explain: Show explanation bullets
        check: Audit instead of rewriting
        diff: Show a line diff
        json: Machine-readable output
        spinner: Show a spinner while waiting
        copy: Copy the rewritten text to the clipboard
        tokens: Show token counts
    """

    provider: str
    model: str
    timeout_ms: int
    base_url: Optional[str] = None
    mode: str = DEFAULT_MODE
    context: Optional[str] = None
    explain: bool = False
    check: bool = False
    diff: bool = False
    json: bool = False
    spinner: bool = True
    copy: bool = False
    tokens: bool = False


@dataclass(frozen=True)
class ChatCommandResult:
    state: ChatState
    messages: list[str]
    quit: bool = False


@dataclass(frozen=True)
class ChatCommandDefinition:
    """Catalog entry for a slash command."""

    name: str
    description: str
    usage: Optional[str] = None
    hint: Optional[str] = None


@dataclass(frozen=True)
class ChatCommandSuggestion:
    command: str
    description: str
    expects_argument: bool


CHAT_COMMAND_DEFINITIONS: tuple[ChatCommandDefinition, ...] = (
    ChatCommandDefinition(name="help", description="Show available commands"),
    ChatCommandDefinition(
        name="provider",
        usage=f"<{'|'.join(VALID_PROVIDERS)}>",
        hint=f"Choose a provider: {', '.join(VALID_PROVIDERS)}",
        description="Set provider and reset model",
    ),
    ChatCommandDefinition(
        name="model",
        usage="<name>",
        hint="Type a model name, e.g. gpt-4.1-mini or claude-3-5-haiku-latest",
        description="Set model",
    ),
    ChatCommandDefinition(
        name="mode",
        usage=f"<{'|'.join(VALID_MODES)}>",
        hint=f"Choose a mode: {', '.join(VALID_MODES)}",
        description="Set rewrite mode",
    ),
    ChatCommandDefinition(
        name="context",
        usage="<text|clear>",
        hint="Type context text describing your service or audience, or 'clear' to remove it",
        description="Set context text or clear it",
    ),
    ChatCommandDefinition(
        name="explain",
        usage="on|off",
        hint="Type on to include bullet explanations of changes, or off to disable",
        description="Toggle explanation output",
    ),
    ChatCommandDefinition(
        name="check",
        usage="on|off",
        hint="Type on to audit style only without rewriting, or off to disable",
        description="Toggle check mode",
    ),
    ChatCommandDefinition(
        name="diff",
        usage="on|off",
        hint="Type on to show a line-by-line diff, or off to disable",
        description="Toggle diff output",
    ),
    ChatCommandDefinition(
        name="json",
        usage="on|off",
        hint="Type on for machine-readable JSON output, or off to disable",
        description="Toggle JSON output",
    ),
    ChatCommandDefinition(
        name="tokens",
        usage="on|off",
        hint="Type on to show input and output token counts after each request, or off to hide",
        description="Show input/output token counts",
    ),
    ChatCommandDefinition(name="show", description="Show active settings"),
    ChatCommandDefinition(name="quit", description="Exit interactive mode"),
)

KNOWN_CHAT_COMMANDS = frozenset(d.name for d in CHAT_COMMAND_DEFINITIONS)

# Toggle command -> (state field, label used in confirmations)
_TOGGLES: dict[str, tuple[str, str]] = {
    "explain": ("explain", "Explain"),
    "check": ("check", "Check mode"),
    "diff": ("diff", "Diff output"),
    "json": ("json", "JSON output"),
    "tokens": ("tokens", "Token counts"),
}


def parse_toggle(value: str) -> Optional[bool]:
    """Parse exactly "on" or "off" (case-sensitive)."""
    if value == "on":
        return True
    if value == "off":
        return False
    return None


def format_command_label(definition: ChatCommandDefinition) -> str:
    if definition.usage:
        return f"/{definition.name} {definition.usage}"
    return f"/{definition.name}"


def list_chat_command_suggestions(query: str = "") -> list[ChatCommandSuggestion]:
    """List commands whose name starts with query (without the slash).

    Args:
        query: Partial command name

    Returns:
        Suggestions in catalog order
    """
    normalized = query.strip().lower()
    return [
        ChatCommandSuggestion(
            command=f"/{d.name}",
            description=d.description,
            expects_argument=bool(d.usage),
        )
        for d in CHAT_COMMAND_DEFINITIONS
        if d.name.startswith(normalized)
    ]


def is_known_chat_command(token: str) -> bool:
    return token.strip().lower() in KNOWN_CHAT_COMMANDS


def get_completed_command_name(value: str) -> Optional[str]:
    """Return the command name once it has been typed in full and followed by a space."""
    if not value.startswith("/"):
        return None
    head, sep, _ = value[1:].partition(" ")
    if not sep or not head or any(c.isspace() for c in head):
        return None
    name = head.lower()
    return name if name in KNOWN_CHAT_COMMANDS else None


def get_command_guidance(name: str) -> Optional[str]:
    for d in CHAT_COMMAND_DEFINITIONS:
        if d.name == name:
            return d.hint
    return None


def help_text() -> str:
    """Formatted command catalog."""
    width = max(len(format_command_label(d)) for d in CHAT_COMMAND_DEFINITIONS)
    lines = ["Commands:"]
    for d in CHAT_COMMAND_DEFINITIONS:
        lines.append(f"  {format_command_label(d).ljust(width + 2)}{d.description}")
    return "\n".join(lines)


def _on_off(value: bool) -> str:
    return "on" if value else "off"


def state_summary(state: ChatState) -> list[str]:
    return [
        f"provider: {state.provider}",
        f"model: {state.model}",
        f"mode: {state.mode}",
        f"context: {state.context if state.context is not None else '(none)'}",
        f"explain: {_on_off(state.explain)}",
        f"check: {_on_off(state.check)}",
        f"diff: {_on_off(state.diff)}",
        f"json: {_on_off(state.json)}",
        f"copy: {_on_off(state.copy)}",
        f"tokens: {_on_off(state.tokens)}",
        f"spinner: {_on_off(state.spinner)}",
    ]


def apply_chat_command(command_line: str, state: ChatState) -> ChatCommandResult:
    """Apply a slash command to the session state.

    Pure function: never raises and never touches the outside world. Usage
    errors come back as messages with the state unchanged.

    Args:
        command_line: Input line starting with "/"
        state: Current state

    Returns:
        ChatCommandResult with the new state, messages and quit flag
    """
    trimmed = command_line.strip()
    if not trimmed.startswith("/"):
        return ChatCommandResult(state, [])

    body = trimmed[1:]
    if not body or body[0].isspace():
        return ChatCommandResult(state, [UNKNOWN_COMMAND_MESSAGE])

    words = body.split(maxsplit=1)
    command = words[0].lower()
    arg = words[1].strip() if len(words) > 1 else ""

    if command == "help":
        return ChatCommandResult(state, [help_text()])

    if command == "quit":
        return ChatCommandResult(state, [QUIT_MESSAGE], quit=True)

    if command == "show":
        return ChatCommandResult(state, state_summary(state))

    if command == "provider":
        if arg not in VALID_PROVIDERS:
            return ChatCommandResult(
                state, [f"Invalid provider. Valid values: {', '.join(VALID_PROVIDERS)}"]
            )
        # Models are provider-scoped, so switching always resets the model
        next_state = replace(state, provider=arg, model=DEFAULT_MODELS[arg])
        return ChatCommandResult(
            next_state, [f"Provider set to {arg}. Model reset to {next_state.model}."]
        )

    if command == "model":
        if not arg:
            return ChatCommandResult(state, ["Usage: /model <name>"])
        return ChatCommandResult(replace(state, model=arg), [f"Model set to {arg}."])

    if command == "mode":
        if arg not in VALID_MODES:
            return ChatCommandResult(
                state, [f"Invalid mode. Valid values: {', '.join(VALID_MODES)}"]
            )
        return ChatCommandResult(replace(state, mode=arg), [f"Mode set to {arg}."])

    if command == "context":
        if not arg:
            return ChatCommandResult(state, ["Usage: /context <text> or /context clear"])
        if arg.lower() == "clear":
            return ChatCommandResult(replace(state, context=None), ["Context cleared."])
        return ChatCommandResult(replace(state, context=arg), ["Context updated."])

    if command in _TOGGLES:
        field_name, label = _TOGGLES[command]
        toggle = parse_toggle(arg)
        if toggle is None:
            return ChatCommandResult(state, [f"Usage: /{command} on|off"])
        return ChatCommandResult(
            replace(state, **{field_name: toggle}),
            [f"{label} {'enabled' if toggle else 'disabled'}."],
        )

    return ChatCommandResult(state, [UNKNOWN_COMMAND_MESSAGE])
