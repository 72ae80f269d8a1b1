"""Interactive setup wizard and the automatic setup offer.

The wizard only writes non-secret settings to disk. An API key typed in
during setup is handed back to the caller for in-process use.
"""

import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, MutableMapping, Optional

from govuk_rewrite import engine
from govuk_rewrite.config import (
    get_api_key_env_var_for_provider,
    get_default_config_file_path,
    read_config_file,
    write_config_file,
)
from govuk_rewrite.constants import (
    APP_NAME,
    DEFAULT_MODE,
    DEFAULT_MODELS,
    DEFAULT_PROVIDER,
    DEFAULT_TIMEOUT_MS,
    VALID_PROVIDERS,
    VERIFICATION_SAMPLE_TEXT,
)
from govuk_rewrite.errors import UsageError
from govuk_rewrite.models import EngineOptions, RewriteRequest

Ask = Callable[[str], str]
WriteLine = Callable[[str], None]


@dataclass(frozen=True)
class SetupResult:
    """Outcome of a completed setup run."""

    ran: bool
    api_key_set: bool
    provider: str
    env_var_name: str
    config_path: str
    api_key: Optional[str] = None


@dataclass(frozen=True)
class AutoSetupResult:
    ran: bool
    api_key_set: bool


def supports_interactive_setup(
    stdin_is_tty: Optional[bool] = None, stdout_is_tty: Optional[bool] = None
) -> bool:
    if stdin_is_tty is None:
        stdin_is_tty = sys.stdin.isatty()
    if stdout_is_tty is None:
        stdout_is_tty = sys.stdout.isatty()
    return stdin_is_tty and stdout_is_tty


def build_setup_non_interactive_message(custom_path: Optional[str] = None) -> str:
    config_path = custom_path or str(get_default_config_file_path())
    return "\n".join(
        [
            "Error: setup requires interactive stdin and stdout.",
            "",
            "Run this command directly in a terminal:",
            f"  {APP_NAME} setup",
            "",
            f"Config file path: {config_path}",
        ]
    )


def default_write_line(line: str) -> None:
    print(line, file=sys.stderr)


def default_ask(question: str) -> str:
    sys.stderr.write(question)
    sys.stderr.flush()
    line = sys.stdin.readline()
    if not line:
        raise EOFError
    return line.rstrip("\n")


def parse_yes_no(answer: str, default: bool) -> Optional[bool]:
    normalized = answer.strip().lower()
    if not normalized:
        return default
    if normalized in ("y", "yes"):
        return True
    if normalized in ("n", "no"):
        return False
    return None


def ask_yes_no(ask: Ask, write_line: WriteLine, question: str, default: bool) -> bool:
    """Ask until the answer is y/yes/n/no or blank (default)."""
    while True:
        parsed = parse_yes_no(ask(question), default)
        if parsed is not None:
            return parsed
        write_line("Please answer y or n.")


def ask_provider(ask: Ask, write_line: WriteLine, current: str) -> str:
    while True:
        answer = ask(f"Provider [{current}] ({'|'.join(VALID_PROVIDERS)}): ").strip().lower()
        if not answer:
            return current
        if answer in VALID_PROVIDERS:
            return answer
        write_line(f"Invalid provider. Valid values: {', '.join(VALID_PROVIDERS)}")


def ask_optional_timeout(ask: Ask, write_line: WriteLine) -> Optional[int]:
    """Ask for a timeout override; blank keeps the built-in default."""
    while True:
        answer = ask(f"Timeout in ms (leave blank for default {DEFAULT_TIMEOUT_MS}): ").strip()
        if not answer:
            return None
        if answer.isdecimal() and int(answer) > 0:
            return int(answer)
        write_line("Timeout must be a positive integer.")


def build_config_to_persist(
    provider: str,
    model: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    base_url: Optional[str] = None,
) -> dict[str, Any]:
    """Build the non-secret config dict written to disk."""
    config: dict[str, Any] = {"provider": provider}
    if model and model.strip():
        config["model"] = model.strip()
    if timeout_ms is not None:
        config["timeoutMs"] = timeout_ms
    if base_url and base_url.strip():
        config["baseUrl"] = base_url.strip()
    return config


def run_setup(
    config_path: Optional[str] = None,
    preferred_provider: Optional[str] = None,
    ask: Optional[Ask] = None,
    write_line: Optional[WriteLine] = None,
    stdin_is_tty: Optional[bool] = None,
    stdout_is_tty: Optional[bool] = None,
    read_config: Callable[[Optional[str]], dict] = read_config_file,
    write_config: Callable[[dict, Optional[str]], Any] = write_config_file,
    rewrite_impl: Callable = engine.rewrite,
) -> SetupResult:
    """Run the guided setup.

    Args:
        config_path: Config file to write (default per-OS location)
        preferred_provider: Provider offered as the default answer
        ask: Question callback returning the typed answer
        write_line: Output callback for informational lines
        stdin_is_tty: Override TTY detection (tests)
        stdout_is_tty: Override TTY detection (tests)
        read_config: Config reader
        write_config: Config writer
        rewrite_impl: Rewrite function used for the verification request

    Returns:
        SetupResult, including the typed API key if one was given

    Raises:
        UsageError: stdin or stdout is not interactive
    """
    if not supports_interactive_setup(stdin_is_tty, stdout_is_tty):
        raise UsageError(build_setup_non_interactive_message(config_path))

    ask = ask or default_ask
    write_line = write_line or default_write_line
    config_path = config_path or str(get_default_config_file_path())

    existing = read_config(config_path)
    default_provider = preferred_provider or existing.get("provider") or DEFAULT_PROVIDER

    write_line(f"{APP_NAME} setup")
    write_line("This will save provider defaults to your local config file.")

    provider = ask_provider(ask, write_line, default_provider)
    default_model = DEFAULT_MODELS[provider]

    model = ask(
        f"Model override (leave blank for provider default: {default_model}): "
    ).strip() or None

    timeout_ms = ask_optional_timeout(ask, write_line)

    base_url = ask("Base URL override (leave blank to clear): ").strip() or None

    env_var_name = get_api_key_env_var_for_provider(provider)
    api_key = ask(f"API key for {env_var_name} (optional, leave blank to skip): ").strip() or None

    should_verify = ask_yes_no(ask, write_line, "Run a verification request now? [y/N]: ", False)

    if should_verify:
        if not api_key:
            write_line("Skipping verification because no API key was provided.")
        else:
            try:
                rewrite_impl(
                    RewriteRequest(text=VERIFICATION_SAMPLE_TEXT, explain=False, mode=DEFAULT_MODE),
                    EngineOptions(
                        provider=provider,
                        api_key=api_key,
                        model=model or default_model,
                        timeout_ms=timeout_ms or DEFAULT_TIMEOUT_MS,
                        base_url=base_url,
                    ),
                )
                write_line("Verification successful.")
            except Exception as e:
                write_line(f"Verification failed: {e}")

    write_config(
        build_config_to_persist(provider, model=model, timeout_ms=timeout_ms, base_url=base_url),
        config_path,
    )

    write_line(f"Saved config to {config_path}")
    write_line("")
    write_line("Set your API key in your shell profile:")
    write_line(f"  export {env_var_name}=your-key-here")
    write_line("")
    write_line("Then run:")
    write_line(f'  {APP_NAME} rewrite "Please kindly complete the form"')
    write_line(f"  {APP_NAME} chat")

    return SetupResult(
        ran=True,
        api_key_set=bool(api_key),
        provider=provider,
        env_var_name=env_var_name,
        config_path=config_path,
        api_key=api_key,
    )


def maybe_run_interactive_setup_on_missing_key(
    provider: str,
    config_path: Optional[str] = None,
    ask: Optional[Ask] = None,
    write_line: Optional[WriteLine] = None,
    stdin_is_tty: Optional[bool] = None,
    stdout_is_tty: Optional[bool] = None,
    environ: Optional[MutableMapping[str, str]] = None,
    run_setup_impl: Callable[..., SetupResult] = run_setup,
) -> AutoSetupResult:
    """Offer setup after a missing API key was detected.

    Declining (or a non-interactive terminal) returns ``ran=False``. A key
    typed during setup is injected into ``environ`` (os.environ by default)
    so the rest of the process can use it.

    Args:
        provider: Provider whose key is missing
        config_path: Config file path
        ask: Question callback
        write_line: Output callback
        stdin_is_tty: Override TTY detection (tests)
        stdout_is_tty: Override TTY detection (tests)
        environ: Environment mapping receiving the key
        run_setup_impl: Setup implementation

    Returns:
        AutoSetupResult
    """
    if not supports_interactive_setup(stdin_is_tty, stdout_is_tty):
        return AutoSetupResult(ran=False, api_key_set=False)

    ask = ask or default_ask
    write_line = write_line or default_write_line

    if not ask_yes_no(ask, write_line, "No API key found. Run setup now? [Y/n]: ", True):
        return AutoSetupResult(ran=False, api_key_set=False)

    result = run_setup_impl(
        config_path=config_path,
        preferred_provider=provider,
        ask=ask,
        write_line=write_line,
        stdin_is_tty=True,
        stdout_is_tty=True,
    )

    if result.api_key:
        env = os.environ if environ is None else environ
        env[result.env_var_name] = result.api_key
        return AutoSetupResult(ran=True, api_key_set=True)

    return AutoSetupResult(ran=True, api_key_set=False)
