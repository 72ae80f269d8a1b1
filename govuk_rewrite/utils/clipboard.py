"""Clipboard integration via the platform's copy command."""

import logging
import subprocess
import sys

logger = logging.getLogger(__name__)


def _clipboard_commands(platform: str) -> list[list[str]]:
    if platform == "darwin":
        return [["pbcopy"]]
    if platform.startswith("win"):
        return [["powershell", "-command", "Set-Clipboard -Value $input"]]
    return [
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def write_clipboard(text: str, platform: str = sys.platform) -> bool:
    """Copy text to the system clipboard.

    Args:
        text: Text to copy
        platform: Platform name (defaults to sys.platform)

    Returns:
        True if a copy command succeeded. Failure is never raised.
    """
    for command in _clipboard_commands(platform):
        try:
            subprocess.run(
                command,
                input=text,
                text=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=5,
            )
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Clipboard command %s failed: %s", command[0], e)
    return False
