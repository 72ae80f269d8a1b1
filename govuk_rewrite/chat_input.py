"""Raw chat input handling: paste markers, line endings, slash tokens."""

from dataclasses import dataclass
from typing import Optional

from govuk_rewrite.utils.diffs import normalize_line_endings

BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"
# Some terminals deliver the markers without the escape byte
START_MARKERS = (BRACKETED_PASTE_START, "[200~")
END_MARKERS = (BRACKETED_PASTE_END, "[201~")


@dataclass(frozen=True)
class PendingPreviewLines:
    line_count: int
    preview_lines: list[str]
    remaining_line_count: int


def _truncate_line(line: str, max_line_length: int) -> str:
    if len(line) <= max_line_length:
        return line
    return f"{line[:max_line_length - 1]}…"


def strip_bracketed_paste_markers(text: str) -> str:
    """Strip paste markers at the start and end of text only.

    Marker-like content in the middle of pasted text is left alone.
    """
    value = text

    stripped = True
    while stripped:
        stripped = False
        for marker in START_MARKERS:
            if value.startswith(marker):
                value = value[len(marker):]
                stripped = True
                break

    stripped = True
    while stripped:
        stripped = False
        for marker in END_MARKERS:
            if value.endswith(marker):
                value = value[: len(value) - len(marker)]
                stripped = True
                break

    return value


def sanitize_chat_input(text: str) -> str:
    return normalize_line_endings(strip_bracketed_paste_markers(text))


def is_multiline(text: str) -> bool:
    return "\n" in text


def first_line(text: str) -> str:
    return normalize_line_endings(text).split("\n", 1)[0]


def first_slash_token(text: str) -> Optional[str]:
    """Return the lowercase command word if the first line starts with "/".

    Args:
        text: Raw input

    Returns:
        Command token, or None when the first line is not a slash command
    """
    line = first_line(text).lstrip()
    if not line.startswith("/"):
        return None
    words = line[1:].split(maxsplit=1)
    if not words or line[1:2].isspace():
        return None
    return words[0].lower()


def build_pending_preview_lines(
    text: str, max_lines: int = 2, max_line_length: int = 120
) -> PendingPreviewLines:
    """Summarize a pasted block for confirmation before it is submitted.

    Args:
        text: Pasted text
        max_lines: Maximum preview lines
        max_line_length: Lines longer than this are truncated with an ellipsis

    Returns:
        PendingPreviewLines
    """
    lines = normalize_line_endings(text).split("\n")
    safe_max_lines = max(0, max_lines)
    safe_max_line_length = max(1, max_line_length)
    preview = [_truncate_line(line, safe_max_line_length) for line in lines[:safe_max_lines]]
    return PendingPreviewLines(
        line_count=len(lines),
        preview_lines=preview,
        remaining_line_count=max(0, len(lines) - len(preview)),
    )
