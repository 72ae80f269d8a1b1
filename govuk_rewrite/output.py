"""Output mode selection and rendering."""

import json
from dataclasses import dataclass
from typing import Any, Optional

from govuk_rewrite.constants import (
    DIFF_HEADER,
    EXPLAIN_HEADER,
    ISSUES_HEADER,
    NO_IMPROVEMENT_BULLET,
    NO_ISSUES_MESSAGE,
)
from govuk_rewrite.models import RewriteResult
from govuk_rewrite.utils.diffs import diff_lines, normalize_line_endings

OUTPUT_MODES = ("json", "check", "diff", "explain", "plain")


@dataclass(frozen=True)
class OutputFlags:
    explain: bool = False
    diff: bool = False
    check: bool = False
    json: bool = False


def select_output_mode(flags: Any) -> str:
    """Pick the output mode: json > check > diff > explain > plain.

    Args:
        flags: Any object with explain/diff/check/json attributes
            (OutputFlags, ChatState, ...)

    Returns:
        One of OUTPUT_MODES
    """
    for mode in OUTPUT_MODES[:-1]:
        if getattr(flags, mode, False):
            return mode
    return "plain"


def detect_no_improvement(original: str, rewritten: str, check_mode: bool = False) -> bool:
    """True when the rewrite is textually identical to the input.

    Check-mode results are never "no improvement".
    """
    if check_mode:
        return False
    return normalize_line_endings(original).strip() == normalize_line_endings(rewritten).strip()


def _bullets(items: list[str]) -> str:
    return "\n".join(f"- {item}" for item in items)


def format_output(
    result: RewriteResult,
    mode: str,
    provider: str,
    model: str,
    original_text: Optional[str] = None,
    check_mode: bool = False,
) -> str:
    """Render a rewrite result for display.

    Args:
        result: Provider result
        mode: Output mode from select_output_mode
        provider: Provider used (reported in JSON output)
        model: Model used (reported in JSON output)
        original_text: Input text, used for diffs and no-improvement detection
        check_mode: Whether the request was a check

    Returns:
        Text to print
    """
    no_improvement = original_text is not None and detect_no_improvement(
        original_text, result.rewritten_text, check_mode
    )

    if mode == "json":
        payload: dict[str, Any] = {
            "rewrittenText": result.rewritten_text,
            "explanation": result.explanation or [],
            "issues": result.issues or [],
            "provider": provider,
            "model": model,
        }
        if original_text is not None:
            payload["noImprovement"] = no_improvement
        return json.dumps(payload, indent=2, ensure_ascii=False)

    if mode == "check":
        issues = result.issues or []
        if not issues:
            return NO_ISSUES_MESSAGE
        return f"{ISSUES_HEADER}\n{_bullets(issues)}"

    if mode == "diff":
        diff = "\n".join(diff_lines(original_text or "", result.rewritten_text))
        return f"{result.rewritten_text}\n\n{DIFF_HEADER}\n{diff}"

    if mode == "explain":
        points = list(result.explanation or [])
        if no_improvement:
            points.insert(0, NO_IMPROVEMENT_BULLET)
        return f"{result.rewritten_text}\n\n{EXPLAIN_HEADER}\n{_bullets(points)}"

    return result.rewritten_text
