"""System prompt and user message builders for rewrite and check requests."""

from typing import Optional

from govuk_rewrite.constants import DEFAULT_MODE
from govuk_rewrite.models import RewriteRequest

SYSTEM_PROMPT = """You are an expert GOV.UK content editor. Rewrite the user's text to meet GOV.UK content design standards.

Rules:
- Use active voice throughout.
- Write in plain English. Use short sentences (no more than 25 words where possible).
- State actions and deadlines clearly. Make it obvious who needs to do what, and by when.
- Remove "please", "kindly", "we would like to", and other filler phrases unless they are genuinely required.
- Avoid jargon. If a domain term is necessary, keep it consistent.
- Never invent facts or change the meaning of the source text.
- If part of the input is ambiguous, keep the wording cautious rather than guessing.
- Do not add headings, bullet points, or structure that was not present in the original, unless clearly implied.
- Remove unnecessary capital letters.
- Spell out abbreviations on first use if they may be unfamiliar.

Respond only with valid JSON matching the schema provided. No preamble, no markdown fences."""

CHECK_SYSTEM_PROMPT = """You are an expert GOV.UK content auditor. Analyse the user's text and identify specific issues that do not meet GOV.UK content design standards. Do not rewrite the text.

Check for:
- Passive voice
- Sentences over 25 words
- Filler phrases ("please", "kindly", "we would like to", "please be advised", etc.)
- Jargon or unnecessarily complex words
- Unclear actions or missing deadlines
- Unnecessary capital letters
- Unexplained abbreviations

Return `rewrittenText` as an empty string. List each issue concisely in the `issues` array. If no issues are found, return an empty `issues` array.

Respond only with valid JSON matching the schema provided. No preamble, no markdown fences."""

# Extra rules appended to the system prompt for specific content types.
# page-body, heading and form-label use the base guide unchanged.
MODE_PROMPTS: dict[str, str] = {
    "error-message": (
        "The text is a GOV.UK error message. Additional rules: start with "
        "'Enter a...', 'Select a...', or 'Enter your...'. Use present tense. "
        "Maximum one sentence. Never start with 'Please'. Do not use 'must' or 'should'."
    ),
    "hint-text": (
        "The text is GOV.UK hint text displayed below a form label. Additional rules: "
        "keep it short (1 to 2 sentences). Do not repeat the label. Do not end with "
        "punctuation unless it is a full sentence."
    ),
    "notification": (
        "The text is a GOV.UK Notify notification (email or SMS). Additional rules: "
        "plain text only, no markdown and no HTML. Preserve any ((variable)) "
        "placeholders exactly as written. For SMS, aim to keep the total under 160 characters."
    ),
    "button": (
        "The text is a GOV.UK button label. Additional rules: short imperative verb "
        "phrase (2 to 4 words). No punctuation. Start with a capital letter. "
        "Examples: 'Continue', 'Save and continue', 'Submit application'."
    ),
}

_RESULT_PROPERTIES = {
    "rewrittenText": {
        "type": "string",
        "description": "The rewritten text in GOV.UK style. Empty string when in check mode.",
    },
    "explanation": {
        "type": "array",
        "items": {"type": "string"},
        "description": (
            "Short bullet points explaining what was changed and why. "
            "Only include when requested."
        ),
    },
    "issues": {
        "type": "array",
        "items": {"type": "string"},
        "description": "GOV.UK style issues found in the original text. Only populate in check mode.",
    },
}

_REQUIRED_FIELDS = ["rewrittenText", "explanation", "issues"]

# Structured output format for chat-completion providers
JSON_SCHEMA = {
    "name": "rewrite_result",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": _RESULT_PROPERTIES,
        "required": _REQUIRED_FIELDS,
        "additionalProperties": False,
    },
}

# Forced tool for tool-use providers
TOOL_NAME = "rewrite_result"
TOOL_DEFINITION = {
    "name": TOOL_NAME,
    "description": "Return the rewritten text, optional explanation, and optional issues.",
    "input_schema": {
        "type": "object",
        "properties": _RESULT_PROPERTIES,
        "required": _REQUIRED_FIELDS,
    },
}


def _is_non_default_mode(mode: Optional[str]) -> bool:
    return bool(mode) and mode != DEFAULT_MODE


def build_system_prompt(mode: Optional[str] = None) -> str:
    """Build the rewrite system prompt for a content mode.

    Args:
        mode: Content mode (None means page-body)

    Returns:
        Base style guide, followed by a blank line and the mode addendum
        when the mode has one
    """
    addendum = MODE_PROMPTS.get(mode) if _is_non_default_mode(mode) else None
    if not addendum:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}\n\n{addendum}"


def _context_parts(context: Optional[str]) -> list[str]:
    if context and context.strip():
        return [f"Service context: {context.strip()}"]
    return []


def _mode_note(mode: Optional[str]) -> str:
    return f" Treat it as {mode} content." if _is_non_default_mode(mode) else ""


def build_user_message(
    text: str,
    explain: bool,
    context: Optional[str] = None,
    mode: Optional[str] = None,
) -> str:
    """Build the user message for a rewrite request.

    Args:
        text: Text to rewrite (always placed last)
        explain: Whether an explanation is wanted
        context: Optional service context
        mode: Optional content mode

    Returns:
        User message string
    """
    parts = _context_parts(context)

    if explain:
        explain_instruction = (
            " Also provide a brief explanation (3 to 6 bullet points) of the key "
            "changes made and why they improve the content."
        )
    else:
        explain_instruction = (
            " Do not include an explanation; return an empty array for the explanation field."
        )

    parts.append(
        f"Rewrite the following text into GOV.UK style.{_mode_note(mode)}{explain_instruction}"
        f" Return an empty array for the issues field.\n\n{text}"
    )
    return "\n\n".join(parts)


def build_check_message(
    text: str,
    context: Optional[str] = None,
    mode: Optional[str] = None,
) -> str:
    """Build the user message for a check (audit) request."""
    parts = _context_parts(context)
    parts.append(
        f"Audit the following text for GOV.UK style issues.{_mode_note(mode)}"
        f" Return an empty array for the explanation field.\n\n{text}"
    )
    return "\n\n".join(parts)


def build_messages(request: RewriteRequest) -> tuple[str, str]:
    """Select the system prompt and user message for a request.

    Returns:
        Tuple of (system_prompt, user_message)
    """
    if request.check:
        return CHECK_SYSTEM_PROMPT, build_check_message(request.text, request.context, request.mode)
    return (
        build_system_prompt(request.mode),
        build_user_message(request.text, request.explain, request.context, request.mode),
    )
