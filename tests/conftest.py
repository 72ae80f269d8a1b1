"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from govuk_rewrite.commands import ChatState
from govuk_rewrite.models import RewriteResult, Usage
from govuk_rewrite.wizard import AutoSetupResult


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config_path(temp_dir):
    """Path to a config file inside the temp directory (not created)."""
    return str(temp_dir / "govuk-rewrite" / "config.json")


@pytest.fixture
def chat_state():
    """Default OpenAI chat state."""
    return ChatState(provider="openai", model="gpt-4.1-mini", timeout_ms=30000)


@pytest.fixture
def env():
    """Environment snapshot with an OpenAI key only."""
    return {"OPENAI_API_KEY": "sk-test"}


@pytest.fixture
def sample_result():
    """A rewrite result with explanation and usage."""
    return RewriteResult(
        rewritten_text="Complete the form by Friday.",
        explanation=["Removed filler words", "Used active voice"],
        issues=[],
        usage=Usage(input_tokens=120, output_tokens=30),
    )


class FakeSetupRunner:
    """Records automatic setup offers and returns a canned outcome."""

    def __init__(self, ran=False, api_key_set=False, lines=None, on_run=None):
        self.calls = []
        self.result = AutoSetupResult(ran=ran, api_key_set=api_key_set)
        self.lines = lines or []
        self.on_run = on_run

    def __call__(self, provider, config_path=None, ask=None, write_line=None, **kwargs):
        self.calls.append({"provider": provider, "config_path": config_path})
        for line in self.lines:
            if write_line:
                write_line(line)
        if self.on_run:
            self.on_run()
        return self.result


@pytest.fixture
def declined_setup():
    """Setup runner that behaves as if the user declined."""
    return FakeSetupRunner(ran=False)


@pytest.fixture
def fake_setup_runner():
    """Factory for FakeSetupRunner instances."""
    return FakeSetupRunner
