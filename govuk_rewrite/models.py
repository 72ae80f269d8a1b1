"""Request and result models shared by the engine and the provider adapters."""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class RewriteRequest:
    """A single rewrite (or check) request.

    Attributes:
        text: Text to rewrite or audit
        explain: Ask the model for a short explanation of the changes
        check: Audit for style issues instead of rewriting
        context: Optional service or audience description
        mode: Content type hint (page-body, error-message, ...)
    """

    text: str
    explain: bool = False
    check: bool = False
    context: Optional[str] = None
    mode: Optional[str] = None


class Usage(BaseModel):
    """Token usage reported by a provider."""

    model_config = ConfigDict(populate_by_name=True)

    input_tokens: int = Field(alias="inputTokens")
    output_tokens: int = Field(alias="outputTokens")


class RewriteResult(BaseModel):
    """Normalized result returned by every provider adapter.

    In check mode ``rewritten_text`` is empty and ``issues`` is authoritative.
    """

    model_config = ConfigDict(populate_by_name=True)

    rewritten_text: str = Field("", alias="rewrittenText", description="Rewritten text")
    explanation: Optional[list[str]] = Field(None, description="Why the rewrite is better")
    issues: Optional[list[str]] = Field(None, description="Style issues found in check mode")
    usage: Optional[Usage] = None


@dataclass(frozen=True)
class ProviderOptions:
    """Fully resolved options handed to a provider adapter."""

    api_key: str
    model: str
    timeout_ms: int
    base_url: Optional[str] = None


@dataclass(frozen=True)
class EngineOptions:
    """Caller-supplied engine options, before defaults are applied."""

    provider: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    timeout_ms: Optional[float] = None
    base_url: Optional[str] = None


@dataclass(frozen=True)
class NormalizedEngineOptions:
    """Engine options after validation and defaulting."""

    provider: str
    api_key: str
    model: str
    timeout_ms: int
    base_url: Optional[str] = None

    def to_provider_options(self) -> ProviderOptions:
        return ProviderOptions(
            api_key=self.api_key,
            model=self.model,
            timeout_ms=self.timeout_ms,
            base_url=self.base_url,
        )
