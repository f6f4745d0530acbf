"""
AI text generation through LangChain chat models.

Callers pick a model by registry name rather than by provider id. Each
registry entry names its provider (OpenAI, Anthropic or Google Gemini), and
``get_model`` builds the matching LangChain chat class with that provider's
API key.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from app.core.config import settings

logger = logging.getLogger(__name__)

OPENAI = "openai"
ANTHROPIC = "anthropic"
GOOGLE = "google"


@dataclass(frozen=True)
class ModelSpec:
    provider: str
    model: str


MODELS: Dict[str, ModelSpec] = {
    # OpenAI
    "gpt-4o": ModelSpec(OPENAI, "gpt-4o"),  # Most capable
    "gpt-4o-mini": ModelSpec(OPENAI, "gpt-4o-mini"),  # Fast & cheap
    # Anthropic
    "claude-sonnet": ModelSpec(ANTHROPIC, "claude-sonnet-4-5-20250929"),  # Best balance
    "claude-haiku": ModelSpec(ANTHROPIC, "claude-haiku-4-5-20251001"),  # Fast & cheap
    # Google
    "gemini-pro": ModelSpec(GOOGLE, "gemini-2.5-pro"),  # Most capable
    "gemini-flash": ModelSpec(GOOGLE, "gemini-2.5-flash"),  # Fast & cheap
}

# provider -> (display name, settings attribute, environment variable)
PROVIDER_KEYS: Dict[str, tuple] = {
    OPENAI: ("OpenAI", "openai_api_key", "OPENAI_API_KEY"),
    ANTHROPIC: ("Anthropic", "anthropic_api_key", "ANTHROPIC_API_KEY"),
    GOOGLE: ("Google", "google_api_key", "GOOGLE_API_KEY"),
}


@dataclass
class GeneratedText:
    """Output of a single generation call."""
    text: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "model": self.model, "usage": self.usage}


def _api_key(provider: str) -> str:
    label, setting, env_name = PROVIDER_KEYS[provider]
    api_key = (getattr(settings, setting) or "").strip()
    if not api_key:
        raise RuntimeError(f"{label} API key not configured. Set {env_name} in your environment.")
    return api_key


def get_model(name: Optional[str] = None, max_tokens: int = 1024) -> BaseChatModel:
    """Build a chat model for a registry name (defaults to settings.ai_default_model)."""
    model_name = name or settings.ai_default_model
    if model_name not in MODELS:
        raise ValueError(f"Unknown model '{model_name}'. Must be one of: {', '.join(sorted(MODELS))}")

    spec = MODELS[model_name]
    api_key = _api_key(spec.provider)
    common = dict(
        model=spec.model,
        temperature=0,
        timeout=settings.llm_api_timeout,
        max_retries=settings.llm_max_retries,
    )

    if spec.provider == OPENAI:
        return ChatOpenAI(api_key=api_key, max_tokens=max_tokens, **common)
    if spec.provider == ANTHROPIC:
        return ChatAnthropic(api_key=api_key, max_tokens=max_tokens, **common)
    return ChatGoogleGenerativeAI(google_api_key=api_key, max_output_tokens=max_tokens, **common)


def _content_text(content: Any) -> str:
    """Flatten message content that may arrive as a list of content blocks."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
        elif isinstance(block, str):
            parts.append(block)
    return "".join(parts)


def generate_text(prompt: str, system: Optional[str] = None, model: Optional[str] = None) -> GeneratedText:
    """Run one prompt through the chat model and return its text."""
    model_name = model or settings.ai_default_model
    llm = get_model(model_name)

    messages: List[BaseMessage] = []
    if system:
        messages.append(SystemMessage(content=system))
    messages.append(HumanMessage(content=prompt))

    logger.info("Generating text with model '%s' (%d chars of prompt)", model_name, len(prompt))
    response = llm.invoke(messages)

    usage = dict(getattr(response, "usage_metadata", None) or {})
    return GeneratedText(text=_content_text(response.content), model=MODELS[model_name].model, usage=usage)
