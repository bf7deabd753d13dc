"""
LLM providers behind one call contract.

``generate(system, user, response_format)`` returns raw text for every
backend. The text may still be fenced, truncated or chatty; the parsers
repair it downstream. SDK-level retries are disabled and every call goes
through the RetryController instead.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Literal, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from content_hub.config.settings import Settings, get_settings
from content_hub.errors import EmptyResponseError, ProviderError, TerminalProviderError
from content_hub.llm.retry import RetryController
from content_hub.utils.logger import get_logger


logger = get_logger(__name__)

ResponseFormat = Literal["json", "html"]

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def message_text(message: Any) -> str:
    """Flatten a LangChain message (or plain value) into text."""
    content = getattr(message, "content", message)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return content or ""


class LLMProvider(ABC):
    """Base class: retry-wrapped text generation with an empty-answer check."""

    name = "base"

    def __init__(self, retry: Optional[RetryController] = None, temperature: float = 0.7):
        self.retry = retry or RetryController()
        self.temperature = temperature

    @abstractmethod
    async def _complete(self, system: str, user: str, response_format: ResponseFormat) -> str:
        """Single provider round-trip, no retries."""

    async def generate(
        self,
        system: str,
        user: str,
        response_format: ResponseFormat = "json",
        label: str = "AI call",
    ) -> str:
        """
        Generate a completion.

        Args:
            system: System instruction
            user: User prompt
            response_format: "json" requests native JSON mode where supported
            label: Stage name used in log messages

        Returns:
            Raw completion text

        Raises:
            EmptyResponseError: If the provider answered with nothing
            TerminalProviderError / RetryExhaustedError: From the retry controller
        """
        text = await self.retry.call(
            lambda: self._complete(system, user, response_format),
            label=f"{self.name}:{label}",
        )
        if not text or not text.strip():
            raise EmptyResponseError(f"AI returned an empty response for the '{label}' stage.")
        return text

    @staticmethod
    def _messages(system: str, user: str) -> list:
        return [SystemMessage(content=system), HumanMessage(content=user)]


class GeminiProvider(LLMProvider):
    """Google Gemini through ``langchain-google-genai``."""

    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", **kwargs: Any):
        super().__init__(**kwargs)
        if not api_key:
            raise TerminalProviderError("Gemini API key is not configured (GOOGLE_API_KEY)")
        self.api_key = api_key
        self.model = model

    def _build_llm(self, response_format: ResponseFormat) -> ChatGoogleGenerativeAI:
        options: dict[str, Any] = {}
        if response_format == "json":
            options["response_mime_type"] = "application/json"
        return ChatGoogleGenerativeAI(
            model=self.model,
            google_api_key=self.api_key,
            temperature=self.temperature,
            max_retries=0,  # Retries are owned by RetryController
            **options,
        )

    async def _complete(self, system: str, user: str, response_format: ResponseFormat) -> str:
        llm = self._build_llm(response_format)
        messages = self._messages(system, user)

        # Run in thread pool since langchain may be sync internally
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(None, lambda: llm.invoke(messages))
        return message_text(result)


class OpenAICompatibleProvider(LLMProvider):
    """OpenAI chat completions, also used for Groq via a custom base URL."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: Optional[str] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(**kwargs)
        if name:
            self.name = name
        if not api_key:
            raise TerminalProviderError(f"{self.name} API key is not configured")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url

    def _build_llm(self, model: str, response_format: ResponseFormat) -> Any:
        llm = ChatOpenAI(
            model=model,
            api_key=self.api_key,
            base_url=self.base_url,
            temperature=self.temperature,
            max_retries=0,
        )
        if response_format == "json":
            return llm.bind(response_format={"type": "json_object"})
        return llm

    async def _complete_with(
        self, model: str, system: str, user: str, response_format: ResponseFormat
    ) -> str:
        llm = self._build_llm(model, response_format)
        messages = self._messages(system, user)
        loop = asyncio.get_event_loop()
        result = await loop.run_in_executor(None, lambda: llm.invoke(messages))
        return message_text(result)

    async def _complete(self, system: str, user: str, response_format: ResponseFormat) -> str:
        return await self._complete_with(self.model, system, user, response_format)


class OpenRouterProvider(OpenAICompatibleProvider):
    """
    OpenRouter with an ordered model fallback list.

    Each model is retried on its own; the first non-empty answer wins.
    """

    name = "openrouter"

    def __init__(self, api_key: str, models: list[str], **kwargs: Any):
        if not models:
            raise ValueError("OpenRouter needs at least one model")
        super().__init__(api_key, model=models[0], base_url=OPENROUTER_BASE_URL, name="openrouter", **kwargs)
        self.models = list(models)

    async def generate(
        self,
        system: str,
        user: str,
        response_format: ResponseFormat = "json",
        label: str = "AI call",
    ) -> str:
        last_error: Optional[Exception] = None

        for model in self.models:
            logger.info(f"[OpenRouter] Attempting '{label}' with model: {model}")
            try:
                text = await self.retry.call(
                    lambda: self._complete_with(model, system, user, response_format),
                    label=f"openrouter:{model}:{label}",
                )
                if not text or not text.strip():
                    raise EmptyResponseError(f"Empty response from model {model}.")
                return text
            except Exception as e:
                logger.warning(f"OpenRouter model '{model}' failed for '{label}'. Trying next... ({e})")
                last_error = e

        raise ProviderError(
            f"All OpenRouter models failed for '{label}'. Last error: {last_error}",
            status_code=getattr(last_error, "status_code", None),
        ) from last_error


def create_provider(
    settings: Optional[Settings] = None,
    retry: Optional[RetryController] = None,
) -> LLMProvider:
    """
    Build the provider selected by ``settings.llm_provider``.

    Raises:
        TerminalProviderError: If the selected provider has no API key
    """
    settings = settings or get_settings()
    retry = retry or RetryController(
        max_retries=settings.max_retries,
        base_delay=settings.retry_base_delay,
        retry_after_buffer=settings.retry_after_buffer,
    )
    common = {"retry": retry, "temperature": settings.llm_temperature}

    if settings.llm_provider == "openai":
        return OpenAICompatibleProvider(settings.openai_api_key, model=settings.openai_model, **common)
    if settings.llm_provider == "openrouter":
        return OpenRouterProvider(settings.openrouter_api_key, models=settings.openrouter_models, **common)
    if settings.llm_provider == "groq":
        return OpenAICompatibleProvider(
            settings.groq_api_key,
            model=settings.groq_model,
            base_url=GROQ_BASE_URL,
            name="groq",
            **common,
        )
    return GeminiProvider(settings.google_api_key, model=settings.gemini_model, **common)
