"""
Passerelle IA - fournisseurs de complétion texte avec fallback.

Gemini est essayé en premier, Groq prend le relais si Gemini échoue.
Le gateway est construit une seule fois au démarrage (voir main.py) puis
injecté dans les routes via get_ai_gateway.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence, Tuple

import requests

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
GROQ_BASE_URL = "https://api.groq.com/openai/v1"

JSON_ONLY_SYSTEM_PROMPT = (
    "You are an AI assistant. Always respond with valid JSON only, "
    "no markdown formatting, no extra text."
)


class AIConfigurationError(Exception):
    """No provider could be configured."""


class AIProviderError(Exception):
    """A single provider failed (network, rate limit, malformed reply)."""


class AllProvidersFailedError(Exception):
    def __init__(self, errors: List[Tuple[str, str]]):
        super().__init__("All AI providers failed")
        self.errors = errors


class TextCompletionProvider(Protocol):
    name: str

    def complete(self, prompt: str) -> str:
        ...


@dataclass
class Completion:
    text: str
    provider: str
    elapsed_ms: int


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash", timeout: int = 60):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    def complete(self, prompt: str) -> str:
        try:
            response = requests.post(
                f"{GEMINI_BASE_URL}/models/{self.model}:generateContent",
                params={"key": self.api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise AIProviderError(f"Gemini request failed: {e}") from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIProviderError("Gemini returned no candidates") from e

        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise AIProviderError("Gemini returned an empty response")
        return text


class GroqProvider:
    name = "groq"

    def __init__(
        self,
        api_key: str,
        model: str = "llama-3.3-70b-versatile",
        timeout: int = 60,
        temperature: float = 0.3,
        max_tokens: int = 2048,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    def complete(self, prompt: str) -> str:
        try:
            response = requests.post(
                f"{GROQ_BASE_URL}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": JSON_ONLY_SYSTEM_PROMPT},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": self.temperature,
                    "max_tokens": self.max_tokens,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise AIProviderError(f"Groq request failed: {e}") from e

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise AIProviderError("Groq returned no choices")

        message = choices[0].get("message") or {}
        return message.get("content") or ""


@dataclass
class AIGateway:
    """Ordered chain of providers; the first one that answers wins."""

    providers: Sequence[TextCompletionProvider] = field(default_factory=list)

    def __post_init__(self):
        if not self.providers:
            raise AIConfigurationError(
                "Missing AI API key. Set GEMINI_API_KEY or GROQ_API_KEY"
            )

    @property
    def provider_names(self) -> List[str]:
        return [p.name for p in self.providers]

    def complete(self, prompt: str) -> Completion:
        errors: List[Tuple[str, str]] = []
        for provider in self.providers:
            start = time.monotonic()
            try:
                text = provider.complete(prompt)
            except Exception as e:
                # pas de retry sur le même provider: on passe au suivant
                logger.warning(f"AI provider {provider.name} failed ({e}), trying next provider")
                errors.append((provider.name, str(e)))
                continue
            elapsed_ms = int((time.monotonic() - start) * 1000)
            return Completion(text=text, provider=provider.name, elapsed_ms=elapsed_ms)

        logger.error(f"All AI providers failed: {errors}")
        raise AllProvidersFailedError(errors)


def build_gateway(settings, timeout: Optional[int] = None) -> AIGateway:
    """Construit le gateway depuis la config. Lève AIConfigurationError sans clé."""
    timeout = timeout or settings.AI_REQUEST_TIMEOUT
    providers: List[TextCompletionProvider] = []

    if settings.GEMINI_API_KEY:
        providers.append(GeminiProvider(settings.GEMINI_API_KEY, settings.GEMINI_MODEL, timeout))
    if settings.GROQ_API_KEY:
        providers.append(GroqProvider(settings.GROQ_API_KEY, settings.GROQ_MODEL, timeout))

    gateway = AIGateway(providers)
    logger.info(f"AI gateway ready with providers: {', '.join(gateway.provider_names)}")
    return gateway
