"""
AI provider integration: Claude (default) or OpenAI, selected by settings.

Clients take a finished prompt and return the raw reply text. They own the
model parameters and translate every SDK failure into GenerationServiceError.
Retries are left to the caller.
"""
import logging

from django.conf import settings

from citypages_backend.exceptions import GenerationServiceError

logger = logging.getLogger(__name__)

ANTHROPIC_MODEL = "claude-sonnet-4-5-20250929"
OPENAI_MODEL = "gpt-4o"
MAX_TOKENS = 16000
TEMPERATURE = 0.7


class GenerationClient:
    """Base class: send one prompt, get back the reply text."""
    provider = ''

    def __init__(self, model: str, max_tokens: int = MAX_TOKENS, temperature: float = TEMPERATURE):
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    def complete(self, prompt: str, max_tokens: int = None, temperature: float = None) -> str:
        max_tokens = max_tokens or self.max_tokens
        temperature = self.temperature if temperature is None else temperature
        logger.info(
            "Requesting completion from %s (%s, max_tokens=%s, temperature=%s)",
            self.provider, self.model, max_tokens, temperature,
        )
        try:
            text = self._complete(prompt, max_tokens, temperature)
        except GenerationServiceError:
            raise
        except Exception as e:
            logger.error(f"{self.provider} call failed: {e}")
            raise GenerationServiceError(f"{self.provider} request failed: {e}") from e

        if not text or not text.strip():
            raise GenerationServiceError(f"{self.provider} returned an empty response")
        return text

    def _complete(self, prompt: str, max_tokens: int, temperature: float) -> str:
        raise NotImplementedError


class AnthropicGenerationClient(GenerationClient):
    provider = 'claude'

    def __init__(self, api_key: str, model: str = ANTHROPIC_MODEL, **kwargs):
        super().__init__(model, **kwargs)
        import anthropic
        self._client = anthropic.Anthropic(api_key=api_key)

    def _complete(self, prompt, max_tokens, temperature):
        message = self._client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(
            block.text for block in message.content if block.type == "text"
        )


class OpenAIGenerationClient(GenerationClient):
    provider = 'openai'

    def __init__(self, api_key: str, model: str = OPENAI_MODEL, **kwargs):
        super().__init__(model, **kwargs)
        import openai
        self._client = openai.OpenAI(api_key=api_key)

    def _complete(self, prompt, max_tokens, temperature):
        response = self._client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            max_tokens=max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        if not response.choices:
            return ''
        return response.choices[0].message.content or ''


def get_generation_client() -> GenerationClient:
    """
    Build the client configured in settings.
    GENERATION_PROVIDER picks the SDK; GENERATION_MODEL overrides its default model.
    """
    provider = getattr(settings, 'GENERATION_PROVIDER', 'anthropic')
    model = getattr(settings, 'GENERATION_MODEL', '')
    options = {
        'max_tokens': getattr(settings, 'GENERATION_MAX_TOKENS', MAX_TOKENS),
        'temperature': getattr(settings, 'GENERATION_TEMPERATURE', TEMPERATURE),
    }

    if provider == 'openai':
        if not settings.OPENAI_API_KEY:
            raise GenerationServiceError("No AI provider configured. Set OPENAI_API_KEY.")
        return OpenAIGenerationClient(settings.OPENAI_API_KEY, model=model or OPENAI_MODEL, **options)

    if provider == 'anthropic':
        if not settings.ANTHROPIC_API_KEY:
            raise GenerationServiceError("No AI provider configured. Set ANTHROPIC_API_KEY.")
        return AnthropicGenerationClient(settings.ANTHROPIC_API_KEY, model=model or ANTHROPIC_MODEL, **options)

    raise GenerationServiceError(f"Unknown GENERATION_PROVIDER: {provider}")


def is_generation_configured() -> bool:
    """True when the configured provider has an API key (no network call)."""
    provider = getattr(settings, 'GENERATION_PROVIDER', 'anthropic')
    if provider == 'openai':
        return bool(settings.OPENAI_API_KEY)
    if provider == 'anthropic':
        return bool(settings.ANTHROPIC_API_KEY)
    return False
