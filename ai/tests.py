"""
Tests for AI provider clients.
"""
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from ai.providers import (
    AnthropicGenerationClient,
    OpenAIGenerationClient,
    get_generation_client,
    is_generation_configured,
)
from citypages_backend.exceptions import GenerationServiceError


def _anthropic_message(*texts):
    return SimpleNamespace(content=[SimpleNamespace(type='text', text=t) for t in texts])


class TestAnthropicClient:

    @patch('anthropic.Anthropic')
    def test_complete_joins_text_blocks(self, mock_cls):
        mock_cls.return_value.messages.create.return_value = _anthropic_message('{"a":', ' 1}')
        client = AnthropicGenerationClient('key', model='claude-test', max_tokens=100, temperature=0.2)

        assert client.complete('prompt') == '{"a": 1}'
        kwargs = mock_cls.return_value.messages.create.call_args.kwargs
        assert kwargs['model'] == 'claude-test'
        assert kwargs['max_tokens'] == 100
        assert kwargs['temperature'] == 0.2
        assert kwargs['messages'] == [{'role': 'user', 'content': 'prompt'}]

    @patch('anthropic.Anthropic')
    def test_call_overrides_model_parameters(self, mock_cls):
        mock_cls.return_value.messages.create.return_value = _anthropic_message('ok')
        client = AnthropicGenerationClient('key')

        client.complete('prompt', max_tokens=8000, temperature=0.0)
        kwargs = mock_cls.return_value.messages.create.call_args.kwargs
        assert kwargs['max_tokens'] == 8000
        assert kwargs['temperature'] == 0.0

    @patch('anthropic.Anthropic')
    def test_sdk_error_becomes_generation_error(self, mock_cls):
        mock_cls.return_value.messages.create.side_effect = RuntimeError('overloaded')
        client = AnthropicGenerationClient('key')

        with pytest.raises(GenerationServiceError, match='overloaded'):
            client.complete('prompt')

    @patch('anthropic.Anthropic')
    def test_empty_reply_is_an_error(self, mock_cls):
        mock_cls.return_value.messages.create.return_value = _anthropic_message('   ')
        client = AnthropicGenerationClient('key')

        with pytest.raises(GenerationServiceError, match='empty'):
            client.complete('prompt')


class TestOpenAIClient:

    @patch('openai.OpenAI')
    def test_complete_returns_message_content(self, mock_cls):
        choice = SimpleNamespace(message=SimpleNamespace(content='hello'))
        mock_cls.return_value.chat.completions.create.return_value = SimpleNamespace(choices=[choice])
        client = OpenAIGenerationClient('key')

        assert client.complete('prompt') == 'hello'

    @patch('openai.OpenAI')
    def test_no_choices_is_an_error(self, mock_cls):
        mock_cls.return_value.chat.completions.create.return_value = SimpleNamespace(choices=[])
        client = OpenAIGenerationClient('key')

        with pytest.raises(GenerationServiceError):
            client.complete('prompt')


class TestClientFactory:

    def test_missing_anthropic_key(self, settings):
        settings.GENERATION_PROVIDER = 'anthropic'
        settings.ANTHROPIC_API_KEY = ''
        with pytest.raises(GenerationServiceError, match='ANTHROPIC_API_KEY'):
            get_generation_client()
        assert not is_generation_configured()

    @patch('openai.OpenAI', MagicMock())
    def test_openai_provider(self, settings):
        settings.GENERATION_PROVIDER = 'openai'
        settings.OPENAI_API_KEY = 'sk-test'
        settings.GENERATION_MODEL = ''
        settings.GENERATION_TEMPERATURE = 0.5

        client = get_generation_client()
        assert isinstance(client, OpenAIGenerationClient)
        assert client.model == 'gpt-4o'
        assert client.temperature == 0.5

    @patch('anthropic.Anthropic', MagicMock())
    def test_model_override(self, settings):
        settings.GENERATION_PROVIDER = 'anthropic'
        settings.ANTHROPIC_API_KEY = 'key'
        settings.GENERATION_MODEL = 'claude-custom'

        client = get_generation_client()
        assert isinstance(client, AnthropicGenerationClient)
        assert client.model == 'claude-custom'
        assert is_generation_configured()

    def test_unknown_provider(self, settings):
        settings.GENERATION_PROVIDER = 'llama'
        with pytest.raises(GenerationServiceError, match='Unknown'):
            get_generation_client()
