"""
Unit tests for the provider client layer.

Tests request shaping, reply normalization and client construction.
"""

from unittest.mock import Mock, patch

import pytest

from agent_academy.core.catalog import Provider
from agent_academy.providers import ProviderClient, UpstreamError, build_provider_clients
from agent_academy.providers.client import PROVIDER_ENDPOINTS


def _response(content="Hello!", prompt_tokens=12, completion_tokens=5, usage=True):
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = content
    if usage:
        response.usage.prompt_tokens = prompt_tokens
        response.usage.completion_tokens = completion_tokens
    else:
        response.usage = None
    return response


class TestProviderClient:
    """Test ProviderClient wrapper."""

    @patch('agent_academy.providers.client.OpenAI')
    def test_init_passes_endpoint(self, mock_openai_class):
        """Test the SDK client is built with key and base URL."""
        client = ProviderClient(
            Provider.QWEN,
            api_key="sk-test",
            base_url="https://example.test/v1",
            timeout=30
        )

        mock_openai_class.assert_called_once_with(
            api_key="sk-test",
            base_url="https://example.test/v1",
            timeout=30
        )
        assert client.provider == Provider.QWEN
        assert client.client is mock_openai_class.return_value

    @patch('agent_academy.providers.client.OpenAI')
    def test_init_without_timeout_uses_sdk_default(self, mock_openai_class):
        ProviderClient(Provider.OPENAI, api_key="sk-test")
        mock_openai_class.assert_called_once_with(api_key="sk-test", base_url=None)

    def test_init_missing_api_key(self):
        """Test initialization fails with missing key."""
        with pytest.raises(ValueError, match="api_key is required"):
            ProviderClient(Provider.OPENAI, api_key="")

        with pytest.raises(ValueError, match="api_key is required"):
            ProviderClient(Provider.OPENAI, api_key=None)

    @patch('agent_academy.providers.client.OpenAI')
    def test_complete_success(self, mock_openai_class):
        """Test a completion is normalized to content and usage."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response()
        mock_openai_class.return_value = mock_client

        client = ProviderClient(Provider.OPENAI, api_key="sk-test")
        completion = client.complete(
            model="gpt-4o-mini",
            prompt="Hi",
            system="Be brief",
            max_tokens=100,
            temperature=0.2
        )

        mock_client.chat.completions.create.assert_called_once_with(
            model="gpt-4o-mini",
            messages=[
                {"role": "system", "content": "Be brief"},
                {"role": "user", "content": "Hi"},
            ],
            max_tokens=100,
            temperature=0.2
        )
        assert completion.content == "Hello!"
        assert completion.usage.input_tokens == 12
        assert completion.usage.output_tokens == 5

    @patch('agent_academy.providers.client.OpenAI')
    def test_complete_without_system(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response()
        mock_openai_class.return_value = mock_client

        ProviderClient(Provider.OPENAI, api_key="sk-test").complete(model="gpt-4o", prompt="Hi")

        _, kwargs = mock_client.chat.completions.create.call_args
        assert kwargs["messages"] == [{"role": "user", "content": "Hi"}]

    @patch('agent_academy.providers.client.OpenAI')
    def test_missing_usage_raises(self, mock_openai_class):
        """Test replies without usage are rejected."""
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(usage=False)
        mock_openai_class.return_value = mock_client

        client = ProviderClient(Provider.ANTHROPIC, api_key="sk-test")
        with pytest.raises(UpstreamError, match="missing usage"):
            client.complete(model="claude-3-haiku-20240307", prompt="Hi")

    @patch('agent_academy.providers.client.OpenAI')
    def test_non_text_content_raises(self, mock_openai_class):
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = _response(content=None)
        mock_openai_class.return_value = mock_client

        client = ProviderClient(Provider.ANTHROPIC, api_key="sk-test")
        with pytest.raises(UpstreamError, match="no text content"):
            client.complete(model="claude-3-haiku-20240307", prompt="Hi")

    @patch('agent_academy.providers.client.OpenAI')
    def test_no_choices_raises(self, mock_openai_class):
        response = _response()
        response.choices = []
        mock_client = Mock()
        mock_client.chat.completions.create.return_value = response
        mock_openai_class.return_value = mock_client

        client = ProviderClient(Provider.QWEN, api_key="sk-test")
        with pytest.raises(UpstreamError, match="no choices"):
            client.complete(model="qwen2.5-14b-instruct", prompt="Hi")

    @patch('agent_academy.providers.client.OpenAI')
    def test_api_errors_propagate(self, mock_openai_class):
        """Test SDK errors are not swallowed."""
        mock_client = Mock()
        mock_client.chat.completions.create.side_effect = RuntimeError("connection reset")
        mock_openai_class.return_value = mock_client

        client = ProviderClient(Provider.OPENAI, api_key="sk-test")
        with pytest.raises(RuntimeError, match="connection reset"):
            client.complete(model="gpt-4o", prompt="Hi")


class TestBuildProviderClients:
    """Test client construction from environment."""

    @patch('agent_academy.providers.client.OpenAI')
    def test_only_configured_providers(self, mock_openai_class):
        clients = build_provider_clients(env={"OPENAI_API_KEY": "sk-openai"})
        assert set(clients) == {Provider.OPENAI}

    @patch('agent_academy.providers.client.OpenAI')
    def test_all_keys_configured(self, mock_openai_class):
        env = {
            "ANTHROPIC_API_KEY": "a",
            "OPENAI_API_KEY": "b",
            "DASHSCOPE_API_KEY": "c",
        }
        clients = build_provider_clients(env=env, timeout=10)
        assert set(clients) == {Provider.ANTHROPIC, Provider.OPENAI, Provider.QWEN}
        assert clients[Provider.ANTHROPIC].base_url == PROVIDER_ENDPOINTS[Provider.ANTHROPIC].base_url

    def test_no_keys_no_clients(self):
        assert build_provider_clients(env={}) == {}

    def test_huggingface_has_no_endpoint(self):
        assert Provider.HUGGINGFACE not in PROVIDER_ENDPOINTS
