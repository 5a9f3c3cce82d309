"""
OpenAI-compatible provider client.

Every supported vendor exposes an OpenAI-compatible chat completions
endpoint, so one client class covers all of them with a per-vendor base URL.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from openai import OpenAI

from ..core.catalog import Provider
from ..core.token_counter import TokenUsage

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """Raised when a provider reply cannot be normalized."""


@dataclass(frozen=True)
class ProviderEndpoint:
    """Where a vendor's OpenAI-compatible API lives and which key it needs."""
    api_key_env: str
    base_url: Optional[str] = None


# Vendors with a dispatch path. HUGGINGFACE intentionally has none.
PROVIDER_ENDPOINTS: Dict[Provider, ProviderEndpoint] = {
    Provider.ANTHROPIC: ProviderEndpoint(
        api_key_env="ANTHROPIC_API_KEY",
        base_url="https://api.anthropic.com/v1/",
    ),
    Provider.OPENAI: ProviderEndpoint(api_key_env="OPENAI_API_KEY"),
    Provider.QWEN: ProviderEndpoint(
        api_key_env="DASHSCOPE_API_KEY",
        base_url="https://dashscope-intl.aliyuncs.com/compatible-mode/v1",
    ),
}


@dataclass(frozen=True)
class Completion:
    """Normalized reply of one chat completion."""
    content: str
    usage: TokenUsage


class ProviderClient:
    """Chat completions client bound to one upstream vendor.

    Transport and provider errors propagate unchanged; the gateway decides
    how they are reported.
    """

    def __init__(
        self,
        provider: Provider,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        """Initialize provider client.

        Args:
            provider: Vendor this client talks to
            api_key: Vendor API key (required)
            base_url: OpenAI-compatible endpoint, None for api.openai.com
            timeout: Request timeout in seconds, None for the SDK default

        Raises:
            ValueError: If api_key is missing/empty
        """
        if not api_key or not api_key.strip():
            raise ValueError("api_key is required and cannot be empty")

        self.provider = provider
        self.base_url = base_url
        kwargs = {"api_key": api_key, "base_url": base_url}
        if timeout is not None:
            kwargs["timeout"] = timeout
        self.client = OpenAI(**kwargs)

    def complete(
        self,
        model: str,
        prompt: str,
        system: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> Completion:
        """Send a single-turn prompt and normalize the reply.

        Args:
            model: Upstream model id
            prompt: User message
            system: Optional system message
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Completion with text content and reported token usage

        Raises:
            UpstreamError: If the reply has no text content or no usage
            OpenAI API errors: Propagated without modification
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.debug("Calling %s model %s", self.provider.value, model)
        response = self.client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature
        )

        if not response.choices:
            raise UpstreamError(f"{self.provider.value} response has no choices")
        content = response.choices[0].message.content
        if not isinstance(content, str):
            raise UpstreamError(f"{self.provider.value} response has no text content")

        usage = response.usage
        if not usage:
            raise UpstreamError(f"{self.provider.value} response missing usage information")

        return Completion(
            content=content,
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens,
                output_tokens=usage.completion_tokens
            )
        )


def build_provider_clients(
    env: Optional[Mapping[str, str]] = None,
    timeout: Optional[float] = None
) -> Dict[Provider, ProviderClient]:
    """Create a client for every vendor whose API key is configured.

    Vendors without a key get no client, which the gateway reports as an
    unimplemented provider.

    Args:
        env: Environment mapping (defaults to os.environ)
        timeout: Request timeout passed to every client

    Returns:
        Mapping of provider to client
    """
    env = os.environ if env is None else env
    clients = {}
    for provider, endpoint in PROVIDER_ENDPOINTS.items():
        api_key = env.get(endpoint.api_key_env)
        if not api_key:
            logger.info("%s not set; %s dispatch disabled", endpoint.api_key_env, provider.value)
            continue
        clients[provider] = ProviderClient(
            provider=provider,
            api_key=api_key,
            base_url=endpoint.base_url,
            timeout=timeout
        )
    return clients
