"""
LLM Provider Abstraction Layer for Chatter
==========================================

Provides a unified interface over the two chat-completion backends the bot
talks to (xAI Grok and OpenAI). Both speak the OpenAI wire format.
"""

import asyncio
import base64
import enum
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from .config import ProviderConfig
from .exceptions import (
    AuthenticationException,
    ConfigurationException,
    ProviderException,
    TimeoutException
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_PROMPT = "Form an opinion on this image. Try to be controversial or humorous."


class Provider(enum.Enum):
    """The closed set of supported providers."""
    GROK = "grok"
    OPENAI = "openai"

    @property
    def display_name(self) -> str:
        return "OpenAI" if self is Provider.OPENAI else "Grok"

    @classmethod
    def parse(cls, value: str) -> Optional["Provider"]:
        """Map user input to a provider, or None if it names none."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


DEFAULT_PROVIDER = Provider.GROK


@dataclass
class LLMResponse:
    """Response from an LLM provider."""
    content: str
    provider_name: str
    model: str
    tokens_used: Optional[int] = None
    finish_reason: Optional[str] = None
    response_time: Optional[float] = None


class BaseLLMProvider(ABC):
    """Abstract base class for LLM providers."""

    def __init__(self, config: ProviderConfig, image_download_timeout: float = 30.0):
        self.config = config
        self.image_download_timeout = image_download_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def model(self) -> str:
        return self.config.model

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    @abstractmethod
    async def generate(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            messages: List of message dictionaries with 'role' and 'content'
            model: Model override, defaults to the configured chat model
            max_tokens: Completion budget, defaults to the configured budget
            timeout: Total request timeout in seconds

        Returns:
            LLMResponse object
        """

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> str:
        """Send a system/user pair and return the completion text."""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        response = await self.generate(messages, model=model, max_tokens=max_tokens, timeout=timeout)
        return response.content

    async def complete_with_image(
        self,
        image_url: str,
        system_prompt: str,
        prompt: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """Download an image, send it with a prompt and return the completion text."""
        logger.info(f"[{self.name}] Processing image {image_url}")
        encoded = await self._download_image(image_url)

        messages = [
            {"role": "system", "content": system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt or DEFAULT_IMAGE_PROMPT},
                    {"type": "image_url", "image_url": self._image_payload(encoded)},
                ],
            },
        ]
        response = await self.generate(
            messages,
            model=model or self.config.vision_model,
            max_tokens=max_tokens,
            timeout=self.config.image_timeout
        )
        return response.content

    def _image_payload(self, encoded: str) -> Dict[str, str]:
        return {"url": f"data:image/jpeg;base64,{encoded}"}

    async def _download_image(self, image_url: str) -> str:
        """Fetch an image and return it base64-encoded."""
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.image_download_timeout)

        try:
            async with session.get(image_url, timeout=timeout) as response:
                if response.status != 200:
                    raise ProviderException(
                        self.name,
                        f"failed to download image: status {response.status}"
                    )
                data = await response.read()
        except asyncio.TimeoutError:
            raise TimeoutException(self.name, self.image_download_timeout)
        except aiohttp.ClientError as e:
            raise ProviderException(self.name, f"failed to download image: {e}", e)

        return base64.b64encode(data).decode("ascii")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class OpenAICompatibleProvider(BaseLLMProvider):
    """
    Provider for OpenAI-compatible chat completion APIs.
    """

    async def generate(
        self,
        messages: List[Dict[str, Any]],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> LLMResponse:
        """Generate response using an OpenAI-compatible API."""
        timeout = timeout or self.config.timeout
        start_time = time.time()
        session = await self._get_session()

        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": model or self.config.model,
            "messages": messages,
            "max_tokens": max_tokens or self.config.max_tokens
        }

        logger.info(
            f"[{self.name}] 📤 Sending request (model: {data['model']}, "
            f"max_tokens: {data['max_tokens']}, messages: {len(messages)})"
        )

        try:
            async with session.post(
                self.config.url,
                headers=headers,
                json=data,
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                response_time = time.time() - start_time

                if response.status == 200:
                    try:
                        result = await response.json()
                    except ValueError as e:
                        raise ProviderException(self.name, f"invalid response format from {self.name}", e)
                    return self._parse_response(result, data["model"], response_time)

                elif response.status in (401, 403):
                    raise AuthenticationException(self.name, response.status)

                elif response.status == 429:
                    retry_after = response.headers.get('Retry-After', '60')
                    raise ProviderException(
                        self.name,
                        f"Rate limited. Retry after {retry_after}s",
                        status_code=429
                    )

                else:
                    error_text = await response.text()
                    logger.error(f"[{self.name}] API error {response.status}: {error_text[:200]}")
                    raise ProviderException(
                        self.name,
                        error_text[:200],
                        status_code=response.status
                    )

        except asyncio.TimeoutError:
            raise TimeoutException(self.name, timeout)

        except aiohttp.ClientError as e:
            raise ProviderException(
                self.name,
                f"Network error: {str(e)}",
                e
            )

    def _parse_response(self, result: Dict[str, Any], model: str, response_time: float) -> LLMResponse:
        try:
            choice = result['choices'][0]
            content = choice['message']['content']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderException(self.name, f"invalid response format from {self.name}", e)

        if not isinstance(content, str):
            raise ProviderException(self.name, f"invalid response format from {self.name}")

        tokens_used = None
        if isinstance(result.get('usage'), dict):
            tokens_used = result['usage'].get('total_tokens')

        logger.info(
            f"[{self.name}] 📥 Response received in {response_time:.2f}s "
            f"(length: {len(content)}, tokens: {tokens_used}, finish: {choice.get('finish_reason')})"
        )

        return LLMResponse(
            content=content,
            provider_name=self.name,
            model=model,
            tokens_used=tokens_used,
            finish_reason=choice.get('finish_reason'),
            response_time=response_time
        )


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI chat completions."""


class GrokProvider(OpenAICompatibleProvider):
    """xAI Grok chat completions; the fast and cheap default."""

    def _image_payload(self, encoded: str) -> Dict[str, str]:
        payload = super()._image_payload(encoded)
        payload["detail"] = "high"
        return payload


_PROVIDER_CLASSES = {
    Provider.GROK: GrokProvider,
    Provider.OPENAI: OpenAIProvider,
}


class LLMProviderManager:
    """
    Holds one client per configured provider and hands them out by variant.

    There is no cross-provider fallback: a request names its provider, and a
    provider without credentials is rejected before any network call.
    """

    def __init__(self, providers: Dict[str, ProviderConfig], image_download_timeout: float = 30.0):
        self._configs: Dict[Provider, ProviderConfig] = {}
        self._providers: Dict[Provider, BaseLLMProvider] = {}

        for key, config in providers.items():
            variant = Provider.parse(key)
            if variant is None:
                logger.warning(f"Skipping unknown provider config: {key}")
                continue

            self._configs[variant] = config
            if not config.is_valid():
                logger.warning(f"Provider {key} has no API key; requests to it will be rejected")
                continue

            self._providers[variant] = _PROVIDER_CLASSES[variant](config, image_download_timeout)

        logger.info(f"Initialized {len(self._providers)} providers: {[p.value for p in self._providers]}")

    def get(self, provider: Provider) -> BaseLLMProvider:
        """Return the client for ``provider`` or raise if it is not configured."""
        client = self._providers.get(provider)
        if client is None:
            env_var = "OPENAI_API_KEY" if provider is Provider.OPENAI else "XAI_API_KEY"
            raise ConfigurationException(env_var, f"{provider.display_name} support requires {env_var} to be set")
        return client

    def model_for(self, provider: Provider, vision: bool = False) -> Tuple[str, str]:
        """Return ``(model, version)`` for the provider's chat or vision model."""
        config = self._configs.get(provider)
        if config is None:
            return "", ""
        if vision:
            return config.vision_model, config.model_version if config.vision_model == config.model else ""
        return config.model, config.model_version

    def get_provider_names(self) -> List[str]:
        """Get list of configured provider names."""
        return [p.value for p in self._providers]

    async def close_all(self) -> None:
        """Close all provider sessions."""
        for provider in self._providers.values():
            await provider.close()

        logger.info("All provider sessions closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close_all()
