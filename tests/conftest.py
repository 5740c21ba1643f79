"""Pytest configuration and fixtures."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from cogs.chatter.config import DeliveryConfig, ProviderConfig
from cogs.chatter.gateway import ChatGateway


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay):
        self.calls.append(delay)
        # Let the typing task run its first step
        await asyncio.sleep(0)


@pytest.fixture
def delivery_config():
    return DeliveryConfig()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def mock_gateway():
    """A ChatGateway whose every operation is an AsyncMock."""
    return AsyncMock(spec=ChatGateway)


@pytest.fixture
def mock_llm_client():
    client = Mock()
    client.complete = AsyncMock(return_value="mock response")
    client.complete_with_image = AsyncMock(return_value="mock image opinion")
    return client


@pytest.fixture
def mock_providers(mock_llm_client):
    """An LLMProviderManager stand-in that hands out ``mock_llm_client``."""
    providers = Mock()
    providers.get = Mock(return_value=mock_llm_client)
    providers.model_for = Mock(return_value=("grok-3", "2024-11-17"))
    providers.get_provider_names = Mock(return_value=["grok", "openai"])
    providers.close_all = AsyncMock()
    return providers


@pytest.fixture
def provider_config():
    return ProviderConfig(
        name="grok",
        api_key="test-key",
        url="https://api.example.test/v1/chat/completions",
        model="grok-3",
        vision_model="grok-vision-beta",
        model_version="2024-11-17",
    )


@pytest.fixture
def make_http_response():
    """Factory for fake aiohttp responses."""
    def _make(status=200, json_data=None, text="", headers=None, body=b""):
        response = Mock()
        response.status = status
        response.headers = headers or {}
        response.json = AsyncMock(return_value=json_data)
        response.text = AsyncMock(return_value=text)
        response.read = AsyncMock(return_value=body)
        return response
    return _make


@pytest.fixture
def make_http_session():
    """Factory for fake aiohttp sessions whose post/get yield ``response``."""
    def _make(response=None, error=None):
        context = MagicMock()
        if error is not None:
            context.__aenter__ = AsyncMock(side_effect=error)
        else:
            context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)

        session = Mock()
        session.closed = False
        session.post = Mock(return_value=context)
        session.get = Mock(return_value=context)
        session.close = AsyncMock()
        return session
    return _make
