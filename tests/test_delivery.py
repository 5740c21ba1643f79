"""End-to-end tests for the delivery pipeline with a mocked chat platform."""

import asyncio

import pytest

from cogs.chatter.config import DeliveryConfig
from cogs.chatter.exceptions import ProviderException
from cogs.chatter.services.delivery import DeliveryPipeline
from cogs.chatter.services.pacing import Pacer

PIZZA_REPLY = (
    "Pizza is great.\n\n"
    "The crust matters most.\n\n"
    "Brooklyn style wins."
)


def sent_texts(gateway):
    return [c.args[1] for c in gateway.send_message.await_args_list]


@pytest.fixture
def pipeline(mock_gateway, mock_providers, recording_sleep):
    config = DeliveryConfig()
    return DeliveryPipeline(
        mock_gateway,
        mock_providers,
        config,
        pacer=Pacer(mock_gateway, config, sleep=recording_sleep)
    )


class TestDeliveryPipeline:

    @pytest.mark.asyncio
    async def test_short_reply_is_one_message(self, pipeline, mock_gateway, mock_llm_client, recording_sleep):
        report = await pipeline.deliver(7, PIZZA_REPLY)

        assert sent_texts(mock_gateway) == [PIZZA_REPLY]
        assert recording_sleep.calls == []
        mock_llm_client.complete.assert_not_awaited()
        assert report.delivered == 1

    @pytest.mark.asyncio
    async def test_provider_down_uses_paragraph_chunks(self, pipeline, mock_gateway, mock_llm_client):
        mock_llm_client.complete.side_effect = ProviderException("grok", "unavailable", status_code=503)
        paragraphs = ["a" * 600, "b" * 600, "c" * 600]

        report = await pipeline.deliver(7, "\n\n".join(paragraphs))

        assert sent_texts(mock_gateway) == paragraphs
        assert report.delivered == 3

    @pytest.mark.asyncio
    async def test_provider_breaks_drive_chunks(self, pipeline, mock_gateway, mock_llm_client):
        mock_llm_client.complete.return_value = "A<<<BREAK>>>B<<<BREAK>>>"

        await pipeline.deliver(7, "A " * 400)

        assert sent_texts(mock_gateway) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_oversized_reply_is_cut_to_limit(self, pipeline, mock_gateway, mock_llm_client):
        mock_llm_client.complete.side_effect = ProviderException("grok", "unavailable")
        reply = "x" * 2001

        report = await pipeline.deliver(7, reply)

        texts = sent_texts(mock_gateway)
        assert [len(t) for t in texts] == [2000, 1]
        assert "".join(texts) == reply
        assert report.attempted == 2

    @pytest.mark.asyncio
    async def test_every_chunk_after_first_waits(self, pipeline, mock_gateway, mock_llm_client, recording_sleep):
        mock_llm_client.complete.return_value = "one<<<BREAK>>>two<<<BREAK>>>three"

        await pipeline.deliver(7, "one two three " * 50)

        assert sent_texts(mock_gateway) == ["one", "two", "three"]
        assert len(recording_sleep.calls) == 2

    @pytest.mark.asyncio
    async def test_empty_reply_sends_nothing(self, pipeline, mock_gateway):
        report = await pipeline.deliver(7, "")

        mock_gateway.send_message.assert_not_awaited()
        assert report.attempted == 0

    @pytest.mark.asyncio
    async def test_partial_failure_is_reported(self, pipeline, mock_gateway, mock_llm_client):
        mock_llm_client.complete.return_value = "one<<<BREAK>>>two<<<BREAK>>>three"
        mock_gateway.send_message.side_effect = [None, RuntimeError("boom"), None]

        report = await pipeline.deliver(7, "one two three " * 50)

        assert report.attempted == 3
        assert report.failed_indexes == [1]


class TestDrain:

    @pytest.mark.asyncio
    async def test_drain_with_nothing_running(self, mock_gateway, mock_providers):
        pipeline = DeliveryPipeline(mock_gateway, mock_providers)
        assert await pipeline.drain(timeout=0.01) == 0

    @pytest.mark.asyncio
    async def test_drain_waits_for_quick_delivery(self, mock_gateway, mock_providers, mock_llm_client):
        config = DeliveryConfig(min_delay=0.02, max_delay=0.02, typing_refresh_interval=0.01)
        mock_llm_client.complete.return_value = "one<<<BREAK>>>two"
        pipeline = DeliveryPipeline(mock_gateway, mock_providers, config)

        task = asyncio.create_task(pipeline.deliver(7, "one two " * 100))
        await asyncio.sleep(0)
        assert pipeline.inflight == 1

        assert await pipeline.drain(timeout=1.0) == 0
        assert task.done() and not task.cancelled()
        assert sent_texts(mock_gateway) == ["one", "two"]
        assert pipeline.inflight == 0

    @pytest.mark.asyncio
    async def test_drain_cancels_stragglers(self, mock_gateway, mock_providers, mock_llm_client):
        config = DeliveryConfig(min_delay=10.0, max_delay=10.0, typing_refresh_interval=0.01)
        mock_llm_client.complete.return_value = "one<<<BREAK>>>two"
        pipeline = DeliveryPipeline(mock_gateway, mock_providers, config)

        task = asyncio.create_task(pipeline.deliver(7, "one two " * 100))
        await asyncio.sleep(0.02)

        assert await pipeline.drain(timeout=0.05) == 1
        assert task.cancelled()
        assert sent_texts(mock_gateway) == ["one"]
        assert pipeline.inflight == 0

        typing_count = mock_gateway.trigger_typing.await_count
        await asyncio.sleep(0.05)
        assert mock_gateway.trigger_typing.await_count == typing_count
