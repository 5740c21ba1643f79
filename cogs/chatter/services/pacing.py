"""
Human-like Pacing
=================

Sends a reply's chunks one after another with a typing pause in between.
Discord only shows the typing indicator for about ten seconds per trigger,
so it is re-triggered on a shorter interval while a pause is running.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from ..config import DeliveryConfig
from ..gateway import ChatGateway
from ..models import DeliveryPlan, DeliveryReport, PlannedChunk

logger = logging.getLogger(__name__)


def typing_delay(chunk: str, config: Optional[DeliveryConfig] = None) -> float:
    """Seconds a person would plausibly spend typing ``chunk``, clamped."""
    config = config or DeliveryConfig()
    delay = config.min_delay + len(chunk) * config.per_char_delay
    return max(config.min_delay, min(delay, config.max_delay))


def build_plan(chunks: List[str], config: Optional[DeliveryConfig] = None) -> DeliveryPlan:
    """Attach a delay to every chunk; the first one goes out immediately."""
    steps = tuple(
        PlannedChunk(text=chunk, delay=0.0 if index == 0 else typing_delay(chunk, config))
        for index, chunk in enumerate(chunks)
    )
    return DeliveryPlan(steps)


async def keep_typing(
    gateway: ChatGateway,
    channel_id: int,
    stop: asyncio.Event,
    interval: float = 8.0
) -> None:
    """Show the typing indicator until ``stop`` is set, refreshing every ``interval`` seconds."""
    while not stop.is_set():
        try:
            await gateway.trigger_typing(channel_id)
        except Exception as e:
            logger.error(f"Failed to send typing indicator to channel {channel_id}: {e}")
            return

        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue


class Pacer:
    """Delivers a ``DeliveryPlan`` to a channel, one chunk at a time."""

    def __init__(
        self,
        gateway: ChatGateway,
        config: Optional[DeliveryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.gateway = gateway
        self.config = config or DeliveryConfig()
        self._sleep = sleep

    async def deliver(self, channel_id: int, plan: DeliveryPlan) -> DeliveryReport:
        """Send every chunk in order. Send failures are logged and skipped."""
        report = DeliveryReport()

        for index, step in enumerate(plan):
            if step.delay > 0:
                logger.info(
                    f"Waiting {step.delay * 1000:.0f}ms before next chunk "
                    f"(length: {len(step.text)})"
                )
                await self._pause(channel_id, step.delay)

            report.attempted += 1
            try:
                await self.gateway.send_message(channel_id, step.text)
            except Exception as e:
                logger.error(f"Failed to send chunk {index + 1}/{len(plan)} to channel {channel_id}: {e}")
                report.record_failure(index)

        return report

    async def _pause(self, channel_id: int, delay: float) -> None:
        """Sleep for ``delay`` seconds while the typing indicator is shown."""
        stop = asyncio.Event()
        typing_task = asyncio.create_task(
            keep_typing(self.gateway, channel_id, stop, self.config.typing_refresh_interval)
        )
        try:
            await self._sleep(delay)
        finally:
            stop.set()
            typing_task.cancel()
            await asyncio.gather(typing_task, return_exceptions=True)
