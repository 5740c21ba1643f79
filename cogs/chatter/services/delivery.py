"""
Delivery Pipeline
=================

segment -> enforce length -> pace and send, for one reply at a time.
"""

import asyncio
import logging
from typing import Optional, Set

from ..config import DeliveryConfig
from ..gateway import ChatGateway
from ..models import DeliveryReport
from ..providers import LLMProviderManager
from .length import enforce_length
from .pacing import Pacer, build_plan
from .segmentation import MessageSegmenter

logger = logging.getLogger(__name__)


class DeliveryPipeline:
    """
    Relays a generated reply into a channel as several human-paced messages.

    Deliveries for different replies are independent and may overlap; each
    one sends its own chunks strictly in order. Running deliveries are
    tracked so shutdown can give them a grace period.
    """

    def __init__(
        self,
        gateway: ChatGateway,
        providers: LLMProviderManager,
        config: Optional[DeliveryConfig] = None,
        segmenter: Optional[MessageSegmenter] = None,
        pacer: Optional[Pacer] = None
    ):
        self.config = config or DeliveryConfig()
        self.segmenter = segmenter or MessageSegmenter(providers, self.config)
        self.pacer = pacer or Pacer(gateway, self.config)
        self._inflight: Set[asyncio.Task] = set()

    async def deliver(self, channel_id: int, reply: str) -> DeliveryReport:
        """
        Deliver ``reply`` to ``channel_id``.

        Individual send failures are logged and counted in the returned
        report rather than raised; a partial reply beats silence.
        """
        task = asyncio.current_task()
        if task is not None:
            self._inflight.add(task)

        try:
            outcome = await self.segmenter.segment(reply)
            chunks = enforce_length(outcome.chunks, self.config.max_message_length)
            plan = build_plan(chunks, self.config)

            logger.info(
                f"Delivering {len(plan)} chunks to channel {channel_id} "
                f"(source: {outcome.source.value}, length: {len(reply)})"
            )

            report = await self.pacer.deliver(channel_id, plan)
        finally:
            if task is not None:
                self._inflight.discard(task)

        if report.failed:
            logger.warning(
                f"Delivered {report.delivered}/{report.attempted} chunks to channel {channel_id}"
            )
        return report

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    async def drain(self, timeout: Optional[float] = None) -> int:
        """
        Wait up to ``timeout`` seconds for running deliveries, then cancel the rest.

        Returns the number of deliveries that had to be cancelled.
        """
        timeout = self.config.shutdown_grace_period if timeout is None else timeout
        pending = {t for t in self._inflight if t is not asyncio.current_task()}
        if not pending:
            return 0

        logger.info(f"Waiting up to {timeout:.0f}s for {len(pending)} deliveries to finish")
        _, still_running = await asyncio.wait(pending, timeout=timeout)

        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Abandoned {len(still_running)} deliveries at shutdown")
            await asyncio.gather(*still_running, return_exceptions=True)

        return len(still_running)
