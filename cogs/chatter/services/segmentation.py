"""
Reply Segmentation
==================

Splits a long generated reply into chunks that read like a person following
up one message with another. The provider is asked for natural breakpoints;
whenever that fails for any reason the deterministic paragraph splitter is
used instead, so segmentation itself never raises.
"""

import asyncio
import logging
import math
from typing import List, Optional

import aiohttp

from ..config import DeliveryConfig
from ..exceptions import ChatException
from ..models import SegmentationOutcome, SegmentationSource
from ..providers import LLMProviderManager, Provider

logger = logging.getLogger(__name__)

BREAK_DELIMITER = "<<<BREAK>>>"
PARAGRAPH_SEPARATOR = "\n\n"

_EXAMPLE_INPUT = (
    "I think pizza is great. It has cheese and sauce. But honestly, the best part is "
    "the crust when it's done right. Brooklyn style is my favorite."
)
EXAMPLE_SEGMENTS = (
    "I think pizza is great. It has cheese and sauce.",
    "But honestly, the best part is the crust when it's done right.",
    "Brooklyn style is my favorite.",
)

SEGMENTATION_PROMPT = f"""You are a message chunking assistant. Your job is to break up messages into natural, conversational chunks
that feel like how humans text - following up one message with more messages as they flesh out their thoughts.

Rules:
1. Split at natural thought boundaries (paragraphs, topic shifts, etc.)
2. Each chunk should be a complete thought or idea
3. Aim for 3-5 chunks for longer messages
4. Preserve the exact original text - no changes to content
5. Respond ONLY with the chunks separated by the delimiter: {BREAK_DELIMITER}
6. Do not add any explanations or commentary

Example input: "{_EXAMPLE_INPUT}"

Example output: "{BREAK_DELIMITER.join(EXAMPLE_SEGMENTS)}\""""

# Failures that mean "the provider could not help"; anything else is a bug.
_ABSORBED_ERRORS = (
    ChatException,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    KeyError,
    ValueError,
    TypeError,
)


def fallback_split(reply: str, soft_limit: int = 800) -> List[str]:
    """
    Group paragraphs into chunks of roughly ``soft_limit`` characters.

    Paragraphs are never cut; a chunk closes when adding the next paragraph
    would push it past the soft limit. When the reply has no usable
    paragraph boundary the reply comes back untouched as a single chunk.
    """
    if not reply.strip():
        return []

    chunks = []
    current = ""

    for paragraph in reply.split(PARAGRAPH_SEPARATOR):
        paragraph = paragraph.strip()
        if not paragraph:
            continue

        if current and len(current) + len(paragraph) + len(PARAGRAPH_SEPARATOR) > soft_limit:
            chunks.append(current.strip())
            current = paragraph
        elif current:
            current += PARAGRAPH_SEPARATOR + paragraph
        else:
            current = paragraph

    if current:
        chunks.append(current.strip())

    if len(chunks) <= 1:
        return [reply]

    return chunks


def parse_breaks(response: str, reply: str, max_length: int = 2000) -> List[str]:
    """
    Turn a delimiter-separated provider response into validated chunks.

    Returns an empty list when fewer than two usable chunks remain, which
    callers treat as the provider having ignored the instructions.
    """
    chunks = []

    for piece in response.split(BREAK_DELIMITER):
        piece = piece.strip()
        if not piece or len(piece) > max_length:
            continue
        # The provider parroting the prompt's example is not a split of our reply
        if piece in EXAMPLE_SEGMENTS and piece not in reply:
            continue
        chunks.append(piece)

    if len(chunks) <= 1:
        return []

    return chunks


def segmentation_token_budget(reply: str) -> int:
    """Completion budget large enough for the provider to echo ``reply`` back."""
    # ~3 characters per token, plus room for delimiters
    budget = math.ceil(len(reply) / 3) + 256
    return max(1000, min(budget, 8192))


class MessageSegmenter:
    """Asks the fast provider where a reply should be broken up."""

    provider = Provider.GROK

    def __init__(self, providers: LLMProviderManager, config: Optional[DeliveryConfig] = None):
        self.providers = providers
        self.config = config or DeliveryConfig()

    async def segment(self, reply: str) -> SegmentationOutcome:
        """Split ``reply`` into conversational chunks. Never raises on provider failure."""
        if len(reply) <= self.config.short_message_threshold:
            chunks = (reply,) if reply.strip() else ()
            return SegmentationOutcome(chunks, SegmentationSource.SHORT)

        logger.info(f"Requesting message break suggestions (length: {len(reply)})")

        try:
            client = self.providers.get(self.provider)
            response = await client.complete(
                SEGMENTATION_PROMPT,
                f"Break this message into natural conversational chunks:\n\n{reply}",
                max_tokens=segmentation_token_budget(reply),
                timeout=self.config.segmentation_timeout
            )
        except _ABSORBED_ERRORS as e:
            logger.error(f"Failed to get message breaks, falling back to paragraph chunking: {e}")
            return self._fallback(reply)

        chunks = parse_breaks(response, reply, self.config.max_message_length)
        if not chunks:
            logger.warning("Provider returned fewer than two usable chunks, falling back to paragraph chunking")
            return self._fallback(reply)

        logger.info(f"Message broken into {len(chunks)} chunks (original length: {len(reply)})")
        return SegmentationOutcome(tuple(chunks), SegmentationSource.PROVIDER)

    def _fallback(self, reply: str) -> SegmentationOutcome:
        chunks = fallback_split(reply, self.config.fallback_chunk_size)
        return SegmentationOutcome(tuple(chunks), SegmentationSource.FALLBACK)
