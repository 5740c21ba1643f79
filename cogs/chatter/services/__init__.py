"""Business logic services layer."""

from .delivery import DeliveryPipeline
from .length import enforce_length
from .pacing import Pacer, build_plan, keep_typing, typing_delay
from .segmentation import MessageSegmenter, fallback_split, parse_breaks

__all__ = [
    "DeliveryPipeline",
    "MessageSegmenter",
    "Pacer",
    "build_plan",
    "enforce_length",
    "fallback_split",
    "keep_typing",
    "parse_breaks",
    "typing_delay",
]
