"""Data models for the delivery pipeline."""

from .delivery import (
    DeliveryPlan,
    DeliveryReport,
    PlannedChunk,
    SegmentationOutcome,
    SegmentationSource,
)

__all__ = [
    "DeliveryPlan",
    "DeliveryReport",
    "PlannedChunk",
    "SegmentationOutcome",
    "SegmentationSource",
]
