"""Value types passed between the delivery stages."""

import enum
from dataclasses import dataclass, field
from typing import List, Tuple


class SegmentationSource(enum.Enum):
    """Where a set of chunks came from."""
    SHORT = "short"
    PROVIDER = "provider"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SegmentationOutcome:
    """Chunks proposed for a reply, tagged with how they were produced."""
    chunks: Tuple[str, ...]
    source: SegmentationSource

    @property
    def used_fallback(self) -> bool:
        return self.source is SegmentationSource.FALLBACK


@dataclass(frozen=True)
class PlannedChunk:
    text: str
    delay: float  # seconds to wait (with typing shown) before sending


@dataclass(frozen=True)
class DeliveryPlan:
    """Ordered chunks and the pause that precedes each one."""
    steps: Tuple[PlannedChunk, ...] = ()

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    @property
    def chunks(self) -> List[str]:
        return [step.text for step in self.steps]


@dataclass
class DeliveryReport:
    """How many chunks of a reply were attempted and how many failed."""
    attempted: int = 0
    failed: int = 0
    failed_indexes: List[int] = field(default_factory=list)

    @property
    def delivered(self) -> int:
        return self.attempted - self.failed

    def record_failure(self, index: int) -> None:
        self.failed += 1
        self.failed_indexes.append(index)
