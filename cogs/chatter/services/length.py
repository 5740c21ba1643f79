"""Hard length limit for outgoing chunks."""

from typing import Iterable, List

from ..config import MAX_MESSAGE_LENGTH


def split_by_length(text: str, limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """Cut ``text`` into consecutive slices of at most ``limit`` characters."""
    return [text[i:i + limit] for i in range(0, len(text), limit)]


def enforce_length(chunks: Iterable[str], limit: int = MAX_MESSAGE_LENGTH) -> List[str]:
    """
    Make every chunk fit in one message.

    Chunks within the limit pass through untouched; longer ones are sliced
    by raw length with nothing added or removed, so the concatenation of the
    result equals the concatenation of the input. Empty chunks are dropped.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    result = []
    for chunk in chunks:
        if len(chunk) <= limit:
            if chunk:
                result.append(chunk)
        else:
            result.extend(split_by_length(chunk, limit))
    return result
