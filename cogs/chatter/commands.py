"""Argument parsing for the chat commands."""

from typing import List, Sequence, Tuple

from .providers import Provider

DEFAULT_HISTORY_MESSAGE_COUNT = 10
DEFAULT_WHO_WON_MESSAGE_COUNT = 100
DEFAULT_MOST_MESSAGE_COUNT = 100
DEFAULT_USER_OPINION_DAYS = 3
DEFAULT_USER_OPINION_MAX_MESSAGES = 200
TOP_ACTIVE_USERS_COUNT = 5

# Upper bounds on user-supplied values
MAX_HISTORY_MESSAGE_COUNT = 100
MAX_USER_OPINION_DAYS = 30
MAX_USER_OPINION_MESSAGES = 500


def extract_provider_and_args(
    args: Sequence[str],
    default: Provider
) -> Tuple[Provider, List[str]]:
    """Pop a leading ``grok``/``openai`` token off ``args`` if there is one."""
    args = list(args)
    if args:
        provider = Provider.parse(args[0])
        if provider is not None:
            return provider, args[1:]
    return default, args


def parse_count(args: Sequence[str], default: int, maximum: int = MAX_HISTORY_MESSAGE_COUNT) -> int:
    """First argument as a positive integer capped at ``maximum``, or ``default``."""
    if args:
        try:
            value = int(args[0])
        except ValueError:
            return default
        if value > 0:
            return min(value, maximum)
    return default


def parse_user_opinion_args(args: Sequence[str]) -> Tuple[Provider, int, int]:
    """``[provider] [days] [max_messages]`` with mentions ignored and values clamped."""
    without_mentions = [arg for arg in args if not arg.startswith("<@")]
    provider, remaining = extract_provider_and_args(without_mentions, Provider.OPENAI)

    days = DEFAULT_USER_OPINION_DAYS
    max_messages = DEFAULT_USER_OPINION_MAX_MESSAGES

    if remaining and remaining[0].isdecimal():
        days = max(1, min(int(remaining[0]), MAX_USER_OPINION_DAYS))
        remaining = remaining[1:]
    if remaining and remaining[0].isdecimal():
        max_messages = max(1, min(int(remaining[0]), MAX_USER_OPINION_MESSAGES))

    return provider, days, max_messages


def most_prompt(question: str) -> str:
    """A one-word ``!most`` question expands into a full question."""
    if len(question.split()) == 1:
        return f"Who is the most {question} in the recent conversation?"
    return question


def split_image_args(args: Sequence[str]) -> Tuple[str, str]:
    """Split ``[url] [prompt...]`` into ``(url, prompt)``; either may be empty."""
    args = list(args)
    if args and args[0].startswith(("http://", "https://")):
        return args[0], " ".join(args[1:])
    return "", " ".join(args)
