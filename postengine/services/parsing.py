"""
Lenient parsing of model output.

Model text is parsed by an ordered chain of strategies; each returns a list
or None and the first list wins. All functions here are pure.
"""

import json
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any

FALLBACK_CAPTION = "Couldn't parse captions. Please try again."

MAX_CAPTIONS = 6
MIN_HASHTAGS = 6
MAX_HASHTAGS = 20
MAX_HASHTAG_CHARS = 30
MAX_TOPIC_TAGS = 5

GENERIC_TAGS = ("#reels", "#trending", "#creator")
PADDING_TAGS = ("#contentcreator", "#explore", "#instagood", "#socialmedia", "#viral")

_NON_WORD = re.compile(r"[^\w]")
_NON_ALNUM_SPACE = re.compile(r"[^a-z0-9\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")

Strategy = Callable[[str], list[Any] | None]


def _loads(raw: str) -> Any | None:
    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        return None


# ============================================================================
# Strategies
# ============================================================================


def parse_direct_array(raw: str) -> list[Any] | None:
    """The whole response is a JSON array."""
    parsed = _loads(raw.strip())
    return parsed if isinstance(parsed, list) else None


def parse_object_field(field: str) -> Strategy:
    """Build a strategy accepting a JSON object with a list under field."""

    def strategy(raw: str) -> list[Any] | None:
        parsed = _loads(raw.strip())
        if isinstance(parsed, dict) and isinstance(parsed.get(field), list):
            return parsed[field]
        return None

    strategy.__name__ = f"parse_object_field_{field}"
    return strategy


def _balanced_arrays(text: str) -> Iterator[str]:
    """Yield every balanced [...] substring, in order of its opening bracket."""
    for start, char in enumerate(text):
        if char != "[":
            continue
        depth = 0
        in_string = False
        escaped = False
        for end in range(start, len(text)):
            current = text[end]
            if in_string:
                if escaped:
                    escaped = False
                elif current == "\\":
                    escaped = True
                elif current == '"':
                    in_string = False
            elif current == '"':
                in_string = True
            elif current == "[":
                depth += 1
            elif current == "]":
                depth -= 1
                if depth == 0:
                    yield text[start : end + 1]
                    break


def parse_bracketed_array(raw: str) -> list[Any] | None:
    """First balanced [...] substring that parses as a JSON array."""
    for candidate in _balanced_arrays(raw):
        parsed = _loads(candidate)
        if isinstance(parsed, list):
            return parsed
    return None


CAPTION_STRATEGIES: tuple[Strategy, ...] = (
    parse_direct_array,
    parse_object_field("captions"),
    parse_bracketed_array,
)

HASHTAG_STRATEGIES: tuple[Strategy, ...] = (
    parse_object_field("hashtags"),
    parse_direct_array,
    parse_bracketed_array,
)


def run_strategies(raw: str, strategies: Sequence[Strategy]) -> list[Any] | None:
    """Return the first strategy result that is not None."""
    for strategy in strategies:
        result = strategy(raw)
        if result is not None:
            return result
    return None


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


# ============================================================================
# Captions
# ============================================================================


def parse_captions(raw: str) -> list[str]:
    """
    Extract up to 6 distinct, non-empty captions from model text.

    Returns an empty list when no strategy yields usable captions.
    """
    items = run_strategies(raw or "", CAPTION_STRATEGIES) or []
    captions = (item.strip() for item in items if isinstance(item, str))
    return _dedupe(c for c in captions if c)[:MAX_CAPTIONS]


# ============================================================================
# Hashtags
# ============================================================================


def normalize_hashtag(value: Any) -> str | None:
    """Lowercase '#tag' form of value, or None if unusable."""
    if not isinstance(value, str):
        return None
    body = _NON_WORD.sub("", value.strip().lower())
    if not body or len(body) > MAX_HASHTAG_CHARS:
        return None
    return f"#{body}"


def parse_hashtags(raw: str) -> list[str]:
    """Extract normalized, de-duplicated hashtags (at most 20) from model text."""
    items = run_strategies(raw or "", HASHTAG_STRATEGIES) or []
    tags = (normalize_hashtag(item) for item in items)
    return _dedupe(t for t in tags if t)[:MAX_HASHTAGS]


def location_hashtag(location: str | None) -> str | None:
    """Single tag derived from a coarse location string."""
    if not location:
        return None
    body = _NON_ALNUM.sub("", location.lower())[:MAX_HASHTAG_CHARS]
    return f"#{body}" if body else None


def fallback_hashtags(topic: str, location: str | None = None) -> list[str]:
    """
    Deterministic hashtag set used when the model gives too few tags.

    Topic words first, then the generic tags, then the location tag, padded
    from a fixed pool so the result always holds at least 6 tags.
    """
    words = _NON_ALNUM_SPACE.sub("", (topic or "").lower()).split()
    tags = [f"#{word[:MAX_HASHTAG_CHARS]}" for word in words[:MAX_TOPIC_TAGS]]
    tags.extend(GENERIC_TAGS)
    location_tag = location_hashtag(location)
    if location_tag:
        tags.append(location_tag)

    result = _dedupe(tags)
    for pad in PADDING_TAGS:
        if len(result) >= MIN_HASHTAGS:
            break
        if pad not in result:
            result.append(pad)
    return result
