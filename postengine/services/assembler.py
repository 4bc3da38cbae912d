"""
Response Assembler - caller-facing result shape.
"""

from collections.abc import Sequence

from postengine.models.api import GenerateResponse


def captions_by_platform(
    captions: Sequence[str],
    platforms: Sequence[str],
    companion_platforms: Sequence[str] = (),
    companion_count: int = 3,
) -> dict[str, list[str]]:
    """
    Map each platform to its caption list.

    The first requested platform gets every caption; the other requested
    platforms and the companion platforms reuse the first companion_count.
    """
    primary, *secondary = platforms
    mapping = {primary: list(captions)}
    for platform in [*secondary, *companion_platforms]:
        mapping.setdefault(platform, list(captions[:companion_count]))
    return mapping


def assemble_response(
    *,
    captions: Sequence[str],
    hashtags: Sequence[str],
    platforms: Sequence[str],
    remaining: int | None,
    is_pro: bool,
    location: str | None,
    companion_platforms: Sequence[str] = (),
    companion_count: int = 3,
) -> GenerateResponse:
    """Build the success envelope. remaining is None for paid accounts."""
    return GenerateResponse(
        captions=captions_by_platform(captions, platforms, companion_platforms, companion_count),
        hashtags=list(hashtags),
        remaining=None if is_pro else remaining,
        is_pro=is_pro,
        location=location or None,
    )
