"""
Turn a raw API body into a validated GenerationRequest.

Runs before any store or model call.
"""

from postengine.config import Settings
from postengine.exceptions import InvalidInputError, MediaTooLargeError
from postengine.models.api import ContentType, GenerateRequest
from postengine.models.domain import GenerationRequest

_MEDIA_PREFIXES = ("data:image/", "https://", "http://")


def _check_media(value: str, label: str, limit: int) -> str:
    if len(value) > limit:
        raise MediaTooLargeError(size=len(value), limit=limit)
    if not value.startswith(_MEDIA_PREFIXES):
        raise InvalidInputError(f"{label} must be an image data URL or http(s) URL")
    return value


def _platforms(requested: list[str] | None, default: list[str]) -> tuple[str, ...]:
    cleaned = [p.strip().lower() for p in requested or [] if p and p.strip()]
    unique = list(dict.fromkeys(cleaned))
    return tuple(unique or default)


def _media_kind(body: GenerateRequest) -> ContentType:
    if body.content_type is not None:
        return body.content_type
    if body.video_frames:
        return ContentType.VIDEO
    if body.image_data_url:
        return ContentType.IMAGE
    return ContentType.TEXT


def build_generation_request(body: GenerateRequest, settings: Settings) -> GenerationRequest:
    """
    Validate and normalize a generation request.

    Raises:
        InvalidInputError: Oversized prompt, malformed media, or nothing to
            caption
        MediaTooLargeError: Image or frame payload over the size limit
    """
    topic = (body.prompt or "").strip()
    if len(topic) > settings.max_prompt_chars:
        raise InvalidInputError(
            f"prompt exceeds {settings.max_prompt_chars} characters ({len(topic)})"
        )

    image = (body.image_data_url or "").strip() or None
    if image is not None:
        image = _check_media(image, "imageDataUrl", settings.max_media_chars)

    if len(body.video_frames) > settings.max_video_frames_accepted:
        raise InvalidInputError(
            f"too many video frames ({len(body.video_frames)}, "
            f"max {settings.max_video_frames_accepted})"
        )
    frames = tuple(
        _check_media(frame, "videoFrames", settings.max_media_chars)
        for frame in body.video_frames
        if frame
    )

    has_content = bool(topic or image or frames)
    explicit_intent = (
        body.content_type is not None and settings.allow_empty_request_with_content_type
    )
    if not has_content and not explicit_intent:
        raise InvalidInputError("Prompt, image, or video required")

    return GenerationRequest(
        topic=topic,
        media_kind=_media_kind(body),
        platforms=_platforms(body.platforms, settings.default_platforms),
        image_data_url=image,
        video_frames=frames,
        video_duration=body.video_meta.duration if body.video_meta else None,
    )
