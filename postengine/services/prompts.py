"""
Prompt construction for the caption and hashtag calls.
"""

import json
from collections.abc import Sequence

from postengine.models.api import ContentType
from postengine.models.domain import GenerationRequest
from postengine.services.model_provider import ContentPart, ImagePart, TextPart

CAPTION_TEMPERATURE = 0.8
VIDEO_CAPTION_TEMPERATURE = 0.4
HASHTAG_TEMPERATURE = 0.6

NO_TOPIC_TEXT = (
    "No explicit topic provided. Generate captions based only on the media content."
)

_CAPTION_RULES = (
    "You are PostEngineAI, an assistant that writes short, catchy social captions.",
    "Requirements:",
    '- Return JSON: an array of up to 6 distinct caption strings, or {"captions": [...]}.',
    "- Keep each caption under 180 characters when possible.",
    "- Vary styles: punchy, playful, motivational, educational, call-to-action.",
    "- Include relevant emojis sparingly; do not overuse hashtags (0-4).",
    "- If an image is provided, match the caption to the image content.",
    "- Never include quotes or code fences around the JSON.",
    "Always return captions as plain strings.",
)

_VIDEO_RULES = (
    "For video inputs, you will receive representative video frames.",
    "Base captions ONLY on what is visible in the frames and the video duration.",
    "Do NOT invent actions, objects, or scenes not visible.",
)


def caption_system_instruction(request: GenerationRequest) -> str:
    """Output contract for the caption call."""
    lines = [*_CAPTION_RULES, *_VIDEO_RULES]
    lines.append(f"Content type: {request.media_kind.value}.")
    lines.append(f"Platforms: {', '.join(request.platforms)}.")
    return "\n".join(lines)


def sample_frames(frames: Sequence[str], limit: int) -> list[str]:
    """Evenly spaced subset of at most limit frames, original order kept."""
    if limit <= 0:
        return []
    if len(frames) <= limit:
        return list(frames)
    if limit == 1:
        return [frames[0]]
    last = len(frames) - 1
    indices = sorted({round(i * last / (limit - 1)) for i in range(limit)})
    return [frames[i] for i in indices]


def caption_user_content(request: GenerationRequest, max_frames: int) -> list[ContentPart]:
    """Ordered user message parts: instructions text, then image, then frames."""
    topic_text = f"Topic: {request.topic}." if request.topic else NO_TOPIC_TEXT
    duration = (
        f"{request.video_duration:g}" if request.video_duration is not None else "n/a"
    )
    parts: list[ContentPart] = [
        TextPart(
            f"Create {request.media_kind.value} captions for {', '.join(request.platforms)}. "
            f"{topic_text} Video length: {duration} seconds."
        )
    ]
    if request.image_data_url:
        parts.append(ImagePart(request.image_data_url))
    if request.media_kind == ContentType.VIDEO:
        parts.extend(ImagePart(frame) for frame in sample_frames(request.video_frames, max_frames))
    return parts


def caption_temperature(request: GenerationRequest) -> float:
    """Video captions stay literal; text and image captions get more room."""
    if request.media_kind == ContentType.VIDEO:
        return VIDEO_CAPTION_TEMPERATURE
    return CAPTION_TEMPERATURE


def hashtag_system_instruction(location: str | None) -> str:
    """Output contract for the hashtag call."""
    return "\n".join(
        [
            "You generate effective, non-spammy hashtags for Instagram/TikTok.",
            'Return JSON: {"hashtags": ["#tag1", "#tag2", ...]} with 12-20 items.',
            "Lowercase, no repeats, max 30 chars per tag, avoid banned/overly generic tags.",
            (
                f"Prioritize local discoverability around: {location}"
                if location
                else "No explicit location available."
            ),
        ]
    )


def hashtag_user_content(request: GenerationRequest, location: str | None) -> list[ContentPart]:
    """Topic and location as a JSON text part."""
    return [TextPart(json.dumps({"topic": request.topic, "location": location or None}))]
