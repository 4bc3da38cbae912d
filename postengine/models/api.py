"""
API Models - Pydantic models for request/response validation.

Wire names are camelCase to match the browser client; Python attributes
stay snake_case.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ContentType(str, Enum):
    """Media kind discriminator sent by the client."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


# ============================================================================
# Generation Models
# ============================================================================


class VideoMeta(BaseModel):
    """Metadata for a sampled video upload."""

    duration: float | None = Field(None, ge=0, description="Video length in seconds")


class GenerateRequest(BaseModel):
    """POST /api/generate request body."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = Field(None, description="Topic text for the captions")
    image_data_url: str | None = Field(
        None, alias="imageDataUrl", description="Image as data URL or http(s) URL"
    )
    video_frames: list[str] = Field(
        default_factory=list,
        alias="videoFrames",
        description="Ordered sampled frames of a short video, as data URLs",
    )
    video_meta: VideoMeta | None = Field(None, alias="videoMeta")
    platforms: list[str] | None = Field(None, description="Target platforms")
    content_type: ContentType | None = Field(None, alias="contentType")


class GenerateResponse(BaseModel):
    """POST /api/generate success envelope."""

    ok: bool = True
    captions: dict[str, list[str]] = Field(..., description="Captions per platform")
    hashtags: list[str]
    remaining: int | None = Field(
        ..., description="Credits left after this call, null for paid accounts"
    )
    is_pro: bool = Field(..., serialization_alias="isPro")
    location: str | None = None


class ErrorResponse(BaseModel):
    """Error envelope shared by every failure status."""

    error: str
    message: str
    remaining: int | None = None


class HealthResponse(BaseModel):
    """GET /health response."""

    status: str
    database: str
    timestamp: str
