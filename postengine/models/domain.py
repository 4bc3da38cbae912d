"""
Domain Models - Internal business logic models using dataclasses.

NO DICTIONARIES - All data structures are strongly typed immutable dataclasses.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from postengine.models.api import ContentType


class AdmissionReason(str, Enum):
    """Why an admission decision was made."""

    PRO_PLAN = "pro_plan"
    OK = "ok"
    CREDITS_EXHAUSTED = "credits_exhausted"


class OutcomeSource(str, Enum):
    """Where a generation sub-result came from."""

    MODEL = "model"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class AccountData:
    """Immutable account data snapshot."""

    account_id: UUID
    anonymous_token: str
    is_pro: bool
    created_at: datetime

    def __post_init__(self) -> None:
        """Validate account fields."""
        if not self.anonymous_token:
            raise ValueError("anonymous_token cannot be empty")


@dataclass(frozen=True)
class AdmissionDecision:
    """Result of the pre-flight credit gate."""

    allow: bool
    reason: AdmissionReason
    balance: int


@dataclass(frozen=True)
class GenerationRequest:
    """Validated, normalized caption request - never persisted."""

    topic: str
    media_kind: ContentType
    platforms: tuple[str, ...]
    image_data_url: str | None = None
    video_frames: tuple[str, ...] = ()
    video_duration: float | None = None

    def __post_init__(self) -> None:
        """Validate request shape."""
        if not self.platforms:
            raise ValueError("platforms cannot be empty")

    @property
    def has_media(self) -> bool:
        """True when an image or at least one video frame is attached."""
        return bool(self.image_data_url) or bool(self.video_frames)


@dataclass(frozen=True)
class GenerationOutcome:
    """
    Values produced by one model sub-call.

    Always usable by the caller; source records whether the model produced
    them or a deterministic default was substituted.
    """

    values: tuple[str, ...]
    source: OutcomeSource

    @property
    def is_fallback(self) -> bool:
        """True when the values are the deterministic default."""
        return self.source == OutcomeSource.FALLBACK
