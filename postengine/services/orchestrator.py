"""
Generation Orchestrator - caption call, then hashtag call.

Both calls degrade instead of failing: a provider timeout, provider error or
unparseable output is replaced by a deterministic default so that an
admitted request always yields a result.
"""

import time

from structlog import get_logger

from postengine.config import Settings
from postengine.exceptions import UpstreamError, UpstreamTimeoutError
from postengine.models.domain import GenerationOutcome, GenerationRequest, OutcomeSource
from postengine.observability import metrics, trace_operation
from postengine.services import prompts
from postengine.services.model_provider import ContentPart, ModelProvider
from postengine.services.parsing import (
    FALLBACK_CAPTION,
    MIN_HASHTAGS,
    fallback_hashtags,
    parse_captions,
    parse_hashtags,
)

logger = get_logger(__name__)

CAPTION_CALL = "captions"
HASHTAG_CALL = "hashtags"


class GenerationOrchestrator:
    """Builds prompts, calls the model and normalizes both outputs."""

    def __init__(self, provider: ModelProvider, settings: Settings) -> None:
        self.provider = provider
        self.max_frames = settings.max_video_frames_sent

    async def generate(
        self, request: GenerationRequest, location: str | None
    ) -> tuple[GenerationOutcome, GenerationOutcome]:
        """Run the caption call, then the hashtag call."""
        captions = await self.generate_captions(request)
        hashtags = await self.generate_hashtags(request, location)
        return captions, hashtags

    async def generate_captions(self, request: GenerationRequest) -> GenerationOutcome:
        """Captions from the model, or the single fallback caption."""
        raw = await self._complete(
            CAPTION_CALL,
            prompts.caption_system_instruction(request),
            prompts.caption_user_content(request, self.max_frames),
            temperature=prompts.caption_temperature(request),
        )
        captions = parse_captions(raw) if raw is not None else []

        if not captions:
            if raw is not None:
                logger.warning("caption_parse_failed", raw_preview=raw[:200])
            metrics.record_fallback(CAPTION_CALL)
            return GenerationOutcome(values=(FALLBACK_CAPTION,), source=OutcomeSource.FALLBACK)

        return GenerationOutcome(values=tuple(captions), source=OutcomeSource.MODEL)

    async def generate_hashtags(
        self, request: GenerationRequest, location: str | None
    ) -> GenerationOutcome:
        """Hashtags from the model, or the deterministic topic-based set."""
        raw = await self._complete(
            HASHTAG_CALL,
            prompts.hashtag_system_instruction(location),
            prompts.hashtag_user_content(request, location),
            temperature=prompts.HASHTAG_TEMPERATURE,
        )
        hashtags = parse_hashtags(raw) if raw is not None else []

        if len(hashtags) < MIN_HASHTAGS:
            logger.info("hashtag_fallback_used", model_tags=len(hashtags))
            metrics.record_fallback(HASHTAG_CALL)
            return GenerationOutcome(
                values=tuple(fallback_hashtags(request.topic, location)),
                source=OutcomeSource.FALLBACK,
            )

        return GenerationOutcome(values=tuple(hashtags), source=OutcomeSource.MODEL)

    async def _complete(
        self,
        call: str,
        system_instruction: str,
        user_content: list[ContentPart],
        *,
        temperature: float,
    ) -> str | None:
        """One provider attempt; None when the provider failed."""
        start = time.perf_counter()
        try:
            with trace_operation("model_call", call=call, temperature=temperature):
                raw = await self.provider.complete(
                    system_instruction,
                    user_content,
                    call=call,
                    temperature=temperature,
                    json_object=True,
                )
        except UpstreamTimeoutError as e:
            metrics.record_model_call(call, "timeout", time.perf_counter() - start)
            logger.warning("model_call_timeout", call=call, timeout=e.timeout_seconds)
            return None
        except UpstreamError as e:
            metrics.record_model_call(call, "error", time.perf_counter() - start)
            logger.warning(
                "model_call_failed", call=call, status_code=e.status_code, error=e.message
            )
            return None

        metrics.record_model_call(call, "ok", time.perf_counter() - start)
        return raw
