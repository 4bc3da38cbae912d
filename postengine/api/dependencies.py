"""
FastAPI Dependencies - visitor identity, location and service wiring.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from postengine.config import Settings, get_settings
from postengine.db.session import get_db
from postengine.services.accounts import AccountStore
from postengine.services.identity import resolve_anonymous_token, resolve_location
from postengine.services.model_provider import ModelProvider, OpenAIProvider
from postengine.services.orchestrator import GenerationOrchestrator
from postengine.services.pipeline import GenerationService

# Provider client is reused across requests (connection pooling)
_model_provider: ModelProvider | None = None


async def get_anonymous_token(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Anonymous visitor token from the identity cookie.

    Declared first on routes so a missing cookie is rejected before any
    store session or provider is touched.

    Raises:
        MissingIdentityError: Cookie absent (mapped to HTTP 400)
    """
    return resolve_anonymous_token(request.cookies, settings.anonymous_cookie_name)


async def get_location(request: Request) -> str | None:
    """Coarse visitor location from edge geolocation headers."""
    return resolve_location(request.headers)


def get_model_provider(settings: Settings = Depends(get_settings)) -> ModelProvider:
    """
    Shared model provider built from settings.

    Raises:
        ConfigurationError: Provider credentials missing (mapped to HTTP 500)
    """
    global _model_provider
    if _model_provider is None:
        _model_provider = OpenAIProvider.from_settings(settings)
    return _model_provider


async def get_generation_service(
    db: AsyncSession = Depends(get_db),
    provider: ModelProvider = Depends(get_model_provider),
    settings: Settings = Depends(get_settings),
) -> GenerationService:
    """Per-request generation service bound to a database session."""
    store = AccountStore(
        db,
        trial_allotment=settings.trial_allotment,
        timeout_seconds=settings.store_timeout_seconds,
    )
    return GenerationService(store, GenerationOrchestrator(provider, settings), settings)
