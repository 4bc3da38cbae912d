"""
Tests for FastAPI dependencies.
"""

from unittest.mock import AsyncMock, patch

import pytest

from postengine.api import dependencies
from postengine.config import ConfigurationError, Settings
from postengine.services.model_provider import OpenAIProvider
from postengine.services.pipeline import GenerationService


@pytest.fixture(autouse=True)
def reset_provider():
    """Clear the cached provider between tests."""
    dependencies._model_provider = None
    yield
    dependencies._model_provider = None


class TestModelProviderDependency:
    """Tests for get_model_provider."""

    def test_provider_cached(self, settings: Settings) -> None:
        first = dependencies.get_model_provider(settings)
        second = dependencies.get_model_provider(settings)

        assert isinstance(first, OpenAIProvider)
        assert first is second

    def test_missing_key_raises(self, settings: Settings) -> None:
        keyless = settings.model_copy(update={"openai_api_key": ""})
        with pytest.raises(ConfigurationError):
            dependencies.get_model_provider(keyless)


class TestGenerationServiceDependency:
    """Tests for get_generation_service."""

    async def test_service_wired_from_settings(
        self, db_session: AsyncMock, stub_provider, settings: Settings
    ) -> None:
        with patch.object(dependencies, "AccountStore", wraps=dependencies.AccountStore) as store:
            service = await dependencies.get_generation_service(db_session, stub_provider, settings)

        assert isinstance(service, GenerationService)
        store.assert_called_once_with(
            db_session,
            trial_allotment=settings.trial_allotment,
            timeout_seconds=settings.store_timeout_seconds,
        )
        assert service.orchestrator.provider is stub_provider
