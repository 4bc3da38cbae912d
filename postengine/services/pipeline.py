"""
Generation Service - the credit-gated caption pipeline.

Strictly sequential per request:
identity -> ensure account -> read balance -> admission -> caption call
-> hashtag call -> debit -> respond.
"""

from structlog import get_logger

from postengine.config import Settings
from postengine.exceptions import CreditsExhaustedError, StoreUnavailableError
from postengine.models.api import GenerateResponse
from postengine.models.domain import AccountData, GenerationRequest
from postengine.observability import log_context, metrics, trace_operation
from postengine.services.accounts import AccountStore
from postengine.services.admission import authorize
from postengine.services.assembler import assemble_response
from postengine.services.orchestrator import GenerationOrchestrator

logger = get_logger(__name__)


class GenerationService:
    """Runs one admitted generation and keeps the credit balance consistent."""

    def __init__(
        self,
        store: AccountStore,
        orchestrator: GenerationOrchestrator,
        settings: Settings,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.settings = settings

    async def generate(
        self,
        anonymous_token: str,
        request: GenerationRequest,
        location: str | None,
    ) -> GenerateResponse:
        """
        Generate captions and hashtags for a visitor.

        Raises:
            CreditsExhaustedError: Free account cannot cover the cost; raised
                before any model call
            StoreUnavailableError: Account store unreachable before admission
        """
        cost = self.settings.generation_cost

        with trace_operation("caption_generation", media_kind=request.media_kind.value) as span:
            account = await self.store.ensure_account(anonymous_token)
            balance = await self.store.read_balance(account.account_id)

            with log_context(account_id=str(account.account_id)):
                decision = authorize(account, balance, cost)
                metrics.record_admission(decision.allow, decision.reason.value)
                span.set_attribute("admission.reason", decision.reason.value)

                if not decision.allow:
                    logger.info("admission_denied", balance=decision.balance, cost=cost)
                    raise CreditsExhaustedError(balance=decision.balance, required=cost)

                captions, hashtags = await self.orchestrator.generate(request, location)

                remaining = await self._settle(account, balance, cost)

                logger.info(
                    "generation_completed",
                    media_kind=request.media_kind.value,
                    platforms=list(request.platforms),
                    captions=len(captions.values),
                    captions_source=captions.source.value,
                    hashtags=len(hashtags.values),
                    hashtags_source=hashtags.source.value,
                    remaining=remaining,
                    is_pro=account.is_pro,
                )

        return assemble_response(
            captions=captions.values,
            hashtags=hashtags.values,
            platforms=request.platforms,
            remaining=remaining,
            is_pro=account.is_pro,
            location=location,
            companion_platforms=self.settings.companion_platforms,
            companion_count=self.settings.companion_caption_count,
        )

    async def _settle(self, account: AccountData, balance: int, cost: int) -> int | None:
        """
        Debit a free account after generation.

        Failures here never discard the generated output: they are logged
        and the best known balance is reported.
        """
        if account.is_pro:
            return None

        try:
            remaining = await self.store.debit(account.account_id, cost)
        except CreditsExhaustedError as e:
            metrics.record_debit("conflict")
            logger.warning("credit_debit_conflict", balance=e.balance, cost=cost)
            return e.balance
        except StoreUnavailableError as e:
            metrics.record_debit("failed")
            logger.error("credit_debit_failed", operation=e.operation, error=e.message)
            return balance

        metrics.record_debit("applied")
        return remaining
