import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from budtender.core.config import Settings
from budtender.core.errors import MissingTenantError, UnknownTenantError
from budtender.domain.models.intent import ChatTurn, QuizAnswers
from budtender.domain.models.product import RecoResult
from budtender.domain.models.tenant import TenantConfig
from budtender.domain.services.candidates import CandidateSelection, select_for_chat, select_for_quiz
from budtender.domain.services.constants import OFF_TOPIC_MESSAGE
from budtender.domain.services.prompts import chat_messages, quiz_prompt
from budtender.domain.services.reconcile import reconcile
from budtender.domain.services.topic_guard import check_on_topic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOptions:
    """One pipeline for both endpoints; the variants differ only in these knobs."""
    max_candidates: Optional[int] = None
    use_ordinal_ids: bool = True
    bucket_limit: Optional[int] = 50
    fallback_limit: int = 20
    history_window: int = 6
    topic_min_length: int = 5

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineOptions":
        return cls(
            max_candidates=settings.max_candidates,
            use_ordinal_ids=settings.use_ordinal_ids,
            bucket_limit=settings.chat_bucket_limit,
            fallback_limit=settings.fallback_limit,
            history_window=settings.history_window,
            topic_min_length=settings.topic_min_length,
        )


async def resolve_tenant(tenants, tenant_id: Optional[str]) -> TenantConfig:
    """Client errors are raised here, before any product fetch or model call."""
    if not tenant_id or not tenant_id.strip():
        raise MissingTenantError()
    tenant = await tenants.get(tenant_id)
    if tenant is None:
        raise UnknownTenantError(tenant_id)
    return tenant


async def _generate(
    *,
    messages: List[dict],
    selection: CandidateSelection,
    llm,
    options: PipelineOptions,
) -> RecoResult:
    """LLM call + reconciliation against the exact list the prompt was built from."""
    logger.info(f"Sending {len(selection.candidates)} candidates to LLM")
    reply = await llm.complete_json(messages)
    rec = reconcile(reply.recommendations, selection.candidates, use_ordinal_ids=options.use_ordinal_ids)
    logger.info(
        f"Successfully enriched {len(rec.recommendations)} recommendations "
        f"(discarded={rec.discarded}, degraded={selection.degraded})"
    )
    return RecoResult(
        message=reply.message,
        recommendations=rec.recommendations,
        suggested_replies=reply.suggested_replies or [],
        degraded=selection.degraded,
        discarded=rec.discarded,
    )


async def recommend(
    *,
    tenant_id: Optional[str],
    answers: QuizAnswers,
    tenants,
    products,
    llm,
    options: PipelineOptions = PipelineOptions(),
) -> RecoResult:
    """
    Structured (quiz) recommendation.
      tenant -> catalog -> cascade filters -> persona + quiz prompt -> LLM -> reconcile
    """
    tenant = await resolve_tenant(tenants, tenant_id)
    logger.info(f"Recommend tenant={tenant.tenant_id} answers={answers.model_dump()}")

    catalog = await products.list_for_tenant(tenant.tenant_id)
    selection = select_for_quiz(
        catalog,
        answers,
        max_candidates=options.max_candidates,
        fallback_limit=options.fallback_limit,
    )

    messages = [
        {"role": "system", "content": tenant.persona},
        {"role": "user", "content": quiz_prompt(answers, selection.candidates, selection.degraded, options.use_ordinal_ids)},
    ]
    return await _generate(messages=messages, selection=selection, llm=llm, options=options)


async def chat(
    *,
    tenant_id: Optional[str],
    message: str,
    history: Sequence[ChatTurn] = (),
    tenants,
    products,
    llm,
    options: PipelineOptions = PipelineOptions(),
) -> RecoResult:
    """
    Conversational recommendation.
      tenant -> topic guard (may short-circuit) -> catalog -> buckets -> chat prompt -> LLM -> reconcile
    """
    tenant = await resolve_tenant(tenants, tenant_id)
    logger.info(f"💬 {tenant.name}: {message[:200]!r}")

    if not await check_on_topic(message, llm, min_length=options.topic_min_length):
        return RecoResult(message=OFF_TOPIC_MESSAGE)

    catalog = await products.list_for_tenant(tenant.tenant_id)
    selection = select_for_chat(
        catalog,
        bucket_limit=options.bucket_limit,
        max_candidates=options.max_candidates,
    )

    messages = chat_messages(
        tenant,
        selection.candidates,
        message,
        list(history),
        history_window=options.history_window,
        use_ordinal_ids=options.use_ordinal_ids,
    )
    return await _generate(messages=messages, selection=selection, llm=llm, options=options)
