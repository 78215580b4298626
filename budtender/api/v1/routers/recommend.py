# budtender/api/v1/routers/recommend.py
from fastapi import APIRouter, Depends
import time
import logging

from budtender.api.deps import llm_gateway, pipeline_options, product_repo, tenant_repo
from budtender.api.v1.schemas.recommend import (
    ChatRequest, ChatResponse, RecommendRequest, RecommendResponse,
)
from budtender.domain.services import pipeline_svc

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recommend"])


@router.post("/recommend", response_model=RecommendResponse)
async def recommend(
    body: RecommendRequest,
    tenants = Depends(tenant_repo),
    products = Depends(product_repo),
    llm = Depends(llm_gateway),
    options = Depends(pipeline_options),
):
    """
    Quiz recommendations: {goal, experience, format, budget} -> 2-4 products.
    """
    logger.info("Request: recommend tenant=%s answers=%s", body.tenant_id, body.answers.model_dump())
    start_time = time.perf_counter()

    res = await pipeline_svc.recommend(
        tenant_id=body.tenant_id,
        answers=body.answers,
        tenants=tenants,
        products=products,
        llm=llm,
        options=options,
    )

    logger.info(
        "Response: recommend tenant=%s, count=%s, degraded=%s, discarded=%s, elapsed_time=%.4fs",
        body.tenant_id, len(res.recommendations), res.degraded, res.discarded, time.perf_counter() - start_time,
    )
    return RecommendResponse(message=res.message, recommendations=res.recommendations)


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    tenants = Depends(tenant_repo),
    products = Depends(product_repo),
    llm = Depends(llm_gateway),
    options = Depends(pipeline_options),
):
    """
    Conversational turn: free-text message + recent history -> message, products, suggested replies.
    Off-topic messages get a fixed redirect without a recommendation call.
    """
    logger.info(
        "Request: chat tenant=%s, history=%s, message_len=%s",
        body.tenant_id, len(body.conversation_history), len(body.message),
    )
    start_time = time.perf_counter()

    res = await pipeline_svc.chat(
        tenant_id=body.tenant_id,
        message=body.message,
        history=body.conversation_history,
        tenants=tenants,
        products=products,
        llm=llm,
        options=options,
    )

    logger.info(
        "Response: chat tenant=%s, count=%s, discarded=%s, elapsed_time=%.4fs",
        body.tenant_id, len(res.recommendations), res.discarded, time.perf_counter() - start_time,
    )
    return ChatResponse(
        message=res.message,
        recommendations=res.recommendations,
        suggested_replies=res.suggested_replies,
    )
