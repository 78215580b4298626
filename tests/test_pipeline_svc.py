"""
Tests for the recommendation pipeline with fake store, tenants and LLM.
"""
import pytest

from budtender.core.errors import (
    LLMProtocolError, MissingTenantError, UnknownTenantError, UpstreamDataError,
)
from budtender.domain.models.intent import ChatTurn, QuizAnswers
from budtender.domain.services import pipeline_svc
from budtender.domain.services.constants import OFF_TOPIC_MESSAGE
from budtender.domain.services.pipeline_svc import PipelineOptions
from conftest import FakeLLM, FakeProducts


class TestTenantResolution:

    @pytest.mark.parametrize("tenant_id", [None, "", "   "])
    async def test_missing_tenant_makes_no_calls(self, tenants, fake_products, fake_llm, tenant_id):
        with pytest.raises(MissingTenantError):
            await pipeline_svc.recommend(
                tenant_id=tenant_id, answers=QuizAnswers(),
                tenants=tenants, products=fake_products, llm=fake_llm,
            )
        assert fake_products.calls == 0
        assert fake_llm.json_calls == []

    async def test_unknown_tenant_makes_no_calls(self, tenants, fake_products, fake_llm):
        with pytest.raises(UnknownTenantError):
            await pipeline_svc.chat(
                tenant_id="nope", message="show me some flower please",
                tenants=tenants, products=fake_products, llm=fake_llm,
            )
        assert fake_products.calls == 0
        assert fake_llm.classify_calls == []
        assert fake_llm.json_calls == []


class TestRecommend:

    async def test_end_to_end(self, tenants, example_catalog):
        llm = FakeLLM({"message": "Try these", "recommendations": [
            {"productNumber": 1, "reason": "cheap flower"},
            {"productNumber": 7, "reason": "hallucinated"},
        ]})
        res = await pipeline_svc.recommend(
            tenant_id="ch",
            answers=QuizAnswers(format="Flower", budget="<25", experience="casual", goal="relax"),
            tenants=tenants, products=FakeProducts(example_catalog), llm=llm,
        )
        assert res.message == "Try these"
        assert [r.product.id for r in res.recommendations] == ["a"]
        assert res.recommendations[0].reason == "cheap flower"
        assert res.discarded == 1
        assert res.degraded is False

        system, user = llm.json_calls[0]
        assert system["role"] == "system"
        assert system["content"] == tenants.registry["ch"].persona
        assert '1. name:"Product a"' in user["content"]
        assert "2. name:" not in user["content"]

    async def test_degraded_format_prompt(self, tenants, example_catalog):
        llm = FakeLLM()
        res = await pipeline_svc.recommend(
            tenant_id="ch", answers=QuizAnswers(format="Edible"),
            tenants=tenants, products=FakeProducts(example_catalog), llm=llm,
        )
        assert res.degraded is True
        user = llm.json_calls[0][1]["content"]
        assert "We don't have exact matches for Edible" in user
        assert '2. name:"Product b"' in user

    async def test_zero_valid_recommendations_keeps_message(self, tenants, example_catalog):
        llm = FakeLLM({"message": "Nothing fits, sorry!", "recommendations": [{"productNumber": 0}]})
        res = await pipeline_svc.recommend(
            tenant_id="ch", answers=QuizAnswers(),
            tenants=tenants, products=FakeProducts(example_catalog), llm=llm,
        )
        assert res.message == "Nothing fits, sorry!"
        assert res.recommendations == []

    async def test_malformed_llm_output_fails_request(self, tenants, example_catalog):
        with pytest.raises(LLMProtocolError):
            await pipeline_svc.recommend(
                tenant_id="ch", answers=QuizAnswers(),
                tenants=tenants, products=FakeProducts(example_catalog), llm=FakeLLM("I think product 1"),
            )

    async def test_store_failure_aborts_before_llm(self, tenants):
        llm = FakeLLM()
        with pytest.raises(UpstreamDataError):
            await pipeline_svc.recommend(
                tenant_id="ch", answers=QuizAnswers(),
                tenants=tenants, products=FakeProducts([], error=UpstreamDataError("down")), llm=llm,
            )
        assert llm.json_calls == []

    async def test_max_candidates_option(self, tenants, mixed_catalog):
        llm = FakeLLM()
        await pipeline_svc.recommend(
            tenant_id="ch", answers=QuizAnswers(),
            tenants=tenants, products=FakeProducts(mixed_catalog), llm=llm,
            options=PipelineOptions(max_candidates=2),
        )
        user = llm.json_calls[0][1]["content"]
        assert "2. name:" in user
        assert "3. name:" not in user

    async def test_id_mode(self, tenants, example_catalog):
        llm = FakeLLM({"message": "ok", "recommendations": [{"productId": "b", "reason": "vape"}]})
        res = await pipeline_svc.recommend(
            tenant_id="ch", answers=QuizAnswers(),
            tenants=tenants, products=FakeProducts(example_catalog), llm=llm,
            options=PipelineOptions(use_ordinal_ids=False),
        )
        assert [r.product.id for r in res.recommendations] == ["b"]
        assert 'id:"b", name:' in llm.json_calls[0][1]["content"]


class TestChat:

    async def test_off_topic_short_circuits(self, tenants, fake_products):
        llm = FakeLLM(topic_answer="NO")
        res = await pipeline_svc.chat(
            tenant_id="ch", message="who won the football game last night?",
            tenants=tenants, products=fake_products, llm=llm,
        )
        assert res.message == OFF_TOPIC_MESSAGE
        assert res.recommendations == []
        assert res.suggested_replies == []
        assert llm.json_calls == []
        assert fake_products.calls == 0

    async def test_fast_path_goes_straight_to_generation(self, tenants, fake_products):
        llm = FakeLLM(topic_answer="NO")
        await pipeline_svc.chat(
            tenant_id="ch", message="under 30",
            tenants=tenants, products=fake_products, llm=llm,
        )
        assert llm.classify_calls == []
        assert len(llm.json_calls) == 1

    async def test_reconciles_against_bucketed_list(self, tenants, fake_products):
        # bucketed order: f1, f2, p1, v1, e1, r1
        llm = FakeLLM({
            "message": "Here are some vapes and edibles",
            "recommendations": [
                {"productNumber": 4, "reason": "vape"},
                {"productNumber": 5, "reason": "edible"},
                {"productNumber": 12, "reason": "made up"},
            ],
            "suggestedReplies": ["Show cheaper options", "What about pre-rolls?"],
        })
        res = await pipeline_svc.chat(
            tenant_id="ch", message="any vapes or gummies?",
            tenants=tenants, products=fake_products, llm=llm,
        )
        assert [r.product.id for r in res.recommendations] == ["v1", "e1"]
        assert res.discarded == 1
        assert res.suggested_replies == ["Show cheaper options", "What about pre-rolls?"]
        assert len(llm.classify_calls) == 1

    async def test_history_is_trimmed(self, tenants, fake_products):
        llm = FakeLLM()
        history = [ChatTurn(role="user", content=f"m{i}") for i in range(9)]
        await pipeline_svc.chat(
            tenant_id="ch", message="something relaxing",
            history=history, tenants=tenants, products=fake_products, llm=llm,
            options=PipelineOptions(history_window=6),
        )
        messages = llm.json_calls[0]
        assert len(messages) == 1 + 6 + 1
        assert messages[1]["content"] == "m3"
        assert messages[-1]["content"] == "something relaxing"
