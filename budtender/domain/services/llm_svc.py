# budtender/domain/services/llm_svc.py

from __future__ import annotations
from functools import lru_cache
from typing import Any, List, Optional
import json
import re
import logging
from time import monotonic as _now

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from budtender.core.config import get_settings
from budtender.core.errors import LLMGatewayError, LLMProtocolError

logger = logging.getLogger(__name__)

# =============================================================================
#                               VALIDATION SCHEMA
# =============================================================================

class LLMReply(BaseModel):
    """
    Expected JSON object from the recommendation call:
      {
        "message": "...",
        "recommendations": [{"productNumber": 5, "reason": "..."}],
        "suggestedReplies": ["..."]          # optional
      }
    Recommendation entries are left unvalidated here: a bad reference is
    dropped by the reconciler, it does not fail the request.
    """
    message: str
    recommendations: List[Any] = Field(default_factory=list)
    suggested_replies: Optional[List[str]] = Field(default=None, alias="suggestedReplies")

    model_config = ConfigDict(populate_by_name=True)


# Regex to strip code fences (``` or ```json) from LLM output
_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.MULTILINE)

def _strip_fences(s: str) -> str:
    """Remove ``` or ```json fences the LLM might add."""
    return _CODE_FENCE_RE.sub("", s).strip()

def parse_reply(content: Optional[str]) -> LLMReply:
    """
    Parse and validate the model's JSON answer.
    Raises LLMProtocolError on non-JSON or schema-violating output.
    """
    if not content:
        raise LLMProtocolError("Empty LLM response")
    raw = _strip_fences(content)
    logger.debug(f"LLM raw response after fence stripping: {raw[:2000]}")
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LLMProtocolError(f"Invalid LLM JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise LLMProtocolError(f"Invalid LLM JSON: expected an object, got {type(parsed).__name__}")
    if parsed.get("recommendations") is None:
        parsed["recommendations"] = []
    try:
        return LLMReply.model_validate(parsed)
    except ValidationError as e:
        raise LLMProtocolError(f"LLM JSON does not match schema: {e}") from e

# =============================================================================
#                               GATEWAY
# =============================================================================

class LLMGateway:
    """
    Thin wrapper over the OpenAI chat completions API.
    Two calls per use case: JSON-mode generation and a short yes/no classification.
    """

    def __init__(self, client: AsyncOpenAI, *, model: str, classifier_model: str, timeout_s: int = 30):
        self.client = client
        self.model = model
        self.classifier_model = classifier_model
        self.timeout_s = timeout_s

    async def _call_llm(self, messages: List[dict], *, model: str, json_mode: bool) -> str:
        """
        Call the LLM with the given messages and model.
        Returns the raw content string from the LLM response.
        """
        kwargs: dict = {"model": model, "messages": messages, "timeout": self.timeout_s}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        t0 = _now()
        try:
            resp = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            raise LLMGatewayError(f"LLM call failed ({model}): {e}") from e
        dt = _now() - t0
        u = getattr(resp, "usage", None)
        logger.info(
            f"LLM call model={getattr(resp, 'model', model)} duration={dt:.3f}s "
            f"tokens(prompt={getattr(u, 'prompt_tokens', None)}, "
            f"completion={getattr(u, 'completion_tokens', None)}, total={getattr(u, 'total_tokens', None)})"
        )
        if not resp.choices:
            raise LLMProtocolError(f"LLM returned no choices ({model})")
        return resp.choices[0].message.content or ""

    async def complete_json(self, messages: List[dict]) -> LLMReply:
        size_kb = sum(len(m.get("content") or "") for m in messages) / 1024
        logger.info(f"LLM request size={size_kb:.1f}KB messages={len(messages)}")
        content = await self._call_llm(messages, model=self.model, json_mode=True)
        return parse_reply(content)

    async def classify(self, messages: List[dict]) -> str:
        content = await self._call_llm(messages, model=self.classifier_model, json_mode=False)
        return content.strip()


@lru_cache
def get_llm_gateway() -> LLMGateway:
    settings = get_settings()
    return LLMGateway(
        AsyncOpenAI(api_key=settings.OPENAI_API_KEY),
        model=settings.OPENAI_CHAT_MODEL,
        classifier_model=settings.OPENAI_CLASSIFIER_MODEL,
        timeout_s=settings.openai_timeout_s,
    )
