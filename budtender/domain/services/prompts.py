import json
from typing import Optional

from budtender.domain.models.intent import QuizAnswers
from budtender.domain.models.product import CandidateList, Product
from budtender.domain.models.tenant import TenantConfig
from budtender.domain.services.constants import STRAIN_UNKNOWN
from budtender.domain.services.candidates import wants_format


def _num(x: float) -> str:
    """20.0 -> '20', 19.99 -> '19.99'."""
    if float(x).is_integer():
        return str(int(x))
    return f"{x:.2f}".rstrip("0").rstrip(".")


def _q(s) -> str:
    """JSON string literal: embedded quotes and newlines are escaped."""
    return json.dumps(str(s or ""), ensure_ascii=False)


def product_line(key, p: Product, use_ordinal_ids: bool = True) -> str:
    head = f"{key}." if use_ordinal_ids else f"id:{_q(key)},"
    line = f"{head} name:{_q(p.name)}, brand:{_q(p.brand)}, category:{_q(p.category)}, price:${_num(p.price)}"
    # present-only attributes
    if p.thc_percent:
        line += f", thc:{_num(p.thc_percent)}%"
    if p.cbd_percent:
        line += f", cbd:{_num(p.cbd_percent)}%"
    if p.strain and p.strain != STRAIN_UNKNOWN:
        line += f", strain:{_q(p.strain)}"
    if p.type:
        line += f", type:{_q(p.type)}"
    return line


def render_product_list(candidates: CandidateList, use_ordinal_ids: bool = True) -> str:
    """Line i describes candidates[i-1]."""
    if use_ordinal_ids:
        return "\n".join(product_line(n, p, True) for n, p in candidates.numbered())
    return "\n".join(product_line(p.id, p, False) for p in candidates)


def _reference_rules(n: int, use_ordinal_ids: bool) -> str:
    if use_ordinal_ids:
        return (
            "IMPORTANT: Use the product NUMBER (1, 2, 3, etc.) not names or IDs. "
            'For example, if you want product "5. name:...", use productNumber: 5\n'
            f"- ONLY use numbers from 1 to {n}\n"
            "- DO NOT make up numbers outside this range"
        )
    return (
        'IMPORTANT: Use the product id exactly as written after id: (e.g. id:"12345" -> productId: "12345").\n'
        "- DO NOT make up ids that are not in the list"
    )


def _output_format(use_ordinal_ids: bool, with_replies: bool) -> str:
    ref = '"productNumber": 5' if use_ordinal_ids else '"productId": "12345"'
    replies = ',\n  "suggestedReplies": ["Option 1", "Option 2", "Option 3"]' if with_replies else ""
    return (
        "{\n"
        '  "message": "your message",\n'
        f'  "recommendations": [{{{ref}, "reason": "why this fits"}}]'
        f"{replies}\n"
        "}"
    )


# =============================================================================
#                               QUIZ
# =============================================================================

def quiz_prompt(
    answers: QuizAnswers,
    candidates: CandidateList,
    degraded: bool = False,
    use_ordinal_ids: bool = True,
) -> str:
    context_note = ""
    if degraded and wants_format(answers.format):
        context_note = (
            f"\n\nNote: We don't have exact matches for {answers.format} right now, "
            "so show the closest alternatives that might work for the customer."
        )

    return (
        "The customer told you:\n"
        f"- Goal: {answers.goal or 'not specified'}\n"
        f"- Experience: {answers.experience or 'not specified'}\n"
        f"- Format preference: {answers.format}\n"
        f"- Budget: {answers.budget}"
        f"{context_note}\n\n"
        "Here are the available products:\n\n"
        f"{render_product_list(candidates, use_ordinal_ids)}\n\n"
        "Using ONLY these products, choose 2-4 that best match the customer. "
        "Be conversational and friendly. If they wanted a specific format but we don't have it, "
        "acknowledge that and explain why your recommendations are still great alternatives.\n\n"
        f"{_reference_rules(len(candidates), use_ordinal_ids)}\n\n"
        "Respond in valid JSON format:\n"
        f"{_output_format(use_ordinal_ids, with_replies=False)}"
    )


# =============================================================================
#                               CHAT
# =============================================================================

def chat_system_prompt(
    tenant: TenantConfig,
    candidates: CandidateList,
    use_ordinal_ids: bool = True,
) -> str:
    n = len(candidates)
    return (
        f"{tenant.persona.strip()}\n\n"
        f"You are chatting with a customer of {tenant.name} through the store's website. Tone: {tenant.tone}.\n\n"
        "CORE RULES:\n"
        "1. Be conversational, friendly, and helpful\n"
        "2. If the customer asks about SPECIFIC products (brand, category, or type), SHOW THEM in recommendations\n"
        "3. Only ask questions for VAGUE requests like \"help me relax\" or \"what do you recommend\"\n"
        "4. Keep responses concise (2-3 sentences max)\n"
        "5. Review the conversation history and don't repeat questions you've already asked\n"
        "6. NEVER make medical claims or say products treat or cure anything\n\n"
        "AVAILABLE PRODUCTS:\n"
        f"{render_product_list(candidates, use_ordinal_ids) or '(no products available right now)'}\n\n"
        "CATEGORY MATCHING (categories come straight from the store's inventory):\n"
        '- "vapes" = category contains "Cartridge" or "Vape"\n'
        '- "flower" = category contains "Flower"\n'
        '- "pre-rolls" = category contains "Roll"\n'
        '- "edibles" = category contains "Edible"\n'
        '- "concentrates" = category contains "Concentrate" or "Rosin"\n\n'
        "INVENTORY RULES:\n"
        "1. The products above are the ONLY products available\n"
        "2. CHECK PRICES: if the customer says \"under $30\", only recommend products with price < 30\n"
        "3. BE TRUTHFUL: if nothing matches their criteria, SAY SO and offer to adjust budget or category\n"
        "4. BRAND SEARCH: brand names can appear in either the name: or the brand: field, check BOTH "
        "before saying a brand is unavailable\n\n"
        "RESPONSE FORMAT (respond with valid JSON):\n"
        f"{_output_format(use_ordinal_ids, with_replies=True)}\n\n"
        "RULES FOR RECOMMENDATIONS:\n"
        "- Include 4-6 products when recommending (the widget shows 3 with \"Show More\")\n"
        f"{_reference_rules(n, use_ordinal_ids)}\n"
        "- Only include suggestedReplies when asking a question or offering alternatives\n"
        "- Always respond in JSON format"
    )


def chat_messages(
    tenant: TenantConfig,
    candidates: CandidateList,
    message: str,
    history: Optional[list] = None,
    *,
    history_window: int = 6,
    use_ordinal_ids: bool = True,
) -> list[dict]:
    recent = list(history or [])[-history_window:] if history_window > 0 else []
    return (
        [{"role": "system", "content": chat_system_prompt(tenant, candidates, use_ordinal_ids)}]
        + [{"role": t.role, "content": t.content} for t in recent]
        + [{"role": "user", "content": message}]
    )


# =============================================================================
#                               TOPIC CLASSIFICATION
# =============================================================================

def topic_messages(message: str) -> list[dict]:
    return [
        {"role": "system",
         "content": "Answer YES for cannabis-related messages, NO for completely unrelated topics. "
                    "If uncertain, answer YES."},
        {"role": "user",
         "content": "Is this message related to cannabis shopping, products, or budtender questions? "
                    f"Answer only YES or NO.\n\nMessage: \"{message}\""},
    ]
