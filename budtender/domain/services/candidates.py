"""
Candidate selection: narrow a tenant catalog to the numbered list sent to the LLM.

Every step is a pure function over an ordered sequence of products so each
fallback rule can be exercised on its own. Catalog order is preserved
throughout; ties are never reordered.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from budtender.domain.models.intent import QuizAnswers
from budtender.domain.models.product import CandidateList, Product
from budtender.domain.services.constants import (
    FORMAT_ANY,
    BUDGET_NONE, BUDGET_UNDER_25, BUDGET_25_50, BUDGET_50_PLUS,
    HIGH_THC_THRESHOLD, EXPERIENCE_NEW, HIGH_GOALS,
    CATEGORY_BUCKETS,
)

logger = logging.getLogger(__name__)

Products = Tuple[Product, ...]


@dataclass(frozen=True)
class CandidateSelection:
    candidates: CandidateList
    degraded: bool = False  # True when the requested format had no exact match


def _norm(s: Optional[str]) -> str:
    return (s or "").strip().lower()


def eligible_products(products: Iterable[Product]) -> Products:
    """Cannabis, in stock and sold online, in catalog order."""
    return tuple(p for p in products if p.is_eligible)


def wants_format(fmt: Optional[str]) -> bool:
    return bool(fmt) and _norm(fmt) != FORMAT_ANY


def match_format(products: Sequence[Product], fmt: Optional[str]) -> Tuple[Products, bool]:
    """
    Keep products whose category equals `fmt` (case-insensitive, trimmed).
    Returns (products, degraded). With no exact match the input is returned
    unchanged and degraded=True so the prompt can say "closest alternatives".
    """
    products = tuple(products)
    if not wants_format(fmt):
        return products, False
    wanted = _norm(fmt)
    exact = tuple(p for p in products if _norm(p.category) == wanted)
    if exact:
        logger.debug(f"Format '{fmt}': {len(exact)} exact matches")
        return exact, False
    logger.info(f"Format '{fmt}': no exact matches, keeping {len(products)} alternatives")
    return products, True


def _in_bracket(price: float, budget: str) -> bool:
    if budget == BUDGET_UNDER_25:
        return price < 25
    if budget == BUDGET_25_50:
        return 25 <= price <= 50
    if budget == BUDGET_50_PLUS:
        return price > 50
    return True


def within_budget(products: Sequence[Product], budget: Optional[str]) -> Products:
    if not budget or budget == BUDGET_NONE:
        return tuple(products)
    return tuple(p for p in products if _in_bracket(p.price, budget))


def broaden_budget(eligible: Sequence[Product], fmt: Optional[str], exact: bool) -> Products:
    """
    Candidate set once the budget is dropped: the exact format matches if the
    format step matched exactly, otherwise the whole eligible set.
    """
    if wants_format(fmt) and exact:
        return match_format(eligible, fmt)[0]
    return tuple(eligible)


def _is_high_thc(p: Product) -> bool:
    return bool(p.thc_percent) and p.thc_percent >= HIGH_THC_THRESHOLD


def deprioritize_high_thc(products: Sequence[Product], experience: Optional[str], goal: Optional[str]) -> Products:
    """
    First-timers who are not explicitly after a strong high see THC >= 28%
    products last. Stable partition; nothing is removed.
    """
    products = tuple(products)
    if _norm(experience) != EXPERIENCE_NEW or _norm(goal) in HIGH_GOALS:
        return products
    low = tuple(p for p in products if not _is_high_thc(p))
    high = tuple(p for p in products if _is_high_thc(p))
    return low + high


def _cap(products: Sequence[Product], limit: Optional[int]) -> Products:
    return tuple(products) if limit is None else tuple(products[:limit])


def select_for_quiz(
    products: Iterable[Product],
    answers: QuizAnswers,
    *,
    max_candidates: Optional[int] = None,
    fallback_limit: int = 20,
) -> CandidateSelection:
    """
    Structured (quiz) variant.
      1) eligibility
      2) exact format match, else keep everything and flag degraded
      3) budget bracket
      4) budget emptied the set -> drop it, keep the format subset if it was exact
      5) THC soft-deprioritization for new users
      6) still empty -> first `fallback_limit` eligible products
    """
    eligible = eligible_products(products)

    candidates, degraded = match_format(eligible, answers.format)
    exact = not degraded
    logger.debug(f"Filtering from {len(candidates)} candidates")

    budgeted = within_budget(candidates, answers.budget)
    logger.debug(f"After budget filter ({answers.budget}): {len(budgeted)} candidates")
    if not budgeted and answers.budget != BUDGET_NONE:
        budgeted = broaden_budget(eligible, answers.format, exact)
        logger.info(f"No products in budget {answers.budget}, broadened to {len(budgeted)} candidates")
    candidates = budgeted

    candidates = deprioritize_high_thc(candidates, answers.experience, answers.goal)

    if not candidates:
        candidates = eligible[:fallback_limit]
        logger.warning(f"Using absolute fallback: {len(candidates)} general candidates")

    return CandidateSelection(CandidateList(_cap(candidates, max_candidates)), degraded)


def bucket_of(p: Product) -> Optional[str]:
    """First bucket whose keywords appear in the product category, else None."""
    cat = _norm(p.category)
    for name, keywords in CATEGORY_BUCKETS:
        if any(k in cat for k in keywords):
            return name
    return None


def select_for_chat(
    products: Iterable[Product],
    *,
    bucket_limit: Optional[int] = 50,
    max_candidates: Optional[int] = None,
) -> CandidateSelection:
    """
    Conversational variant: eligible products grouped by category bucket
    (flower, pre-roll, vape, edible, concentrate) and concatenated in that
    order. Products outside every bucket are left out.
    """
    buckets: dict[str, list[Product]] = {name: [] for name, _ in CATEGORY_BUCKETS}
    skipped = 0
    for p in eligible_products(products):
        name = bucket_of(p)
        if name is None:
            skipped += 1
            continue
        if bucket_limit is None or len(buckets[name]) < bucket_limit:
            buckets[name].append(p)

    selected: list[Product] = []
    for name, _ in CATEGORY_BUCKETS:
        selected.extend(buckets[name])

    logger.debug(
        "Chat buckets: %s (unbucketed=%s)",
        {name: len(items) for name, items in buckets.items()}, skipped,
    )
    return CandidateSelection(CandidateList(_cap(selected, max_candidates)), False)
