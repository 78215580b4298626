import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from budtender.domain.models.product import CandidateList, Product, Recommendation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reconciliation:
    recommendations: List[Recommendation] = field(default_factory=list)
    discarded: int = 0


def _ordinal(value: Any) -> Optional[int]:
    """productNumber as an int, or None when missing/falsy/not a whole number."""
    if not value or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    # isdigit() also accepts "²" and "①", which int() rejects
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    return None


def _lookup(rec: Any, candidates: CandidateList, use_ordinal_ids: bool) -> Optional[Product]:
    if not isinstance(rec, dict):
        return None
    if use_ordinal_ids:
        n = _ordinal(rec.get("productNumber"))
        return candidates.resolve(n) if n is not None else None
    pid = rec.get("productId")
    if pid is None or pid == "":
        return None
    return candidates.resolve_id(str(pid))


def reconcile(
    raw_recommendations: Iterable[Any],
    candidates: CandidateList,
    *,
    use_ordinal_ids: bool = True,
) -> Reconciliation:
    """
    Map the model's references back to the candidate list the prompt was built from.

    Invalid entries (missing reference, out of [1, N], unknown id, not an object)
    are dropped and counted. Never raises on bad references.
    """
    out: List[Recommendation] = []
    discarded = 0
    for rec in raw_recommendations or []:
        product = _lookup(rec, candidates, use_ordinal_ids)
        if product is None:
            discarded += 1
            ref = rec.get("productNumber" if use_ordinal_ids else "productId") if isinstance(rec, dict) else rec
            logger.error(f"Invalid product reference: {ref!r} (valid range: 1-{len(candidates)})")
            continue
        reason = rec.get("reason")
        out.append(Recommendation(product=product.snapshot(), reason=str(reason) if reason is not None else ""))
        logger.debug(f"✓ {product.name} (${product.price}, {product.category})")

    if discarded:
        logger.warning(f"LLM returned {discarded} invalid product references; kept {len(out)}")
    return Reconciliation(recommendations=out, discarded=discarded)
