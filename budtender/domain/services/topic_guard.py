import logging
import re

from budtender.domain.services.constants import FAST_PATH_RE
from budtender.domain.services.prompts import topic_messages

logger = logging.getLogger(__name__)

_NO_RE = re.compile(r"^\W*NO\b")


def is_fast_path(message: str) -> bool:
    """Bare numbers, "under 30", "yes"/"no"/"maybe": budget or confirmation replies."""
    return bool(FAST_PATH_RE.match(message.strip()))


def _says_no(answer: str) -> bool:
    a = answer.strip().upper()
    return bool(_NO_RE.match(a)) and "YES" not in a


async def check_on_topic(message: str, llm, *, min_length: int = 5) -> bool:
    """
    True unless the classifier clearly answers NO.

    Fast-path replies and messages of at most `min_length` characters are
    accepted without a model call. An empty or unclear answer counts as
    on-topic: blocking a real customer costs more than one extra listing.
    """
    if is_fast_path(message) or len(message) <= min_length:
        return True
    answer = await llm.classify(topic_messages(message))
    if _says_no(answer):
        logger.warning(f"Off-topic message detected: {message[:200]!r}")
        return False
    logger.debug(f"Topic classifier answer={answer!r}")
    return True
