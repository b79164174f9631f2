"""
Numbering Pass

Runs last, over text that has already been pruned by every other pass,
so article numbers never have gaps.

    [[ARTICLE]]          -> "Article 3"   (article += 1, subarticle = 0)
    [[SUBARTICLE]]       -> "3.2"         (subarticle += 1)
    [[ARTICLE_NUMBER]]   -> "3"           (current article, no increment)
    [[RESET_NUMBERING]]  -> ""            (both counters back to zero)

Dutch spellings (ARTIKEL, SUBARTIKEL, ARTIKELNUMMER, NUMMERING_RESET) are
accepted too. A line holding only a reset marker is removed.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from config import ARTICLE_PREFIX

logger = logging.getLogger(__name__)

ARTICLE_MARKERS = {"article", "artikel"}
SUBARTICLE_MARKERS = {"subarticle", "subartikel"}
NUMBER_MARKERS = {"article_number", "artikelnummer"}
RESET_MARKERS = {"reset_numbering", "nummering_reset"}

MARKER_PATTERN = re.compile(
    r'^[ \t]*\[\[\s*(?P<reset_line>RESET_NUMBERING|NUMMERING_RESET)\s*\]\][ \t]*(?:\r?\n|$)'
    r'|\[\[\s*(?P<marker>ARTICLE_NUMBER|ARTIKELNUMMER|SUBARTICLE|SUBARTIKEL|ARTICLE|ARTIKEL'
    r'|RESET_NUMBERING|NUMMERING_RESET)\s*\]\]',
    re.IGNORECASE | re.MULTILINE,
)


@dataclass
class NumberingState:
    """Counters for one numbering invocation."""
    article: int = 0
    subarticle: int = 0
    resets: int = 0

    def next_article(self) -> int:
        self.article += 1
        self.subarticle = 0
        return self.article

    def next_subarticle(self) -> str:
        self.subarticle += 1
        return f"{self.article}.{self.subarticle}"

    def reset(self):
        self.article = 0
        self.subarticle = 0
        self.resets += 1


def number(
    text: str,
    prefix: Optional[str] = None,
    state: Optional[NumberingState] = None,
) -> str:
    """Replace numbering markers in document order."""
    if not text or "[[" not in text:
        return text or ""
    prefix = ARTICLE_PREFIX if prefix is None else prefix
    state = state if state is not None else NumberingState()

    def substitute(match):
        if match.group("reset_line"):
            state.reset()
            return ""
        marker = match.group("marker").lower()
        if marker in ARTICLE_MARKERS:
            n = state.next_article()
            return f"{prefix} {n}" if prefix else str(n)
        if marker in SUBARTICLE_MARKERS:
            return state.next_subarticle()
        if marker in NUMBER_MARKERS:
            return str(state.article)
        state.reset()
        return ""

    result = MARKER_PATTERN.sub(substitute, text)
    logger.debug("Numbered %d articles (%d resets)", state.article, state.resets)
    return result
