"""
Per-request diagnostics: unresolved placeholders and markup warnings.
"""

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger(__name__)


class MarkupError(Exception):
    """Malformed block markup (unbalanced or mismatched tags)."""

    def __init__(self, message: str, position: int = -1, tag: str = ""):
        super().__init__(message)
        self.position = position
        self.tag = tag


def new_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Diagnostics:
    """Collects what went wrong while resolving one request."""
    correlation_id: str = field(default_factory=new_correlation_id)
    warnings: List[str] = field(default_factory=list)
    unresolved: Counter = field(default_factory=Counter)

    def warn(self, message: str, *args):
        text = message % args if args else message
        self.warnings.append(text)
        logger.warning("[%s] %s", self.correlation_id, text)

    def unresolved_placeholder(self, name: str):
        if name not in self.unresolved:
            logger.warning("[%s] Unresolved placeholder: %s", self.correlation_id, name)
        self.unresolved[name] += 1

    @property
    def unresolved_count(self) -> int:
        return sum(self.unresolved.values())

    @property
    def ok(self) -> bool:
        return not self.warnings and not self.unresolved

    def to_dict(self) -> Dict:
        return {
            "correlation_id": self.correlation_id,
            "warnings": list(self.warnings),
            "unresolved": dict(self.unresolved),
        }
