"""
Loop Block Expander

Expands [[#NAME]] ... [[/NAME]] blocks over a registered collection:

- unknown, missing or empty collection: the block disappears
- body uses per-item variables (the collection's prefix, e.g. KIND_):
  rendered once per item, renderings concatenated as-is
- body without per-item variables: rendered once, trimmed (a guard)
"""

import logging
import re
from typing import Any, List, Mapping, Optional

from blocks import Block, collapse_blank_lines, replace_blocks, scan
from collection_registry import CollectionRegistry
from config import MAX_LOOP_PASSES
from diagnostics import Diagnostics
from models import CaseData
from placeholders import apply_modifier, split_modifier

logger = logging.getLogger(__name__)

LOOP_PATTERN = re.compile(
    r'\[\[\s*#\s*(?P<open>[A-Za-z0-9_]+)\s*\]\]'
    r'|\[\[\s*/\s*(?P<close>[A-Za-z0-9_]+)\s*\]\]',
)

ITEM_TOKEN = re.compile(r'\[\[([^\[\]\r\n]+?)\]\]')


def uses_prefix(body: str, prefix: str) -> bool:
    prefix = prefix.upper()
    for match in ITEM_TOKEN.finditer(body):
        _, name = split_modifier(match.group(1))
        if name.upper().startswith(prefix):
            return True
    return False


def render_item(body: str, values: dict) -> str:
    """Substitute one item's variables; unknown ones stay verbatim."""
    lookup = {k.upper(): v for k, v in values.items()}

    def substitute(match):
        modifier, name = split_modifier(match.group(1))
        value = lookup.get(name.upper())
        if value is None:
            return match.group(0)
        return apply_modifier(value, modifier)

    return ITEM_TOKEN.sub(substitute, body)


def expand_block(
    block_body: str,
    name: str,
    registry: CollectionRegistry,
    case_data: CaseData,
    context: Optional[Mapping[str, Any]] = None,
) -> str:
    collection = registry.get(name)
    if collection is None:
        logger.debug("Unknown collection %s, removing block", name)
        return ""

    items = collection.items(case_data, context)
    if not items:
        return ""

    if not uses_prefix(block_body, collection.prefix):
        return block_body.strip()

    return "".join(
        render_item(block_body, collection.item_values(item, case_data))
        for item in items
    )


def expand(
    text: str,
    registry: CollectionRegistry,
    case_data: Optional[CaseData] = None,
    diagnostics: Optional[Diagnostics] = None,
    max_passes: int = MAX_LOOP_PASSES,
    context: Optional[Mapping[str, Any]] = None,
) -> str:
    """
    Expand every loop block in text, innermost first.

    JSON collections are looked up in the case data, then in `context`.
    """
    if not text or "[[" not in text:
        return text or ""
    case_data = case_data or CaseData()
    problems: List[str] = []

    def render(block: Block) -> str:
        return expand_block(block.inner(text), block.argument, registry, case_data, context)

    passes = 0
    while True:
        result = scan(text, LOOP_PATTERN, str.upper)
        for error in result.errors:
            if str(error) not in problems:
                problems.append(str(error))
        if not result.blocks:
            break
        if passes >= max_passes:
            problems.append(f"Loop blocks still present after {max_passes} passes; stopped")
            break
        text = replace_blocks(text, result.blocks, render)
        passes += 1

    for problem in problems:
        if diagnostics is not None:
            diagnostics.warn(problem)
        else:
            logger.warning("%s", problem)

    return collapse_blank_lines(text)
