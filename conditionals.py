"""
Conditional Block Processor

Keeps or removes [[IF:Name]] ... [[ENDIF:Name]] spans. Supported tests:

    [[IF:Name]]          Name is non-blank and not "0" / "false"
    [[IF:!Name]]         negation of the above
    [[IF:Name=value]]    case-insensitive equality
    [[IF:Name!=value]]   case-insensitive inequality

The close tag repeats the field name (a value part on it is ignored).
Blocks are reduced innermost-first, a bounded number of passes.
"""

import logging
import re
from typing import List, Mapping, Optional

from blocks import Block, collapse_blank_lines, replace_blocks, scan
from config import MAX_CONDITIONAL_PASSES
from context_map import ContextMap
from diagnostics import Diagnostics

logger = logging.getLogger(__name__)

IF_PATTERN = re.compile(
    r'\[\[\s*IF\s*:\s*(?P<open>[^\[\]]*?)\s*\]\]'
    r'|\[\[\s*ENDIF\s*:\s*(?P<close>[^\[\]]*?)\s*\]\]',
    re.IGNORECASE,
)

FALSY_VALUES = {"", "0", "false"}


def field_name(argument: str) -> str:
    """'!HasKids' -> 'HasKids'; 'Status!=open' -> 'Status'"""
    return re.split(r'!=|=', argument.strip().lstrip("!"), maxsplit=1)[0].strip()


def is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() not in FALSY_VALUES


def test_condition(argument: str, context: Mapping[str, str]) -> bool:
    """Evaluate the argument of an IF tag against the context."""
    argument = argument.strip()
    if not argument:
        return True
    if not isinstance(context, ContextMap):
        context = ContextMap(context)

    if "!=" in argument:
        name, expected = argument.split("!=", 1)
        actual = context.lookup(name.strip()) or ""
        return actual.strip().lower() != expected.strip().lower()
    if "=" in argument:
        name, expected = argument.split("=", 1)
        actual = context.lookup(name.strip()) or ""
        return actual.strip().lower() == expected.strip().lower()
    if argument.startswith("!"):
        return not is_truthy(context.lookup(argument[1:].strip()))
    return is_truthy(context.lookup(argument))


def strip(
    text: str,
    context: Mapping[str, str],
    diagnostics: Optional[Diagnostics] = None,
    max_passes: int = MAX_CONDITIONAL_PASSES,
) -> str:
    """
    Resolve all conditional blocks in text.

    A true block is replaced by its trimmed content, a false block
    disappears. Malformed tags stay in the text and are reported once.
    """
    if not text or "[[" not in text:
        return text or ""
    if not isinstance(context, ContextMap):
        context = ContextMap(context)

    problems: List[str] = []

    def render(block: Block) -> str:
        if test_condition(block.argument, context):
            return block.inner(text).strip()
        return ""

    passes = 0
    while True:
        result = scan(text, IF_PATTERN, field_name)
        for error in result.errors:
            if str(error) not in problems:
                problems.append(str(error))
        if not result.blocks:
            break
        if passes >= max_passes:
            problems.append(
                f"Conditional blocks still present after {max_passes} passes; stopped"
            )
            break
        text = replace_blocks(text, result.blocks, render)
        passes += 1

    for problem in problems:
        if diagnostics is not None:
            diagnostics.warn(problem)
        else:
            logger.warning("%s", problem)

    return collapse_blank_lines(text)
