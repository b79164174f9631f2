"""
Clause Selection and Assembly

Picks the clauses that apply to a case from the clause library, renders
them, and assembles the [[ARTIKELEN]] body and the table of contents.

Selection priority for a conditional clause:
    1. condition_config  - full condition tree
    2. condition_field   - same test as [[IF:...]]
    3. neither           - included
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

import conditionals
import loops
import placeholders
from collection_registry import CollectionRegistry
from conditions import describe, evaluate
from config import ARTICLE_PREFIX
from diagnostics import Diagnostics
from models import CaseData, Clause, NumberingType

logger = logging.getLogger(__name__)

TOC_HEADING = "Inhoudsopgave"

HEADING_MARKERS = {
    NumberingType.NEW_NUMBER: "[[ARTICLE]] ",
    NumberingType.CONTINUE: "[[SUBARTICLE]] ",
    NumberingType.NONE: "",
}


@dataclass
class RenderedClause:
    clause: Clause
    title: str
    body: str


def is_applicable(clause: Clause, context: Mapping[str, str]) -> bool:
    if not clause.is_conditional:
        return True
    if clause.condition_error:
        return False
    if clause.condition_config:
        logger.debug("Clause %s condition: %s", clause.code, describe(clause.condition_config))
        return evaluate(clause.condition_config, context)
    if clause.condition_field and clause.condition_field.strip():
        return conditionals.test_condition(clause.condition_field, context)
    return True


def filter_clauses(clauses: List[Clause], context: Mapping[str, str]) -> List[Clause]:
    """Applicable clauses in library order."""
    selected = [c for c in clauses if is_applicable(c, context)]
    logger.info("Selected %d of %d clauses", len(selected), len(clauses))
    return sorted(selected, key=lambda c: c.order)


def render_clause_text(
    clause: Clause,
    context: Mapping[str, str],
    registry: CollectionRegistry,
    case_data: CaseData,
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    text = loops.expand(clause.effective_text, registry, case_data, diagnostics, context=context)
    text = conditionals.strip(text, context, diagnostics)
    text = placeholders.resolve(text, context, diagnostics)
    return text.strip()


def render_clauses(
    clauses: List[Clause],
    context: Mapping[str, str],
    registry: CollectionRegistry,
    case_data: CaseData,
    diagnostics: Optional[Diagnostics] = None,
) -> List[RenderedClause]:
    """Applicable clauses with non-blank rendered text."""
    rendered = []
    for clause in filter_clauses(clauses, context):
        body = render_clause_text(clause, context, registry, case_data, diagnostics)
        if not body:
            logger.debug("Skipping clause %s: no text after processing", clause.code)
            continue
        title = placeholders.resolve(clause.effective_title, context, diagnostics).strip()
        rendered.append(RenderedClause(clause=clause, title=title, body=body))
    return rendered


def assemble_articles(rendered: List[RenderedClause]) -> str:
    """Heading line with its numbering marker, then the body; articles separated by a blank line."""
    blocks = []
    for item in rendered:
        heading = (HEADING_MARKERS[item.clause.numbering] + item.title).strip()
        blocks.append(f"{heading}\n{item.body}" if heading else item.body)
    return "\n\n".join(blocks)


def build_table_of_contents(
    rendered: List[RenderedClause],
    prefix: Optional[str] = None,
    heading: str = TOC_HEADING,
) -> str:
    """
    One line per numbered article, numbered the way the numbering pass will
    number the assembled articles.
    """
    prefix = ARTICLE_PREFIX if prefix is None else prefix
    lines = [heading]
    number = 0
    for item in rendered:
        if item.clause.numbering != NumberingType.NEW_NUMBER:
            continue
        number += 1
        lines.append(f"{prefix} {number}: {item.title}")
    if number == 0:
        return ""
    return "\n".join(lines)
