"""
Grammar Agreement Builder

Produces grammar placeholders such as [[heeft/hebben]], [[hij/zij/ze]] and
[[KIND]] whose value depends on how many children (or collection items)
the case has. Minor children drive the base rules; the "alle ..." rules
follow the total child count.
"""

import logging
from datetime import date
from typing import Dict, List, MutableMapping, Optional

from collection_registry import CollectionRegistry, is_minor
from dutch import (
    VERB_FORMS,
    child_term,
    format_list,
    object_pronoun,
    possessive_pronoun,
    subject_pronoun,
    verb_form,
)
from models import CaseData, Child

logger = logging.getLogger(__name__)


def _display_name(child: Child) -> str:
    if child.call_name:
        return child.call_name
    if child.first_names:
        return child.first_names.split()[0]
    return child.surname or "het kind"


def _count_rules(plural: bool, subject: List[Child], prefix: str = "") -> Dict[str, str]:
    """Rules shared by the minor-based and total-based sets."""
    rules = {
        f"{prefix}ons kind/onze kinderen": child_term(plural),
        f"{prefix}het kind/de kinderen": "de kinderen" if plural else "het kind",
        f"{prefix}kind/kinderen": "kinderen" if plural else "kind",
    }
    for singular, plural_form in VERB_FORMS:
        rules[f"{prefix}{singular}/{plural_form}"] = verb_form(singular, plural_form, plural)

    rules[f"{prefix}zijn/haar/hun"] = possessive_pronoun(plural)
    rules[f"{prefix}diens/dier/hun"] = "hun" if plural else "diens/dier"

    # Gender only matters for exactly one child
    gender = subject[0].gender if len(subject) == 1 else None
    rules[f"{prefix}hem/haar/hen"] = object_pronoun(gender, plural)
    rules[f"{prefix}hij/zij/ze"] = subject_pronoun(gender, plural)
    return rules


def build_child_rules(
    children: List[Child],
    reference_date: Optional[date] = None,
    correlation_id: str = "-",
) -> Dict[str, str]:
    """Grammar rules for a list of children."""
    today = reference_date or date.today()
    minors = [c for c in children if is_minor(c, today)]
    plural = len(minors) > 1
    logger.info("[%s] Building grammar rules for %d children, %d minor",
                correlation_id, len(children), len(minors))

    if len(minors) == 1:
        kind = _display_name(minors[0])
        kinderen = kind
    elif minors:
        kinderen = format_list(_display_name(c) for c in minors)
        kind = kinderen
    else:
        kind = "het kind"
        kinderen = "de kinderen"

    rules: Dict[str, str] = {"KIND": kind, "KINDEREN": kinderen}
    rules.update(_count_rules(plural, minors))
    rules.update(_count_rules(len(children) > 1, children, prefix="alle "))

    logger.debug("[%s] Created %d grammar rules", correlation_id, len(rules))
    return rules


def build_simple_rules(child_count: int) -> Dict[str, str]:
    """Rules from a bare count, for cases without child records."""
    plural = child_count > 1
    rules: Dict[str, str] = {
        "KIND": "de kinderen" if plural else "het kind",
        "KINDEREN": "de kinderen",
    }
    rules.update(_count_rules(plural, []))
    rules.update(_count_rules(plural, [], prefix="alle "))
    return rules


def add_collection_rules(
    rules: MutableMapping[str, str],
    registry: CollectionRegistry,
    case_data: CaseData,
    correlation_id: str = "-",
) -> int:
    """
    Add "singular/plural" rules for every collection with items.

    Existing keys are left alone, so the first registered collection with
    items decides a shared key. Returns the number of keys added.
    """
    added = 0
    for collection in registry:
        if not collection.grammar_pairs:
            continue
        count = len(collection.items(case_data))
        if count == 0:
            continue
        plural = count > 1
        for singular, plural_form in collection.grammar_pairs:
            key = f"{singular}/{plural_form}"
            if key not in rules:
                rules[key] = plural_form if plural else singular
                added += 1

    logger.info("[%s] Added %d collection grammar rules", correlation_id, added)
    return added
