"""
Builds the request Context Map from case data.

Order:
    case fields
    derived party / child / collection placeholders (never override fields)
    custom placeholders (only when absent)
    alias canonicalization
    grammar rules (child rules override, collection rules additive)
    conditional placeholders (override)
    assembled clauses: [[ARTIKELEN]] and [[INHOUDSOPGAVE]]
"""

import logging
from typing import Dict, Optional

from clauses import assemble_articles, build_table_of_contents, render_clauses
from collection_registry import CollectionRegistry, child_full_name, is_minor
from conditions import evaluate_rules, parse_number, resolve_nested_placeholders
from context_map import ContextMap, to_pascal_case
from diagnostics import Diagnostics
from dutch import format_list
from formatting import (
    format_address,
    format_date,
    format_full_name,
    format_initials,
    format_surname,
)
from grammar import add_collection_rules, build_child_rules, build_simple_rules
from models import CaseData, Party

logger = logging.getLogger(__name__)


def party_placeholders(index: int, party: Party) -> Dict[str, str]:
    """Partij<n>Naam, Partij<n>VolledigeNaam, ... for one party."""
    call_name = party.call_name or (party.first_names.split()[0] if party.first_names else "")
    key = f"Partij{index}"
    return {
        f"{key}Naam": format_full_name(call_name, party.prefix, party.surname),
        f"{key}VolledigeNaam": format_full_name(party.first_names, party.prefix, party.surname),
        f"{key}Voornamen": party.first_names,
        f"{key}Roepnaam": call_name,
        f"{key}Achternaam": format_surname(party.prefix, party.surname),
        f"{key}Voorletters": format_initials(party.first_names),
        f"{key}Geboortedatum": format_date(party.birth_date),
        f"{key}Geboorteplaats": party.birth_place,
        f"{key}Adres": format_address(party.address, party.postal_code, party.city),
        f"{key}Rol": party.role,
    }


def child_placeholders(case_data: CaseData) -> Dict[str, str]:
    today = case_data.today
    minors = [c for c in case_data.children if is_minor(c, today)]
    return {
        "AantalKinderen": str(len(case_data.children)),
        "AantalMinderjarigeKinderen": str(len(minors)),
        "HeeftKinderen": "true" if case_data.children else "false",
        "HeeftMinderjarigeKinderen": "true" if minors else "false",
        "KinderenNamen": format_list(child_full_name(c) for c in case_data.children),
        "MinderjarigeKinderenNamen": format_list(child_full_name(c) for c in minors),
    }


def collection_placeholders(registry: CollectionRegistry, case_data: CaseData) -> Dict[str, str]:
    """Aantal<Collection> and Heeft<Collection> for every registered collection."""
    values = {}
    for collection in registry:
        count = len(collection.items(case_data))
        name = to_pascal_case(collection.name)
        values[f"Aantal{name}"] = str(count)
        values[f"Heeft{name}"] = "true" if count else "false"
    return values


def build_context(
    case_data: CaseData,
    registry: CollectionRegistry,
    diagnostics: Optional[Diagnostics] = None,
    numbering_prefix: Optional[str] = None,
) -> ContextMap:
    """Context for one request. The caller freezes it before resolving regions."""
    diagnostics = diagnostics or Diagnostics()
    cid = diagnostics.correlation_id
    context = ContextMap(case_data.fields)
    # Aliases of case fields count as fields
    context.register_aliases()

    derived: Dict[str, str] = {}
    for index, party in enumerate(case_data.parties, start=1):
        derived.update(party_placeholders(index, party))
    derived.update(child_placeholders(case_data))
    derived.update(collection_placeholders(registry, case_data))
    for key, value in derived.items():
        context.set_default(key, value)

    custom_added = sum(
        1 for key, value in case_data.custom_placeholders.items()
        if context.set_default(key, value)
    )
    logger.info("[%s] Context built with %d fields, %d custom placeholders",
                cid, len(context), custom_added)

    context.register_aliases()

    # Grammar
    if case_data.children:
        rules = build_child_rules(case_data.children, case_data.today, correlation_id=cid)
    else:
        count = parse_number(context.lookup("AantalKinderen")) or 0
        rules = build_simple_rules(int(count))
    context.update(rules)
    add_collection_rules(context, registry, case_data, correlation_id=cid)

    # Conditional placeholders
    for placeholder in case_data.conditional_placeholders:
        if not isinstance(placeholder.config, dict):
            diagnostics.warn("Conditional placeholder %s has no rule configuration", placeholder.key)
            context[placeholder.key] = ""
            continue
        result = evaluate_rules(placeholder.config, context)
        context[placeholder.key] = resolve_nested_placeholders(result.raw_result, context)
        logger.debug("[%s] Conditional placeholder %s -> rule %s",
                     cid, placeholder.key, result.matched_rule or "default")

    # Clause library
    if case_data.clauses:
        rendered = render_clauses(case_data.clauses, context, registry, case_data, diagnostics)
        context["ARTIKELEN"] = assemble_articles(rendered)
        context["INHOUDSOPGAVE"] = build_table_of_contents(rendered, prefix=numbering_prefix)
        logger.info("[%s] Assembled %d of %d clauses", cid, len(rendered), len(case_data.clauses))

    return context
