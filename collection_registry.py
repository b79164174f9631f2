"""
Collection Registry

Table of named collections that loop blocks ([[#NAME]]...[[/NAME]]) and
collection grammar rules draw from. Two kinds of descriptor:

- EntityCollection: a filtered view of the case's children, rendered
  through KIND_* variables.
- JsonCollection: a JSON array stored on the case (bank accounts, vehicles,
  debts, ...), rendered through <PREFIX>_* variables defined per field.

Adding a collection means one more `register()` call; the loop expander
and grammar builder never change.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from dateutil.relativedelta import relativedelta

from config import MATURITY_AGE
from dutch import format_list
from formatting import (
    format_currency,
    format_date,
    format_full_name,
    format_iban,
    format_surname,
    humanize_code,
)
from models import CaseData, Child

logger = logging.getLogger(__name__)

GrammarPair = Tuple[str, str]

# Party reference codes used in stored records
PARTY1_CODES = {"partij1", "partij_1", "ouder_1", "ouder1"}
PARTY2_CODES = {"partij2", "partij_2", "ouder_2", "ouder2"}
JOINT_CODES = {"gezamenlijk", "ouders_gezamenlijk", "beiden", "beide"}
JOINT_LABEL = "beide partijen"
OTHER_CODE = "anders"


# =============================================================================
# Value translation
# =============================================================================

def child_age(child: Child, reference_date) -> Optional[int]:
    if child.birth_date is None:
        return None
    return relativedelta(reference_date, child.birth_date).years


def is_minor(child: Child, reference_date) -> bool:
    age = child_age(child, reference_date)
    return age is not None and age < MATURITY_AGE


def child_full_name(child: Child) -> str:
    return format_full_name(child.first_names, child.prefix, child.surname)


def party_label(code: Any, case_data: CaseData) -> str:
    """
    Translate a stored party reference into display text.

    partij1 / ouder_1 -> party 1 full name, gezamenlijk -> "beide partijen",
    kind_<id> -> that child, kinderen_alle -> minor children,
    kinderen_allemaal -> all children. Unknown codes are returned as-is.
    """
    if code is None:
        return ""
    token = str(code).strip()
    lowered = token.lower()

    if lowered in PARTY1_CODES and case_data.party1:
        p = case_data.party1
        return format_full_name(p.first_names, p.prefix, p.surname)
    if lowered in PARTY2_CODES and case_data.party2:
        p = case_data.party2
        return format_full_name(p.first_names, p.prefix, p.surname)
    if lowered in JOINT_CODES:
        return JOINT_LABEL

    match = re.match(r'^kind_(\d+)$', lowered)
    if match:
        child_id = int(match.group(1))
        for child in case_data.children:
            if child.id == child_id:
                return child_full_name(child)
        return token

    if lowered == "kinderen_alle":
        today = case_data.today
        return format_list(child_full_name(c) for c in case_data.children if is_minor(c, today))
    if lowered == "kinderen_allemaal":
        return format_list(child_full_name(c) for c in case_data.children)

    return token


def _format_kind(kind: str, value: Any, case_data: CaseData) -> str:
    if value is None:
        return ""
    if kind == "code":
        return humanize_code(str(value))
    if kind == "party":
        return party_label(value, case_data)
    if kind == "debtor":
        if str(value).strip().lower() == "aflossen":
            return "af te lossen"
        return party_label(value, case_data)
    if kind == "bank":
        name = str(value).strip()
        return f"de {name}" if name else ""
    if kind == "iban":
        return format_iban(str(value))
    if kind == "currency":
        return format_currency(value)
    if kind == "date":
        return format_date(value)
    return str(value)


def to_variable_suffix(key: str) -> str:
    """bankNaam -> BANK_NAAM"""
    return re.sub(r'(?<=[a-z0-9])(?=[A-Z])', "_", key).upper()


# =============================================================================
# Descriptors
# =============================================================================

@dataclass
class ItemField:
    """One per-item variable: <prefix><variable> rendered from record[source]."""
    variable: str
    source: str
    kind: str = "text"   # text, code, party, debtor, bank, iban, currency, date
    other_code: str = OTHER_CODE
    other_source: Optional[str] = None

    @property
    def companion(self) -> str:
        return self.other_source or self.source + "Anders"


@dataclass
class JsonCollection:
    name: str
    prefix: str
    fields: List[ItemField] = field(default_factory=list)
    grammar_pairs: List[GrammarPair] = field(default_factory=list)
    source_keys: List[str] = field(default_factory=list)

    def raw_source(self, case_data: CaseData, context: Optional[Mapping[str, Any]] = None) -> Any:
        """Stored collections first, then a JSON-array case field, then the context."""
        keys = [k.lower() for k in [self.name] + self.source_keys]
        sources = [case_data.collections, case_data.fields]
        if context is not None:
            sources.append(context)
        for source in sources:
            lookup = {k.lower(): v for k, v in source.items()}
            for key in keys:
                if key in lookup and lookup[key] not in (None, ""):
                    return lookup[key]
        return None

    def items(self, case_data: CaseData, context: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        raw = self.raw_source(case_data, context)
        if raw is None or raw == "":
            return []
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning("Invalid JSON for collection %s: %s", self.name, e)
                return []
        if not isinstance(raw, list):
            logger.warning("Collection %s is not a JSON array", self.name)
            return []
        return [item for item in raw if isinstance(item, dict)]

    def item_values(self, item: Dict[str, Any], case_data: CaseData) -> Dict[str, str]:
        values: Dict[str, str] = {}
        for f in self.fields:
            raw = item.get(f.source)
            if isinstance(raw, str) and raw.strip().lower() == f.other_code:
                # "anders" points at a free-text companion field
                values[self.prefix + f.variable] = str(item.get(f.companion) or "")
            else:
                values[self.prefix + f.variable] = _format_kind(f.kind, raw, case_data)
        # Unmapped record keys are still reachable, unformatted
        for key, raw in item.items():
            variable = self.prefix + to_variable_suffix(key)
            if variable not in values:
                values[variable] = "" if raw is None else str(raw)
        return values


@dataclass
class EntityCollection:
    name: str
    selector: Callable[[CaseData], List[Child]]
    prefix: str = "KIND_"
    grammar_pairs: List[GrammarPair] = field(default_factory=list)

    def items(self, case_data: CaseData, context: Optional[Mapping[str, Any]] = None) -> List[Child]:
        return list(self.selector(case_data))

    def item_values(self, child: Child, case_data: CaseData) -> Dict[str, str]:
        age = child_age(child, case_data.today)
        call_name = child.call_name or (child.first_names.split()[0] if child.first_names else "")
        return {
            f"{self.prefix}VOORNAMEN": child.first_names,
            f"{self.prefix}ACHTERNAAM": format_surname(child.prefix, child.surname),
            f"{self.prefix}NAAM": child_full_name(child),
            f"{self.prefix}GEBOORTEDATUM": format_date(child.birth_date),
            f"{self.prefix}GEBOORTEPLAATS": child.birth_place,
            f"{self.prefix}ROEPNAAM": call_name,
            f"{self.prefix}LEEFTIJD": "" if age is None else str(age),
            f"{self.prefix}ERKENNINGSDATUM": format_date(child.recognition_date),
        }


class CollectionRegistry:
    """Ordered name -> descriptor table. Registration order drives grammar precedence."""

    def __init__(self):
        self._collections: Dict[str, Any] = {}

    def register(self, collection) -> "CollectionRegistry":
        key = collection.name.upper()
        if key in self._collections:
            logger.debug("Replacing collection %s", collection.name)
        self._collections[key] = collection
        return self

    def get(self, name: str):
        return self._collections.get(name.strip().upper())

    def __contains__(self, name: str) -> bool:
        return name.strip().upper() in self._collections

    def __iter__(self):
        return iter(self._collections.values())

    def __len__(self) -> int:
        return len(self._collections)


# =============================================================================
# Child filters
# =============================================================================

def children_from_marriage(case_data: CaseData) -> List[Child]:
    """Born on or after the marriage date; without a date, the boolean flag decides."""
    if case_data.marriage_date:
        return [c for c in case_data.children
                if c.birth_date and c.birth_date >= case_data.marriage_date]
    return list(case_data.children) if case_data.has_children_from_marriage else []


def children_before_marriage(case_data: CaseData) -> List[Child]:
    if case_data.marriage_date:
        return [c for c in case_data.children
                if c.birth_date and c.birth_date < case_data.marriage_date]
    return list(case_data.children) if case_data.has_children_before_marriage else []


def minor_children(case_data: CaseData) -> List[Child]:
    return [c for c in case_data.children if is_minor(c, case_data.today)]


def all_children(case_data: CaseData) -> List[Child]:
    return list(case_data.children)


# =============================================================================
# Default table
# =============================================================================

ACCOUNT_PAIRS = [
    ("bankrekening", "bankrekeningen"),
    ("de bankrekening", "de bankrekeningen"),
    ("saldo", "saldi"),
    ("het saldo", "de saldi"),
    ("valt", "vallen"),
    ("staat", "staan"),
    ("rekening blijft", "rekeningen blijven"),
    ("rekening zal", "rekeningen zullen"),
]

ACCOUNT_FIELDS = [
    ItemField("IBAN", "iban", "iban"),
    ItemField("TENAAMSTELLING", "tenaamstelling", "party"),
    ItemField("BANKNAAM", "bankNaam", "bank"),
    ItemField("SALDO", "saldo", "currency"),
    ItemField("STATUS", "statusVermogen", "code"),
]


def default_registry() -> CollectionRegistry:
    """The collections known to the divorce and parenting plan templates."""
    registry = CollectionRegistry()

    registry.register(EntityCollection("KINDEREN_UIT_HUWELIJK", children_from_marriage))
    registry.register(EntityCollection("KINDEREN_VOOR_HUWELIJK", children_before_marriage))
    registry.register(EntityCollection("MINDERJARIGE_KINDEREN", minor_children))
    registry.register(EntityCollection("ALLE_KINDEREN", all_children))

    registry.register(JsonCollection(
        "BANKREKENINGEN_KINDEREN", "BANKREKENING_",
        fields=ACCOUNT_FIELDS,
        grammar_pairs=ACCOUNT_PAIRS[:4] + [("rekeningnummer", "rekeningnummers")] + ACCOUNT_PAIRS[4:],
        source_keys=["bankrekening_kinderen", "bankrekeningKinderen"],
    ))
    registry.register(JsonCollection(
        "BANKREKENINGEN", "BANKREKENING_",
        fields=ACCOUNT_FIELDS,
        grammar_pairs=ACCOUNT_PAIRS,
    ))
    registry.register(JsonCollection(
        "BELEGGINGEN", "BELEGGING_",
        fields=[
            ItemField("SOORT", "soort", "code"),
            ItemField("INSTITUUT", "instituut", "code"),
            ItemField("TENAAMSTELLING", "tenaamstelling", "party"),
            ItemField("STATUS", "statusVermogen", "code"),
        ],
        grammar_pairs=[("belegging", "beleggingen"), ("de belegging", "de beleggingen")],
    ))
    registry.register(JsonCollection(
        "VOERTUIGEN", "VOERTUIG_",
        fields=[
            ItemField("SOORT", "soort", "code"),
            ItemField("KENTEKEN", "kenteken"),
            ItemField("MERK", "merk"),
            ItemField("MODEL", "handelsbenaming"),
            ItemField("TENAAMSTELLING", "tenaamstelling", "party"),
            ItemField("STATUS", "statusVermogen", "code"),
        ],
        grammar_pairs=[("voertuig", "voertuigen"), ("het voertuig", "de voertuigen")],
    ))
    registry.register(JsonCollection(
        "VERZEKERINGEN", "VERZEKERING_",
        fields=[
            ItemField("SOORT", "soort", "code"),
            ItemField("MAATSCHAPPIJ", "verzekeringsmaatschappij", "code"),
            ItemField("NEMER", "verzekeringnemer", "party"),
            ItemField("STATUS", "statusVermogen", "code"),
        ],
        grammar_pairs=[
            ("verzekering", "verzekeringen"),
            ("de verzekering", "de verzekeringen"),
            ("polis", "polissen"),
            ("de polis", "de polissen"),
        ],
    ))
    registry.register(JsonCollection(
        "SCHULDEN", "SCHULD_",
        fields=[
            ItemField("SOORT", "soort", "code"),
            ItemField("OMSCHRIJVING", "omschrijving"),
            ItemField("BEDRAG", "bedrag", "currency"),
            ItemField("TENAAMSTELLING", "tenaamstelling", "party"),
            ItemField("DRAAGPLICHTIG", "draagplichtig", "debtor"),
            ItemField("STATUS", "statusVermogen", "code"),
        ],
        grammar_pairs=[("schuld", "schulden"), ("de schuld", "de schulden")],
    ))
    registry.register(JsonCollection(
        "VORDERINGEN", "VORDERING_",
        fields=[
            ItemField("SOORT", "soort", "code"),
            ItemField("OMSCHRIJVING", "omschrijving"),
            ItemField("BEDRAG", "bedrag", "currency"),
            ItemField("TENAAMSTELLING", "tenaamstelling", "party"),
            ItemField("STATUS", "statusVermogen", "code"),
        ],
        grammar_pairs=[("vordering", "vorderingen"), ("de vordering", "de vorderingen")],
    ))
    registry.register(JsonCollection(
        "PENSIOENEN", "PENSIOEN_",
        fields=[
            ItemField("MAATSCHAPPIJ", "pensioenmaatschappij", "code"),
            ItemField("TENAAMSTELLING", "tenaamstelling", "party"),
            ItemField("VERDELING", "verdeling", "code"),
            ItemField(
                "BIJZONDER_PARTNERPENSIOEN", "bijzonderPartnerpensioen", "code",
                other_code="afwijken", other_source="bijzonderPartnerpensioensAnders",
            ),
        ],
        grammar_pairs=[("pensioen", "pensioenen"), ("het pensioen", "de pensioenen")],
    ))

    return registry
