"""
Case Data Models

Plain dataclasses describing the data a document is generated from:
parties, children, stored collections (bank accounts, vehicles, ...),
the clause library and the placeholder definitions attached to a case.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


class NumberingType(Enum):
    """How a clause heading participates in article numbering."""
    NEW_NUMBER = "new_number"
    CONTINUE = "continue"
    NONE = "none"

    @classmethod
    def parse(cls, value: Optional[str]) -> "NumberingType":
        if not value:
            return cls.NEW_NUMBER
        normalized = value.strip().lower()
        aliases = {
            "nieuw_nummer": cls.NEW_NUMBER,
            "doornummeren": cls.CONTINUE,
            "geen_nummer": cls.NONE,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError:
            return cls.NEW_NUMBER


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Parse ISO-ish and day-first date strings; returns None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        # ISO strings are unambiguous, everything else is read day-first
        if len(text) >= 10 and text[4] == "-":
            return date_parser.isoparse(text).date()
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        return None


@dataclass
class Party:
    """A party to the case (a parent or spouse)."""
    first_names: str = ""
    surname: str = ""
    prefix: str = ""              # tussenvoegsel, e.g. "van der"
    call_name: str = ""           # roepnaam
    gender: str = ""
    role: str = ""
    birth_date: Optional[date] = None
    birth_place: str = ""
    address: str = ""
    postal_code: str = ""
    city: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Party":
        return cls(
            first_names=data.get("first_names") or data.get("voornamen") or "",
            surname=data.get("surname") or data.get("achternaam") or "",
            prefix=data.get("prefix") or data.get("tussenvoegsel") or "",
            call_name=data.get("call_name") or data.get("roepnaam") or "",
            gender=data.get("gender") or data.get("geslacht") or "",
            role=data.get("role") or data.get("rol") or "",
            birth_date=parse_date(data.get("birth_date") or data.get("geboorteDatum")),
            birth_place=data.get("birth_place") or data.get("geboorteplaats") or "",
            address=data.get("address") or data.get("adres") or "",
            postal_code=data.get("postal_code") or data.get("postcode") or "",
            city=data.get("city") or data.get("plaats") or "",
        )


@dataclass
class Child:
    """A child of one or both parties."""
    id: Optional[int] = None
    first_names: str = ""
    surname: str = ""
    prefix: str = ""
    call_name: str = ""
    gender: str = ""
    birth_date: Optional[date] = None
    birth_place: str = ""
    recognition_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Child":
        child_id = data.get("id")
        return cls(
            id=int(child_id) if child_id not in (None, "") else None,
            first_names=data.get("first_names") or data.get("voornamen") or "",
            surname=data.get("surname") or data.get("achternaam") or "",
            prefix=data.get("prefix") or data.get("tussenvoegsel") or "",
            call_name=data.get("call_name") or data.get("roepnaam") or "",
            gender=data.get("gender") or data.get("geslacht") or "",
            birth_date=parse_date(data.get("birth_date") or data.get("geboorteDatum")),
            birth_place=data.get("birth_place") or data.get("geboorteplaats") or "",
            recognition_date=parse_date(
                data.get("recognition_date") or data.get("erkenningsDatum")
            ),
        )


@dataclass
class Clause:
    """A reusable article from the clause library."""
    code: str = ""
    title: str = ""
    text: str = ""
    order: int = 0
    numbering: NumberingType = NumberingType.NEW_NUMBER
    is_conditional: bool = False
    condition_field: Optional[str] = None
    condition_config: Optional[Dict[str, Any]] = None
    user_title: Optional[str] = None
    user_text: Optional[str] = None
    case_text: Optional[str] = None
    condition_error: Optional[str] = None

    @property
    def effective_text(self) -> str:
        """Case override wins over the user override, which wins over the library text."""
        for candidate in (self.case_text, self.user_text):
            if candidate and candidate.strip():
                return candidate
        return self.text or ""

    @property
    def effective_title(self) -> str:
        if self.user_title and self.user_title.strip():
            return self.user_title
        return self.title or ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Clause":
        config = data.get("condition_config", data.get("conditie_config"))
        condition_error = None
        if isinstance(config, str):
            try:
                config = json.loads(config) if config.strip() else None
            except json.JSONDecodeError as e:
                logger.warning("Invalid condition config on clause %s: %s", data.get("code"), e)
                condition_error = str(e)
                config = None
        return cls(
            code=data.get("code", ""),
            title=data.get("title", data.get("titel", "")),
            text=data.get("text", data.get("tekst", "")),
            order=int(data.get("order", data.get("volgorde", 0)) or 0),
            numbering=NumberingType.parse(data.get("numbering", data.get("nummering_type"))),
            is_conditional=bool(data.get("is_conditional", data.get("is_conditioneel", False))),
            condition_field=data.get("condition_field", data.get("conditie_veld")),
            condition_config=config,
            user_title=data.get("user_title"),
            user_text=data.get("user_text"),
            case_text=data.get("case_text"),
            condition_error=condition_error,
        )


@dataclass
class ConditionalPlaceholder:
    """A placeholder whose value is chosen by a rule configuration."""
    key: str
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CaseData:
    """Everything the engine needs to resolve one document."""
    fields: Dict[str, Any] = field(default_factory=dict)
    parties: List[Party] = field(default_factory=list)
    children: List[Child] = field(default_factory=list)
    collections: Dict[str, Any] = field(default_factory=dict)
    marriage_date: Optional[date] = None
    has_children_from_marriage: Optional[bool] = None
    has_children_before_marriage: Optional[bool] = None
    clauses: List[Clause] = field(default_factory=list)
    custom_placeholders: Dict[str, str] = field(default_factory=dict)
    conditional_placeholders: List[ConditionalPlaceholder] = field(default_factory=list)
    reference_date: Optional[date] = None

    @property
    def party1(self) -> Optional[Party]:
        return self.parties[0] if self.parties else None

    @property
    def party2(self) -> Optional[Party]:
        return self.parties[1] if len(self.parties) > 1 else None

    @property
    def today(self) -> date:
        return self.reference_date or date.today()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CaseData":
        conditional = data.get("conditional_placeholders") or {}
        if isinstance(conditional, dict):
            conditional_list = [
                ConditionalPlaceholder(key=key, config=config)
                for key, config in conditional.items()
            ]
        else:
            conditional_list = [
                ConditionalPlaceholder(key=item["key"], config=item.get("config", {}))
                for item in conditional
            ]

        return cls(
            fields=dict(data.get("fields") or {}),
            parties=[Party.from_dict(p) for p in data.get("parties") or []],
            children=[Child.from_dict(c) for c in data.get("children") or []],
            collections=dict(data.get("collections") or {}),
            marriage_date=parse_date(data.get("marriage_date")),
            has_children_from_marriage=data.get("has_children_from_marriage"),
            has_children_before_marriage=data.get("has_children_before_marriage"),
            clauses=[Clause.from_dict(c) for c in data.get("clauses") or []],
            custom_placeholders={
                str(k): "" if v is None else str(v)
                for k, v in (data.get("custom_placeholders") or {}).items()
            },
            conditional_placeholders=conditional_list,
            reference_date=parse_date(data.get("reference_date")),
        )
