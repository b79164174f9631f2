"""
Tests for value formatting and case data parsing.
"""
from datetime import date

import pytest

from formatting import (
    format_address,
    format_currency,
    format_date,
    format_full_name,
    format_iban,
    format_initials,
    humanize_code,
)
from models import CaseData, Clause, parse_date


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value,expected", [
    (date(2024, 1, 15), "15 januari 2024"),
    ("2024-03-01", "1 maart 2024"),
    ("05-12-2020", "5 december 2020"),
    ("", ""),
    ("geen datum", ""),
])
def test_format_date(value, expected):
    assert format_date(value) == expected


def test_format_date_with_pattern():
    assert format_date("2024-03-01", "%d-%m-%Y") == "01-03-2024"


@pytest.mark.parametrize("value,expected", [
    (1234.56, "€ 1.234,56"),
    ("5000.5", "€ 5.000,50"),
    (0, "€ 0,00"),
    (None, ""),
    ("n.t.b.", "n.t.b."),
])
def test_format_currency(value, expected):
    assert format_currency(value) == expected


def test_names():
    assert format_full_name("Jan", "van der", "Berg") == "Jan van der Berg"
    assert format_full_name("Maria", "", "Jansen") == "Maria Jansen"
    assert format_initials("Jan Peter marie") == "J.P.M."
    assert format_initials(None) == ""


def test_format_address():
    assert format_address("Kerkstraat 1", "1234 AB", "Amsterdam") == "Kerkstraat 1, 1234 AB Amsterdam"
    assert format_address("", "", "Utrecht") == "Utrecht"


def test_format_iban_is_idempotent():
    grouped = format_iban("nl91abna0417164300")
    assert grouped == "NL91 ABNA 0417 1643 00"
    assert format_iban(grouped) == grouped


def test_humanize_code():
    assert humanize_code("doorlopend_krediet") == "Doorlopend krediet"
    assert humanize_code(None) == ""


# ---------------------------------------------------------------------------
# Case data parsing
# ---------------------------------------------------------------------------

def test_parse_date_formats():
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date("01-02-2024") == date(2024, 2, 1)
    assert parse_date("onzin") is None
    assert parse_date(None) is None


def test_case_data_from_dict():
    case = CaseData.from_dict({
        "fields": {"Plaats": "Utrecht"},
        "parties": [{"voornamen": "Jan", "achternaam": "Vries", "tussenvoegsel": "de"}],
        "children": [{"id": "4", "voornamen": "Emma", "geboorteDatum": "05-09-2018"}],
        "marriage_date": "2010-06-15",
        "custom_placeholders": {"Rechtbank": "Den Haag", "Leeg": None},
        "conditional_placeholders": {"Aanhef": {"rules": [], "default": "Geachte"}},
        "clauses": [{"code": "a", "titel": "Partijen", "tekst": "x", "nummering_type": "doornummeren"}],
    })

    assert case.party1.prefix == "de"
    assert case.party2 is None
    assert case.children[0].id == 4
    assert case.children[0].birth_date == date(2018, 9, 5)
    assert case.marriage_date == date(2010, 6, 15)
    assert case.custom_placeholders == {"Rechtbank": "Den Haag", "Leeg": ""}
    assert case.conditional_placeholders[0].key == "Aanhef"
    assert case.clauses[0].title == "Partijen"


def test_clause_condition_config_from_json_string():
    clause = Clause.from_dict({"code": "a", "conditie_config": '{"field": "x", "operator": "leeg"}'})
    assert clause.condition_config == {"field": "x", "operator": "leeg"}
    assert clause.condition_error is None
