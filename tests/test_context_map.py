"""
Tests for the case-insensitive Context Map and alias canonicalization.
"""
import pytest

from context_map import ContextMap, alias_for, to_pascal_case, to_snake_case


# ---------------------------------------------------------------------------
# Naming conventions
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name,expected", [
    ("has_children", "HasChildren"),
    ("KIND_VOORNAMEN", "KindVoornamen"),
    ("aantal_kinderen", "AantalKinderen"),
])
def test_to_pascal_case(name, expected):
    assert to_pascal_case(name) == expected


@pytest.mark.parametrize("name,expected", [
    ("HasChildren", "has_children"),
    ("Partij1Naam", "partij1_naam"),
    ("IBANNumber", "iban_number"),
])
def test_to_snake_case(name, expected):
    assert to_snake_case(name) == expected


def test_alias_for_skips_grammar_keys_and_single_words():
    assert alias_for("heeft/hebben") is None
    assert alias_for("plaats") is None
    assert alias_for("ons kind/onze kinderen") is None


# ---------------------------------------------------------------------------
# Mapping behaviour
# ---------------------------------------------------------------------------

def test_lookup_is_case_insensitive():
    context = ContextMap({"Greeting": "hello"})
    assert context["greeting"] == "hello"
    assert context.lookup("GREETING") == "hello"
    assert "gReEtInG" in context


def test_first_spelling_is_kept():
    context = ContextMap({"Greeting": "hello"})
    context["GREETING"] = "hi"
    assert list(context) == ["Greeting"]
    assert context["greeting"] == "hi"


def test_values_are_strings():
    context = ContextMap({"count": 2, "flag": True, "empty": None})
    assert context["count"] == "2"
    assert context["flag"] == "true"
    assert context["empty"] == ""


def test_lookup_missing_returns_none():
    assert ContextMap().lookup("missing") is None


def test_set_default_does_not_overwrite():
    context = ContextMap({"a": "1"})
    assert context.set_default("A", "2") is False
    assert context.set_default("b", "3") is True
    assert context["a"] == "1"
    assert context["b"] == "3"


def test_register_aliases_bridges_conventions():
    context = ContextMap({"has_children": "true", "KidCount": "2"})
    added = context.register_aliases()

    assert added == 2
    assert context["HasChildren"] == "true"
    assert context["kid_count"] == "2"


def test_register_aliases_never_overwrites_existing_keys():
    context = ContextMap({"has_children": "true", "HasChildren": "false"})
    context.register_aliases()
    assert context["HasChildren"] == "false"


def test_frozen_context_rejects_writes():
    context = ContextMap({"a": "1"}).freeze()
    with pytest.raises(TypeError):
        context["b"] = "2"
    with pytest.raises(TypeError):
        del context["a"]


def test_copy_is_unfrozen():
    context = ContextMap({"a": "1"}).freeze()
    clone = context.copy()
    clone["b"] = "2"
    assert "b" not in context
    assert clone.frozen is False
