"""
Tests for the Template Resolution Orchestrator and the context builder.
"""
import pytest

from collection_registry import CollectionRegistry, ItemField, JsonCollection
from context_builder import build_context, party_placeholders
from diagnostics import Diagnostics
from models import CaseData, Clause, ConditionalPlaceholder, NumberingType
from resolver import TemplateResolver, resolve


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------

def test_conditional_block_with_placeholder():
    text = "[[IF:HasKids]]We have [[KidCount]] kids.[[ENDIF:HasKids]]"
    assert resolve(text, {"HasKids": "true", "KidCount": "2"}) == "We have 2 kids."
    assert resolve(text, {}) == ""


def test_caps_modifier():
    assert resolve("[[caps:greeting]]", {"greeting": "hello"}) == "Hello"


def test_loop_with_custom_registry():
    registry = CollectionRegistry()
    registry.register(JsonCollection("Accounts", "ACCOUNT_", fields=[ItemField("NAME", "name")]))
    case = CaseData(collections={"Accounts": [{"name": "A"}, {"name": "B"}]})

    result = TemplateResolver(registry).resolve_text(
        "[[#Accounts]][[ACCOUNT_NAME]]; [[/Accounts]]", case_data=case
    )
    assert result.text == "A; B; "


def test_explicit_context_gets_aliases():
    assert resolve("[[HasChildren]] [[dossier_nummer]]", {"has_children": "ja", "DossierNummer": "7"}) == "ja 7"


def test_loop_over_json_array_in_context():
    text = "[[#BANKREKENINGEN]][[BANKREKENING_IBAN]]; [[/BANKREKENINGEN]]"
    context = {"BANKREKENINGEN": '[{"iban": "NL91ABNA0417164300"}]'}
    assert resolve(text, context) == "NL91 ABNA 0417 1643 00; "


def test_loop_over_json_array_in_case_fields():
    case = CaseData(fields={"voertuigen": '[{"kenteken": "12ABC3"}, {"kenteken": "AB123CD"}]'})
    result = TemplateResolver().resolve_text(
        "[[#VOERTUIGEN]][[VOERTUIG_KENTEKEN]] [[/VOERTUIGEN]][[AantalVoertuigen]]", case_data=case
    )
    assert result.text == "12ABC3 AB123CD 2"


def test_malformed_rules_do_not_fail_the_request():
    case = CaseData(
        fields={"status": "gehuwd"},
        conditional_placeholders=[
            ConditionalPlaceholder("P", {"rules": ["oops"], "default": "standaard"}),
            ConditionalPlaceholder("Q", {"rules": {"condition": {}}}),
            ConditionalPlaceholder("R", {"rules": [{"condition": {"field": None}, "result": "x"},
                                                 {"condition": {"field": "status", "value": "gehuwd"},
                                                  "result": "ja"}]}),
        ],
    )
    result = TemplateResolver().resolve_text("[[P]] [[R]] ok[[Q]]", case_data=case)
    assert result.text == "standaard ja ok"


def test_unresolved_placeholders_are_reported():
    result = TemplateResolver().resolve_text("[[Onbekend]] [[Onbekend]]", context={})

    assert result.text == "[[Onbekend]] [[Onbekend]]"
    assert result.diagnostics.unresolved_count == 2
    assert not result.diagnostics.ok
    assert result.diagnostics.to_dict()["unresolved"] == {"Onbekend": 2}


def test_correlation_id_is_kept():
    result = TemplateResolver().resolve_text("x", context={}, correlation_id="req-42")
    assert result.diagnostics.correlation_id == "req-42"


def test_loop_output_feeds_conditionals_and_numbering(case_data):
    text = (
        "[[ARTICLE]] Voertuigen\n"
        "[[#VOERTUIGEN]][[SUBARTICLE]] [[VOERTUIG_KENTEKEN]]\n[[/VOERTUIGEN]]"
        "[[IF:HeeftSchulden]][[ARTICLE]] Schulden[[ENDIF:HeeftSchulden]]"
        "[[ARTICLE]] Slot"
    )
    result = TemplateResolver().resolve_text(text, case_data=case_data)
    assert result.text == "Article 1 Voertuigen\n1.1 12ABC3\n1.2 AB123CD\nArticle 2 Slot"


def test_numbering_prefix_option(case_data):
    result = TemplateResolver(numbering_prefix="Artikel").resolve_text("[[ARTICLE]]", case_data=case_data)
    assert result.text == "Artikel 1"


# ---------------------------------------------------------------------------
# Context building
# ---------------------------------------------------------------------------

def test_party_placeholders(parties):
    values = party_placeholders(1, parties[0])
    assert values["Partij1Naam"] == "Jan de Vries"
    assert values["Partij1Achternaam"] == "de Vries"
    assert values["Partij1Voorletters"] == "J."
    assert values["Partij1Geboortedatum"] == "2 april 1980"
    assert values["Partij1Adres"] == "Kerkstraat 1, 1234 AB Amsterdam"


def test_context_contains_derived_values(case_data, registry):
    context = build_context(case_data, registry)

    assert context["Partij2Naam"] == "Maria Jansen"
    assert context["AantalKinderen"] == "3"
    assert context["aantal_minderjarige_kinderen"] == "2"
    assert context["HeeftMinderjarigeKinderen"] == "true"
    assert context["MinderjarigeKinderenNamen"] == "Sophie Anna de Vries en Emma de Vries"
    assert context["AantalBankrekeningen"] == "1"
    assert context["HeeftVoertuigen"] == "true"
    assert context["HeeftSchulden"] == "false"
    assert context["DossierNummer"] == "2024-001"


def test_context_contains_grammar(case_data, registry):
    context = build_context(case_data, registry)

    assert context["KIND"] == "Sophie en Emma"
    assert context["hij/zij/ze"] == "ze"
    assert context["voertuig/voertuigen"] == "voertuigen"
    assert context["bankrekening/bankrekeningen"] == "bankrekening"


def test_case_fields_win_over_derived_values(case_data, registry):
    case_data.fields["AantalKinderen"] = "7"
    case_data.custom_placeholders = {"Plaats": "Rotterdam", "Rechtbank": "Den Haag"}
    context = build_context(case_data, registry)

    assert context["AantalKinderen"] == "7"
    assert context["Plaats"] == "Amsterdam"
    assert context["Rechtbank"] == "Den Haag"


def test_simple_grammar_without_child_records(registry):
    context = build_context(CaseData(fields={"aantal_kinderen": "2"}), registry)
    assert context["KIND"] == "de kinderen"
    assert context["heeft/hebben"] == "hebben"


def test_conditional_placeholders(case_data, registry):
    case_data.conditional_placeholders = [
        ConditionalPlaceholder("Aanhef", {
            "rules": [
                {"condition": {"field": "AantalMinderjarigeKinderen", "operator": ">", "value": 1},
                 "result": "[[Partij1Naam]] en [[KIND]]"},
            ],
            "default": "[[Partij1Naam]]",
        }),
        ConditionalPlaceholder("Fallback", {"rules": [], "default": "standaard"}),
        ConditionalPlaceholder("Kapot", "not a config"),
    ]
    diagnostics = Diagnostics()
    context = build_context(case_data, registry, diagnostics)

    assert context["Aanhef"] == "Jan de Vries en Sophie en Emma"
    assert context["Fallback"] == "standaard"
    assert context["Kapot"] == ""
    assert len(diagnostics.warnings) == 1


def test_context_is_frozen_during_resolution(case_data):
    resolver = TemplateResolver()
    context = resolver.build_context(case_data, Diagnostics())
    with pytest.raises(TypeError):
        context["x"] = "y"


# ---------------------------------------------------------------------------
# Clause library
# ---------------------------------------------------------------------------

def test_articles_and_table_of_contents(case_data):
    case_data.clauses = [
        Clause(code="partijen", title="Partijen", order=1,
               text="[[Partij1Naam]] en [[Partij2Naam]]"),
        Clause(code="geen", title="Geen kinderen", order=2, is_conditional=True,
               condition_field="!HeeftKinderen", text="Er zijn geen kinderen."),
        Clause(code="kinderen", title="Kinderen", order=3, is_conditional=True,
               condition_field="HeeftMinderjarigeKinderen",
               text="[[KIND]] [[heeft/hebben]] recht op omgang."),
        Clause(code="detail", order=4, numbering=NumberingType.CONTINUE,
               text="[[#MINDERJARIGE_KINDEREN]][[KIND_ROEPNAAM]] ([[KIND_LEEFTIJD]]) [[/MINDERJARIGE_KINDEREN]]"),
    ]
    result = TemplateResolver().resolve_text("[[INHOUDSOPGAVE]]\n\n[[ARTIKELEN]]", case_data=case_data)

    assert result.text == (
        "Inhoudsopgave\n"
        "Article 1: Partijen\n"
        "Article 2: Kinderen\n"
        "\n"
        "Article 1 Partijen\n"
        "Jan de Vries en Maria Jansen\n"
        "\n"
        "Article 2 Kinderen\n"
        "Sophie en Emma hebben recht op omgang.\n"
        "\n"
        "2.1\n"
        "Sophie (9) Emma (5)"
    )


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def test_resolve_document_regions_share_context(case_data):
    regions = {
        "body": "[[ARTICLE]] [[Partij1Naam]]\n[[ARTICLE]] [[Onbekend]]",
        "header:0": "[[ARTICLE]] Dossier [[dossier_nummer]]",
    }
    result = TemplateResolver().resolve_document(regions, case_data, correlation_id="doc-1")

    assert result.body == "Article 1 Jan de Vries\nArticle 2 [[Onbekend]]"
    assert result.regions["header:0"] == "Article 1 Dossier 2024-001"
    assert result.diagnostics.unresolved["Onbekend"] == 1
    assert result.diagnostics.correlation_id == "doc-1"
    assert result.context["Partij1Naam"] == "Jan de Vries"
