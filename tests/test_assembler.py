"""
Tests for the assembler command line interface.
"""
import io
import json

import pytest
from click.testing import CliRunner
from docx import Document

from assembler import cli, load_case_data


CASE = {
    "fields": {"dossier_nummer": "2024-001"},
    "parties": [
        {"voornamen": "Jan", "tussenvoegsel": "de", "achternaam": "Vries", "geslacht": "M"},
        {"voornamen": "Maria", "achternaam": "Jansen", "geslacht": "V"},
    ],
    "children": [
        {"id": 1, "voornamen": "Sophie", "achternaam": "Vries", "tussenvoegsel": "de",
         "geboorteDatum": "2015-03-10"},
    ],
    "collections": {
        "BANKREKENINGEN": [{"iban": "NL91ABNA0417164300", "tenaamstelling": "partij2"}],
    },
    "reference_date": "2024-06-01",
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "case.json"
    path.write_text(json.dumps(CASE), encoding="utf-8")
    return path


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "template.txt"
    path.write_text(
        "[[ARTICLE]] [[Partij1Naam]] en [[Partij2Naam]]\n"
        "[[KIND]] [[is/zijn]] minderjarig.\n"
        "[[#BANKREKENINGEN]]Rekening [[BANKREKENING_IBAN]] t.n.v. [[BANKREKENING_TENAAMSTELLING]][[/BANKREKENINGEN]]",
        encoding="utf-8",
    )
    return path


def test_load_case_data_accepts_dutch_keys(data_file):
    case = load_case_data(data_file)
    assert case.party1.surname == "Vries"
    assert case.children[0].birth_date.year == 2015


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------

def test_resolve_prints_result(runner, template_file, data_file):
    result = runner.invoke(cli, ["resolve", str(template_file), "--data", str(data_file)])

    assert result.exit_code == 0
    assert "Article 1 Jan de Vries en Maria Jansen" in result.output
    assert "Sophie is minderjarig." in result.output
    assert "Rekening NL91 ABNA 0417 1643 00 t.n.v. Maria Jansen" in result.output


def test_resolve_writes_output_file(runner, template_file, data_file, tmp_path):
    output = tmp_path / "out" / "result.txt"
    result = runner.invoke(cli, [
        "resolve", str(template_file), "-d", str(data_file), "-o", str(output), "--prefix", "Artikel",
    ])

    assert result.exit_code == 0
    assert output.read_text(encoding="utf-8").startswith("Artikel 1 Jan de Vries")


def test_resolve_with_invalid_data(runner, template_file, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    result = runner.invoke(cli, ["resolve", str(template_file), "--data", str(bad)])

    assert result.exit_code == 1
    assert "Could not read case data" in result.output


# ---------------------------------------------------------------------------
# check / placeholders
# ---------------------------------------------------------------------------

def test_check_passes_for_complete_data(runner, template_file, data_file):
    result = runner.invoke(cli, ["check", str(template_file), "--data", str(data_file)])
    assert result.exit_code == 0
    assert "No problems found" in result.output


def test_check_fails_on_unresolved(runner, data_file, tmp_path):
    template = tmp_path / "broken.txt"
    template.write_text("[[Onbekend]] [[IF:A]]open", encoding="utf-8")
    result = runner.invoke(cli, ["check", str(template), "--data", str(data_file)])

    assert result.exit_code == 1
    assert "Onbekend" in result.output
    assert "Warning:" in result.output


def test_placeholders_lists_names(runner, template_file):
    result = runner.invoke(cli, ["placeholders", str(template_file)])
    assert result.exit_code == 0
    assert "Partij1Naam" in result.output
    assert "BANKREKENING_IBAN" in result.output


def test_placeholders_empty_template(runner, tmp_path):
    template = tmp_path / "plain.txt"
    template.write_text("Geen placeholders.", encoding="utf-8")
    result = runner.invoke(cli, ["placeholders", str(template)])
    assert "No placeholders found" in result.output


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------

def test_generate_docx(runner, data_file, tmp_path):
    doc = Document()
    doc.add_paragraph("[[ARTICLE]] [[Partij1Naam]]")
    template = tmp_path / "template.docx"
    doc.save(str(template))
    output = tmp_path / "result.docx"

    result = runner.invoke(cli, ["generate", str(template), "--data", str(data_file), "-o", str(output)])

    assert result.exit_code == 0
    generated = Document(io.BytesIO(output.read_bytes()))
    assert [p.text for p in generated.paragraphs if p.text] == ["Article 1 Jan de Vries"]
