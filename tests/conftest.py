"""
Shared pytest fixtures for the Document Assembler tests.

Provides:
- Fixed reference date so child ages are stable
- Sample parties and children
- Sample case data with stored collections
- Default collection registry
"""
import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from collection_registry import default_registry
from models import CaseData, Child, Party


REFERENCE_DATE = date(2024, 6, 1)


@pytest.fixture
def reference_date():
    """Fixture providing the date ages are computed against."""
    return REFERENCE_DATE


@pytest.fixture
def parties():
    """Fixture providing two parties: Jan de Vries and Maria Jansen."""
    return [
        Party(first_names="Jan", prefix="de", surname="Vries", gender="M", role="vader",
              birth_date=date(1980, 4, 2), birth_place="Haarlem",
              address="Kerkstraat 1", postal_code="1234 AB", city="Amsterdam"),
        Party(first_names="Maria", surname="Jansen", gender="V", role="moeder"),
    ]


@pytest.fixture
def children():
    """
    Fixture providing three children.

    Sophie (9) and Emma (5) are minors, Thomas (20) is an adult.
    """
    return [
        Child(id=1, first_names="Sophie Anna", call_name="Sophie", prefix="de", surname="Vries",
              gender="V", birth_date=date(2015, 3, 10), birth_place="Amsterdam"),
        Child(id=2, first_names="Thomas", prefix="de", surname="Vries",
              gender="M", birth_date=date(2004, 1, 20), birth_place="Utrecht"),
        Child(id=3, first_names="Emma", prefix="de", surname="Vries",
              gender="V", birth_date=date(2018, 9, 5), birth_place="Amsterdam"),
    ]


@pytest.fixture
def case_data(parties, children):
    """Fixture providing a complete case with children and stored collections."""
    return CaseData(
        fields={"dossier_nummer": "2024-001", "Plaats": "Amsterdam"},
        parties=parties,
        children=children,
        collections={
            "BANKREKENINGEN": '[{"iban":"NL91ABNA0417164300","tenaamstelling":"partij1",'
                              '"bankNaam":"ABN AMRO","saldo":5000.50,"statusVermogen":"gemeenschappelijk"}]',
            "VOERTUIGEN": '[{"soort":"personenauto","kenteken":"12ABC3","merk":"PEUGEOT",'
                          '"handelsbenaming":"308 SW","tenaamstelling":"partij1"},'
                          '{"soort":"anders","soortAnders":"Speedboot","kenteken":"AB123CD",'
                          '"tenaamstelling":"partij2"}]',
        },
        marriage_date=date(2010, 6, 15),
        reference_date=REFERENCE_DATE,
    )


@pytest.fixture
def registry():
    """Fixture providing the default collection registry."""
    return default_registry()
