"""
Dutch language helpers for grammatical agreement.
"""

from typing import Iterable, Optional

MALE = {"m", "man", "male"}
FEMALE = {"v", "vrouw", "f", "female"}

# (singular, plural) verb forms exposed as "singular/plural" grammar keys
VERB_FORMS = [
    ("heeft", "hebben"),
    ("is", "zijn"),
    ("verblijft", "verblijven"),
    ("kan", "kunnen"),
    ("zal", "zullen"),
    ("moet", "moeten"),
    ("wordt", "worden"),
    ("blijft", "blijven"),
    ("gaat", "gaan"),
    ("komt", "komen"),
    ("zou", "zouden"),
    ("wil", "willen"),
    ("mag", "mogen"),
    ("doet", "doen"),
    ("krijgt", "krijgen"),
    ("neemt", "nemen"),
    ("brengt", "brengen"),
    ("haalt", "halen"),
]


def format_list(items: Iterable[str]) -> str:
    """['Bart', 'Kees', 'Emma'] -> 'Bart, Kees en Emma'"""
    names = [item for item in items if item]
    if not names:
        return ""
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + " en " + names[-1]


def _gender(gender: Optional[str]) -> Optional[str]:
    token = (gender or "").strip().lower()
    if token in MALE:
        return "m"
    if token in FEMALE:
        return "v"
    return None


def object_pronoun(gender: Optional[str], plural: bool) -> str:
    """hem / haar / hen, or 'hem/haar' when the gender is unknown."""
    if plural:
        return "hen"
    return {"m": "hem", "v": "haar"}.get(_gender(gender), "hem/haar")


def subject_pronoun(gender: Optional[str], plural: bool) -> str:
    """hij / zij / ze, or 'hij/zij' when the gender is unknown."""
    if plural:
        return "ze"
    return {"m": "hij", "v": "zij"}.get(_gender(gender), "hij/zij")


def possessive_pronoun(plural: bool) -> str:
    return "hun" if plural else "zijn/haar"


def verb_form(singular: str, plural_form: str, plural: bool) -> str:
    return plural_form if plural else singular


def child_term(plural: bool) -> str:
    return "onze kinderen" if plural else "ons kind"
