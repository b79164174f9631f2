"""
Placeholder Resolver

Substitutes named placeholders in a text-bearing unit (paragraph, cell,
header, footer). Four bracket styles denote the same placeholder:

    [[Name]]   {Name}   <<Name>>   [Name]

plus the legacy {{ name }} form. An optional modifier prefix changes the
casing of the resolved value:

    [[caps:greeting]]  -> "Hello"
    [[upper:greeting]] -> "HELLO"
    [[lower:greeting]] -> "hello"

Missing names leave the token in place and are reported as unresolved.
Substitution is single-pass: inserted values are never rescanned.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from context_map import ContextMap
from diagnostics import Diagnostics

logger = logging.getLogger(__name__)

# Alternation order matters: double-bracket forms must win over single ones
TOKEN_PATTERN = re.compile(
    r'\[\[(?P<double>[^\[\]\r\n]+?)\]\]'
    r'|\{\{\s*(?P<legacy>[^{}\r\n]+?)\s*\}\}'
    r'|<<(?P<angle>[^<>\r\n]+?)>>'
    r'|\{(?P<brace>[^{}\r\n]+?)\}'
    r'|\[(?P<single>[^\[\]\r\n]+?)\]'
)

STYLE_NAMES = {
    "double": "[[ ]]",
    "legacy": "{{ }}",
    "angle": "<< >>",
    "brace": "{ }",
    "single": "[ ]",
}

MODIFIER_PATTERN = re.compile(r'^(caps|upper|lower)\s*:\s*(.+)$', re.IGNORECASE)

# Markers owned by the conditional, loop and numbering passes
STRUCTURAL_PREFIXES = ("if:", "endif:", "#", "/", "list:", "lijst:")
STRUCTURAL_NAMES = {
    "article", "artikel", "subarticle", "subartikel",
    "article_number", "artikelnummer", "reset_numbering", "nummering_reset",
}


def is_structural(name: str) -> bool:
    lowered = name.strip().lower()
    return lowered in STRUCTURAL_NAMES or lowered.startswith(STRUCTURAL_PREFIXES)


def split_modifier(name: str) -> Tuple[Optional[str], str]:
    """'caps:greeting' -> ('caps', 'greeting'); 'greeting' -> (None, 'greeting')"""
    match = MODIFIER_PATTERN.match(name.strip())
    if match:
        return match.group(1).lower(), match.group(2).strip()
    return None, name.strip()


def apply_modifier(value: str, modifier: Optional[str]) -> str:
    if not modifier or not value:
        return value
    if modifier == "caps":
        return value[0].upper() + value[1:]
    if modifier == "upper":
        return value.upper()
    return value.lower()


def _token_name(match: "re.Match") -> Tuple[str, str]:
    """(style, raw name) for a TOKEN_PATTERN match."""
    style = match.lastgroup
    return style, match.group(style)


def resolve(
    text: str,
    context: Mapping[str, str],
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """
    Replace every placeholder in text with its context value.

    Lookup is exact first, then case-insensitive.
    """
    if not text:
        return text or ""
    if not isinstance(context, ContextMap):
        context = ContextMap(context)

    def substitute(match):
        _, raw = _token_name(match)
        if is_structural(raw):
            return match.group(0)
        modifier, name = split_modifier(raw)
        value = context.lookup(name)
        if value is None:
            if diagnostics is not None:
                diagnostics.unresolved_placeholder(name)
            else:
                logger.warning("Unresolved placeholder: %s", name)
            return match.group(0)
        return apply_modifier(value, modifier)

    return TOKEN_PATTERN.sub(substitute, text)


# =============================================================================
# Template scanning
# =============================================================================

@dataclass
class DetectedPlaceholder:
    """A placeholder found in a template."""
    name: str
    occurrences: int = 0
    styles: List[str] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    sample_context: str = ""


def scan_placeholders(text: str) -> List[DetectedPlaceholder]:
    """
    List every placeholder in a template with occurrence counts.

    Structural markers (IF/ENDIF, loops, numbering) are skipped. Names are
    grouped case-insensitively under their first spelling.
    """
    found: Dict[str, DetectedPlaceholder] = {}

    for match in TOKEN_PATTERN.finditer(text or ""):
        style, raw = _token_name(match)
        if is_structural(raw):
            continue
        modifier, name = split_modifier(raw)
        key = name.lower()

        if key not in found:
            start = max(0, match.start() - 40)
            end = min(len(text), match.end() + 40)
            found[key] = DetectedPlaceholder(
                name=name,
                sample_context=text[start:end].replace("\n", " "),
            )
        entry = found[key]
        entry.occurrences += 1
        if STYLE_NAMES[style] not in entry.styles:
            entry.styles.append(STYLE_NAMES[style])
        if modifier and modifier not in entry.modifiers:
            entry.modifiers.append(modifier)

    return list(found.values())
