"""
Word (.docx) adapter

Moves region text in and out of a python-docx Document so the resolver
can work on plain text:

    body              all top-level body paragraphs, one line each
    header:<n>        header of section n (linked headers are skipped)
    footer:<n>        footer of section n
    table:<t>:<r>:<c> one table cell

A top-level table sits in the body text as a marker line. On write-back
the body is split at the surviving markers and each piece goes to the
paragraphs between the same tables, so text never moves across a table.
A table whose marker was removed (e.g. inside a false [[IF:...]] block)
is removed from the document.

Resolved text is written back paragraph by paragraph, keeping the first
run's formatting. Extra lines get new paragraphs cloned from the last one;
surplus paragraphs are removed.
"""

import io
import logging
import re
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.text.paragraph import Paragraph

from diagnostics import new_correlation_id
from models import CaseData
from resolver import BODY_REGION, DocumentResult, TemplateResolver

logger = logging.getLogger(__name__)

# Private-use characters keep the marker clear of every placeholder syntax
TABLE_MARK = "\ue000TABLE:{}\ue000"
_TABLE_MARK_LINE = re.compile(r'^\s*\ue000TABLE:(\d+)\ue000\s*$')


# =========================================================================
# Region discovery
# =========================================================================

@dataclass
class BodyLayout:
    """Top-level body content: paragraph runs separated by tables."""
    segments: List[List[Paragraph]] = field(default_factory=lambda: [[]])
    tables: List[Any] = field(default_factory=list)

    @property
    def paragraphs(self) -> List[Paragraph]:
        return [p for segment in self.segments for p in segment]


def body_layout(doc) -> BodyLayout:
    layout = BodyLayout()
    for child in doc.element.body.iterchildren():
        if child.tag == qn("w:p"):
            layout.segments[-1].append(Paragraph(child, doc._body))
        elif child.tag == qn("w:tbl"):
            layout.tables.append(child)
            layout.segments.append([])
    return layout


def body_text(layout: BodyLayout, mark_tables: bool = True) -> str:
    lines = []
    for index, segment in enumerate(layout.segments):
        if index and mark_tables:
            lines.append(TABLE_MARK.format(index - 1))
        lines.extend(p.text for p in segment)
    return "\n".join(lines)


def region_paragraphs(doc) -> Dict[str, List[Paragraph]]:
    """Region name -> the paragraphs that hold its text."""
    regions: Dict[str, List[Paragraph]] = {BODY_REGION: body_layout(doc).paragraphs}

    for index, section in enumerate(doc.sections):
        for kind, part in (("header", section.header), ("footer", section.footer)):
            # A linked part has no definition of its own (section 0: no header at all)
            if part.is_linked_to_previous:
                continue
            paragraphs = list(part.paragraphs)
            if any(p.text for p in paragraphs):
                regions[f"{kind}:{index}"] = paragraphs

    for t, table in enumerate(doc.tables):
        seen = set()
        for r, row in enumerate(table.rows):
            for c, cell in enumerate(row.cells):
                # Merged cells appear once per spanned grid column
                if id(cell._tc) in seen:
                    continue
                seen.add(id(cell._tc))
                regions[f"table:{t}:{r}:{c}"] = list(cell.paragraphs)

    return regions


def extract_regions(doc, mark_tables: bool = True) -> Dict[str, str]:
    """
    Region name -> text with one line per paragraph.

    With mark_tables, the body holds a TABLE_MARK line where each top-level
    table sits; write-back needs those. Turn it off for display only.
    """
    regions = {
        name: "\n".join(p.text for p in paragraphs)
        for name, paragraphs in region_paragraphs(doc).items()
    }
    regions[BODY_REGION] = body_text(body_layout(doc), mark_tables)
    return regions


# =========================================================================
# Write-back
# =========================================================================

def replace_paragraph_text(paragraph: Paragraph, new_text: str):
    """Replace paragraph text while preserving formatting."""
    if len(paragraph.runs) == 1:
        paragraph.runs[0].text = new_text
    elif len(paragraph.runs) > 1:
        paragraph.runs[0].text = new_text
        for run in paragraph.runs[1:]:
            run.text = ''
    else:
        paragraph.text = new_text


def _holds_section_break(paragraph: Paragraph) -> bool:
    p_pr = paragraph._p.pPr
    return p_pr is not None and p_pr.sectPr is not None


def write_lines(paragraphs: List[Paragraph], text: str):
    """Spread text over paragraphs, one line per paragraph."""
    if not paragraphs:
        return
    _write_line_list(paragraphs, text.split("\n"))


def _write_line_list(paragraphs: List[Paragraph], lines: List[str]):
    for paragraph, line in zip(paragraphs, lines):
        if paragraph.text != line:
            replace_paragraph_text(paragraph, line)

    # More lines than paragraphs: clone the last one
    anchor = paragraphs[-1]
    for line in lines[len(paragraphs):]:
        new_p = deepcopy(anchor._p)
        anchor._p.addnext(new_p)
        anchor = Paragraph(new_p, anchor._parent)
        replace_paragraph_text(anchor, line)

    # Fewer lines than paragraphs: drop the rest
    for paragraph in paragraphs[len(lines):]:
        if _holds_section_break(paragraph):
            replace_paragraph_text(paragraph, "")
            continue
        element = paragraph._p
        element.getparent().remove(element)


def split_body(text: str, table_count: int) -> Tuple[List[List[str]], List[int]]:
    """
    Split resolved body text at its table markers.

    Returns (pieces, kept): kept lists the surviving table indexes in order,
    pieces has one more entry than kept. Markers out of order or repeated
    (a marker inside a loop body) are dropped.
    """
    pieces: List[List[str]] = [[]]
    kept: List[int] = []
    for line in text.split("\n"):
        match = _TABLE_MARK_LINE.match(line)
        if match:
            index = int(match.group(1))
            if index < table_count and (not kept or index > kept[-1]):
                kept.append(index)
                pieces.append([])
            continue
        pieces[-1].append(line)
    return pieces, kept


def write_body(doc, text: str):
    """Write body text back between the tables it was read from."""
    layout = body_layout(doc)
    pieces, kept = split_body(text, len(layout.tables))

    # Paragraph runs around a removed table merge into one target
    bounds = [-1] + kept + [len(layout.tables)]
    for position, lines in enumerate(pieces):
        first, last = bounds[position] + 1, bounds[position + 1]
        paragraphs = [p for segment in layout.segments[first:last + 1] for p in segment]
        if not paragraphs:
            if not lines or lines == [""]:
                continue
            paragraphs = [_insert_paragraph(doc, layout, bounds[position], bounds[position + 1])]
        _write_line_list(paragraphs, lines)

    for index, table in enumerate(layout.tables):
        if index not in kept:
            logger.debug("Removing table %d: its marker was not kept", index)
            table.getparent().remove(table)


def _insert_paragraph(doc, layout: BodyLayout, before: int, after: int) -> Paragraph:
    """New empty paragraph right after table `before`, or right before table `after`."""
    element = OxmlElement("w:p")
    if before >= 0:
        layout.tables[before].addnext(element)
    elif after < len(layout.tables):
        layout.tables[after].addprevious(element)
    else:
        doc.element.body.insert(0, element)
    return Paragraph(element, doc._body)


def apply_regions(doc, regions: Dict[str, str]):
    """Write resolved region text back into the document."""
    targets = region_paragraphs(doc)
    body = None
    for name, text in regions.items():
        if name == BODY_REGION:
            body = text
            continue
        paragraphs = targets.get(name)
        if paragraphs is None:
            logger.warning("Region %s not found in document", name)
            continue
        write_lines(paragraphs, text)

    # Cells first: removing a table must not invalidate their targets
    if body is not None:
        write_body(doc, body)


# =========================================================================
# Generation
# =========================================================================

def generate_docx(
    template_content: bytes,
    case_data: CaseData,
    resolver: Optional[TemplateResolver] = None,
    correlation_id: Optional[str] = None,
) -> Tuple[bytes, DocumentResult]:
    """
    Resolve a .docx template against case data.

    Returns:
        Tuple of (document_bytes, DocumentResult)
    """
    resolver = resolver or TemplateResolver()
    correlation_id = correlation_id or new_correlation_id()

    doc = Document(io.BytesIO(template_content))
    regions = extract_regions(doc)
    logger.info("[%s] Resolving .docx with %d regions", correlation_id, len(regions))

    result = resolver.resolve_document(regions, case_data, correlation_id=correlation_id)
    apply_regions(doc, result.regions)

    output_buffer = io.BytesIO()
    doc.save(output_buffer)
    return output_buffer.getvalue(), result
