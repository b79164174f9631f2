"""
Balanced block scanner shared by the conditional and loop passes.

Tags are matched with an explicit stack instead of a single regex over
the whole text, so repeated and same-named nested blocks pair correctly.
Only innermost blocks (no paired tag inside) are reported; callers reduce
them and scan again until nothing is left.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, List, Pattern

from diagnostics import MarkupError


@dataclass
class Tag:
    is_open: bool
    argument: str    # full tag argument, e.g. "Status=open"
    key: str         # lowercased name used for pairing, e.g. "status"
    start: int
    end: int
    text: str


@dataclass
class Block:
    open_tag: Tag
    close_tag: Tag

    @property
    def argument(self) -> str:
        return self.open_tag.argument

    @property
    def name(self) -> str:
        return self.open_tag.key

    @property
    def start(self) -> int:
        return self.open_tag.start

    @property
    def end(self) -> int:
        return self.close_tag.end

    def inner(self, text: str) -> str:
        return text[self.open_tag.end:self.close_tag.start]


@dataclass
class ScanResult:
    blocks: List[Block] = field(default_factory=list)
    errors: List[MarkupError] = field(default_factory=list)


def tokenize(text: str, pattern: Pattern, key_func: Callable[[str], str]) -> List[Tag]:
    """
    Find all tags. The pattern must define named groups 'open' and 'close'
    holding the tag argument.
    """
    tags = []
    for match in pattern.finditer(text):
        is_open = match.group("open") is not None
        argument = (match.group("open") if is_open else match.group("close")).strip()
        tags.append(Tag(
            is_open=is_open,
            argument=argument,
            key=key_func(argument).strip().lower(),
            start=match.start(),
            end=match.end(),
            text=match.group(0),
        ))
    return tags


def scan(text: str, pattern: Pattern, key_func: Callable[[str], str] = lambda a: a) -> ScanResult:
    """
    Pair open and close tags with a stack.

    A close tag whose key differs from the innermost open tag is a stray
    close and stays unpaired; open tags left on the stack are unterminated.
    """
    result = ScanResult()
    stack: List[Tag] = []
    # Parallel to stack: whether the open tag already contains another open tag
    has_child: List[bool] = []

    for tag in tokenize(text, pattern, key_func):
        if tag.is_open:
            if has_child:
                has_child[-1] = True
            stack.append(tag)
            has_child.append(False)
            continue

        if not stack:
            result.errors.append(MarkupError(
                f"Closing tag {tag.text} has no opening tag", tag.start, tag.text))
            continue

        if stack[-1].key != tag.key:
            result.errors.append(MarkupError(
                f"Closing tag {tag.text} does not match {stack[-1].text}", tag.start, tag.text))
            continue

        open_tag = stack.pop()
        nested = has_child.pop()
        if not nested:
            result.blocks.append(Block(open_tag=open_tag, close_tag=tag))

    for tag in stack:
        result.errors.append(MarkupError(
            f"Opening tag {tag.text} is never closed", tag.start, tag.text))

    return result


def replace_blocks(text: str, blocks: List[Block], render: Callable[[Block], str]) -> str:
    """Replace each block (tags included) with render(block); blocks must not overlap."""
    pieces = []
    cursor = 0
    for block in sorted(blocks, key=lambda b: b.start):
        pieces.append(text[cursor:block.start])
        pieces.append(render(block))
        cursor = block.end
    pieces.append(text[cursor:])
    return "".join(pieces)


_BLANK_RUNS = re.compile(r'(?:\r?\n){3,}')


def collapse_blank_lines(text: str) -> str:
    """Runs of three or more newlines become a single blank line."""
    return _BLANK_RUNS.sub("\n\n", text)
