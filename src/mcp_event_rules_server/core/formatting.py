"""Display helpers for decoded lines and aggregated XML."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .aggregation import pretty_print_xml
from .models import DecodedLine

INDENT_GUIDE = "|   "
INDENT_WIDTH = 2


def render_line(line: DecodedLine) -> str:
    return f"{' ' * (line.indent_level * INDENT_WIDTH)}{line.text}"


def render_lines(batches: Iterable[Sequence[DecodedLine]]) -> list[str]:
    """Render one display line per DecodedLine, with a blank line after each batch.

    Each batch is the output of one source blob; empty batches contribute nothing.
    """
    out: list[str] = []
    for batch in batches:
        if not batch:
            continue
        out.extend(render_line(line) for line in batch)
        out.append("")
    return out


def split_lines(text: str) -> list[str]:
    if not text:
        return [""]
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def xml_lines(xml: str, sequence: int) -> list[DecodedLine]:
    """Pretty-print xml into record_type 0 lines followed by a blank separator.

    Leading indentation becomes ``indent_level``, so ``render_line`` restores it.
    """
    lines: list[DecodedLine] = []
    for text in split_lines(pretty_print_xml(xml, indent=" " * INDENT_WIDTH)):
        body = text.lstrip(" ")
        level = (len(text) - len(body)) // INDENT_WIDTH
        lines.append(
            DecodedLine(sequence=sequence, record_type=0, text=text[level * INDENT_WIDTH :], indent_level=level)
        )
    lines.append(DecodedLine(sequence=sequence, record_type=0, text=""))
    return lines


def apply_indent_guides(text: str) -> str:
    """Replace each leading tab of every line with a visible guide."""
    if not text:
        return text
    out: list[str] = []
    for line in text.split("\n"):
        body = line.lstrip("\t")
        tabs = len(line) - len(body)
        out.append(INDENT_GUIDE * tabs + body)
    return "\n".join(out)
