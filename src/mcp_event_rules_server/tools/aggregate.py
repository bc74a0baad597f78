"""MCP tool implementation for merging XML fragments."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp_event_rules_server.core.aggregation import AggregatedDocument, FragmentAggregator, pretty_print_xml

UNKEYED = "UNKEYED"


def _document_to_dict(doc: AggregatedDocument, *, pretty: bool) -> dict[str, Any]:
    return {
        "key": doc.key,
        "record_count": doc.record_count,
        "structured": doc.structured,
        "text": pretty_print_xml(doc.text) if pretty and doc.structured else doc.text,
    }


def aggregate_fragments_impl(
    *,
    fragments: Sequence[str],
    key: str | None = None,
    pretty: bool = False,
) -> dict[str, Any]:
    """Implementation for the `aggregate_fragments` MCP tool.

    With `key`, every fragment is merged under it. Without, each fragment is
    keyed by its root's szEventSpecKey attribute (UNKEYED when absent).
    """
    if isinstance(fragments, str):
        raise ValueError("fragments must be a list of strings, not a single string.")
    if not fragments:
        raise ValueError("fragments must not be empty")

    aggregator = FragmentAggregator()
    for fragment in fragments:
        if key:
            aggregator.add_fragment(key, fragment)
        else:
            aggregator.add_xml(fragment, UNKEYED)

    documents = aggregator.documents()
    return {
        "count": len(documents),
        "documents": [_document_to_dict(d, pretty=pretty) for d in documents],
    }
