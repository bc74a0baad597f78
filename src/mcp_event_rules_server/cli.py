from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from mcp_event_rules_server.core.aggregation import FragmentAggregator, pretty_print_xml
from mcp_event_rules_server.core.config import resolve_decode_config
from mcp_event_rules_server.core.decoder import SpecDecoder
from mcp_event_rules_server.core.diagnostics import diagnose_many
from mcp_event_rules_server.core.formatting import apply_indent_guides, render_line, render_lines, xml_lines


def _read_blobs(paths: Sequence[str]) -> list[tuple[int, bytes]]:
    """Read blob files; the 1-based position is the fallback sequence."""
    out: list[tuple[int, bytes]] = []
    for index, raw in enumerate(paths, start=1):
        path = Path(raw)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        out.append((index, path.read_bytes()))
    return out


def _cmd_decode(args: argparse.Namespace) -> int:
    decoder = SpecDecoder(config=resolve_decode_config())
    batches = []
    unrecognized = 0
    for sequence, blob in _read_blobs(args.blobs):
        lines = decoder.decode(blob, args.key, sequence)
        if not lines:
            unrecognized += 1
        batches.append(lines)

    for line in render_lines(batches):
        print(line)
    if unrecognized:
        print(f"{unrecognized} blob(s) not recognized.", file=sys.stderr)
    return 0


def _cmd_aggregate(args: argparse.Namespace) -> int:
    aggregator = FragmentAggregator()
    for raw in args.fragments:
        path = Path(raw)
        if not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        text = path.read_text(encoding="utf-8", errors="replace")
        if args.key:
            aggregator.add_fragment(args.key, text)
        else:
            aggregator.add_xml(text, path.stem)

    for index, doc in enumerate(aggregator.documents(), start=1):
        print(f"# {doc.key} ({doc.record_count} fragment(s))")
        if args.guides and doc.structured:
            print(apply_indent_guides(pretty_print_xml(doc.text, indent="\t")))
            print()
        elif args.pretty:
            # xml_lines ends with the blank separator line.
            for line in xml_lines(doc.text, index):
                print(render_line(line))
        else:
            print(doc.text)
            print()
    return 0


def _cmd_diagnose(args: argparse.Namespace) -> int:
    reports = diagnose_many(_read_blobs(args.blobs), config=resolve_decode_config())
    payload = [r.model_dump(mode="json") for r in reports]
    print(json.dumps(payload, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="er-decode", description="Decode event-rules spec blobs.")
    p.add_argument("-v", "--verbose", action="store_true", help="Log framing decisions to stderr")
    sub = p.add_subparsers(dest="command", required=True)

    d = sub.add_parser("decode", help="Decode one or more blob files into lines")
    d.add_argument("blobs", nargs="+", help="Blob files, decoded in order")
    d.add_argument("--key", default=None, help="Event spec key embedded in the blobs")
    d.set_defaults(handler=_cmd_decode)

    a = sub.add_parser("aggregate", help="Merge XML fragment files per event spec key")
    a.add_argument("fragments", nargs="+", help="Fragment files, merged in order")
    a.add_argument("--key", default=None, help="Merge all fragments under this key")
    a.add_argument("--pretty", action="store_true", help="Indent structured documents")
    a.add_argument("--guides", action="store_true", help="Draw indent guides (implies --pretty)")
    a.set_defaults(handler=_cmd_aggregate)

    g = sub.add_parser("diagnose", help="Print diagnostics for blob files as JSON")
    g.add_argument("blobs", nargs="+")
    g.set_defaults(handler=_cmd_diagnose)
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        code = args.handler(args)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
