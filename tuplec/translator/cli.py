"""Command-line interface for the tuplec translator."""
from __future__ import annotations

import argparse
from pathlib import Path
import sys

from ..constants import DIRECTIVE_MARKER, LOGBOOK_FILE, OUTPUT_PARAM_PREFIX, PUB_FILE
from .callgraph import (
    build_call_graph,
    export_graphviz,
    recursive_functions,
    unused_functions,
    visualize_call_graph,
)
from .crypto import verify_signature
from .diagnostics import TranslationFailed
from .driver import compile_and_run, default_output_path, translate_file
from .ledger import build_translation_record, record_translation, show_logbook


def parse_args(args):
    argp = argparse.ArgumentParser(
        prog="tuplec",
        description="Translate tuple-returning function directives into plain C",
    )

    argp.add_argument("source", nargs="?", help="Input file with tuple directives")
    argp.add_argument(
        "-o", "--output", help="Output C file (default: source with a .c suffix)"
    )
    argp.add_argument(
        "--collect",
        action="store_true",
        help="Report every error instead of stopping at the first one",
    )
    argp.add_argument(
        "--strict-scopes",
        action="store_true",
        help="Require every %%func body to be closed with %%end",
    )
    argp.add_argument(
        "--marker", default=DIRECTIVE_MARKER, help="Directive marker (default: %%)"
    )
    argp.add_argument(
        "--prefix",
        default=OUTPUT_PARAM_PREFIX,
        help="Name prefix of the synthetic output parameters",
    )
    argp.add_argument(
        "--list-functions",
        action="store_true",
        help="Print the emitted header of every tuple function",
    )
    argp.add_argument(
        "--graph",
        metavar="OUTPUT",
        help="Export the tuple-function call graph (.dot text or .svg)",
    )
    argp.add_argument(
        "--visualize",
        nargs="?",
        const=True,
        metavar="OUTPUT",
        help="Draw the call graph with matplotlib; optionally save it to OUTPUT",
    )
    argp.add_argument(
        "--compile", action="store_true", help="Compile the translated file"
    )
    argp.add_argument(
        "--run",
        action="store_true",
        help="Compile the translated file and run the binary",
    )
    argp.add_argument("--cc", help="C compiler command (default: $CC or cc)")
    argp.add_argument(
        "--cflag",
        action="append",
        dest="cflags",
        default=[],
        metavar="FLAG",
        help="Extra compiler flag, repeatable (use --cflag=-O2 for dashed flags)",
    )
    argp.add_argument(
        "--record",
        action="store_true",
        help="Append this translation to the provenance logbook",
    )
    argp.add_argument(
        "--no-sign",
        action="store_true",
        help="Record logbook entries without a signature",
    )
    argp.add_argument(
        "--logbook", action="store_true", help="Show the provenance logbook"
    )
    argp.add_argument(
        "--verify",
        nargs=2,
        metavar=("DIGEST", "SIGNATURE"),
        help="Verify a logbook signature",
    )

    return argp.parse_args(args)


def _record(params, result, output_path):
    record = build_translation_record(
        result, source_path=params.source, output_path=output_path
    )
    return record_translation(record, logbook_path=LOGBOOK_FILE, sign=not params.no_sign)


def _report_graph(params, result):
    graph = build_call_graph(result)
    recursive = recursive_functions(graph)
    unused = unused_functions(graph)
    print("\nCall graph:")
    print(f"  {graph.number_of_nodes()} functions, {graph.number_of_edges()} call edges")
    if recursive:
        print(f"  recursive: {', '.join(recursive)}")
    if unused:
        print(f"  never called: {', '.join(unused)}")
    if params.graph:
        export_graphviz(graph, params.graph)
    if params.visualize:
        target = None if params.visualize is True else params.visualize
        visualize_call_graph(graph, target)


def main(args):
    params = parse_args(args)

    if params.logbook:
        show_logbook(logbook_path=LOGBOOK_FILE)
        return 0
    if params.verify:
        ok = verify_signature(params.verify[0], params.verify[1], PUB_FILE)
        print("✓ Signature valid" if ok else "✗ Invalid signature")
        return 0 if ok else 1
    if not params.source:
        print("✗ No source file given", file=sys.stderr)
        return 2

    output_path = Path(params.output) if params.output else default_output_path(params.source)
    options = {
        "marker": params.marker,
        "output_prefix": params.prefix,
        "require_end": params.strict_scopes,
    }
    try:
        result = translate_file(
            params.source, output_path, fail_fast=not params.collect, **options
        )
    except TranslationFailed as exc:
        print(exc.report(), file=sys.stderr)
        print(f"✗ {exc}", file=sys.stderr)
        if params.record and exc.result is not None:
            _record(params, exc.result, None)
        return 1
    except (OSError, ValueError) as exc:
        print(f"✗ {exc}", file=sys.stderr)
        return 1

    print(
        f"✓ Translated {params.source} → {output_path} "
        f"({len(result.registry)} tuple functions, {len(result.calls)} calls)"
    )
    if params.list_functions:
        for sig in result.registry:
            note = "" if sig.defined else ", declared only"
            print(f"  • {sig.header(params.prefix)}  [line {sig.line_number}{note}]")
    if params.graph or params.visualize:
        _report_graph(params, result)
    if params.record:
        _record(params, result, output_path)

    if not (params.compile or params.run):
        return 0

    outcome = compile_and_run(
        output_path, compiler=params.cc, cflags=params.cflags, run=params.run
    )
    if not outcome.compiled:
        print(outcome.compile_output, file=sys.stderr, end="")
        print(f"✗ Compilation failed (exit code {outcome.compile_returncode})", file=sys.stderr)
        return outcome.returncode
    print(f"✓ Compiled → {outcome.executable}")
    if params.run:
        sys.stdout.write(outcome.stdout)
        sys.stderr.write(outcome.stderr)
        print(f"  → exit code {outcome.run_returncode}")
    return outcome.returncode


__all__ = [
    "main",
    "parse_args",
]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
