#!/usr/bin/env python3
"""
Run one BLAST search and print the hits as alignment text or as HSP rows.

Example:
  ./blast_search.py \
      --tool blastp \
      --query proteins.fa \
      --db uniref_subset.fa \
      --evalue 1e-5 \
      --threads 4 \
      --format text \
      --output hits.txt

Extra options use the library's option names (any alias):
  ./blast_search.py --tool blastn --query q.fa --db genome.fa -o minIden=0.9 -o strand=plus
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Dict, List, TextIO

from blastiface.formats.blast_text import hsps_to_text
from blastiface.models.hsp import Hsp
from blastiface.runners.blast import blast
from blastiface.runners.command import SUPPORTED_TOOLS


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run a BLAST search through blastiface and print the hits.")
    p.add_argument("--tool", required=True, choices=SUPPORTED_TOOLS, help="BLAST program.")
    p.add_argument("--query", default="-", help="Query FASTA file ('-' for stdin).")
    p.add_argument("--db", required=True, help="Database: formatted BLAST database or FASTA file ('-' for stdin).")
    p.add_argument("--evalue", type=float, default=None, help="Maximum e-value (default 0.01).")
    p.add_argument("--threads", type=int, default=None, help="Threads for the BLAST program.")
    p.add_argument("--blastplus", action="store_true", help="Prefer BLAST+ programs over blastall.")
    p.add_argument(
        "--format",
        choices=("text", "hsp"),
        default="text",
        help="'text' for pairwise alignment text, 'hsp' for tab-separated HSP rows.",
    )
    p.add_argument("--per-line", type=int, default=60, help="Residues per alignment line in text output.")
    p.add_argument(
        "-o", "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Any other search option; may be repeated.",
    )
    p.add_argument("--output", default=None, help="Output path; stdout if omitted.")
    p.add_argument("--verbose", action="store_true", help="Debug logging.")
    return p.parse_args()


def parse_option_pairs(pairs: List[str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in pairs:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {item!r}")
        out[key.strip()] = value.strip()
    return out


def write_hsp_rows(hsps: List[Hsp], out: TextIO) -> None:
    for h in hsps:
        out.write("\t".join("" if v is None else str(v) for v in h.as_list()) + "\n")


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        options = parse_option_pairs(args.option)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    options["outForm"] = "hsp"
    if args.evalue is not None:
        options["evalue"] = args.evalue
    if args.threads is not None:
        options["num_threads"] = args.threads
    if args.blastplus:
        options["blastplus"] = True

    if args.query != "-" and not os.path.exists(args.query):
        print(f"error: file not found: {args.query}", file=sys.stderr)
        return 2

    hsps = blast(args.query, args.db, args.tool, options)

    sink: TextIO | None = None
    try:
        if args.output:
            sink = open(args.output, "wt", encoding="utf-8")
            out = sink
        else:
            out = sys.stdout

        if args.format == "text":
            out.write(hsps_to_text(hsps, tool=args.tool, per_line=args.per_line))
        else:
            write_hsp_rows(hsps, out)
    finally:
        if sink is not None:
            sink.close()

    return 0 if hsps else 1


if __name__ == "__main__":
    raise SystemExit(main())
