# blastiface/runners/command.py
"""
Argument vectors for the two BLAST command-line generations.

  legacy   blastall -p <tool> ...      (T/F booleans, numeric strand)
  BLAST+   <tool> ...                  (bare presence flags, word strands)

Both renderings read the same BlastOptions. Arguments are emitted in a fixed
order: program, threads, database, query, filtering, statistics, scoring,
output shaping, profile engine.
"""
from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence, Tuple

from blastiface.errors import ToolNotFoundError, ValidationError
from blastiface.sequences.base import FastaFile, SequenceRecord, as_source
from blastiface.sequences.fasta import read_fasta
from blastiface.sequences.resolve import valid_fasta
from .executables import ExecutableResolver
from .options import BlastOptions, canonicalize

__all__ = [
    "SUPPORTED_TOOLS",
    "BLAST_PLUS_ONLY",
    "select_program",
    "build_command",
    "master_index",
    "representative_for_profile",
]

logger = logging.getLogger(__name__)

SUPPORTED_TOOLS = ("blastn", "blastp", "blastx", "tblastn", "tblastx", "psiblast", "rpsblast")

# Programs that exist only in the BLAST+ family
BLAST_PLUS_ONLY = frozenset({"psiblast", "rpsblast"})

# BLAST+ programs that take -seg (the rest of the protein-query family uses none)
_SEG_TOOLS = frozenset({"blastp", "blastx", "tblastn"})

_AMINO_ACIDS = frozenset("ACDEFGHIKLMNPQRSTVWYacdefghiklmnpqrstvwy")


def _fmt(value: object) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _tf(value: bool) -> str:
    return "T" if value else "F"


class _Args(list):
    """List of strings with helpers for optional flags."""

    def opt(self, flag: str, value: object) -> None:
        if value is not None and value != "":
            self.extend([flag, _fmt(value)])

    def bare(self, flag: str, on: Optional[bool]) -> None:
        if on:
            self.append(flag)


# ---------------------------
# Dialect selection
# ---------------------------

def select_program(tool: str, options: BlastOptions, resolver: ExecutableResolver) -> Tuple[str, bool]:
    """
    Return (executable, is_blast_plus).

    blastall is used unless BLAST+ is requested (and blastall is not), or
    blastall cannot be found. psiblast and rpsblast always use BLAST+.
    """
    if tool in BLAST_PLUS_ONLY:
        order: Sequence[Tuple[str, bool]] = ((tool, True),)
    elif options.blastplus and not options.blastall:
        order = ((tool, True), ("blastall", False))
    else:
        order = (("blastall", False), (tool, True))

    for name, modern in order:
        exe = resolver.find(name)
        if exe:
            return exe, modern
    raise ToolNotFoundError(f"No executable found for {tool} (tried {', '.join(n for n, _ in order)})")


# ---------------------------
# Profile master sequence
# ---------------------------

def _terminal_gaps(seq: str) -> int:
    return (len(seq) - len(seq.lstrip("-"))) + (len(seq) - len(seq.rstrip("-")))


def representative_for_profile(alignment: Sequence[SequenceRecord]) -> SequenceRecord:
    """
    Row of `alignment` best suited as the profile master: fewest terminal
    gaps, then most amino-acid letters, then the earliest row. A copy is
    returned with its sequence compressed to letters.
    """
    if not alignment:
        raise ValidationError("representative_for_profile called with an empty alignment")

    def key(item: Tuple[int, Sequence[str]]) -> Tuple[int, int, int]:
        i, rec = item
        seq = rec[2]
        return _terminal_gaps(seq), -sum(ch in _AMINO_ACIDS for ch in seq), i

    _, best = min(enumerate(alignment), key=key)
    return SequenceRecord(best[0], best[1], "".join(ch for ch in best[2] if ch.isalpha()))


def master_index(align_path: str, query_path: Optional[str], master_id: Optional[str] = None) -> int:
    """
    1-based position of the master row in the alignment file: `master_id`
    when given, else the id of a single-sequence query, else the
    representative row. 1 when no row matches.
    """
    align = read_fasta(align_path)
    query: List[SequenceRecord] = []
    if query_path and os.path.isfile(query_path) and os.path.getsize(query_path) > 0:
        query = read_fasta(query_path)

    master = master_id
    if not master and len(query) == 1:
        master = query[0].id
    if not master and align:
        master = representative_for_profile(align).id

    for i, rec in enumerate(align, 1):
        if rec.id == master:
            return i
    return 1


# ---------------------------
# Renderings
# ---------------------------

def _legacy_args(exe: str, query_path: str, db_path: str, tool: str, o: BlastOptions) -> List[str]:
    cmd = _Args([exe, "-p", tool])
    cmd.opt("-a", o.num_threads)

    cmd.extend(["-d", db_path])
    cmd.opt("-D", o.db_gen_code)
    cmd.opt("-l", o.gilist)

    cmd.extend(["-i", query_path])
    cmd.opt("-Q", o.query_genetic_code)
    cmd.opt("-L", o.query_loc)
    if o.strand is not None:
        cmd.opt("-S", o.strand.legacy)
    if o.lc_filter is not None:
        cmd.opt("-F", _tf(o.lc_filter))
    if o.lcase_masking is not None:
        cmd.opt("-U", _tf(o.lcase_masking))

    if o.evalue:
        cmd.opt("-e", o.evalue)
    cmd.opt("-b", o.num_alignments)
    cmd.opt("-z", o.dbsize)
    cmd.opt("-Y", o.searchsp)

    cmd.opt("-W", o.word_size)
    cmd.opt("-M", o.matrix)
    if tool == "blastn":
        cmd.opt("-r", o.reward if o.reward is not None else 1)
        cmd.opt("-q", o.penalty if o.penalty is not None else -1)
    cmd.opt("-G", o.gapopen)
    cmd.opt("-E", o.gapextend)
    cmd.opt("-f", o.threshold)
    cmd.opt("-X", o.xdrop_gap)
    cmd.opt("-y", o.xdrop_ungap)
    cmd.opt("-Z", o.xdrop_final)
    if o.use_sw_tback is not None:
        cmd.opt("-s", _tf(o.use_sw_tback))
    # -g is "perform gapped alignment"
    if o.ungapped is not None:
        cmd.opt("-g", _tf(not o.ungapped))
    cmd.opt("-t", o.max_intron_length)

    if o.show_gis is not None:
        cmd.opt("-I", _tf(o.show_gis))
    return list(cmd)


def _modern_args(
    exe: str,
    query_path: str,
    db_path: str,
    tool: str,
    o: BlastOptions,
    scratch_dir: Optional[str],
) -> List[str]:
    seg, dust = o.seg, o.dust
    if o.lc_filter is not None:
        yes_no = "yes" if o.lc_filter else "no"
        if seg is None and tool in _SEG_TOOLS:
            seg = yes_no
        if dust is None and tool == "blastn":
            dust = yes_no

    align_path: Optional[str] = None
    master_idx = o.msa_master_idx
    if tool == "psiblast":
        if o.in_msa is not None:
            align_path = _resolve_msa(o.in_msa, scratch_dir)
        elif o.in_pssm is None:
            align_path = query_path
        if not master_idx and o.in_pssm is None and align_path:
            master_idx = master_index(align_path, query_path, o.msa_master_id)

    cmd = _Args([exe])
    cmd.opt("-num_threads", o.num_threads)

    cmd.extend(["-db", db_path])
    cmd.opt("-db_gen_code", o.db_gen_code)
    cmd.opt("-gilist", o.gilist)

    if tool != "psiblast":
        cmd.extend(["-query", query_path])
    cmd.opt("-query_genetic_code", o.query_genetic_code)
    cmd.opt("-query_loc", o.query_loc)
    if o.strand is not None:
        cmd.opt("-strand", o.strand.modern)
    cmd.opt("-seg", seg)
    cmd.opt("-dust", dust)
    cmd.bare("-lcase_masking", o.lcase_masking)
    if o.soft_masking:
        cmd.opt("-soft_masking", "true")
    cmd.opt("-filtering_db", o.filtering_db)

    if o.evalue:
        cmd.opt("-evalue", o.evalue)
    cmd.opt("-perc_identity", o.perc_identity)
    cmd.opt("-num_alignments", o.num_alignments)
    cmd.opt("-dbsize", o.dbsize)
    cmd.opt("-searchsp", o.searchsp)
    cmd.opt("-best_hit_overhang", o.best_hit_overhang)
    cmd.opt("-best_hit_score_edge", o.best_hit_score_edge)

    cmd.opt("-word_size", o.word_size)
    cmd.opt("-matrix", o.matrix)
    if tool == "blastn":
        cmd.opt("-reward", o.reward if o.reward is not None else 1)
        cmd.opt("-penalty", o.penalty if o.penalty is not None else -1)
    cmd.opt("-gapopen", o.gapopen)
    cmd.opt("-gapextend", o.gapextend)
    cmd.opt("-threshold", o.threshold)
    cmd.opt("-xdrop_gap", o.xdrop_gap)
    cmd.opt("-xdrop_ungap", o.xdrop_ungap)
    cmd.opt("-xdrop_final", o.xdrop_final)
    cmd.bare("-use_sw_tback", o.use_sw_tback)
    cmd.bare("-ungapped", o.ungapped)
    cmd.opt("-max_intron_length", o.max_intron_length)

    cmd.bare("-show_gis", o.show_gis)

    cmd.opt("-num_iterations", o.num_iterations)
    cmd.opt("-msa_master_idx", master_idx)
    cmd.opt("-pseudocount", o.pseudocount)
    cmd.opt("-inclusion_ethresh", o.inclusion_ethresh)
    cmd.bare("-ignore_msa_master", o.ignore_msa_master)

    cmd.opt("-in_msa", align_path)
    if o.in_pssm and not align_path:
        cmd.opt("-in_pssm", o.in_pssm)
    cmd.opt("-phi_pattern", o.phi_pattern)

    cmd.opt("-out_pssm", o.out_pssm)
    cmd.opt("-out_ascii_pssm", o.out_ascii_pssm)
    return list(cmd)


def _resolve_msa(in_msa: object, scratch_dir: Optional[str]) -> str:
    src = as_source(in_msa)
    if isinstance(src, FastaFile):
        return valid_fasta(src, "")
    if not scratch_dir:
        raise ValidationError("in_msa given as sequence data needs a scratch directory")
    return valid_fasta(src, os.path.join(scratch_dir, "inMSA"))


def build_command(
    query_path: str,
    db_path: str,
    tool: str,
    options: Optional[BlastOptions] = None,
    *,
    scratch_dir: Optional[str] = None,
    resolver: Optional[ExecutableResolver] = None,
) -> List[str]:
    """
    Full argument vector for one search.

    Invalid requests raise instead of returning an empty vector:
    ValidationError for a missing path or an unsupported tool, and
    ToolNotFoundError when neither command family can be found. The public
    search functions turn both into an empty result.
    """
    if not query_path or not db_path:
        raise ValidationError("Both a query file and a database are required")
    tool = (tool or "").lower()
    if tool not in SUPPORTED_TOOLS:
        raise ValidationError(f"Unsupported blast program {tool!r}")

    o = canonicalize(options)
    exe, modern = select_program(tool, o, resolver or ExecutableResolver())
    if modern:
        cmd = _modern_args(exe, query_path, db_path, tool, o, scratch_dir)
    else:
        cmd = _legacy_args(exe, query_path, db_path, tool, o)
    logger.debug("BLAST command: %s", cmd)
    return cmd
