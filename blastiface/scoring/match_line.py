# blastiface/scoring/match_line.py
from __future__ import annotations

from .substitution_matrix import BLOSUM62

__all__ = [
    "PROTEIN_SYMBOLS",
    "protein_match_char",
    "nucleotide_match_char",
    "match_line",
]

# 20 standard amino acids, X and stop
PROTEIN_SYMBOLS = "RKQENDHGSTACVILMFYWPX*"

# Unordered-pair lookup of positive BLOSUM62 substitutions; read-only.
_POSITIVE = BLOSUM62.positive_pairs(PROTEIN_SYMBOLS)


def protein_match_char(q: str, s: str) -> str:
    """Query letter when identical (ignoring case), '+' for a positive substitution, else ' '."""
    if q.lower() == s.lower():
        return q
    return "+" if (q.upper(), s.upper()) in _POSITIVE else " "


def nucleotide_match_char(q: str, s: str) -> str:
    return "|" if q.lower() == s.lower() else " "


def match_line(qseq: str, sseq: str, protein: bool = True) -> str:
    """Middle line of a pairwise alignment; '' when the rows differ in length."""
    if not qseq or not sseq or len(qseq) != len(sseq):
        return ""
    fn = protein_match_char if protein else nucleotide_match_char
    return "".join(fn(a, b) for a, b in zip(qseq, sseq))
