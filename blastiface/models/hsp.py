# blastiface/models/hsp.py
from __future__ import annotations

from dataclasses import astuple, dataclass
from typing import List, Optional


@dataclass
class Hsp:
    """
    One high-scoring pair as reported by BLAST.

    Column order follows the classic 21-field HSP row:

      qid qdef qlen sid sdef slen scr e_val p_n p_val n_mat n_id n_pos n_gap dir q1 q2 qseq s1 s2 sseq
       0   1    2    3   4    5    6    7    8    9    10    11   12    13   14  15 16  17  18 19  20

    Coordinates are 1-based and keep the direction of the alignment
    (q2 < q1 or s2 < s1 on a reverse strand). e_val and p_val are kept as
    the text BLAST printed (e.g. 'e-150'); n_pos is None when the report
    has no Positives field (blastn).

    dir is '+' or '-' (subject strand relative to the query) for blastn,
    the frame as printed ('+2', '+1/-3') for translated searches, and ''
    for protein-protein searches.
    """
    qid: str
    qdef: str
    qlen: int
    sid: str
    sdef: str
    slen: int
    scr: float
    e_val: str
    p_n: int
    p_val: str
    n_mat: int
    n_id: int
    n_pos: Optional[int]
    n_gap: int
    dir: str
    q1: int
    q2: int
    qseq: str
    s1: int
    s2: int
    sseq: str

    def as_list(self) -> List[object]:
        return list(astuple(self))

    @property
    def positives(self) -> int:
        return self.n_id if self.n_pos is None else self.n_pos

    @property
    def query_span(self) -> int:
        return abs(self.q2 - self.q1) + 1

    @property
    def subject_span(self) -> int:
        return abs(self.s2 - self.s1) + 1


def normalize_evalue(text: str) -> str:
    """Legacy blastall prints 'e-150' for 1e-150; make it a valid float literal."""
    if text and text.startswith("e-"):
        return "1.0" + text
    return text
