from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Optional, Literal, NamedTuple, Any, Mapping

from .hsp import Hsp, normalize_evalue

Ref = Literal["query", "target"]

# Tools whose query and subject are both protein; no strand applies.
PROTEIN_PAIR_TOOLS = frozenset({"blastp", "psiblast", "rpsblast"})


class GapStats(NamedTuple):
    perc_sub: Optional[float]
    perc_ins: Optional[float]
    perc_del: Optional[float]


@dataclass(slots=True)
class PairwiseAlignment:
    """
    Alignment summary built from one BLAST HSP.

    Conventions:
      - Coordinates are 1-based, fully-closed [start, end] for BOTH query and target,
        always start <= end. The reported direction is kept in `orientation`
        (and `frame` for translated searches).
      - The meaning of perc_ins / perc_del is controlled by the `reference` attribute:
          reference='query'   ins = gaps on query row;  del = gaps on target row
          reference='target'  ins = gaps on target row; del = gaps on query row

    Orientation:
      - '+' or '-' when a nucleotide strand is involved; None for protein-protein tools.

    Metadata:
      - `meta` is a free-form dictionary for values with no dedicated field
        (e.g. residues left unaligned past the HSP end).
    """

    # Core identity & coordinates (1-based, fully-closed)
    score: float
    query_id: str
    query_start: int
    query_end: int
    target_id: str
    target_start: int
    target_end: int

    # Reference context for gap semantics (object-level)
    reference: Ref = "query"

    # Orientation: '+', '-', or None (protein)
    orientation: Optional[str] = "+"
    frame: Optional[str] = None
    tool: Optional[str] = None

    # Statistics
    e_value: Optional[float] = None
    p_value: Optional[float] = None
    p_n: int = 1
    n_mat: Optional[int] = None
    n_id: Optional[int] = None
    n_pos: Optional[int] = None
    n_gap: Optional[int] = None

    # Optional sequences/labels
    query_def: str = ""
    query_len: Optional[int] = None
    aligned_query_seq: Optional[str] = None
    target_def: str = ""
    target_len: Optional[int] = None
    aligned_target_seq: Optional[str] = None

    meta: dict[str, Any] = field(default_factory=dict)

    # ---------- Validation ----------

    def __post_init__(self) -> None:
        if self.query_start < 1 or self.target_start < 1:
            raise ValueError("Coordinates are 1-based; starts must be ≥ 1.")
        if self.query_end < self.query_start:
            raise ValueError("query_end must be ≥ query_start (fully-closed).")
        if self.target_end < self.target_start:
            raise ValueError("target_end must be ≥ target_start (fully-closed).")
        if self.orientation is not None and self.orientation not in {"+", "-"}:
            raise ValueError("orientation must be '+', '-', or None.")
        if self.reference not in ("query", "target"):
            raise ValueError("reference must be 'query' or 'target'.")

    # ---------- Construction ----------

    @classmethod
    def from_hsp(cls, hsp: Hsp, tool: str) -> "PairwiseAlignment":
        """Summarise an Hsp; the HSP itself is not modified."""
        q_fwd = hsp.q2 >= hsp.q1
        s_fwd = hsp.s2 >= hsp.s1
        orientation = None if tool in PROTEIN_PAIR_TOOLS else ("+" if q_fwd == s_fwd else "-")
        frame = hsp.dir if tool in ("blastx", "tblastn", "tblastx") and hsp.dir else None

        a = cls(
            score=hsp.scr,
            query_id=hsp.qid,
            query_start=min(hsp.q1, hsp.q2),
            query_end=max(hsp.q1, hsp.q2),
            target_id=hsp.sid,
            target_start=min(hsp.s1, hsp.s2),
            target_end=max(hsp.s1, hsp.s2),
            orientation=orientation,
            frame=frame,
            tool=tool,
            e_value=_to_float(normalize_evalue(hsp.e_val)),
            p_value=_to_float(normalize_evalue(hsp.p_val)),
            p_n=hsp.p_n,
            n_mat=hsp.n_mat,
            n_id=hsp.n_id,
            n_pos=hsp.n_pos,
            n_gap=hsp.n_gap,
            query_def=hsp.qdef,
            query_len=hsp.qlen,
            aligned_query_seq=hsp.qseq or None,
            target_def=hsp.sdef,
            target_len=hsp.slen,
            aligned_target_seq=hsp.sseq or None,
        )
        a.meta_update({
            "query_left": max(0, hsp.qlen - max(hsp.q1, hsp.q2)) if hsp.qlen else None,
            "subject_left": max(0, hsp.slen - max(hsp.s1, hsp.s2)) if hsp.slen else None,
        })
        return a

    # ---------- Metadata helpers ----------

    def meta_get(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)

    def meta_update(self, mapping: Mapping[str, Any]) -> None:
        self.meta.update(mapping)

    # ---------- Helpers ----------

    @property
    def query_len_1c(self) -> int:
        return self.query_end - self.query_start + 1

    @property
    def target_len_1c(self) -> int:
        return self.target_end - self.target_start + 1

    @property
    def identity(self) -> Optional[float]:
        """Fraction of aligned columns that are identical."""
        if not self.n_mat or self.n_id is None:
            return None
        return self.n_id / self.n_mat

    @property
    def positive_fraction(self) -> Optional[float]:
        if not self.n_mat:
            return None
        pos = self.n_pos if self.n_pos is not None else self.n_id
        return None if pos is None else pos / self.n_mat

    @property
    def query_coverage(self) -> Optional[float]:
        return self.query_len_1c / self.query_len if self.query_len else None

    @property
    def target_coverage(self) -> Optional[float]:
        return self.target_len_1c / self.target_len if self.target_len else None

    def has_aligned_strings(self) -> bool:
        return (
            self.aligned_query_seq is not None
            and self.aligned_target_seq is not None
            and len(self.aligned_query_seq) == len(self.aligned_target_seq)
        )

    def gap_stats(self) -> GapStats:
        """Substitution / insertion / deletion percentages from the aligned rows."""
        if not self.has_aligned_strings():
            return GapStats(None, None, None)
        q = self.aligned_query_seq or ""
        t = self.aligned_target_seq or ""

        ref_row, other = (q, t) if self.reference == "query" else (t, q)
        matches = mism = ins = dele = 0

        for a, b in zip(ref_row, other):
            if a == "-" and b == "-":
                continue  # tolerate double gaps
            if a == "-" and b != "-":
                ins += 1      # gap in REFERENCE row → insertion wrt reference
            elif a != "-" and b == "-":
                dele += 1     # gap in OTHER row     → deletion wrt reference
            else:
                if a.upper() == b.upper():
                    matches += 1
                else:
                    mism += 1

        ungapped = matches + mism
        total = ungapped + ins + dele
        perc_sub = (mism * 100.0 / ungapped) if ungapped else 0.0
        perc_ins = (ins * 100.0 / total) if total else 0.0
        perc_del = (dele * 100.0 / total) if total else 0.0
        return GapStats(perc_sub=perc_sub, perc_ins=perc_ins, perc_del=perc_del)

    def __repr__(self) -> str:
        import json
        return json.dumps(asdict(self), indent=4)


def _to_float(text: Optional[str]) -> Optional[float]:
    try:
        return float(text) if text else None
    except ValueError:
        return None
