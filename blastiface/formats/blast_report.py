# blastiface/formats/blast_report.py
"""
Incremental parser for BLAST pairwise text reports.

Both report flavours are understood:
  - legacy blastall (-m 0):  'Query: 1 ...', '(120 letters)', 'Length = 130'
  - BLAST+ (-outfmt 0):      'Query  1 ...', 'Length=120'

The parser is a plain generator over lines, so it works the same on a pipe
from a running process, an open file, a path, or a canned text block.
"""
from __future__ import annotations

import io
import os
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, TextIO, Tuple, Type, TypeVar, Union, overload

from blastiface.models.hsp import Hsp
from blastiface.models.pairwise_alignment import PairwiseAlignment

__all__ = ["blast_hsps", "decode"]

T = TypeVar("T", Hsp, PairwiseAlignment)

Source = Union[str, TextIO, Sequence[str]]

_QUERY_RE = re.compile(r"^Query=\s*(.*)$")
_LENGTH_RE = re.compile(r"^\s*Length\s*=\s*([\d,]+)")
_LETTERS_RE = re.compile(r"^\s*\(([\d,]+)\s+letters")
_SCORE_RE = re.compile(
    r"^\s*Score\s*=\s*([\d.eE+-]+)\s*bits\s*\(([\d.eE+]+)\),\s*"
    r"Expect(?:\((\d+)\))?\s*=\s*([^\s,]+)"
)
_IDENT_RE = re.compile(r"Identities\s*=\s*(\d+)/(\d+)")
_POS_RE = re.compile(r"Positives\s*=\s*(\d+)/(\d+)")
_GAPS_RE = re.compile(r"Gaps\s*=\s*(\d+)/(\d+)")
_STRAND_RE = re.compile(r"^\s*Strand\s*=\s*(Plus|Minus)\s*/\s*(Plus|Minus)", re.IGNORECASE)
_FRAME_RE = re.compile(r"^\s*Frame\s*=\s*([+-]\d)(?:\s*/\s*([+-]\d))?")
_ALIGN_RE = re.compile(r"^(Query|Sbjct):?\s+(\d+)\s+(\S+)\s+(\d+)\s*$")


# -------------------------
# Source helper (path, text, file-like, sequence-of-lines)
# -------------------------

def _clslines(source: Source) -> Iterator[str]:
    if isinstance(source, str):
        if "\n" not in source and os.path.isfile(source):
            with open(source, "r", encoding="utf-8", errors="replace") as f:
                yield from f
        else:
            yield from io.StringIO(source)
    else:
        yield from source


def _split_def(text: str) -> Tuple[str, str]:
    parts = text.strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def _length(line: str) -> Optional[int]:
    m = _LENGTH_RE.match(line) or _LETTERS_RE.match(line)
    return int(m.group(1).replace(",", "")) if m else None


@dataclass
class _Pending:
    """HSP fields collected so far; closed by the next Score/Query=/> line or end of input."""
    scr: float
    e_val: str
    p_n: int
    n_mat: int = 0
    n_id: int = 0
    n_pos: Optional[int] = None
    n_gap: int = 0
    dir: str = ""
    q1: Optional[int] = None
    q2: Optional[int] = None
    s1: Optional[int] = None
    s2: Optional[int] = None
    qseq: List[str] = field(default_factory=list)
    sseq: List[str] = field(default_factory=list)

    def add_row(self, which: str, start: int, seq: str, end: int) -> None:
        if which == "Query":
            if self.q1 is None:
                self.q1 = start
            self.q2 = end
            self.qseq.append(seq)
        else:
            if self.s1 is None:
                self.s1 = start
            self.s2 = end
            self.sseq.append(seq)


def blast_hsps(source: Source, include_self: bool = True) -> Iterator[Hsp]:
    """
    Yield one Hsp per alignment in a BLAST text report, in report order.

    Alignments of a sequence to itself (query id == subject id) are skipped
    unless include_self is true.
    """
    qid = qdef = sid = sdef = ""
    qlen = slen = 0
    header: Optional[str] = None     # 'query', 'query_len' or 'subject' while reading a definition
    pending: Optional[_Pending] = None

    def close() -> Optional[Hsp]:
        p = pending
        if p is None or p.q1 is None or p.s1 is None:
            return None
        if not include_self and qid == sid:
            return None
        qseq = "".join(p.qseq)
        return Hsp(
            qid=qid, qdef=qdef, qlen=qlen,
            sid=sid, sdef=sdef, slen=slen,
            scr=p.scr, e_val=p.e_val, p_n=p.p_n, p_val=p.e_val,
            n_mat=p.n_mat or len(qseq), n_id=p.n_id, n_pos=p.n_pos, n_gap=p.n_gap,
            dir=p.dir,
            q1=p.q1, q2=p.q2 if p.q2 is not None else p.q1, qseq=qseq,
            s1=p.s1, s2=p.s2 if p.s2 is not None else p.s1, sseq="".join(p.sseq),
        )

    for raw in _clslines(source):
        line = raw.rstrip("\r\n")

        m = _QUERY_RE.match(line)
        if m:
            hsp = close()
            pending = None
            if hsp:
                yield hsp
            qid, qdef = _split_def(m.group(1))
            qlen = 0
            sid = sdef = ""
            header = "query"
            continue

        if line.startswith(">"):
            hsp = close()
            pending = None
            if hsp:
                yield hsp
            sid, sdef = _split_def(line[1:])
            slen = 0
            header = "subject"
            continue

        if header is not None:
            n = _length(line)
            if n is not None:
                if header == "subject":
                    slen = n
                else:
                    qlen = n
                header = None
                continue
            text = line.strip()
            if not text:
                if header == "query":
                    header = "query_len"
                continue
            if header == "subject":
                if text.startswith(">"):
                    sdef = f"{sdef}\x01{text[1:].strip()}" if sdef or sid else text[1:].strip()
                else:
                    sdef = f"{sdef} {text}" if sdef else text
            elif header == "query":
                qdef = f"{qdef} {text}" if qdef else text
            continue

        m = _SCORE_RE.match(line)
        if m:
            hsp = close()
            if hsp:
                yield hsp
            pending = _Pending(
                scr=float(m.group(1)),
                e_val=m.group(4),
                p_n=int(m.group(3)) if m.group(3) else 1,
            )
            continue

        if pending is None:
            continue

        if "Identities" in line:
            m = _IDENT_RE.search(line)
            if m:
                pending.n_id, pending.n_mat = int(m.group(1)), int(m.group(2))
            m = _POS_RE.search(line)
            if m:
                pending.n_pos = int(m.group(1))
            m = _GAPS_RE.search(line)
            if m:
                pending.n_gap = int(m.group(1))
            continue

        m = _STRAND_RE.match(line)
        if m:
            pending.dir = "+" if m.group(1).lower() == m.group(2).lower() else "-"
            continue

        m = _FRAME_RE.match(line)
        if m:
            pending.dir = m.group(1) if m.group(2) is None else f"{m.group(1)}/{m.group(2)}"
            continue

        m = _ALIGN_RE.match(line)
        if m:
            pending.add_row(m.group(1), int(m.group(2)), m.group(3), int(m.group(4)))

    hsp = close()
    if hsp:
        yield hsp


# -------------------------
# Public API
# -------------------------

@overload
def decode(source: Source, *, include_self: bool = ..., cls: Type[Hsp] = ..., tool: str = ...) -> Iterator[Hsp]: ...
@overload
def decode(source: Source, *, include_self: bool = ..., cls: Type[PairwiseAlignment], tool: str = ...) -> Iterator[PairwiseAlignment]: ...

def decode(source: Source, *, include_self: bool = True, cls: Type[T] = Hsp, tool: str = "blastp") -> Iterator[T]:
    """
    Stream-decode a BLAST text report into Hsp (default) or PairwiseAlignment
    (cls=PairwiseAlignment, summarised for `tool`).
    """
    rec_iter = blast_hsps(source, include_self=include_self)

    if cls is Hsp:
        return rec_iter  # type: ignore[return-value]

    if cls is PairwiseAlignment:
        def _gen() -> Iterator[PairwiseAlignment]:
            for h in rec_iter:
                yield PairwiseAlignment.from_hsp(h, tool)
        return _gen()  # type: ignore[return-value]

    raise TypeError(f"Unsupported cls={cls!r}; expected Hsp or PairwiseAlignment")
