# blastiface/formats/blast_text.py
"""
Render Hsp records as BLAST-style pairwise alignment text.

    Query= q1 some protein
             (120 letters)

    >s7 subject definition
             Length = 131

     Score = 95.1 bits (190), Expect = 2e-21
     Identities = 50/100 (50%), Positives = 70/100 (70%), Gaps = 2/100 (2%)

    Query:   1 MKV...  60
               MK+...
    Subjt:   3 MKI...  62

Records for the same query (and subject) must be adjacent for the header
blocks to be shared; the order of `hsps` is kept.
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Tuple

from blastiface.models.hsp import Hsp, normalize_evalue
from blastiface.scoring.match_line import match_line

__all__ = ["hsps_to_text", "render_match_line", "html_esc", "evalue_text"]

# Tools whose query (first) or subject (second) axis is translated
_TRANSLATED_AXES: Dict[str, Tuple[bool, bool]] = {
    "blastx": (True, False),
    "tblastn": (False, True),
    "tblastx": (True, True),
}


def html_esc(text: Optional[str]) -> str:
    return (text or "").replace("&", "&amp;").replace(">", "&gt;").replace("<", "&lt;")


def _evalue(e_val: object) -> float:
    try:
        return float(normalize_evalue(str(e_val)))
    except ValueError:
        return 0.0


def evalue_text(e_val: object) -> str:
    """Short e-value text: '%.1f' from 0.1 up, '%.1e' below ('1e-05' rather than '1.0e-05')."""
    e = _evalue(e_val)
    if e >= 0.1:
        return f"{e:.1f}"
    if e > 0:
        return f"{e:.1e}".replace(".0e", "e")
    return "0.0"


def render_match_line(qseq: str, sseq: str, tool: str = "blastp") -> str:
    """Middle line for one HSP: '|' identities for blastn, BLOSUM62 letters/'+' otherwise."""
    return match_line(qseq, sseq, protein=(tool != "blastn"))


def _pct(n: Optional[int], of: int) -> int:
    return int(100 * n / of) if of and n else 0


def _chunks(s: str, n: int) -> List[str]:
    return [s[i:i + n] for i in range(0, len(s), n)]


def _summary_tables(hsps: List[Hsp]) -> Dict[str, str]:
    rows: Dict[str, List[str]] = {}
    seen = set()
    for h in hsps:
        if (h.qid, h.sid) in seen:
            continue
        seen.add((h.qid, h.sid))
        sdef = html_esc(h.sdef.replace("\x01", "; "))
        rows.setdefault(h.qid, []).append(
            "  <TR>\n"
            f"    <TD NoWrap>{html_esc(h.sid)}</TD>\n"
            f"    <TD>{sdef}</TD>\n"
            f"    <TD Align=right NoWrap>{h.scr}</TD>\n"
            f"    <TD Align=right NoWrap>{evalue_text(h.e_val)}</TD>\n"
            "  </TR>\n"
        )

    tables = {}
    for qid, body in rows.items():
        tables[qid] = "".join([
            "</PRE>High-scoring matches:<BR />",
            "<TABLE>\n",
            "<TABLEBODY>\n",
            "<TR>\n",
            "    <TD NoWrap><BR />Subject ID</TD>\n",
            "    <TD><BR />Description</TD>\n",
            "    <TD Align=center NoWrap>Bit<BR />score</TD>\n",
            "    <TD Align=right NoWrap><BR />E-value</TD>\n",
            "  </TR>\n",
            *body,
            "</TABLEBODY>\n",
            "</TABLE><PRE>\n",
        ])
    return tables


def _hsp_block(h: Hsp, tool: str, per_line: int) -> List[str]:
    out: List[str] = []
    out.append(f" Score = {h.scr:.1f} bits ({int(2 * h.scr)}), Expect = {evalue_text(h.e_val)}\n")

    line = f" Identities = {h.n_id}/{h.n_mat} ({_pct(h.n_id, h.n_mat)}%)"
    if h.n_pos:
        line += f", Positives = {h.n_pos}/{h.n_mat} ({_pct(h.n_pos, h.n_mat)}%)"
    line += f", Gaps = {h.n_gap}/{h.n_mat} ({_pct(h.n_gap, h.n_mat)}%)\n"
    out.append(line)

    if tool == "blastn":
        q_strand = "Plus" if h.q2 >= h.q1 else "Minus"
        s_strand = "Plus" if h.s2 >= h.s1 else "Minus"
        out.append(f" Strand = {q_strand} / {s_strand}\n\n")
    elif tool in ("blastx", "tblastn"):
        out.append(f" Frame = {h.dir}\n\n")
    else:
        out.append("\n")

    q_trans, s_trans = _TRANSLATED_AXES.get(tool, (False, False))
    q_step = 3 if q_trans else 1
    s_step = 3 if s_trans else 1
    q_dir = 1 if h.q2 >= h.q1 else -1
    s_dir = 1 if h.s2 >= h.s1 else -1

    ndig = int(math.log10(max(h.q1, h.q2, h.s1, h.s2) + 0.5)) + 1
    sp = " " * ndig

    match = render_match_line(h.qseq, h.sseq, tool)
    q_rows = _chunks(h.qseq, per_line)
    s_rows = _chunks(h.sseq, per_line)
    m_rows = _chunks(match, per_line)

    q1, s1 = h.q1, h.s1
    for i, qs in enumerate(q_rows):
        ss = s_rows[i] if i < len(s_rows) else ""
        ms = m_rows[i] if i < len(m_rows) else ""
        q_next = q1 + (len(qs) - qs.count("-")) * q_step * q_dir
        s_next = s1 + (len(ss) - ss.count("-")) * s_step * s_dir
        out.append(f"Query: {q1:{ndig}d} {qs} {q_next - q_dir:{ndig}d}\n")
        out.append(f"       {sp} {ms}\n")
        out.append(f"Subjt: {s1:{ndig}d} {ss} {s_next - s_dir:{ndig}d}\n\n")
        q1, s1 = q_next, s_next

    out.append("\n")
    return out


def hsps_to_text(
    hsps: Iterable[Hsp],
    tool: str = "blastp",
    per_line: int = 60,
    html_summary: bool = False,
) -> str:
    """
    Human-readable alignment text for `hsps`.

    With html_summary=True a table of the best hit per subject is emitted
    after each query header (for embedding in an HTML <PRE> block).
    """
    records = list(hsps)
    if not records:
        return ""
    tool = (tool or "blastp").lower()
    per_line = per_line or 60

    summary = _summary_tables(records) if html_summary else {}

    out: List[str] = []
    qid: Optional[str] = None
    sid: Optional[str] = None
    for h in records:
        if h.qid != qid:
            qid = h.qid
            out.append(f"Query= {h.qid} {h.qdef}\n" if h.qdef else f"Query= {h.qid}\n")
            out.append(f"         ({h.qlen} letters)\n\n")
            if qid in summary:
                out.append(summary[qid])
            sid = None

        if h.sid != sid:
            sid = h.sid
            desc = h.sid
            if h.sdef:
                desc += " " + "\n ".join(h.sdef.split("\x01"))
            out.append(f">{desc}\n")
            out.append(f"         Length = {h.slen}\n\n")

        out.extend(_hsp_block(h, tool, per_line))

    return "".join(out)
