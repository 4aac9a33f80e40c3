# blastiface/formats/pseudoclustal.py
"""
Pseudo-clustal alignment text: blocks of `<id>  <residues>` lines, one
line per sequence, blocks separated by a blank line. There is no header and
no conservation line.

    seqA  MKV-LLAG
    seqB  MKVQLL-G

    seqA  TTR
    seqB  TSR
"""
from __future__ import annotations

import io
import os
import re
import sys
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, TextIO, Union

from blastiface.errors import ValidationError
from blastiface.sequences.base import SequenceRecord

__all__ = ["write_pseudoclustal", "read_pseudoclustal"]

_ROW_RE = re.compile(r"^(\S+)\s+(\S.*)$")


def _apply_case(s: str, case: Optional[str]) -> str:
    if case == "upper":
        return s.upper()
    if case == "lower":
        return s.lower()
    return s


def _render(alignment: Sequence[SequenceRecord], line_len: int, case: Optional[str]) -> Iterator[str]:
    width = max(len(rec[0]) for rec in alignment)
    rows: List[List[str]] = []
    for rec in alignment:
        seq = _apply_case(rec[2], case)
        rows.append([f"{rec[0]:<{width}}  {seq[i:i + line_len]}\n" for i in range(0, len(seq), line_len)])

    for i in range(len(rows[0])):
        for r in rows:
            if i < len(r):
                yield r[i]
        yield "\n"


def write_pseudoclustal(
    alignment: Sequence[SequenceRecord],
    sink: Union[str, os.PathLike, TextIO, None] = None,
    line_len: int = 60,
    case: Optional[str] = None,
) -> None:
    """
    Write `alignment` (a list of (id, def, seq) records) to a path, an open
    handle, or stdout. `case` may be 'upper' or 'lower' to recase residues.
    """
    if not alignment:
        raise ValidationError("write_pseudoclustal called with an empty alignment")
    if case not in (None, "upper", "lower"):
        raise ValidationError(f"case must be 'upper' or 'lower', got {case!r}")

    lines = _render(alignment, line_len or 60, case)
    if sink is None:
        sys.stdout.writelines(lines)
    elif isinstance(sink, (str, os.PathLike)):
        with open(sink, "w", encoding="utf-8") as fh:
            fh.writelines(lines)
    else:
        sink.writelines(lines)


def _lines(source: Union[str, os.PathLike, TextIO, Iterable[str], None]) -> Iterator[str]:
    if source is None:
        yield from sys.stdin
    elif isinstance(source, (str, os.PathLike)):
        s = os.fspath(source)
        if "\n" in s:
            yield from io.StringIO(s)
            return
        with open(s, "r", encoding="utf-8", errors="replace") as fh:
            yield from fh
    else:
        yield from source


def read_pseudoclustal(source: Union[str, os.PathLike, TextIO, Iterable[str], None] = None) -> List[SequenceRecord]:
    """Records in order of first appearance; definitions are empty."""
    seqs: Dict[str, List[str]] = {}
    for line in _lines(source):
        m = _ROW_RE.match(line.rstrip("\n"))
        if not m:
            continue
        seqs.setdefault(m.group(1), []).append(re.sub(r"\s+", "", m.group(2)))
    return [SequenceRecord(sid, "", "".join(parts)) for sid, parts in seqs.items()]
