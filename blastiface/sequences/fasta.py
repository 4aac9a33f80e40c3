# blastiface/sequences/fasta.py
from __future__ import annotations

import io
import os
import re
from typing import Iterable, Iterator, List, Optional, TextIO, Union

from .base import SequenceRecord

__all__ = ["iter_fasta", "read_fasta", "write_fasta", "pack_sequences"]

FastaInput = Union[str, os.PathLike, TextIO]

_NON_LETTERS = re.compile(r"[^A-Za-z]+")


def _lines(source: FastaInput) -> Iterator[str]:
    """
    Yield lines from a path, a text handle, or a text block (str containing
    a newline and starting with '>').
    """
    if isinstance(source, (str, os.PathLike)):
        s = os.fspath(source)
        if s.startswith(">") and "\n" in s:
            yield from io.StringIO(s)
            return
        with open(s, "rt", encoding="utf-8", errors="replace") as fh:
            yield from fh
    else:
        yield from source


def iter_fasta(source: FastaInput) -> Iterator[SequenceRecord]:
    """Stream FASTA records; the header is split into id and definition at the first whitespace."""
    header: Optional[str] = None
    chunks: List[str] = []
    for line in _lines(source):
        if line.startswith(">"):
            if header is not None:
                yield _record(header, chunks)
            header = line[1:].strip()
            chunks = []
        elif header is not None:
            chunks.append(line.strip())
    if header is not None:
        yield _record(header, chunks)


def _record(header: str, chunks: List[str]) -> SequenceRecord:
    parts = header.split(None, 1)
    seq_id = parts[0] if parts else ""
    definition = parts[1] if len(parts) > 1 else ""
    return SequenceRecord(seq_id, definition, "".join(chunks).replace(" ", ""))


def read_fasta(source: FastaInput) -> List[SequenceRecord]:
    return list(iter_fasta(source))


def write_fasta(sink: Union[str, os.PathLike, TextIO], records: Iterable[SequenceRecord], line_len: int = 60) -> None:
    """Write records to a path or a text handle, wrapping residues at line_len."""
    def _write(fp: TextIO) -> None:
        for seq_id, definition, seq in records:
            fp.write(f">{seq_id} {definition}\n" if definition else f">{seq_id}\n")
            for i in range(0, len(seq), line_len):
                fp.write(seq[i:i + line_len] + "\n")

    if isinstance(sink, (str, os.PathLike)):
        with open(sink, "wt", encoding="utf-8") as f:
            _write(f)
    else:
        _write(sink)


def pack_sequences(records: Iterable[SequenceRecord]) -> List[SequenceRecord]:
    """Strip gaps and any other non-letter characters from each sequence."""
    return [SequenceRecord(r[0], r[1], _NON_LETTERS.sub("", r[2])) for r in records]
