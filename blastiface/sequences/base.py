# blastiface/sequences/base.py
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import List, NamedTuple, TextIO, Tuple, Union

from blastiface.errors import ValidationError

__all__ = [
    "SequenceRecord",
    "FastaFile",
    "OpenStream",
    "InMemorySequences",
    "Stdin",
    "SequenceSource",
    "as_source",
    "is_stdin",
]


class SequenceRecord(NamedTuple):
    """(id, definition, sequence) triple; ids are not required to be unique."""
    id: str
    definition: str
    sequence: str


@dataclass(frozen=True)
class FastaFile:
    path: str


@dataclass(frozen=True)
class OpenStream:
    handle: TextIO


@dataclass(frozen=True)
class InMemorySequences:
    records: Tuple[SequenceRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Stdin:
    pass


SequenceSource = Union[FastaFile, OpenStream, InMemorySequences, Stdin]

_VARIANTS = (FastaFile, OpenStream, InMemorySequences, Stdin)


def _is_triple(obj: object) -> bool:
    return (
        isinstance(obj, (tuple, list))
        and len(obj) == 3
        and all(isinstance(x, str) for x in obj)
    )


def is_stdin(obj: object) -> bool:
    """None, '', '-', sys.stdin and Stdin() all mean standard input."""
    if obj is None or isinstance(obj, Stdin):
        return True
    if isinstance(obj, str):
        return obj in ("", "-")
    return obj is sys.stdin or obj is getattr(sys, "__stdin__", None)


def as_source(obj: object) -> SequenceSource:
    """
    Coerce the loose inputs accepted by the public API into a SequenceSource:
      - an existing variant is returned as-is,
      - None / '' / '-' / sys.stdin  -> Stdin(),
      - str or os.PathLike            -> FastaFile,
      - object with .read             -> OpenStream,
      - one (id, def, seq) triple     -> InMemorySequences of one record,
      - list/tuple of triples         -> InMemorySequences.
    """
    if isinstance(obj, _VARIANTS):
        return obj  # type: ignore[return-value]
    if is_stdin(obj):
        return Stdin()
    if isinstance(obj, (str, os.PathLike)):
        return FastaFile(os.fspath(obj))
    if hasattr(obj, "read"):
        return OpenStream(obj)  # type: ignore[arg-type]
    if _is_triple(obj):
        return InMemorySequences((SequenceRecord(*obj),))  # type: ignore[misc]
    if isinstance(obj, (list, tuple)):
        recs: List[SequenceRecord] = []
        for item in obj:
            if not _is_triple(item):
                raise ValidationError(f"Not a sequence triple: {item!r}")
            recs.append(SequenceRecord(*item))
        return InMemorySequences(tuple(recs))
    raise ValidationError(f"Unsupported sequence source: {type(obj).__name__}")


