# blastiface/sequences/resolve.py
from __future__ import annotations

import logging
import os
import sys

from blastiface.errors import InputResolutionError
from .base import FastaFile, InMemorySequences, OpenStream, Stdin, as_source
from .fasta import read_fasta, write_fasta

__all__ = ["valid_fasta"]

logger = logging.getLogger(__name__)


def valid_fasta(source: object, dest_path: str) -> str:
    """
    Return the path of a FASTA file holding the data of `source`.

    A non-empty existing file is used where it is. In-memory records, open
    streams and stdin are written to `dest_path`, which is the only file this
    function may create. Raises InputResolutionError when no data are found.
    """
    src = as_source(source)

    if isinstance(src, FastaFile):
        if src.path and os.path.isfile(src.path) and os.path.getsize(src.path) > 0:
            return src.path
        raise InputResolutionError(f"No sequence data in file {src.path!r}")

    if isinstance(src, InMemorySequences):
        records = list(src.records)
    elif isinstance(src, OpenStream):
        records = read_fasta(src.handle)
    elif isinstance(src, Stdin):
        records = read_fasta(sys.stdin)
    else:
        raise InputResolutionError(f"Unsupported sequence source {src!r}")

    if not records:
        raise InputResolutionError(f"No sequences found in {type(src).__name__} source")

    write_fasta(dest_path, records)
    logger.debug("Wrote %d sequence(s) to %s", len(records), dest_path)
    return dest_path
