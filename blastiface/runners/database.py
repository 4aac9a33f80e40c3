# blastiface/runners/database.py
from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
import tempfile
from typing import List, Optional

from blastiface.errors import ExternalProcessError, FilesystemError, InputResolutionError, ToolNotFoundError
from blastiface.sequences.resolve import valid_fasta
from .executables import ExecutableResolver
from .options import BlastOptions

__all__ = [
    "PROTEIN_TOOLS",
    "SCRATCH_DB_PREFIX",
    "seq_type_for",
    "check_db",
    "verify_db",
    "get_db",
    "remove_blast_db_dir",
]

logger = logging.getLogger(__name__)

PROTEIN_TOOLS = frozenset({"blastp", "blastx", "psiblast"})

SCRATCH_DB_PREFIX = "tmp_blast_db_"
_SCRATCH_DB_RE = re.compile(r"^(.*[/\\]" + SCRATCH_DB_PREFIX + r"[^/\\]+)[/\\]db$")


def seq_type_for(tool: str) -> str:
    """'P' when the tool searches a protein database, 'N' otherwise."""
    return "P" if tool in PROTEIN_TOOLS else "N"


def _is_protein(seq_type: Optional[str]) -> bool:
    return not seq_type or seq_type[0] in "pP"


def _nonempty(path: str) -> bool:
    return os.path.isfile(path) and os.path.getsize(path) > 0


def check_db(db: Optional[str], seq_type: Optional[str] = "P") -> bool:
    """
    True when a formatted database exists for `db` and, if `db` is itself a
    sequence file, the index is not older than it.

    Single-volume (`db.psq`) and multi-volume (`db.00.psq`) layouts are
    recognised; nucleotide databases use `.nsq`. Freshness is a plain
    modification-time comparison.
    """
    if not db or not isinstance(db, str):
        return False
    suffix = "psq" if _is_protein(seq_type) else "nsq"
    raw_is_file = os.path.isfile(db)
    for idx in (f"{db}.{suffix}", f"{db}.00.{suffix}"):
        if not _nonempty(idx):
            continue
        if not raw_is_file or os.path.getmtime(idx) >= os.path.getmtime(db):
            return True
    return False


def _index_command(resolver: ExecutableResolver, fasta: str, protein: bool, prefer_plus: bool) -> List[str]:
    legacy = ("formatdb", lambda exe: [exe, "-p", "T" if protein else "F", "-i", fasta])
    modern = ("makeblastdb", lambda exe: [exe, "-dbtype", "prot" if protein else "nucl", "-in", fasta])
    for name, build in ((modern, legacy) if prefer_plus else (legacy, modern)):
        exe = resolver.find(name)
        if exe:
            return build(exe)
    raise ToolNotFoundError("Neither formatdb nor makeblastdb could be found")


def verify_db(
    db: str,
    seq_type: Optional[str] = "P",
    scratch_dir: Optional[str] = None,
    *,
    resolver: Optional[ExecutableResolver] = None,
    prefer_plus: bool = False,
) -> str:
    """
    Return a usable database name for the sequence file `db`, formatting it
    if needed.

    When the directory holding `db` is not writable the file is copied to
    `<scratch_dir>/db` and formatted there. Without a scratch directory a
    fresh `tmp_blast_db_<unique>` directory is made, which
    remove_blast_db_dir() can later delete.
    """
    if not db or not isinstance(db, str):
        raise InputResolutionError("No database name given")
    if check_db(db, seq_type):
        return db
    if not _nonempty(db):
        raise InputResolutionError(f"No sequence data for database {db!r}")

    directory = os.path.dirname(db) or "."
    if not os.access(directory, os.W_OK):
        try:
            if not scratch_dir:
                scratch_dir = tempfile.mkdtemp(prefix=SCRATCH_DB_PREFIX)
            elif not os.path.exists(scratch_dir):
                os.mkdir(scratch_dir)
        except OSError as e:
            raise FilesystemError(f"Could not create a directory for the blast database: {e}") from e
        if not os.path.isdir(scratch_dir) or not os.access(scratch_dir, os.W_OK):
            raise FilesystemError(f"No writable directory for the blast database: {scratch_dir!r}")

        new_db = os.path.join(scratch_dir, "db")
        try:
            shutil.copyfile(db, new_db)
        except OSError as e:
            raise FilesystemError(f"Failed to copy {db!r} to {new_db!r}: {e}") from e
        logger.info("Database %r copied to %r", db, new_db)
        db = new_db

    cmd = _index_command(resolver or ExecutableResolver(), db, _is_protein(seq_type), prefer_plus)
    try:
        rc = subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL).returncode
    except OSError as e:
        raise ExternalProcessError(f"Could not run {shlex.join(cmd)}: {e}", cmd) from e
    if rc != 0:
        raise ExternalProcessError(f"Index build failed with rc = {rc}: {shlex.join(cmd)}", cmd, rc)
    return db


def get_db(
    db: object,
    tool: str,
    scratch_dir: str,
    options: Optional[BlastOptions] = None,
    *,
    resolver: Optional[ExecutableResolver] = None,
) -> str:
    """Existing database names pass through; anything else is written out and formatted."""
    seq_type = seq_type_for(tool)
    if isinstance(db, str) and check_db(db, seq_type):
        return db
    db_file = valid_fasta(db, os.path.join(scratch_dir, "db"))
    prefer_plus = bool(options and options.blastplus and not options.blastall)
    return verify_db(db_file, seq_type, scratch_dir, resolver=resolver, prefer_plus=prefer_plus)


def remove_blast_db_dir(db: Optional[str]) -> bool:
    """
    Delete the scratch directory of a database made by verify_db().

    Only `<...>/tmp_blast_db_<x>/db` is accepted, and only when the directory
    holds nothing but `db` and `db.*` files. Returns True when removed.
    """
    if not db or not os.path.isfile(db):
        return False
    m = _SCRATCH_DB_RE.match(db)
    if not m:
        return False
    temp_dir = m.group(1)
    if not os.path.isdir(temp_dir):
        return False
    if any(not (n == "db" or n.startswith("db.")) for n in os.listdir(temp_dir)):
        return False
    try:
        shutil.rmtree(temp_dir)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", temp_dir, e)
        return False
    return True
