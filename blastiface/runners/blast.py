# blastiface/runners/blast.py
"""
Search entry points.

    from blastiface.runners.blast import blastp

    hits = blastp("query.fa", "proteins.fa", {"maxE": 1e-5, "outForm": "hsp"})

A request runs: query resolution, database resolution (formatting the
database in a scratch directory when needed), command construction, the
search itself, then filtering and formatting of each HSP. The scratch
directory is removed at the end unless `save_dir` is set or the caller
supplied it as `tmp_dir`.

The public functions never raise BlastInterfaceError: failures are logged
and an empty list is returned.
"""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Union

from blastiface.errors import BlastInterfaceError, ExternalProcessError, FilesystemError, ToolNotFoundError, ValidationError
from blastiface.formats.blast_report import blast_hsps
from blastiface.formats.pssm import copy_pssm
from blastiface.models.hsp import Hsp
from blastiface.models.pairwise_alignment import PairwiseAlignment
from blastiface.sequences.base import is_stdin
from blastiface.sequences.fasta import pack_sequences, read_fasta, write_fasta
from blastiface.sequences.resolve import valid_fasta
from .command import SUPPORTED_TOOLS, build_command
from .database import get_db
from .executables import ExecutableResolver
from .filtering import format_hsp, keep_hsp
from .options import BlastOptions, canonicalize, include_self_policy

__all__ = [
    "ScratchDirectory",
    "iter_hsps",
    "run_blast",
    "blast",
    "blastn",
    "blastp",
    "blastx",
    "tblastn",
    "tblastx",
    "psiblast",
    "rpsblast",
    "alignment_to_pssm",
]

logger = logging.getLogger(__name__)

RawOptions = Union[Mapping[str, Any], BlastOptions, None]
Result = Union[Hsp, PairwiseAlignment]


class ScratchDirectory:
    """
    Request-scoped working directory.

    Without `tmp_dir` a fresh directory is made and owned by the request; it
    is removed on exit unless `save_dir` is true. A caller-supplied
    `tmp_dir` is created if missing but never removed.
    """

    def __init__(self, tmp_dir: Optional[str] = None, save_dir: bool = False, prefix: str = "blastiface_"):
        self.tmp_dir = tmp_dir
        self.save_dir = save_dir
        self.prefix = prefix
        self.path: Optional[str] = None
        self.owned = False

    def __enter__(self) -> str:
        try:
            if self.tmp_dir:
                os.makedirs(self.tmp_dir, exist_ok=True)
                self.path = self.tmp_dir
            else:
                self.path = tempfile.mkdtemp(prefix=self.prefix)
                self.owned = True
        except OSError as e:
            raise FilesystemError(f"Could not create scratch directory: {e}") from e
        return self.path

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.owned and self.path:
            if self.save_dir:
                logger.info("Keeping scratch directory %s", self.path)
            else:
                try:
                    shutil.rmtree(self.path)
                except OSError as e:
                    logger.warning("Failed to remove scratch directory %s: %s", self.path, e)
        return False


# ---------------------------
# Process runner
# ---------------------------

def iter_hsps(command: Sequence[str], *, include_self: bool, warnings: bool = False) -> Iterator[Hsp]:
    """
    Run `command` and yield HSPs from its report as they arrive.

    stderr is discarded unless `warnings`. Closing the generator early
    terminates the process. A non-zero exit raises ExternalProcessError
    once the report is exhausted.
    """
    cmd = list(command)
    try:
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=None if warnings else subprocess.DEVNULL,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,   # line-buffered
        )
    except OSError as e:
        raise ExternalProcessError(f"Could not run {shlex.join(cmd)}: {e}", cmd) from e

    assert proc.stdout is not None

    drained = False
    try:
        yield from blast_hsps(proc.stdout, include_self=include_self)
        drained = True
    finally:
        if not drained and proc.poll() is None:
            proc.terminate()
        proc.stdout.close()
        rc = proc.wait()

    if rc != 0:
        raise ExternalProcessError(
            f"{os.path.basename(cmd[0])} exited with code {rc}: {shlex.join(cmd)}", cmd, rc
        )


def run_blast(
    query_path: str,
    db_path: str,
    tool: str,
    options: RawOptions = None,
    *,
    scratch_dir: Optional[str] = None,
    resolver: Optional[ExecutableResolver] = None,
) -> List[Result]:
    """Search formatted inputs; filtered, formatted results in report order."""
    o = canonicalize(options)
    cmd = build_command(query_path, db_path, tool, o, scratch_dir=scratch_dir, resolver=resolver)
    include_self = include_self_policy(o, query_path, db_path)

    return [
        format_hsp(hsp, tool, o)
        for hsp in iter_hsps(cmd, include_self=include_self, warnings=bool(o.warnings))
        if keep_hsp(hsp, o)
    ]


# ---------------------------
# Public API
# ---------------------------

def _merge(options: RawOptions, kwargs: Mapping[str, Any]) -> Mapping[str, Any]:
    raw = dict(options.to_dict() if isinstance(options, BlastOptions) else (options or {}))
    raw.update(kwargs)
    return raw


def blast(
    query: object,
    db: object,
    tool: str,
    options: RawOptions = None,
    *,
    resolver: Optional[ExecutableResolver] = None,
    **kwargs: Any,
) -> List[Result]:
    """
    Run one search.

    `query` and `db` may be a FASTA path, an open handle, one (id, def, seq)
    triple, a list of triples, or None/'-'/sys.stdin for standard input;
    `db` may also name a formatted database. When both are stdin the
    database is the query set itself. Options may be given as a mapping
    (any alias), a BlastOptions, keyword arguments, or a mix.

    Returns Hsp records (outForm 'hsp') or PairwiseAlignment objects; an
    empty list on any failure.
    """
    tool = (tool or "").lower()
    try:
        o = canonicalize(_merge(options, kwargs))
        if tool not in SUPPORTED_TOOLS:
            raise ValidationError(f"Invalid blast program {tool!r}")

        with ScratchDirectory(o.tmp_dir, save_dir=bool(o.save_dir)) as scratch:
            query_path = valid_fasta(query, os.path.join(scratch, "query"))
            db_source = query_path if is_stdin(query) and is_stdin(db) else db
            db_path = get_db(db_source, tool, scratch, o, resolver=resolver)
            return run_blast(query_path, db_path, tool, o, scratch_dir=scratch, resolver=resolver)
    except BlastInterfaceError as e:
        logger.warning("%s search failed: %s", tool or "blast", e)
        return []


def blastn(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "blastn", options, **kwargs)


def blastp(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "blastp", options, **kwargs)


def blastx(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "blastx", options, **kwargs)


def tblastn(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "tblastn", options, **kwargs)


def tblastx(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "tblastx", options, **kwargs)


def psiblast(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "psiblast", options, **kwargs)


def rpsblast(query: object, db: object, options: RawOptions = None, **kwargs: Any) -> List[Result]:
    return blast(query, db, "rpsblast", options, **kwargs)


def alignment_to_pssm(
    alignment: object,
    out_pssm: Any = None,
    title: Optional[str] = None,
    options: RawOptions = None,
    *,
    resolver: Optional[ExecutableResolver] = None,
) -> bool:
    """
    Convert a multiple alignment into a psiblast PSSM.

    The first alignment row (gaps removed) is the subject. The PSSM is
    written to `out_pssm` (path or handle; options' out_pssm, else stdout)
    without its intermediateData block. Returns False on failure.
    """
    try:
        o = canonicalize(options)
        sink = out_pssm if out_pssm is not None else o.out_pssm

        with ScratchDirectory(o.tmp_dir, save_dir=bool(o.save_dir)) as scratch:
            align_path = valid_fasta(alignment, os.path.join(scratch, "align"))
            subject_path = os.path.join(scratch, "subject")
            write_fasta(subject_path, pack_sequences(read_fasta(align_path)[:1]))
            pssm_path = os.path.join(scratch, "pssm")

            exe = (resolver or ExecutableResolver()).find("psiblast")
            if not exe:
                raise ToolNotFoundError("psiblast executable not found")
            cmd = [exe, "-in_msa", align_path, "-subject", subject_path, "-out_pssm", pssm_path]
            try:
                rc = subprocess.run(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL).returncode
            except OSError as e:
                raise ExternalProcessError(f"Could not run {shlex.join(cmd)}: {e}", cmd) from e
            if rc != 0:
                raise ExternalProcessError(f"psiblast failed with rc = {rc}: {shlex.join(cmd)}", cmd, rc)

            with open(pssm_path, "r", encoding="utf-8", errors="replace") as fh:
                copy_pssm(fh, sink, title)
    except BlastInterfaceError as e:
        logger.warning("alignment_to_pssm failed: %s", e)
        return False
    return True
