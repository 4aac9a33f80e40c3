import io
import sys

import pytest

from blastiface.errors import InputResolutionError, ValidationError
from blastiface.sequences.base import (
    FastaFile, InMemorySequences, OpenStream, SequenceRecord, Stdin, as_source, is_stdin,
)
from blastiface.sequences.fasta import iter_fasta, pack_sequences, read_fasta, write_fasta
from blastiface.sequences.resolve import valid_fasta


def _write(path, text: str) -> str:
    with open(path, "wt") as f:
        f.write(text)
    return str(path)


# ---------- source coercion ----------

@pytest.mark.parametrize("obj", [None, "", "-", Stdin()])
def test_stdin_spellings(obj):
    assert is_stdin(obj)
    assert isinstance(as_source(obj), Stdin)


def test_sys_stdin_handle(monkeypatch):
    fake = io.StringIO("")
    monkeypatch.setattr(sys, "stdin", fake)
    assert is_stdin(fake)
    assert isinstance(as_source(fake), Stdin)


def test_as_source_variants(tmp_path):
    assert as_source("x.fa") == FastaFile("x.fa")
    assert as_source(tmp_path / "y.fa") == FastaFile(str(tmp_path / "y.fa"))

    handle = io.StringIO(">a\nAC\n")
    assert as_source(handle) == OpenStream(handle)

    one = as_source(("a", "first", "ACGT"))
    assert one == InMemorySequences((SequenceRecord("a", "first", "ACGT"),))

    many = as_source([("a", "", "AC"), ["b", "x", "GT"]])
    assert [r.id for r in many.records] == ["a", "b"]

    src = FastaFile("z.fa")
    assert as_source(src) is src


def test_as_source_rejects_bad_input():
    with pytest.raises(ValidationError):
        as_source([("a", "", "AC"), ("b", "GT")])
    with pytest.raises(ValidationError):
        as_source(42)


# ---------- FASTA reading and writing ----------

def test_read_fasta_splits_header_and_joins_lines(tmp_path):
    fa = _write(tmp_path / "x.fa", "junk before\n>chr1 first sequence\nACGT\nAC GT\n>chr2\nNNNN\n>chr1 dup\nA\n")
    recs = read_fasta(fa)
    assert recs == [
        ("chr1", "first sequence", "ACGTACGT"),
        ("chr2", "", "NNNN"),
        ("chr1", "dup", "A"),
    ]


def test_iter_fasta_accepts_text_and_handles():
    text = ">a one\nMK\nVL\n>b\nAA\n"
    assert list(iter_fasta(text)) == list(iter_fasta(io.StringIO(text)))
    assert [r.sequence for r in iter_fasta(text)] == ["MKVL", "AA"]


def test_write_fasta_wraps_lines():
    out = io.StringIO()
    write_fasta(out, [SequenceRecord("a", "desc", "ACGTACGTAC"), SequenceRecord("b", "", "GG")], line_len=4)
    assert out.getvalue() == ">a desc\nACGT\nACGT\nAC\n>b\nGG\n"


def test_pack_sequences():
    packed = pack_sequences([("a", "d", "MK-V.L*A"), ("b", "", "--")])
    assert packed == [("a", "d", "MKVLA"), ("b", "", "")]


# ---------- valid_fasta ----------

def test_existing_file_is_used_in_place(tmp_path):
    fa = _write(tmp_path / "x.fa", ">a\nACGT\n")
    dest = tmp_path / "dest"
    assert valid_fasta(fa, str(dest)) == fa
    assert not dest.exists()


def test_empty_or_missing_file_raises(tmp_path):
    empty = _write(tmp_path / "empty.fa", "")
    with pytest.raises(InputResolutionError):
        valid_fasta(empty, str(tmp_path / "dest"))
    with pytest.raises(InputResolutionError):
        valid_fasta(str(tmp_path / "missing.fa"), str(tmp_path / "dest"))


def test_records_and_streams_are_written_out(tmp_path):
    dest = tmp_path / "dest"
    assert valid_fasta([("a", "first", "ACGT")], str(dest)) == str(dest)
    assert dest.read_text() == ">a first\nACGT\n"

    valid_fasta(io.StringIO(">b\nGG\nCC\n"), str(dest))
    assert dest.read_text() == ">b\nGGCC\n"


def test_stdin_is_written_out(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(">s\nMKV\n"))
    dest = tmp_path / "dest"
    valid_fasta("-", str(dest))
    assert dest.read_text() == ">s\nMKV\n"


def test_no_records_raises(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
    with pytest.raises(InputResolutionError):
        valid_fasta(None, str(tmp_path / "dest"))
    with pytest.raises(InputResolutionError):
        valid_fasta([], str(tmp_path / "dest"))
    assert not (tmp_path / "dest").exists()
