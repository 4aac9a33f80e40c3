import io
import os
import sys

import pytest

from blastiface.errors import ExternalProcessError
from blastiface.models.hsp import Hsp
from blastiface.models.pairwise_alignment import PairwiseAlignment
from blastiface.runners import blast as runner
from blastiface.runners.blast import ScratchDirectory, alignment_to_pssm, blastp, iter_hsps, run_blast


QUERY = [("q1", "test protein one", "MKVLAGTTRWQEHNDYFPIS")]


@pytest.fixture
def report(test_data_dir):
    return str(test_data_dir / "blastp_plus.txt")


@pytest.fixture
def blastall(fake_tool, report, tmp_path):
    """blastall that records its arguments and prints the canned report."""
    args_file = tmp_path / "blastall.args"
    fake_tool("blastall", f'echo "$@" > "{args_file}"\ncat "{report}"')
    return args_file


# ---------- ScratchDirectory ----------

def test_owned_scratch_is_removed():
    with ScratchDirectory() as d:
        assert os.path.isdir(d)
    assert not os.path.exists(d)


def test_saved_scratch_is_kept():
    with ScratchDirectory(save_dir=True) as d:
        pass
    assert os.path.isdir(d)
    os.rmdir(d)


def test_caller_scratch_is_never_removed(tmp_path):
    mine = tmp_path / "mine"
    with ScratchDirectory(str(mine)) as d:
        assert d == str(mine)
        (mine / "file").write_text("x")
    assert (mine / "file").exists()


# ---------- process runner ----------

def test_iter_hsps_streams_report(report):
    hsps = list(iter_hsps(["cat", report], include_self=True))
    assert len(hsps) == 3
    assert all(isinstance(h, Hsp) for h in hsps)


def test_iter_hsps_nonzero_exit(fake_tool):
    exe = fake_tool("broken", "echo oops >&2\nexit 3")
    with pytest.raises(ExternalProcessError) as ei:
        list(iter_hsps([exe, "-x"], include_self=True))
    assert ei.value.returncode == 3
    assert ei.value.command == [exe, "-x"]
    assert "-x" in str(ei.value)


def test_iter_hsps_missing_program(tmp_path):
    with pytest.raises(ExternalProcessError):
        list(iter_hsps([str(tmp_path / "no-such-program")], include_self=True))


def test_iter_hsps_early_close_terminates(fake_tool, report):
    exe = fake_tool("slow", f'cat "{report}"\nsleep 30')
    it = iter_hsps([exe], include_self=True)
    assert next(it).sid == "q1"
    it.close()   # must not wait for the sleep


# ---------- run_blast ----------

def test_run_blast_self_hit_policy(blastall, resolver, tmp_path, fasta_file):
    q = fasta_file(tmp_path / "q.fa", [("q1", "MKV")])
    other = fasta_file(tmp_path / "db.fa", [("s2", "MKV")])

    same = run_blast(q, q, "blastp", {"outForm": "hsp"}, resolver=resolver)
    assert [h.sid for h in same] == ["s2", "s2"]

    distinct = run_blast(q, other, "blastp", {"outForm": "hsp"}, resolver=resolver)
    assert [h.sid for h in distinct] == ["q1", "s2", "s2"]

    forced = run_blast(q, q, "blastp", {"outForm": "hsp", "includeSelf": 1}, resolver=resolver)
    assert len(forced) == 3


def test_run_blast_filters_and_formats(blastall, resolver):
    alns = run_blast("q.fa", "db.fa", "blastp", {"minScr": 25}, resolver=resolver)
    assert [a.target_id for a in alns] == ["q1", "s2"]
    assert all(isinstance(a, PairwiseAlignment) for a in alns)
    assert blastall.read_text().split()[:7] == ["-p", "blastp", "-d", "db.fa", "-i", "q.fa", "-e"]


# ---------- public entry points ----------

def test_blastp_end_to_end(blastall, formatdb, resolver, tmp_path, fasta_file):
    db = fasta_file(tmp_path / "db.fa", [("s2", "MKVIAGSTRWLEHSDYPIT")])
    hits = blastp(QUERY, db, {"maxE": 1e-3, "outForm": "hsp"}, resolver=resolver)
    assert [h.sid for h in hits] == ["q1", "s2", "s2"]
    assert (tmp_path / "db.fa.psq").exists()
    args = blastall.read_text().split()
    assert args[args.index("-d") + 1] == db
    assert args[args.index("-e") + 1] == "0.001"


def test_blastp_keyword_options(blastall, formatdb, resolver, tmp_path, fasta_file):
    db = fasta_file(tmp_path / "db.fa", [("s2", "MKV")])
    hits = blastp(QUERY, db, outForm="hsp", minIden=0.9, resolver=resolver)
    assert [h.sid for h in hits] == ["q1"]


def test_blast_keeps_caller_tmp_dir(blastall, formatdb, resolver, tmp_path, fasta_file):
    db = fasta_file(tmp_path / "db.fa", [("s2", "MKV")])
    work = tmp_path / "work"
    blastp(QUERY, db, {"tmpDir": str(work)}, resolver=resolver)
    assert (work / "query").read_text() == ">q1 test protein one\nMKVLAGTTRWQEHNDYFPIS\n"


def test_stdin_query_and_db_are_unified(blastall, formatdb, resolver, monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO(">q1\nMKVLAG\n>s2\nMKVIAG\n"))
    hits = runner.blast(None, "-", "blastp", {"outForm": "hsp"}, resolver=resolver)
    # query and database are the same file, so the q1/q1 self hit is dropped
    assert [h.sid for h in hits] == ["s2", "s2"]


def test_failures_return_empty_list(fake_tool, formatdb, resolver, tmp_path, fasta_file, caplog):
    db = fasta_file(tmp_path / "db.fa", [("s2", "MKV")])

    assert runner.blast(QUERY, db, "megablast", resolver=resolver) == []
    assert blastp(QUERY, db, {"outForm": "xml"}, resolver=resolver) == []
    assert blastp([], db, resolver=resolver) == []
    assert blastp(QUERY, str(tmp_path / "missing.fa"), resolver=resolver) == []
    assert blastp(QUERY, db, resolver=resolver) == []          # no blastall or blastp

    exe = fake_tool("blastall", "exit 1")
    assert blastp(QUERY, db, resolver=resolver) == []
    assert exe in caplog.text


def test_alignment_to_pssm(fake_tool, resolver, tmp_path):
    # psiblast -in_msa <aln> -subject <subj> -out_pssm <pssm>
    fake_tool("psiblast", (
        'cp "$4" "$6.subject"\n'
        'printf "pssm {\\n  query {\\n    local id 1\\n    inst {\\n  intermediateData {\\n'
        '    junk\\n  finalData {\\n  }\\n}\\n" > "$6"'
    ))
    work = tmp_path / "work"
    out = io.StringIO()
    ok = alignment_to_pssm(
        [("a", "", "MK-VLA"), ("b", "", "MKQVLA")], out, title="fam1",
        options={"tmpDir": str(work)}, resolver=resolver,
    )
    assert ok
    text = out.getvalue()
    assert "local id fam1" in text
    assert 'title "fam1"' in text
    assert "junk" not in text
    assert (work / "pssm.subject").read_text() == ">a\nMKVLA\n"


def test_alignment_to_pssm_without_psiblast(resolver):
    assert alignment_to_pssm([("a", "", "MKV")], io.StringIO(), resolver=resolver) is False


def test_non_utf8_report_is_parsed(fake_tool, formatdb, resolver, report, tmp_path, fasta_file):
    latin1 = tmp_path / "latin1_report.txt"
    with open(report, "rb") as fh:
        data = fh.read().replace(b"> s2 subject two", b"> s2 subject M\xfcller two")
    latin1.write_bytes(data)
    fake_tool("blastall", f'cat "{latin1}"')
    db = fasta_file(tmp_path / "db.fa", [("s2", "MKV")])

    hits = blastp(QUERY, db, {"outForm": "hsp"}, resolver=resolver)
    assert [h.sid for h in hits] == ["q1", "s2", "s2"]
    assert hits[1].sdef.startswith("subject M\ufffdller two")
