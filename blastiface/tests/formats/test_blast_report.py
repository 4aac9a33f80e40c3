import pytest

from blastiface.formats import blast_report
from blastiface.models.hsp import Hsp
from blastiface.models.pairwise_alignment import PairwiseAlignment


@pytest.fixture
def plus_report(test_data_dir):
    return test_data_dir / "blastp_plus.txt"


@pytest.fixture
def legacy_report(test_data_dir):
    return test_data_dir / "blastn_legacy.txt"


# ---------- BLAST+ (-outfmt 0) ----------

def test_plus_report_all_hsps(plus_report):
    hsps = list(blast_report.decode(str(plus_report)))
    assert len(hsps) == 3
    assert all(isinstance(h, Hsp) for h in hsps)
    assert [h.sid for h in hsps] == ["q1", "s2", "s2"]


def test_plus_report_fields(plus_report):
    _, h, h2 = blast_report.decode(str(plus_report))

    assert (h.qid, h.qdef, h.qlen) == ("q1", "test protein one", 20)
    assert (h.sid, h.sdef, h.slen) == ("s2", "subject two with a long definition line", 40)
    assert h.scr == pytest.approx(30.4)
    assert h.e_val == "2e-05"
    assert h.p_val == "2e-05"
    assert h.p_n == 1
    assert (h.n_mat, h.n_id, h.n_pos, h.n_gap) == (20, 14, 16, 1)
    assert h.dir == ""
    assert (h.q1, h.q2) == (1, 20)
    assert (h.s1, h.s2) == (3, 21)
    assert h.qseq == "MKVLAGTTRWQEHNDYFPIS"
    assert h.sseq == "MKVIAGSTRWLEHSDY-PIT"

    # second HSP on the same subject keeps the subject header
    assert (h2.sid, h2.slen) == ("s2", 40)
    assert h2.e_val == "0.5"
    assert (h2.q1, h2.q2, h2.s1, h2.s2) == (12, 19, 30, 37)


def test_self_hits_dropped_unless_included(plus_report):
    hsps = list(blast_report.decode(str(plus_report), include_self=False))
    assert [h.sid for h in hsps] == ["s2", "s2"]
    assert all(h.qid != h.sid for h in hsps)


def test_decode_accepts_text_handle_and_lines(plus_report):
    text = plus_report.read_text()
    from_text = list(blast_report.decode(text))
    with open(plus_report) as fh:
        from_handle = list(blast_report.decode(fh))
    from_lines = list(blast_report.decode(text.splitlines(keepends=True)))
    assert from_text == from_handle == from_lines
    assert len(from_text) == 3


def test_decode_is_lazy(plus_report):
    it = blast_report.decode(str(plus_report))
    first = next(it)
    assert first.sid == "q1"
    assert next(it).sid == "s2"


# ---------- legacy blastall (-m 0) ----------

def test_legacy_blastn_report(legacy_report):
    h1, h2 = blast_report.decode(str(legacy_report))

    assert (h1.qid, h1.qdef, h1.qlen) == ("n1", "nucleotide query", 40)
    assert (h1.sid, h1.sdef, h1.slen) == ("n2", "reverse match", 50)
    assert h1.e_val == "e-150"
    assert h1.n_pos is None
    assert h1.n_gap == 0
    assert h1.dir == "-"
    assert (h1.q1, h1.q2, h1.s1, h1.s2) == (1, 20, 45, 26)

    assert h2.dir == "+"
    assert (h2.n_id, h2.n_mat, h2.n_gap) == (14, 15, 1)
    assert h2.qseq == "ggcattacgat-cat"
    assert (h2.q1, h2.q2, h2.s1, h2.s2) == (21, 34, 5, 19)


def test_decode_to_pairwise_alignment(legacy_report):
    alns = list(blast_report.decode(str(legacy_report), cls=PairwiseAlignment, tool="blastn"))
    assert len(alns) == 2
    a = alns[0]
    assert a.orientation == "-"
    assert (a.target_start, a.target_end) == (26, 45)
    assert a.e_value == pytest.approx(1e-150)
    assert a.meta_get("subject_left") == 5


def test_decode_rejects_unknown_cls(legacy_report):
    with pytest.raises(TypeError):
        blast_report.decode(str(legacy_report), cls=dict)


def test_empty_input_yields_nothing():
    assert list(blast_report.decode([])) == []
    assert list(blast_report.decode("BLASTP 2.12.0+\n\nQuery= x\n\nLength=5\n\n***** No hits found *****\n")) == []


def test_translated_frame_and_expect_count():
    text = (
        "Query= x translated\n"
        "         (30 letters)\n"
        "\n"
        ">p1 protein\n"
        "          Length = 12\n"
        "\n"
        " Score = 21.2 bits (43), Expect(2) = 0.003\n"
        " Identities = 9/10 (90%), Positives = 10/10 (100%)\n"
        " Frame = +2\n"
        "\n"
        "Query: 2  MKVLAGTTRW 31\n"
        "          MKV+AGTTRW\n"
        "Sbjct: 3  MKVIAGTTRW 12\n"
    )
    (h,) = blast_report.decode(text)
    assert h.p_n == 2
    assert h.e_val == "0.003"
    assert h.dir == "+2"
    assert (h.q1, h.q2) == (2, 31)
