import pytest

from blastiface.scoring.match_line import match_line, nucleotide_match_char, protein_match_char
from blastiface.scoring.substitution_matrix import BLOSUM62, SubstitutionMatrix


def test_blosum62_values():
    assert BLOSUM62.getMatrixValue("I", "V") == 3
    assert BLOSUM62.getMatrixValue("W", "W") == 11
    assert BLOSUM62.getMatrixValue("*", "A") == -4
    assert BLOSUM62.identity_score("C") == 9
    assert BLOSUM62.is_symmetric()
    with pytest.raises(KeyError):
        BLOSUM62.getMatrixValue("a", "A")


def test_row_then_column(asym_dna_matrix):
    assert asym_dna_matrix.getMatrixValue("A", "C") == -1
    assert asym_dna_matrix.getMatrixValue("C", "A") == -4
    assert not asym_dna_matrix.is_symmetric()


def test_positive_pairs(sym_dna_matrix, asym_dna_matrix):
    assert sym_dna_matrix.positive_pairs() == frozenset()
    assert asym_dna_matrix.positive_pairs() == frozenset({("T", "C")})

    pairs = BLOSUM62.positive_pairs("ILVK")
    assert ("I", "V") in pairs and ("V", "I") in pairs
    assert ("I", "L") in pairs
    assert ("I", "K") not in pairs
    assert ("I", "I") not in pairs


def test_constructor_checks():
    with pytest.raises(ValueError):
        SubstitutionMatrix(matrix=[[1, 0], [0, 1]])
    with pytest.raises(ValueError):
        SubstitutionMatrix(matrix=[[1, 0], [0, 1], [0, 0]], alphabet=["A", "C"])
    with pytest.raises(ValueError):
        SubstitutionMatrix()


def test_read_matrix_file(tmp_path):
    path = tmp_path / "DNA"
    path.write_text(
        "# simple nucleotide matrix\n"
        "   A  C  G  T\n"
        "A  1 -1 -1 -1\n"
        "C -1  1 -1 -1\n"
        "\n"
        "G -1 -1  1 -1\n"
        "T -1 -1 -1  1\n"
    )
    m = SubstitutionMatrix(file=str(path))
    assert m.alphabet_r == ["A", "C", "G", "T"]
    assert m.getMatrixValue("G", "G") == 1
    assert m.getMatrixValue("G", "T") == -1
    assert str(m).splitlines()[0] == "     A  C  G  T"
    assert str(m).splitlines()[1] == "A    1 -1 -1 -1"


def test_read_malformed_file(tmp_path):
    path = tmp_path / "bad"
    path.write_text("   A  C\nA  1 -1\nC  one -1\n")
    with pytest.raises(ValueError):
        SubstitutionMatrix(file=str(path))

    path.write_text("   A  C\nA  1 -1\n")
    with pytest.raises(ValueError):
        SubstitutionMatrix(file=str(path))


# ---------- match line ----------

def test_protein_match_char():
    assert protein_match_char("K", "k") == "K"
    assert protein_match_char("I", "V") == "+"
    assert protein_match_char("i", "v") == "+"
    assert protein_match_char("W", "A") == " "
    assert protein_match_char("-", "A") == " "


def test_nucleotide_match_char():
    assert nucleotide_match_char("a", "A") == "|"
    assert nucleotide_match_char("A", "G") == " "


def test_match_line():
    assert match_line("MKVLAG", "MKVIAG") == "MKV+AG"
    assert match_line("ACGT", "ACCT", protein=False) == "|| |"
    assert match_line("ACGT", "ACG") == ""
    assert match_line("", "") == ""
