import pytest

from blastiface.scoring.substitution_matrix import SubstitutionMatrix


@pytest.fixture
def sym_dna_matrix():
    return SubstitutionMatrix(
        matrix=[
            [  9, -7, -18, -21],
            [ -7, 12, -16,  -7],
            [-18, -16, 12,  -7],
            [-21,  -7,  -7,   9],
        ],
        alphabet=["A", "C", "G", "T"],
    )


@pytest.fixture
def asym_dna_matrix():
    return SubstitutionMatrix(
        matrix=[
            [  9, -1, -2, -3],
            [ -4, 12, -5, -6],
            [ -7, -8, 11, -9],
            [-10,  2, -3, 10],
        ],
        alphabet=["A", "C", "G", "T"],
    )
