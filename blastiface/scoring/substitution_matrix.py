#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
    SubstitutionMatrix: a square scoring matrix over an alphabet.

    Usage:
        from blastiface.scoring.substitution_matrix import SubstitutionMatrix, BLOSUM62

        # Construct from explicit data:
        m = SubstitutionMatrix(
            matrix=[
                [  1, -1 ],
                [ -1,  1 ],
            ],
            alphabet=['A', 'C'],
        )

        # …or from an NCBI-style matrix file:
        m = SubstitutionMatrix(file="BLOSUM62")

        # Access a score (row → col):
        s = BLOSUM62.getMatrixValue('I', 'V')   # 3

        # Symbol pairs with a positive score:
        pairs = BLOSUM62.positive_pairs()

    SEE ALSO:
        - NCBI BLAST: https://blast.ncbi.nlm.nih.gov

    AUTHOR(S):
        Robert Hubley <rhubley@systemsbiology.org>

    LICENSE:
        This code may be used in accordance with the Creative Commons
        Zero ("CC0") public domain dedication:
        https://creativecommons.org/publicdomain/zero/1.0/

    DISCLAIMER:
        This software is provided "AS IS" and any express or implied
        warranties, including, but not limited to, the implied warranties of
        merchantability and fitness for a particular purpose, are disclaimed.
        In no event shall the authors or the Dfam consortium members be
        liable for any direct, indirect, incidental, special, exemplary, or
        consequential damages (including, but not limited to, procurement of
        substitute goods or services; loss of use, data, or profits; or
        business interruption) however caused and on any theory of liability,
        whether in contract, strict liability, or tort (including negligence
        or otherwise) arising in any way out of the use of this software, even
        if advised of the possibility of such damage.

    MATRIX FILE FORMAT
    ------------------
      - Lines starting with '#' are comments.
      - Alphabet header line (symbols separated by spaces, '*' allowed):
            A  R  N  D ... *
      - One row per alphabet symbol, in header order. A leading row label
        is allowed and ignored:
            A  4 -1 -2 -2 ...

    BLOSUM62 is provided as a module constant. It is built once at import
    and must be treated as read-only.
"""

from __future__ import annotations

import re
from typing import Dict, FrozenSet, List, Tuple

__all__ = ["SubstitutionMatrix", "BLOSUM62"]

_ALPHA_RE = re.compile(r"^\s*([A-Za-z*](?:\s+[A-Za-z*])*)\s*$")
_ROW_RE = re.compile(r"^\s*[A-Za-z*]?\s*([-\d\s]+)$")


class SubstitutionMatrix:
    """
    Construction
    ------------
    - SubstitutionMatrix(matrix=<NxN int list>, alphabet=<list[str]>)
    - SubstitutionMatrix(file=<path>)
    """

    def __init__(self, *_, **kwargs) -> None:
        self.matrix: List[List[int]] = []
        self.alphabet_r: List[str] = []
        self.alphabet_h: Dict[str, int] = {}

        if "matrix" in kwargs and "alphabet" in kwargs:
            self.matrix = [list(row) for row in kwargs["matrix"]]
            self.alphabet_r = list(kwargs["alphabet"])
            self._rebuild_alphabet_index()
            self._validate_square()
        elif "matrix" in kwargs:
            raise ValueError("When passing 'matrix', also pass 'alphabet'.")
        elif "file" in kwargs:
            self.readMatrixFromFile(kwargs["file"])
        else:
            raise ValueError("Provide either ('matrix' and 'alphabet') or 'file'.")

    # ---------------- Convenience & validation ----------------

    def _rebuild_alphabet_index(self) -> None:
        self.alphabet_h = {ch: i for i, ch in enumerate(self.alphabet_r)}

    def _validate_square(self) -> None:
        """Ensure matrix is square and matches the alphabet."""
        n = len(self.alphabet_r)
        if n == 0:
            raise ValueError("Alphabet must be non-empty.")
        if len(self.matrix) != n or any(len(row) != n for row in self.matrix):
            raise ValueError("Matrix must be square and match alphabet size.")

    # ---------------- Core API ----------------

    def getMatrixValue(self, row_char: str, col_char: str) -> int:
        """
        Score at matrix[row_char][col_char].

        Raises KeyError for symbols outside the alphabet.
        """
        try:
            i = self.alphabet_h[row_char]
            j = self.alphabet_h[col_char]
        except KeyError as e:
            raise KeyError(f"Symbol not in alphabet: {e}") from None
        return self.matrix[i][j]

    def identity_score(self, ch: str) -> int:
        return self.getMatrixValue(ch, ch)

    def is_symmetric(self) -> bool:
        n = len(self.matrix)
        return all(self.matrix[i][j] == self.matrix[j][i] for i in range(n) for j in range(i + 1, n))

    def positive_pairs(self, symbols: str | None = None) -> FrozenSet[Tuple[str, str]]:
        """
        Ordered pairs of distinct symbols whose score is > 0, optionally
        limited to `symbols`.
        """
        alpha = [ch for ch in (symbols or self.alphabet_r) if ch in self.alphabet_h]
        return frozenset(
            (a, b) for a in alpha for b in alpha
            if a != b and self.getMatrixValue(a, b) > 0
        )

    def __str__(self) -> str:
        out = ["   " + "".join(f"{ch:>3}" for ch in self.alphabet_r)]
        for ch, row in zip(self.alphabet_r, self.matrix):
            out.append(f"{ch:<3}" + "".join(f"{int(col):3d}" for col in row))
        return "\n".join(out) + "\n"

    def readMatrixFromFile(self, matrixFilename: str) -> None:
        """
        Read an NCBI-style matrix file (see module docstring).

        Raises ValueError if the file is malformed.
        """
        self.matrix = []
        self.alphabet_r = []
        self.alphabet_h = {}

        saw_alpha = False
        with open(matrixFilename, "r") as fh:
            for line in fh:
                line = line.rstrip("\n")
                if line.startswith("#") or not line.strip():
                    continue

                if not saw_alpha:
                    a = _ALPHA_RE.match(line)
                    if not a:
                        raise ValueError("Matrix rows encountered before alphabet header.")
                    self.alphabet_r = a.group(1).split()
                    self._rebuild_alphabet_index()
                    saw_alpha = True
                    continue

                r = _ROW_RE.match(line)
                if r:
                    self.matrix.append([int(tok) for tok in r.group(1).split()])
                    continue

                raise ValueError(f"Unrecognised matrix line: {line!r}")

        self._validate_square()


_BLOSUM62_TEXT = """\
   A  R  N  D  C  Q  E  G  H  I  L  K  M  F  P  S  T  W  Y  V  B  Z  X  *
A  4 -1 -2 -2  0 -1 -1  0 -2 -1 -1 -1 -1 -2 -1  1  0 -3 -2  0 -2 -1  0 -4
R -1  5  0 -2 -3  1  0 -2  0 -3 -2  2 -1 -3 -2 -1 -1 -3 -2 -3 -1  0 -1 -4
N -2  0  6  1 -3  0  0  0  1 -3 -3  0 -2 -3 -2  1  0 -4 -2 -3  3  0 -1 -4
D -2 -2  1  6 -3  0  2 -1 -1 -3 -4 -1 -3 -3 -1  0 -1 -4 -3 -3  4  1 -1 -4
C  0 -3 -3 -3  9 -3 -4 -3 -3 -1 -1 -3 -1 -2 -3 -1 -1 -2 -2 -1 -3 -3 -2 -4
Q -1  1  0  0 -3  5  2 -2  0 -3 -2  1  0 -3 -1  0 -1 -2 -1 -2  0  3 -1 -4
E -1  0  0  2 -4  2  5 -2  0 -3 -3  1 -2 -3 -1  0 -1 -3 -2 -2  1  4 -1 -4
G  0 -2  0 -1 -3 -2 -2  6 -2 -4 -4 -2 -3 -3 -2  0 -2 -2 -3 -3 -1 -2 -1 -4
H -2  0  1 -1 -3  0  0 -2  8 -3 -3 -1 -2 -1 -2 -1 -2 -2  2 -3  0  0 -1 -4
I -1 -3 -3 -3 -1 -3 -3 -4 -3  4  2 -3  1  0 -3 -2 -1 -3 -1  3 -3 -3 -1 -4
L -1 -2 -3 -4 -1 -2 -3 -4 -3  2  4 -2  2  0 -3 -2 -1 -2 -1  1 -4 -3 -1 -4
K -1  2  0 -1 -3  1  1 -2 -1 -3 -2  5 -1 -3 -1  0 -1 -3 -2 -2  0  1 -1 -4
M -1 -1 -2 -3 -1  0 -2 -3 -2  1  2 -1  5  0 -2 -1 -1 -1 -1  1 -3 -1 -1 -4
F -2 -3 -3 -3 -2 -3 -3 -3 -1  0  0 -3  0  6 -4 -2 -2  1  3 -1 -3 -3 -1 -4
P -1 -2 -2 -1 -3 -1 -1 -2 -2 -3 -3 -1 -2 -4  7 -1 -1 -4 -3 -2 -2 -1 -2 -4
S  1 -1  1  0 -1  0  0  0 -1 -2 -2  0 -1 -2 -1  4  1 -3 -2 -2  0  0  0 -4
T  0 -1  0 -1 -1 -1 -1 -2 -2 -1 -1 -1 -1 -2 -1  1  5 -2 -2  0 -1 -1  0 -4
W -3 -3 -4 -4 -2 -2 -3 -2 -2 -3 -2 -3 -1  1 -4 -3 -2 11  2 -3 -4 -3 -2 -4
Y -2 -2 -2 -3 -2 -1 -2 -3  2 -1 -1 -2 -1  3 -3 -2 -2  2  7 -1 -3 -2 -1 -4
V  0 -3 -3 -3 -1 -2 -2 -3 -3  3  1 -2  1 -1 -2 -2  0 -3 -1  4 -3 -2 -1 -4
B -2 -1  3  4 -3  0  1 -1  0 -3 -4  0 -3 -3 -2  0 -1 -4 -3 -3  4  1 -1 -4
Z -1  0  0  1 -3  3  4 -2  0 -3 -3  1 -1 -3 -1  0 -1 -3 -2 -2  1  4 -1 -4
X  0 -1 -1 -1 -2 -1 -1 -1 -1 -1 -1 -1 -1 -1 -2  0  0 -2 -1 -1 -1 -1 -1 -4
* -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4 -4  1
"""


def _parse_text(text: str) -> SubstitutionMatrix:
    lines = [ln for ln in text.splitlines() if ln.strip()]
    alphabet = lines[0].split()
    rows = [[int(tok) for tok in ln.split()[1:]] for ln in lines[1:]]
    return SubstitutionMatrix(matrix=rows, alphabet=alphabet)


BLOSUM62 = _parse_text(_BLOSUM62_TEXT)
