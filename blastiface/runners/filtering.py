# blastiface/runners/filtering.py
from __future__ import annotations

from typing import Optional, Union

from blastiface.models.hsp import Hsp, normalize_evalue
from blastiface.models.pairwise_alignment import PairwiseAlignment
from .options import BlastOptions, OutForm

__all__ = ["keep_hsp", "format_hsp", "normalize_evalue"]


def _frac(n: int, of: int) -> float:
    return n / of if of else 0.0


def _violates(threshold: Optional[float], value: float) -> bool:
    return threshold is not None and threshold > value


def keep_hsp(hsp: Hsp, options: Optional[BlastOptions] = None) -> bool:
    """
    False when the HSP falls strictly below any configured threshold:

      min_iden   n_id / n_mat
      min_pos    positives / n_mat (identities when the report has no Positives)
      min_scr    bit score
      min_cov_q  query span / query length
      min_cov_s  subject span / subject length

    Unset thresholds never reject.
    """
    if options is None:
        return True
    if _violates(options.min_iden, _frac(hsp.n_id, hsp.n_mat)):
        return False
    if _violates(options.min_pos, _frac(hsp.positives, hsp.n_mat)):
        return False
    if _violates(options.min_scr, hsp.scr):
        return False
    if _violates(options.min_cov_q, _frac(hsp.query_span, hsp.qlen)):
        return False
    if _violates(options.min_cov_s, _frac(hsp.subject_span, hsp.slen)):
        return False
    return True


def format_hsp(hsp: Hsp, tool: str, options: Optional[BlastOptions] = None) -> Union[Hsp, PairwiseAlignment]:
    """The Hsp itself for out_form 'hsp'; otherwise a PairwiseAlignment summary."""
    out_form = options.out_form if options is not None else OutForm.SIM
    if out_form is OutForm.HSP:
        return hsp
    return PairwiseAlignment.from_hsp(hsp, tool)
