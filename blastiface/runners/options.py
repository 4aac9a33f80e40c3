# blastiface/runners/options.py
"""
Canonical option set for BLAST searches.

Callers may use the BLAST+ snake_case names, the camelCase names of the
older interface, or any of the historical aliases listed in ALIASES. They
are collapsed once, here, into a typed BlastOptions; command construction
never looks at raw keys.

Precedence: for each canonical option the keys are consulted in the order
given in ALIASES (canonical name first, then aliases in their historical
order) and the first key whose value is not None wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from blastiface.errors import ValidationError

__all__ = [
    "ALIASES",
    "DEFAULT_EVALUE",
    "BlastOptions",
    "OutForm",
    "Strand",
    "canonicalize",
    "flag_value",
    "include_self_policy",
]

logger = logging.getLogger(__name__)

DEFAULT_EVALUE = 0.01


class Strand(Enum):
    PLUS = "plus"
    MINUS = "minus"
    BOTH = "both"

    @classmethod
    def parse(cls, value: Any) -> "Strand":
        """1 / p* -> PLUS, 2 / m* -> MINUS, anything else -> BOTH."""
        if isinstance(value, Strand):
            return value
        s = str(value).strip().lower()
        if s == "1" or s.startswith("p"):
            return cls.PLUS
        if s == "2" or s.startswith("m"):
            return cls.MINUS
        return cls.BOTH

    @property
    def legacy(self) -> str:
        return {Strand.PLUS: "1", Strand.MINUS: "2", Strand.BOTH: "3"}[self]

    @property
    def modern(self) -> str:
        return self.value


class OutForm(Enum):
    SIM = "sim"   # PairwiseAlignment summary objects
    HSP = "hsp"   # raw Hsp records

    @classmethod
    def parse(cls, value: Any) -> "OutForm":
        if isinstance(value, OutForm):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"outForm must be 'sim' or 'hsp', got {value!r}") from None


# Value kinds
_FLAG, _INT, _FLOAT, _STR, _ANY, _STRAND, _OUTFORM = range(7)

# canonical name -> (kind, keys in precedence order)
_TABLE: Dict[str, Tuple[int, Tuple[str, ...]]] = {
    # dialect selection
    "blastall":            (_FLAG,    ("blastall",)),
    "blastplus":           (_FLAG,    ("blastplus",)),
    "num_threads":         (_INT,     ("num_threads", "threads", "numThreads")),

    # database
    "db_gen_code":         (_INT,     ("db_gen_code", "dbCode", "dbGenCode")),
    "gilist":              (_STR,     ("gilist", "giList")),

    # query and filtering
    "query_genetic_code":  (_INT,     ("query_genetic_code", "queryCode", "queryGeneticCode")),
    "query_loc":           (_STR,     ("query_loc", "queryLoc")),
    "strand":              (_STRAND,  ("strand",)),
    "lc_filter":           (_FLAG,    ("lc_filter", "lcFilter", "seg", "dust")),
    "seg":                 (_STR,     ("seg",)),
    "dust":                (_STR,     ("dust",)),
    "lcase_masking":       (_FLAG,    ("lcase_masking", "caseFilter", "lcaseMasking")),
    "soft_masking":        (_FLAG,    ("soft_masking", "softMasking")),
    "filtering_db":        (_STR,     ("filtering_db", "filteringDB")),

    # statistics
    "evalue":              (_FLOAT,   ("evalue", "maxE")),
    "perc_identity":       (_FLOAT,   ("perc_identity", "percIdentity")),
    "num_alignments":      (_INT,     ("num_alignments", "maxHSP", "numAlignments")),
    "dbsize":              (_INT,     ("dbsize", "dbLen", "dbSize")),
    "searchsp":            (_INT,     ("searchsp", "searchSp")),
    "best_hit_overhang":   (_FLOAT,   ("best_hit_overhang", "bestHitOverhang")),
    "best_hit_score_edge": (_FLOAT,   ("best_hit_score_edge", "bestHitScoreEdge")),

    # scoring
    "word_size":           (_INT,     ("word_size", "wordSz", "wordSize")),
    "matrix":              (_STR,     ("matrix",)),
    "reward":              (_INT,     ("reward", "nucIdenScr")),
    "penalty":             (_INT,     ("penalty", "nucMisScr")),
    "gapopen":             (_INT,     ("gapopen", "gapOpen")),
    "gapextend":           (_INT,     ("gapextend", "gapExtend")),
    "threshold":           (_FLOAT,   ("threshold",)),
    "xdrop_gap":           (_FLOAT,   ("xdrop_gap", "xDropGap")),
    "xdrop_ungap":         (_FLOAT,   ("xdrop_ungap", "xDropUngap")),
    "xdrop_final":         (_FLOAT,   ("xdrop_final", "xDropFinal")),
    "use_sw_tback":        (_FLAG,    ("use_sw_tback", "useSwTback")),
    "ungapped":            (_FLAG,    ("ungapped",)),
    "max_intron_length":   (_INT,     ("max_intron_length", "maxIntronLength")),

    # output shaping
    "show_gis":            (_FLAG,    ("show_gis", "showGIs")),

    # psiblast / PSSM engine
    "num_iterations":      (_INT,     ("num_iterations", "iterations")),
    "out_pssm":            (_STR,     ("out_pssm", "outPSSM")),
    "out_ascii_pssm":      (_STR,     ("out_ascii_pssm", "asciiPSSM")),
    "in_msa":              (_ANY,     ("in_msa", "inMSA")),
    "msa_master_idx":      (_INT,     ("msa_master_idx", "queryIndex")),
    "msa_master_id":       (_STR,     ("msa_master_id", "queryID")),
    "ignore_msa_master":   (_FLAG,    ("ignore_msa_master", "ignoreMaster")),
    "in_pssm":             (_STR,     ("in_pssm", "inPSSM")),
    "pseudocount":         (_INT,     ("pseudocount", "pseudoCount")),
    "inclusion_ethresh":   (_FLOAT,   ("inclusion_ethresh", "inclusionEvalue")),
    "phi_pattern":         (_STR,     ("phi_pattern", "inPHI")),

    # result handling (never passed to the tool)
    "out_form":            (_OUTFORM, ("out_form", "outForm")),
    "min_iden":            (_FLOAT,   ("min_iden", "minIden")),
    "min_pos":             (_FLOAT,   ("min_pos", "minPos")),
    "min_scr":             (_FLOAT,   ("min_scr", "minScr")),
    "min_cov_q":           (_FLOAT,   ("min_cov_q", "minCovQ")),
    "min_cov_s":           (_FLOAT,   ("min_cov_s", "minCovS")),
    "include_self":        (_FLAG,    ("include_self", "includeSelf")),
    "exclude_self":        (_FLAG,    ("exclude_self", "excludeSelf")),
    "warnings":            (_FLAG,    ("warnings",)),

    # scratch storage
    "save_dir":            (_FLAG,    ("save_dir", "saveDir")),
    "tmp_dir":             (_STR,     ("tmp_dir", "tmpDir")),
}

ALIASES: Dict[str, Tuple[str, ...]] = {name: keys for name, (_, keys) in _TABLE.items()}

_KNOWN_KEYS = frozenset(k for keys in ALIASES.values() for k in keys)


@dataclass
class BlastOptions:
    # dialect selection
    blastall: Optional[bool] = None
    blastplus: Optional[bool] = None
    num_threads: Optional[int] = None

    # database
    db_gen_code: Optional[int] = None
    gilist: Optional[str] = None

    # query and filtering
    query_genetic_code: Optional[int] = None
    query_loc: Optional[str] = None
    strand: Optional[Strand] = None
    lc_filter: Optional[bool] = None
    seg: Optional[str] = None
    dust: Optional[str] = None
    lcase_masking: Optional[bool] = None
    soft_masking: Optional[bool] = None
    filtering_db: Optional[str] = None

    # statistics
    evalue: Optional[float] = DEFAULT_EVALUE
    perc_identity: Optional[float] = None
    num_alignments: Optional[int] = None
    dbsize: Optional[int] = None
    searchsp: Optional[int] = None
    best_hit_overhang: Optional[float] = None
    best_hit_score_edge: Optional[float] = None

    # scoring
    word_size: Optional[int] = None
    matrix: Optional[str] = None
    reward: Optional[int] = None
    penalty: Optional[int] = None
    gapopen: Optional[int] = None
    gapextend: Optional[int] = None
    threshold: Optional[float] = None
    xdrop_gap: Optional[float] = None
    xdrop_ungap: Optional[float] = None
    xdrop_final: Optional[float] = None
    use_sw_tback: Optional[bool] = None
    ungapped: Optional[bool] = None
    max_intron_length: Optional[int] = None

    # output shaping
    show_gis: Optional[bool] = None

    # psiblast / PSSM engine
    num_iterations: Optional[int] = None
    out_pssm: Optional[str] = None
    out_ascii_pssm: Optional[str] = None
    in_msa: Any = None
    msa_master_idx: Optional[int] = None
    msa_master_id: Optional[str] = None
    ignore_msa_master: Optional[bool] = None
    in_pssm: Optional[str] = None
    pseudocount: Optional[int] = None
    inclusion_ethresh: Optional[float] = None
    phi_pattern: Optional[str] = None

    # result handling
    out_form: OutForm = OutForm.SIM
    min_iden: Optional[float] = None
    min_pos: Optional[float] = None
    min_scr: Optional[float] = None
    min_cov_q: Optional[float] = None
    min_cov_s: Optional[float] = None
    include_self: Optional[bool] = None
    exclude_self: Optional[bool] = None
    warnings: Optional[bool] = None

    # scratch storage
    save_dir: Optional[bool] = None
    tmp_dir: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Canonical mapping of every option that is set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


def flag_value(options: Mapping[str, Any], *keys: str) -> Optional[bool]:
    """
    Boolean value of the first key in `keys` that is present and not None.

    False, 0, '0', '' and strings beginning with f/F/n/N ('F', 'false',
    'no', 'none') are false; any other value is true. Returns None when no
    key is set.
    """
    if not options:
        return None
    for k in keys:
        val = options.get(k)
        if val is None:
            continue
        if isinstance(val, str):
            s = val.strip()
            return not (s == "" or s == "0" or s[0] in "fFnN")
        return bool(val)
    return None


def _coerce(name: str, kind: int, value: Any) -> Any:
    if value is None or kind == _ANY:
        return value
    if kind == _STRAND and (not value or str(value).strip() == "0"):
        return None
    try:
        if kind == _INT:
            return int(value)
        if kind == _FLOAT:
            return float(value)
        if kind == _STR:
            return str(value)
        if kind == _STRAND:
            return Strand.parse(value)
        if kind == _OUTFORM:
            return OutForm.parse(value)
    except (TypeError, ValueError) as e:
        if isinstance(e, ValidationError):
            raise
        raise ValidationError(f"Invalid value for option {name!r}: {value!r}") from None
    return value


def canonicalize(raw: Union[Mapping[str, Any], BlastOptions, None] = None) -> BlastOptions:
    """Collapse a raw option mapping (any mix of aliases) into BlastOptions."""
    if raw is None:
        return BlastOptions()
    if isinstance(raw, BlastOptions):
        raw = raw.to_dict()

    for k in raw:
        if k not in _KNOWN_KEYS:
            logger.warning("Ignoring unknown BLAST option %r", k)

    values: Dict[str, Any] = {}
    for name, (kind, keys) in _TABLE.items():
        if kind == _FLAG:
            val = flag_value(raw, *keys)
        else:
            val = next((raw[k] for k in keys if raw.get(k) is not None), None)
            val = _coerce(name, kind, val)
        if val is not None:
            values[name] = val

    return BlastOptions(**values)


def include_self_policy(options: BlastOptions, query_path: str, db_path: str) -> bool:
    """
    Whether hits of a sequence to itself are reported: include_self when
    set, otherwise the inverse of exclude_self, otherwise only when query
    and database are different files.
    """
    if options.include_self is not None:
        return options.include_self
    if options.exclude_self is not None:
        return not options.exclude_self
    return query_path != db_path
