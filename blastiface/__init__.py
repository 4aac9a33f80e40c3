# blastiface/__init__.py
from .models.hsp import Hsp
from .models.pairwise_alignment import PairwiseAlignment, GapStats
from .errors import (
    BlastInterfaceError,
    InputResolutionError,
    ToolNotFoundError,
    ExternalProcessError,
    ValidationError,
    FilesystemError,
)

# Convenience re-exports for direct functional use
from .runners.options import BlastOptions, canonicalize
from .runners.blast import (
    blast,
    blastn,
    blastp,
    blastx,
    tblastn,
    tblastx,
    psiblast,
    rpsblast,
    alignment_to_pssm,
)
from .formats.blast_text import hsps_to_text
from .sequences.base import SequenceRecord, SequenceSource
