"""Core algorithms for alignoth.

- cigar: reference-relative CIGAR diffing and the PlotCigar grammar
- reads: Read model and encoded-read wire records
- layout: row assignment and seeded row subsampling
- coverage: per-base coverage/mismatch histogram

Example:
    >>> from alignoth.core import PlotCigar, layout_reads, compute_coverage
"""

from alignoth.core.cigar import Del, EditOp, Ins, Match, PlotCigar, Sub, diff_cigar
from alignoth.core.coverage import BaseCounts, CoverageHistogram, compute_coverage
from alignoth.core.layout import LayoutResult, SeededRowSampler, assign_rows, layout_reads
from alignoth.core.reads import Read, encode_reads

__all__ = [
    "BaseCounts",
    "CoverageHistogram",
    "Del",
    "EditOp",
    "Ins",
    "LayoutResult",
    "Match",
    "PlotCigar",
    "Read",
    "SeededRowSampler",
    "Sub",
    "assign_rows",
    "compute_coverage",
    "diff_cigar",
    "encode_reads",
    "layout_reads",
]
