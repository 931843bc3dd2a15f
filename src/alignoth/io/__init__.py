"""Input handlers for alignoth.

- FASTA: reference bases (pyfaidx)
- BAM: alignment records (pysam)

Example:
    >>> from alignoth.io import AlignmentReader, GenomeAccessor
"""

from alignoth.io.bam import AlignmentReader, build_reads, read_from_record
from alignoth.io.fasta import GenomeAccessor

__all__ = [
    "AlignmentReader",
    "GenomeAccessor",
    "build_reads",
    "read_from_record",
]
