"""Alignment record access and Read construction.

Streams records overlapping a region from an indexed BAM file with
pysam and turns each one into a Read: its edit script against the
reference, its displayed span (soft clips included) and the selected
auxiliary tags.

Example:
    >>> from alignoth.io.bam import AlignmentReader, build_reads
    >>> with AlignmentReader("reads.bam") as bam, GenomeAccessor("ref.fa") as genome:
    ...     records = bam.fetch_records(Region("chr1", 0, 1000))
    ...     reads = build_reads(records, genome, "chr1")
"""

from __future__ import annotations

import array
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Sequence

import pysam

from alignoth.core.cigar import CIGAR_H, CIGAR_S, cigar_to_str, diff_cigar
from alignoth.core.reads import MISSING_AUX_VALUE, NO_MATE, Read
from alignoth.utils.regions import Region, UnknownTargetError

if TYPE_CHECKING:
    from alignoth.io.fasta import GenomeAccessor

logger = logging.getLogger(__name__)


# =============================================================================
# Alignment Reader
# =============================================================================


class AlignmentReader:
    """Indexed BAM access using pysam.

    Attributes:
        path: Path to the BAM file.

    Example:
        >>> with AlignmentReader("reads.bam") as bam:
        ...     for record in bam.fetch_records(Region("chr1", 0, 1000)):
        ...         print(record.query_name)
    """

    def __init__(self, bam_path: Path | str) -> None:
        """Open an indexed BAM file.

        Args:
            bam_path: Path to indexed BAM file.

        Raises:
            FileNotFoundError: If BAM file doesn't exist.
            ValueError: If BAM file is not indexed.
        """
        self.path = Path(bam_path)

        if not self.path.exists():
            raise FileNotFoundError(f"BAM file not found: {self.path}")

        index_paths = [
            self.path.with_suffix(".bai"),
            Path(str(self.path) + ".bai"),
            Path(str(self.path) + ".csi"),
        ]
        if not any(p.exists() for p in index_paths):
            raise ValueError(
                f"BAM index not found. Please run: samtools index {self.path}"
            )

        self._bam: pysam.AlignmentFile | None = None
        self._open()

    def _open(self) -> None:
        """Open the BAM file."""
        self._bam = pysam.AlignmentFile(str(self.path), "rb")
        logger.info(f"Opened BAM file: {self.path.name}")

    def __enter__(self) -> AlignmentReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the BAM file."""
        if self._bam is not None:
            self._bam.close()
            self._bam = None

    @property
    def references(self) -> list[str]:
        """List of reference sequences in BAM."""
        if self._bam is None:
            raise RuntimeError("BAM file not open")
        return list(self._bam.references)

    def fetch_records(self, region: Region) -> Iterator[pysam.AlignedSegment]:
        """Stream mapped records overlapping ``region`` in start order.

        Unmapped records and records without stored bases are skipped.

        Raises:
            RuntimeError: If the file was closed.
            UnknownTargetError: If the contig is not in the BAM header.
        """
        if self._bam is None:
            raise RuntimeError("BAM file not open")

        references = self.references
        if region.target not in references:
            raise UnknownTargetError(region.target, references)

        if region.is_empty:
            return iter(())
        return self._iter_records(region)

    def _iter_records(self, region: Region) -> Iterator[pysam.AlignedSegment]:
        assert self._bam is not None
        for record in self._bam.fetch(region.target, region.start, region.end):
            if record.is_unmapped or not record.cigartuples:
                continue
            if record.query_sequence is None:
                logger.warning(f"Skipping {record.query_name}: no stored sequence")
                continue
            yield record


# =============================================================================
# Read Construction
# =============================================================================


def aux_to_string(value: Any) -> str:
    """Render any pysam tag value as text.

    Arrays are joined with commas, byte strings decoded, everything else
    passed through ``str``.
    """
    if isinstance(value, (array.array, list, tuple)):
        return ",".join(str(v) for v in value)
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return str(value)


def read_aux(record: pysam.AlignedSegment, tags: Sequence[str]) -> dict[str, str]:
    """Collect ``tags`` from a record, using a placeholder for missing ones."""
    aux: dict[str, str] = {}
    for tag in tags:
        try:
            aux[tag] = aux_to_string(record.get_tag(tag))
        except KeyError:
            logger.debug(f"Read {record.query_name}: tag {tag} missing")
            aux[tag] = MISSING_AUX_VALUE
        except ValueError as e:
            logger.warning(f"Read {record.query_name}: could not read tag {tag}: {e}")
            aux[tag] = MISSING_AUX_VALUE
    return aux


def soft_clip_extents(cigartuples: Sequence[tuple[int, int]]) -> tuple[int, int]:
    """Leading and trailing soft-clip lengths, looking past hard clips."""

    def clipped(ops: Iterable[tuple[int, int]]) -> int:
        total = 0
        for op, length in ops:
            if op == CIGAR_S:
                total += length
            elif op != CIGAR_H:
                break
        return total

    return clipped(cigartuples), clipped(reversed(cigartuples))


def displayed_region(record: pysam.AlignedSegment, target: str) -> Region:
    """Reference span a record occupies on screen, soft clips included."""
    leading, trailing = soft_clip_extents(record.cigartuples)
    return Region(
        target,
        record.reference_start - leading,
        record.reference_end + trailing,
    )


def read_from_record(
    record: pysam.AlignedSegment,
    genome: GenomeAccessor,
    target: str,
    aux_tags: Sequence[str] = (),
) -> Read:
    """Build a Read from one alignment record.

    Fetches the reference window of the record's displayed span and diffs
    the record against it.

    Args:
        record: Mapped alignment record.
        genome: Reference accessor.
        target: Contig the record was fetched from.
        aux_tags: Auxiliary tags to copy.

    Returns:
        The Read, without a row.
    """
    span = displayed_region(record, target)
    ref_seq = genome.fetch_window(span)
    cigar = diff_cigar(
        record.cigartuples,
        record.query_sequence,
        ref_seq,
        read_name=record.query_name,
    )

    mate_position = record.next_reference_start
    if mate_position is None or mate_position < 0:
        mate_position = NO_MATE

    return Read(
        name=record.query_name,
        cigar=cigar,
        position=span.start,
        end_position=span.end,
        flags=record.flag,
        mapq=record.mapping_quality,
        mate_position=mate_position,
        aux=read_aux(record, aux_tags),
        raw_cigar=record.cigarstring or cigar_to_str(record.cigartuples),
    )


def build_reads(
    records: Iterable[pysam.AlignedSegment],
    genome: GenomeAccessor,
    target: str,
    aux_tags: Sequence[str] = (),
) -> list[Read]:
    """Build Reads for a stream of records, keeping their order."""
    return [read_from_record(record, genome, target, aux_tags) for record in records]
