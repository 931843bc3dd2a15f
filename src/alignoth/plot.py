"""Plot data for one alignment region.

``create_plot_data`` runs the whole pipeline: fetch the reference bases
and the overlapping records, diff each record, fold every read into the
coverage histogram, then lay the reads out in rows and subsample rows
beyond the depth limit.

Example:
    >>> from alignoth.plot import create_plot_data
    >>> from alignoth.utils.regions import parse_region
    >>> data = create_plot_data("reads.bam", "ref.fa", parse_region("chr1:1-20"))
    >>> data.reference.sequence
    'TTGCCGGGGTGGGGAGAGAG'
"""

from __future__ import annotations

import logging
from pathlib import Path

import attrs

from alignoth.config import Config
from alignoth.core.coverage import CoverageHistogram, compute_coverage
from alignoth.core.layout import LayoutResult, SeededRowSampler, layout_reads
from alignoth.core.reads import Read, encode_reads
from alignoth.io.bam import AlignmentReader, build_reads
from alignoth.io.fasta import GenomeAccessor
from alignoth.utils.logging import Timer
from alignoth.utils.regions import Region, UnknownTargetError

logger = logging.getLogger(__name__)


@attrs.define(frozen=True)
class Reference:
    """Reference bases of the plotted region.

    Attributes:
        start: Position of the first base (0-based).
        sequence: Reference bases.
    """

    start: int
    sequence: str


@attrs.define(frozen=True)
class PlotData:
    """Everything a renderer needs for one region.

    Attributes:
        region: Plotted region.
        reference: Reference bases of the region.
        reads: Displayed reads, each with its row.
        coverage: Histogram over all reads, before subsampling.
        total_count: Reads overlapping the region.
        retained_count: Reads left after subsampling.
    """

    region: Region
    reference: Reference
    reads: list[Read]
    coverage: CoverageHistogram
    total_count: int
    retained_count: int

    @property
    def subsampled(self) -> bool:
        return self.retained_count < self.total_count

    @property
    def description(self) -> str:
        if self.subsampled:
            return f"{self.retained_count} of {self.total_count} reads (subsampled)"
        return f"{self.total_count} reads"

    def encoded_reads(self) -> str:
        """Displayed reads in the ``§``-joined wire form."""
        return encode_reads(self.reads)

    def encoded_coverage(self) -> str:
        """Coverage histogram in the ``§``-joined wire form."""
        return self.coverage.to_wire()


def create_plot_data(
    bam_path: Path | str,
    ref_path: Path | str,
    region: Region,
    max_read_depth: int | None = None,
    config: Config | None = None,
) -> PlotData:
    """Build plot data for ``region``.

    Args:
        bam_path: Indexed BAM file.
        ref_path: FASTA reference (indexed on first use).
        region: Region to plot, 0-based half-open.
        max_read_depth: Maximum number of rows; overrides the configuration.
        config: Settings; defaults are used if None.

    Returns:
        PlotData for the region.

    Raises:
        UnknownTargetError: If the contig is missing from the reference or
            the BAM header.
    """
    config = config or Config()
    settings = config.plot
    if max_read_depth is None:
        max_read_depth = settings.max_read_depth

    with Timer(f"Building plot data for {region}", logger):
        with GenomeAccessor(ref_path) as genome, AlignmentReader(bam_path) as bam:
            if region.target not in genome:
                raise UnknownTargetError(region.target, list(genome.scaffold_lengths))

            reference = Reference(
                start=region.start,
                sequence=genome.fetch_reference(region) if not region.is_empty else "",
            )
            records = bam.fetch_records(region)
            reads = build_reads(records, genome, region.target, settings.aux_tags)

        coverage = compute_coverage(reads, region)
        layout: LayoutResult = layout_reads(
            reads,
            max_read_depth,
            sampler=SeededRowSampler(settings.subsample_seed),
            buffer=settings.row_buffer,
        )

    logger.info(f"{region}: {layout.description}")

    return PlotData(
        region=region,
        reference=reference,
        reads=layout.reads,
        coverage=coverage,
        total_count=layout.total_count,
        retained_count=layout.retained_count,
    )
