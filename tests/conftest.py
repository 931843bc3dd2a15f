"""Pytest configuration and shared fixtures for alignoth tests.

- Path fixtures: small FASTA references written to tmp_path
- Factory fixtures: mock pysam records and Read objects
"""

from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from alignoth.core.cigar import CIGAR_D, CIGAR_EQ, CIGAR_M, CIGAR_N, CIGAR_X, PlotCigar, cigar_to_str
from alignoth.core.reads import NO_MATE, Read

# First 20 bases of chr1; the rest is filler so reads can extend past 20
CHR1_PREFIX = "TTGCCGGGGTGGGGAGAGAG"
CHR1 = CHR1_PREFIX + ("ACGT" * 26)[:103]
CHR2 = "ACGTACGTAC" * 5

REFERENCE_CONSUMING = {CIGAR_M, CIGAR_D, CIGAR_N, CIGAR_EQ, CIGAR_X}


def write_fasta(path: Path, sequences: dict[str, str], width: int = 60) -> Path:
    """Write sequences as a FASTA file with fixed line width."""
    with open(path, "w") as f:
        for seqid, seq in sequences.items():
            f.write(f">{seqid}\n")
            for i in range(0, len(seq), width):
                f.write(seq[i : i + width] + "\n")
    return path


# =============================================================================
# FASTA Fixtures
# =============================================================================


@pytest.fixture
def reference_fasta(tmp_path: Path) -> Path:
    """Reference with chr1 (123 bp) and chr2 (50 bp)."""
    return write_fasta(tmp_path / "reference.fa", {"chr1": CHR1, "chr2": CHR2})


@pytest.fixture
def soft_masked_fasta(tmp_path: Path) -> Path:
    """Reference with lower-case (soft-masked) bases."""
    return write_fasta(tmp_path / "masked.fa", {"chr1": "acgtACGTacgt"})


@pytest.fixture
def indexed_bam(tmp_path: Path) -> Path:
    """Empty BAM path with an index next to it (contents are mocked)."""
    bam_path = tmp_path / "reads.bam"
    bam_path.touch()
    (tmp_path / "reads.bam.bai").touch()
    return bam_path


# =============================================================================
# Record and Read Factories
# =============================================================================


@pytest.fixture
def make_record() -> Callable[..., MagicMock]:
    """Factory for mock pysam.AlignedSegment objects."""

    def _make(
        name: str,
        start: int,
        cigar: list[tuple[int, int]],
        sequence: str,
        flag: int = 0,
        mapq: int = 60,
        mate_start: int = -1,
        tags: dict | None = None,
        is_unmapped: bool = False,
    ) -> MagicMock:
        tags = tags or {}
        record = MagicMock()
        record.query_name = name
        record.reference_start = start
        record.reference_end = start + sum(
            length for op, length in cigar if op in REFERENCE_CONSUMING
        )
        record.cigartuples = cigar
        record.cigarstring = cigar_to_str(cigar)
        record.query_sequence = sequence
        record.flag = flag
        record.mapping_quality = mapq
        record.next_reference_start = mate_start
        record.is_unmapped = is_unmapped

        def get_tag(tag: str):
            if tag not in tags:
                raise KeyError(tag)
            return tags[tag]

        record.get_tag.side_effect = get_tag
        return record

    return _make


@pytest.fixture
def make_read() -> Callable[..., Read]:
    """Factory for Read objects spanning ``[position, end_position)``."""

    def _make(
        name: str,
        position: int,
        end_position: int,
        mate_position: int = NO_MATE,
        cigar: str | None = None,
    ) -> Read:
        plot_cigar = PlotCigar.from_str(cigar if cigar is not None else f"{end_position - position}=")
        return Read(
            name=name,
            cigar=plot_cigar,
            position=position,
            end_position=end_position,
            mate_position=mate_position,
        )

    return _make


@pytest.fixture
def chr1_sequence() -> str:
    """Full chr1 sequence of ``reference_fasta``."""
    return CHR1
