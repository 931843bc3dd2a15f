"""Row layout for read plots.

Assigns every read a display row so that reads sharing a row never
touch, keeps mates on the same row, and caps the number of rows by
sampling a reproducible subset of them.

Layout runs in two phases:

1. ``assign_rows`` walks the reads once (sorted by start, as fetched
   from an indexed file) and returns one row number per read.
2. ``subsample_rows`` keeps every read of a seeded random selection of
   rows when more rows were used than allowed.

``layout_reads`` chains both and returns new Read objects with their
row set; the input reads are never modified.

Example:
    >>> result = layout_reads(reads, max_rows=500)
    >>> print(f"{result.retained_count} of {result.total_count} reads")
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

import attrs
import numpy as np

from alignoth.config import DEFAULT_ROW_BUFFER, DEFAULT_SUBSAMPLE_SEED
from alignoth.core.reads import NO_MATE, Read

logger = logging.getLogger(__name__)


# =============================================================================
# Row Sampling
# =============================================================================


class RowSampler(Protocol):
    """Selects which rows survive subsampling."""

    def sample(self, used_rows: int, max_rows: int) -> frozenset[int]:
        """Pick ``max_rows`` distinct rows out of ``1..used_rows``."""
        ...


@attrs.define(frozen=True)
class SeededRowSampler:
    """Uniform sampling without replacement from a fixed seed.

    A fresh generator is created per call, so the same arguments always
    give the same rows.

    Attributes:
        seed: Seed of the numpy generator.
    """

    seed: int = DEFAULT_SUBSAMPLE_SEED

    def sample(self, used_rows: int, max_rows: int) -> frozenset[int]:
        if max_rows <= 0 or used_rows <= 0:
            return frozenset()
        if max_rows >= used_rows:
            return frozenset(range(1, used_rows + 1))
        rng = np.random.default_rng(self.seed)
        chosen = rng.choice(np.arange(1, used_rows + 1), size=max_rows, replace=False)
        return frozenset(int(row) for row in chosen)


# =============================================================================
# Layout Result
# =============================================================================


@attrs.define(frozen=True)
class LayoutResult:
    """Outcome of laying out a region's reads.

    Attributes:
        reads: Retained reads with their row set, in input order.
        total_count: Number of reads before subsampling.
        retained_count: Number of reads after subsampling.
        used_rows: Highest row assigned before subsampling.
        selected_rows: Rows kept by subsampling (None if not subsampled).
    """

    reads: list[Read]
    total_count: int
    retained_count: int
    used_rows: int
    selected_rows: frozenset[int] | None = None

    @property
    def subsampled(self) -> bool:
        """True if rows were dropped to honour the depth limit."""
        return self.selected_rows is not None

    @property
    def description(self) -> str:
        """Human-readable read count, e.g. '12 of 40 reads (subsampled)'."""
        if self.subsampled:
            return f"{self.retained_count} of {self.total_count} reads (subsampled)"
        return f"{self.total_count} reads"


# =============================================================================
# Layout
# =============================================================================


def assign_rows(reads: Sequence[Read], buffer: int = DEFAULT_ROW_BUFFER) -> list[int]:
    """Greedily place each read in the first row it fits.

    A read reuses its mate's row if the mate was placed earlier. Otherwise
    a row fits when it is unused, or when the read (and its mate, for
    paired reads) starts more than ``buffer`` bases after the row's
    current end. Placing a read reserves the row up to the later of its
    own end and its mate's start.

    Rows are numbered from 1; row 0 is never assigned. There is always
    one spare empty row at the end, so every read gets a row.

    Args:
        reads: Reads sorted by start position.
        buffer: Minimum gap between neighbouring reads in a row.

    Returns:
        Row number of each read, parallel to ``reads``.
    """
    # Index 0 is unused; a watermark of 0 means the row is still empty
    row_ends = [0, 0]
    rows_by_name: dict[str, int] = {}
    rows: list[int] = []

    for read in reads:
        mate_row = rows_by_name.get(read.name)
        if mate_row is not None:
            rows.append(mate_row)
            row_ends[mate_row] = max(row_ends[mate_row], read.end_position)
            continue

        for row in range(1, len(row_ends)):
            row_end = row_ends[row]
            if (
                min(read.position, read.mate_position) > row_end + buffer
                or (read.mate_position <= NO_MATE and read.position > row_end + buffer)
                or row_end == 0
            ):
                rows.append(row)
                row_ends[row] = max(read.end_position, read.mate_position)
                rows_by_name[read.name] = row
                if row == len(row_ends) - 1:
                    row_ends.append(0)
                break

    return rows


def subsample_rows(
    rows: Sequence[int],
    max_rows: int,
    sampler: RowSampler | None = None,
) -> frozenset[int] | None:
    """Choose the rows to keep when more than ``max_rows`` are used.

    Args:
        rows: Row number of each read.
        max_rows: Maximum number of rows to display.
        sampler: Row selection strategy; seeded with 42 by default.

    Returns:
        The kept rows, or None if no subsampling is needed.
    """
    used_rows = max(rows, default=0)
    if used_rows <= max_rows:
        return None
    sampler = sampler or SeededRowSampler()
    return sampler.sample(used_rows, max_rows)


def layout_reads(
    reads: Sequence[Read],
    max_rows: int,
    sampler: RowSampler | None = None,
    buffer: int = DEFAULT_ROW_BUFFER,
) -> LayoutResult:
    """Assign rows to reads and subsample rows beyond ``max_rows``.

    Args:
        reads: Reads sorted by start position.
        max_rows: Maximum number of rows to display.
        sampler: Row selection strategy; seeded with 42 by default.
        buffer: Minimum gap between neighbouring reads in a row.

    Returns:
        LayoutResult with the retained reads and read counts.
    """
    rows = assign_rows(reads, buffer=buffer)
    used_rows = max(rows, default=0)
    selected = subsample_rows(rows, max_rows, sampler)

    placed = [
        read.with_row(row)
        for read, row in zip(reads, rows)
        if selected is None or row in selected
    ]

    if selected is not None:
        logger.info(
            f"Subsampled {used_rows} rows down to {len(selected)}: "
            f"kept {len(placed)} of {len(reads)} reads"
        )
    else:
        logger.debug(f"Placed {len(reads)} reads in {used_rows} rows")

    return LayoutResult(
        reads=placed,
        total_count=len(reads),
        retained_count=len(placed),
        used_rows=used_rows,
        selected_rows=selected,
    )
