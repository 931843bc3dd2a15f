"""Per-base coverage and mismatch histogram.

Folds the edit scripts of all reads in a region into counts per
reference position: how many reads match the reference there, and how
many carry each substituted base.

Coverage wire record: positions joined by ``§``, each position written
as ``a|t|g|c|m``.

Example:
    >>> histogram = compute_coverage(reads, Region("chr1", 0, 20))
    >>> histogram[4]
    BaseCounts(a=0, t=0, g=0, c=0, m=1)
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, NamedTuple

import attrs
import numpy as np

from alignoth.core.cigar import Del, Ins, Match
from alignoth.core.reads import WIRE_SEPARATOR, Read
from alignoth.utils.regions import Region

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# Column order of the count matrix and of the wire record
COLUMNS = ("a", "t", "g", "c", "m")
MATCH_COLUMN = COLUMNS.index("m")
BASE_COLUMNS = {base.upper(): i for i, base in enumerate(COLUMNS[:4])}


# =============================================================================
# Data Structures
# =============================================================================


class BaseCounts(NamedTuple):
    """Counts at one reference position.

    Attributes:
        a: Reads substituting A.
        t: Reads substituting T.
        g: Reads substituting G.
        c: Reads substituting C.
        m: Reads matching the reference (or substituting a non-ACGT base).
    """

    a: int = 0
    t: int = 0
    g: int = 0
    c: int = 0
    m: int = 0

    @property
    def depth(self) -> int:
        """Total number of reads covering the position."""
        return self.a + self.t + self.g + self.c + self.m

    @property
    def mismatches(self) -> int:
        """Number of reads substituting an A, T, G or C."""
        return self.a + self.t + self.g + self.c


def _column_for(base: str) -> int:
    return BASE_COLUMNS.get(base.upper(), MATCH_COLUMN)


@attrs.define(frozen=True, eq=False)
class CoverageHistogram:
    """Base counts for every position of a region.

    Attributes:
        start: Reference position of the first row.
        counts: Integer matrix of shape (length, 5), columns a, t, g, c, m.
    """

    start: int
    counts: np.ndarray

    @classmethod
    def empty(cls, region: Region) -> CoverageHistogram:
        """Zeroed histogram sized to ``region``."""
        return cls(region.start, np.zeros((max(region.length, 0), len(COLUMNS)), dtype=np.int64))

    @classmethod
    def from_wire(cls, text: str, start: int = 0) -> CoverageHistogram:
        """Parse the ``a|t|g|c|m§...`` wire form.

        Raises:
            ValueError: If a position does not hold exactly five integers.
        """
        if not text:
            return cls(start, np.zeros((0, len(COLUMNS)), dtype=np.int64))
        rows = []
        for position in text.split(WIRE_SEPARATOR):
            values = position.split("|")
            if len(values) != len(COLUMNS):
                raise ValueError(f"Invalid coverage record: '{position}'")
            rows.append([int(v) for v in values])
        return cls(start, np.array(rows, dtype=np.int64))

    def __len__(self) -> int:
        return int(self.counts.shape[0])

    def __getitem__(self, index: int) -> BaseCounts:
        return BaseCounts(*(int(v) for v in self.counts[index]))

    def __iter__(self) -> Iterator[BaseCounts]:
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoverageHistogram):
            return NotImplemented
        return self.start == other.start and np.array_equal(self.counts, other.counts)

    @property
    def depth(self) -> np.ndarray:
        """Total reads per position."""
        return self.counts.sum(axis=1)

    def to_wire(self) -> str:
        """Encode as positions joined by ``§``, counts joined by ``|``."""
        return WIRE_SEPARATOR.join(
            "|".join(str(int(v)) for v in row) for row in self.counts
        )


# =============================================================================
# Aggregation
# =============================================================================


def compute_coverage(reads: Iterable[Read], region: Region) -> CoverageHistogram:
    """Count matching and substituted bases per position of ``region``.

    Pass the reads before subsampling so the histogram reflects every
    observed read. Each read's edit script is replayed from its displayed
    start; Match and Sub runs increment the positions they cover inside
    the region, Del runs only move the cursor and Ins runs are ignored.

    Args:
        reads: Reads overlapping the region.
        region: Region the histogram covers.

    Returns:
        Histogram with one entry per base of the region.
    """
    histogram = CoverageHistogram.empty(region)
    counts = histogram.counts
    n_counted = 0

    for read in reads:
        if read.end_position <= region.start or read.position >= region.end:
            continue
        n_counted += 1

        cursor = read.position
        for op in read.cigar:
            if isinstance(op, Ins):
                continue
            if isinstance(op, Del):
                cursor += op.length
                continue

            column = MATCH_COLUMN if isinstance(op, Match) else _column_for(op.base)
            lo = max(cursor, region.start)
            hi = min(cursor + op.length, region.end)
            if lo < hi:
                counts[lo - region.start : hi - region.start, column] += 1
            cursor += op.length

    logger.debug(f"Coverage over {region}: {n_counted} reads counted")
    return histogram
