"""Genomic region arithmetic and boundary parsing.

Coordinate conventions:
    - User input: 1-based inclusive (standard genomic convention)
    - Internal storage: 0-based half-open (Python convention)

User-facing coordinates are converted exactly once, in ``parse_region``
or ``Region.from_one_based``. Nothing inside the core converts back.

Example:
    >>> from alignoth.utils.regions import parse_region
    >>> region = parse_region("chr1:1000-2000")
    >>> region.start   # 999 (0-based)
    >>> region.end     # 2000 (half-open)
    >>> region.length  # 1001
"""

from __future__ import annotations

import re
from typing import NamedTuple


# =============================================================================
# Exceptions
# =============================================================================


class UnknownTargetError(KeyError):
    """Raised when a contig is absent from a sequence or alignment index."""

    def __init__(self, target: str, available: list[str] | None = None) -> None:
        self.target = target
        self.available = available or []
        super().__init__(target)

    def __str__(self) -> str:
        message = f"Target '{self.target}' not found in index"
        if self.available:
            shown = self.available[:5]
            suffix = "..." if len(self.available) > 5 else ""
            message += f". Available: {shown}{suffix}"
        return message


# =============================================================================
# Region
# =============================================================================


class Region(NamedTuple):
    """Half-open genomic interval ``[start, end)`` on a named contig.

    Attributes:
        target: Contig/chromosome name.
        start: Start position (0-based, inclusive).
        end: End position (0-based, exclusive).
    """

    target: str
    start: int  # 0-based, inclusive
    end: int  # 0-based, exclusive

    def __str__(self) -> str:
        """Return string representation in 1-based inclusive format."""
        return f"{self.target}:{self.start + 1}-{self.end}"

    @classmethod
    def from_one_based(cls, target: str, start: int, end: int) -> Region:
        """Build a region from 1-based inclusive coordinates."""
        return cls(target, start - 1, end)

    @property
    def length(self) -> int:
        """Region length in base pairs (may be negative for inverted input)."""
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        """True if the region spans no bases."""
        return self.end <= self.start

    def contains(self, position: int, target: str) -> bool:
        """Check whether a position lies within the region.

        Both bounds are inclusive, so the position directly after the
        last base still counts. This matches how highlight intervals are
        selected for display.

        Args:
            position: Position to check (0-based).
            target: Contig of the position.

        Returns:
            True if on the same contig and ``start <= position <= end``.
        """
        return self.target == target and self.start <= position <= self.end

    def overlaps(self, start: int, end: int, target: str) -> bool:
        """Check whether an interval touches or overlaps the region.

        Args:
            start: Interval start.
            end: Interval end.
            target: Contig of the interval.

        Returns:
            True if on the same contig and ``start <= self.end`` and
            ``end >= self.start``.
        """
        return self.target == target and start <= self.end and end >= self.start

    def clamp(self, minimum: int, maximum: int) -> Region:
        """Clip start and end into ``[minimum, maximum]``.

        Args:
            minimum: Lowest allowed coordinate.
            maximum: Highest allowed coordinate.

        Returns:
            New Region with both bounds clipped.
        """
        return Region(
            self.target,
            min(max(self.start, minimum), maximum),
            min(max(self.end, minimum), maximum),
        )


# =============================================================================
# Parsing
# =============================================================================

# Handles: chr1:1000-2000, chr1:1,000-2,000, HLA:HLA00318:100-200
_REGION_PATTERN = re.compile(r"^(.+):([\d,]+)-([\d,]+)$")


def parse_region(region_str: str) -> Region:
    """Parse a 1-based inclusive region string into a Region.

    Args:
        region_str: Region string in format target:start-end.

    Returns:
        Region with 0-based, half-open coordinates.

    Raises:
        ValueError: If the format or the coordinates are invalid.

    Example:
        >>> parse_region("chr1:1000-2000")
        Region(target='chr1', start=999, end=2000)
    """
    match = _REGION_PATTERN.match(region_str.strip())

    if not match:
        raise ValueError(
            f"Invalid region format: '{region_str}'. "
            "Expected format: target:start-end (e.g., chr1:1000-2000)"
        )

    target = match.group(1)
    start = int(match.group(2).replace(",", ""))
    end = int(match.group(3).replace(",", ""))

    if start < 1:
        raise ValueError(f"Start position must be >= 1, got {start}")
    if end < start:
        raise ValueError(f"End must be >= start: {start}-{end}")

    return Region.from_one_based(target, start, end)


def region_to_str(region: Region, one_based: bool = True) -> str:
    """Convert region to string representation.

    Args:
        region: Region (0-based internally).
        one_based: If True, output 1-based inclusive coordinates.
            If False, output 0-based half-open coordinates.

    Returns:
        Region string in requested format.
    """
    if one_based:
        return str(region)
    return f"{region.target}:{region.start}-{region.end}"
