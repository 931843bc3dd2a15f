"""Read model and its compact wire encoding.

A Read bundles the edit script of one alignment record with the fields
a plot needs. Its ``position``/``end_position`` include soft-clipped
bases, so they describe the span drawn on screen rather than the
aligned span.

Encoded-read wire record (one read):

    aux cigar flags mapq mpos name position row raw_cigar

Reads are joined with ``§``. ``aux`` is ``key: value`` pairs joined by
commas with spaces replaced by underscores; an unset row or empty aux
map is written as ``.``.

Example:
    >>> read = Read("r1", PlotCigar.from_str("10="), 100, 110, flags=99, mapq=60)
    >>> read.to_wire()
    '. 10= 99 60 -1 r1 100 . *'
"""

from __future__ import annotations

from typing import Iterable, Mapping

import attrs

from alignoth.core.cigar import PlotCigar

# =============================================================================
# Constants
# =============================================================================

# Mate position of reads without a (mapped) mate
NO_MATE = -1

# Substituted for auxiliary tags missing from a record
MISSING_AUX_VALUE = "NA"

# Separator between encoded records
WIRE_SEPARATOR = "§"

# Placeholder for empty wire fields
EMPTY_FIELD = "."

# SAM flag bits
FLAG_PAIRED = 0x1
FLAG_REVERSE = 0x10


# =============================================================================
# Read Model
# =============================================================================


@attrs.define(frozen=True)
class Read:
    """An alignment record prepared for plotting.

    Attributes:
        name: Query name; mates share it.
        cigar: Edit script relative to the reference.
        position: Displayed start (0-based, includes leading soft clips).
        end_position: Displayed end (exclusive, includes trailing soft clips).
        flags: SAM flag bits.
        mapq: Mapping quality.
        mate_position: Mate start, or NO_MATE.
        row: Display row, set by the layout engine.
        aux: Selected auxiliary tags rendered as text.
        raw_cigar: Native CIGAR string of the record.
    """

    name: str
    cigar: PlotCigar
    position: int
    end_position: int
    flags: int = 0
    mapq: int = 0
    mate_position: int = NO_MATE
    row: int | None = None
    aux: dict[str, str] = attrs.field(factory=dict, hash=False)
    raw_cigar: str = "*"

    @property
    def length(self) -> int:
        """Displayed span in reference bases."""
        return self.end_position - self.position

    @property
    def has_mate(self) -> bool:
        return self.mate_position > NO_MATE

    @property
    def is_paired(self) -> bool:
        return bool(self.flags & FLAG_PAIRED)

    @property
    def is_reverse(self) -> bool:
        return bool(self.flags & FLAG_REVERSE)

    @property
    def strand(self) -> str:
        return "-" if self.is_reverse else "+"

    def with_row(self, row: int) -> Read:
        """Return a copy of this read placed in ``row``."""
        return attrs.evolve(self, row=row)

    def to_wire(self) -> str:
        """Encode this read as a single space-separated record."""
        fields = [
            encode_aux(self.aux),
            str(self.cigar) or EMPTY_FIELD,
            str(self.flags),
            str(self.mapq),
            str(self.mate_position),
            self.name,
            str(self.position),
            EMPTY_FIELD if self.row is None else str(self.row),
            self.raw_cigar or EMPTY_FIELD,
        ]
        return " ".join(fields)


# =============================================================================
# Wire Encoding
# =============================================================================


def encode_aux(aux: Mapping[str, str]) -> str:
    """Encode an aux mapping as ``key:_value`` pairs joined by commas.

    Args:
        aux: Tag name to value text.

    Returns:
        Encoded text without spaces, or ``.`` for an empty mapping.
    """
    if not aux:
        return EMPTY_FIELD
    return ",".join(f"{key}: {value}" for key, value in aux.items()).replace(" ", "_")


def encode_reads(reads: Iterable[Read]) -> str:
    """Encode many reads into one ``§``-separated string."""
    return WIRE_SEPARATOR.join(read.to_wire() for read in reads)
