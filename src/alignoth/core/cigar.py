"""Reference-relative CIGAR diffing.

Turns an alignment's native CIGAR operations plus its read and reference
bases into a PlotCigar: an ordered edit script of match, substitution,
insertion and deletion runs.

PlotCigar text grammar:

| Edit          | Syntax          |
|---------------|-----------------|
| Match         | `<#matches>=`   |
| Deletion      | `<#deletions>d` |
| Substitution  | `<#><base>`     |
| Insertion     | `i<bases>`      |

Ops are joined with ``|``, e.g. ``50=|3d|10=|1C|1G|iGGT``.

Example:
    >>> from alignoth.core.cigar import diff_cigar, CIGAR_M
    >>> str(diff_cigar([(CIGAR_M, 6)], "AAGCCA", "AAGCTA"))
    '4=|1C|1='
"""

from __future__ import annotations

import logging
import re
from itertools import groupby
from typing import Iterable, Iterator, Sequence, Union

import attrs

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

# CIGAR operations (pysam cigartuples codes)
CIGAR_M = 0  # Match or mismatch
CIGAR_I = 1  # Insertion
CIGAR_D = 2  # Deletion
CIGAR_N = 3  # Skipped region
CIGAR_S = 4  # Soft clip
CIGAR_H = 5  # Hard clip
CIGAR_P = 6  # Padding
CIGAR_EQ = 7  # Sequence match
CIGAR_X = 8  # Sequence mismatch

CIGAR_NAMES = {
    CIGAR_M: "M",
    CIGAR_I: "I",
    CIGAR_D: "D",
    CIGAR_N: "N",
    CIGAR_S: "S",
    CIGAR_H: "H",
    CIGAR_P: "P",
    CIGAR_EQ: "=",
    CIGAR_X: "X",
}

# Operations whose read and reference bases are compared position by position.
# Soft clips are included so clipped bases are drawn against the reference.
COMPARED_OPS = frozenset({CIGAR_M, CIGAR_S, CIGAR_EQ, CIGAR_X})

# Operations that consume neither read nor reference bases
SKIPPED_OPS = frozenset({CIGAR_H, CIGAR_P})


# =============================================================================
# Edit Operations
# =============================================================================


@attrs.define(frozen=True)
class Match:
    """Run of reference-identical bases."""

    length: int

    @property
    def ref_length(self) -> int:
        return self.length

    @property
    def read_length(self) -> int:
        return self.length

    def __str__(self) -> str:
        return f"{self.length}="


@attrs.define(frozen=True)
class Sub:
    """Run of bases all substituted to the same base."""

    length: int
    base: str

    @property
    def ref_length(self) -> int:
        return self.length

    @property
    def read_length(self) -> int:
        return self.length

    def __str__(self) -> str:
        return f"{self.length}{self.base}"


@attrs.define(frozen=True)
class Ins:
    """Bases present in the read but not in the reference."""

    bases: str

    @property
    def length(self) -> int:
        return len(self.bases)

    @property
    def ref_length(self) -> int:
        return 0

    @property
    def read_length(self) -> int:
        return len(self.bases)

    def __str__(self) -> str:
        return f"i{self.bases}"


@attrs.define(frozen=True)
class Del:
    """Reference bases missing from the read."""

    length: int

    @property
    def ref_length(self) -> int:
        return self.length

    @property
    def read_length(self) -> int:
        return 0

    def __str__(self) -> str:
        return f"{self.length}d"


EditOp = Union[Match, Sub, Ins, Del]

_MATCH_PATTERN = re.compile(r"^([1-9]\d*)=$")
_DEL_PATTERN = re.compile(r"^([1-9]\d*)d$")
_SUB_PATTERN = re.compile(r"^([1-9]\d*)([^\d|=])$")
_INS_PATTERN = re.compile(r"^i([^|]+)$")


def parse_edit_op(token: str) -> EditOp:
    """Parse a single PlotCigar token.

    Args:
        token: Token such as ``16=``, ``3d``, ``1T`` or ``iAA``.

    Returns:
        The corresponding edit operation.

    Raises:
        ValueError: If the token is not well-formed.
    """
    if match := _INS_PATTERN.match(token):
        return Ins(match.group(1))
    if match := _MATCH_PATTERN.match(token):
        return Match(int(match.group(1)))
    if match := _DEL_PATTERN.match(token):
        return Del(int(match.group(1)))
    if match := _SUB_PATTERN.match(token):
        return Sub(int(match.group(1)), match.group(2))
    raise ValueError(f"Invalid PlotCigar token: '{token}'")


# =============================================================================
# PlotCigar
# =============================================================================


@attrs.define(frozen=True)
class PlotCigar:
    """Ordered edit script of a read relative to the reference.

    Op order is significant: replaying the ops in order reconstructs the
    read against the reference. Reference-consuming ops (Match, Sub, Del)
    add up to ``ref_length``; read-consuming ops (Match, Sub, Ins) add up
    to ``read_length``.

    Attributes:
        ops: Edit operations in alignment order.
    """

    ops: tuple[EditOp, ...] = attrs.field(default=(), converter=tuple)

    @classmethod
    def from_str(cls, text: str) -> PlotCigar:
        """Parse the ``|``-joined text form.

        Args:
            text: PlotCigar text, e.g. ``16=|iAA|80=|1T|1=``.

        Returns:
            Parsed PlotCigar. An empty string gives an empty script.

        Raises:
            ValueError: If any token is malformed.
        """
        if not text:
            return cls()
        return cls(parse_edit_op(token) for token in text.split("|"))

    def __str__(self) -> str:
        return "|".join(str(op) for op in self.ops)

    def __iter__(self) -> Iterator[EditOp]:
        return iter(self.ops)

    def __len__(self) -> int:
        return len(self.ops)

    def __getitem__(self, index: int) -> EditOp:
        return self.ops[index]

    @property
    def ref_length(self) -> int:
        """Number of reference bases spanned by the script."""
        return sum(op.ref_length for op in self.ops)

    @property
    def read_length(self) -> int:
        """Number of read bases described by the script."""
        return sum(op.read_length for op in self.ops)

    @property
    def n_mismatches(self) -> int:
        """Number of substituted bases."""
        return sum(op.length for op in self.ops if isinstance(op, Sub))


# =============================================================================
# Diff Engine
# =============================================================================


def match_bases(read_seq: str, ref_seq: str) -> list[EditOp]:
    """Compare two equally long sequences position by position.

    Equal positions collapse into one Match. Unequal positions collapse
    into maximal runs of a single substituted base, so ``CG`` against
    ``AA`` gives two Sub ops.

    Args:
        read_seq: Read bases.
        ref_seq: Reference bases at the same positions.

    Returns:
        Edit operations in order.

    Raises:
        ValueError: If the sequences differ in length.
    """
    if len(read_seq) != len(ref_seq):
        raise ValueError(
            f"Cannot compare sequences of different length: "
            f"{len(read_seq)} read bases vs {len(ref_seq)} reference bases"
        )

    ops: list[EditOp] = []
    pairs = zip(read_seq, ref_seq)
    for is_match, group in groupby(pairs, key=lambda pair: pair[0] == pair[1]):
        if is_match:
            ops.append(Match(sum(1 for _ in group)))
        else:
            for base, run in groupby(read for read, _ in group):
                ops.append(Sub(sum(1 for _ in run), base))
    return ops


def diff_cigar(
    cigartuples: Iterable[tuple[int, int]],
    read_seq: str,
    ref_seq: str,
    read_name: str | None = None,
) -> PlotCigar:
    """Build the PlotCigar of an alignment.

    ``ref_seq`` must cover the read's displayed span, i.e. the aligned
    span extended by leading and trailing soft clips. A window fetched
    from the wrong offset shifts every comparison.

    Reference skips (N) are emitted as deletions so later ops stay at
    the right reference offset. Hard clips and padding consume no bases
    and are dropped. Both cases are logged since the display cannot show
    them faithfully.

    Args:
        cigartuples: Native (operation, length) pairs, as from pysam.
        read_seq: Full query sequence of the record.
        ref_seq: Reference bases of the displayed span.
        read_name: Record name, used in log messages.

    Returns:
        The edit script of the alignment.

    Raises:
        ValueError: If the read or reference runs out of bases before the
            CIGAR does.
    """
    read_seq = read_seq.upper()
    ref_seq = ref_seq.upper()

    ops: list[EditOp] = []
    read_index = 0
    ref_index = 0
    unsupported: set[int] = set()

    for op, length in cigartuples:
        if length <= 0:
            continue

        if op in COMPARED_OPS:
            read_chunk = read_seq[read_index : read_index + length]
            ref_chunk = ref_seq[ref_index : ref_index + length]
            _check_chunk(read_chunk, length, "read", read_name)
            _check_chunk(ref_chunk, length, "reference", read_name)
            ops.extend(match_bases(read_chunk, ref_chunk))
            read_index += length
            ref_index += length

        elif op == CIGAR_I:
            read_chunk = read_seq[read_index : read_index + length]
            _check_chunk(read_chunk, length, "read", read_name)
            ops.append(Ins(read_chunk))
            read_index += length

        elif op == CIGAR_D:
            ops.append(Del(length))
            ref_index += length

        elif op == CIGAR_N:
            ops.append(Del(length))
            ref_index += length
            unsupported.add(op)

        else:
            unsupported.add(op)

    for op in sorted(unsupported):
        logger.warning(
            f"Read {read_name or '<unnamed>'}: CIGAR operation "
            f"'{CIGAR_NAMES.get(op, op)}' is not drawn faithfully"
        )

    return PlotCigar(ops)


def _check_chunk(chunk: Sequence[str], length: int, kind: str, read_name: str | None) -> None:
    if len(chunk) != length:
        raise ValueError(
            f"Read {read_name or '<unnamed>'}: {kind} sequence too short for CIGAR "
            f"(needed {length} bases, got {len(chunk)})"
        )


def cigar_to_str(cigartuples: Iterable[tuple[int, int]]) -> str:
    """Render native CIGAR tuples in SAM text form."""
    return "".join(f"{length}{CIGAR_NAMES.get(op, '?')}" for op, length in cigartuples)
