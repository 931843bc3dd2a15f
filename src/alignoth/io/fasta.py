"""Reference sequence access.

Indexed random access to a FASTA reference via pyfaidx. Reference bases
are returned upper-case so soft-masked regions compare equal to read
bases.

Example:
    >>> from alignoth.io.fasta import GenomeAccessor
    >>> with GenomeAccessor("reference.fa") as genome:
    ...     bases = genome.fetch_reference(Region("chr1", 0, 20))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pyfaidx

from alignoth.utils.regions import Region, UnknownTargetError

logger = logging.getLogger(__name__)

# Base used to pad windows reaching past either contig end
PAD_BASE = "N"


class GenomeAccessor:
    """Indexed FASTA access using pyfaidx.

    Attributes:
        path: Path to the FASTA file.

    Example:
        >>> genome = GenomeAccessor("reference.fa")
        >>> genome.get_sequence("chr1", 1000, 2000)
    """

    def __init__(self, fasta_path: Path | str) -> None:
        """Open the reference, building a .fai index if needed.

        Args:
            fasta_path: Path to FASTA file.

        Raises:
            FileNotFoundError: If FASTA file doesn't exist.
        """
        self.path = Path(fasta_path)
        if not self.path.exists():
            raise FileNotFoundError(f"FASTA file not found: {self.path}")

        self._fasta: pyfaidx.Fasta | None = None
        self._scaffold_lengths: dict[str, int] = {}

        self._open()

    def _open(self) -> None:
        """Open the FASTA file with pyfaidx."""
        self._fasta = pyfaidx.Fasta(
            str(self.path),
            sequence_always_upper=True,
            read_ahead=10000,
            rebuild=False,
        )
        self._scaffold_lengths = {
            seqid: len(self._fasta[seqid]) for seqid in self._fasta.keys()
        }

        logger.info(
            f"Opened FASTA: {self.path.name}, {len(self._scaffold_lengths)} scaffolds"
        )

    @property
    def scaffold_lengths(self) -> dict[str, int]:
        """Return {seqid: length} mapping."""
        return self._scaffold_lengths.copy()

    def __enter__(self) -> GenomeAccessor:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the FASTA file."""
        if self._fasta is not None:
            self._fasta.close()
            self._fasta = None

    def __contains__(self, seqid: str) -> bool:
        return seqid in self._scaffold_lengths

    def get_length(self, seqid: str) -> int:
        """Get the length of a scaffold.

        Raises:
            UnknownTargetError: If seqid not in FASTA.
        """
        if seqid not in self._scaffold_lengths:
            raise UnknownTargetError(seqid, list(self._scaffold_lengths))
        return self._scaffold_lengths[seqid]

    def get_sequence(self, seqid: str, start: int, end: int) -> str:
        """Get sequence for region (0-based, half-open coordinates).

        Args:
            seqid: Scaffold/chromosome name.
            start: Start position (0-based, inclusive).
            end: End position (0-based, exclusive).

        Returns:
            Upper-case sequence string; empty if ``start >= end``.

        Raises:
            RuntimeError: If the file was closed.
            UnknownTargetError: If seqid not in FASTA.
            ValueError: If the window lies outside the scaffold.
        """
        if self._fasta is None:
            raise RuntimeError("FASTA file not opened")

        scaffold_length = self.get_length(seqid)
        if start < 0:
            raise ValueError(f"Start position cannot be negative: {start}")
        if end > scaffold_length:
            raise ValueError(
                f"End position {end} exceeds scaffold length {scaffold_length}"
            )
        if start >= end:
            return ""

        return str(self._fasta[seqid][start:end])

    def fetch_reference(self, region: Region) -> str:
        """Reference bases covering exactly ``[region.start, region.end)``.

        Raises:
            UnknownTargetError: If the contig is unknown.
            ValueError: If the region lies outside the contig.
        """
        return self.get_sequence(region.target, region.start, region.end)

    def fetch_window(self, region: Region) -> str:
        """Reference bases for a window that may run past the contig ends.

        Positions outside the contig are filled with ``N`` so the result
        always has ``region.length`` bases.

        Raises:
            UnknownTargetError: If the contig is unknown.
        """
        length = self.get_length(region.target)
        inside = region.clamp(0, length)
        sequence = self.get_sequence(inside.target, inside.start, inside.end)
        if inside == region:
            return sequence

        left_pad = inside.start - region.start
        right_pad = max(region.end - max(inside.end, region.start), 0)
        if not sequence:
            # Entirely outside the contig
            return PAD_BASE * max(region.length, 0)
        return PAD_BASE * left_pad + sequence + PAD_BASE * right_pad
