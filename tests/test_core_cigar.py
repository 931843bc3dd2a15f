"""Unit tests for alignoth.core.cigar.

Tests cover:
- PlotCigar text grammar (formatting and parsing)
- Base matching into Match/Sub runs
- CIGAR diffing for match, clip, insertion, deletion and unsupported ops
"""

import logging

import pytest

from alignoth.core.cigar import (
    CIGAR_D,
    CIGAR_EQ,
    CIGAR_H,
    CIGAR_I,
    CIGAR_M,
    CIGAR_N,
    CIGAR_S,
    CIGAR_X,
    Del,
    Ins,
    Match,
    PlotCigar,
    Sub,
    cigar_to_str,
    diff_cigar,
    match_bases,
    parse_edit_op,
)


# =============================================================================
# Text Grammar Tests
# =============================================================================


class TestPlotCigarSerialization:
    """Tests for formatting and parsing PlotCigar text."""

    def test_to_string(self) -> None:
        """All four op kinds format as documented."""
        cigar = PlotCigar(
            [Match(50), Del(3), Match(10), Sub(1, "C"), Sub(1, "G"), Ins("GGT")]
        )
        assert str(cigar) == "50=|3d|10=|1C|1G|iGGT"

    def test_from_str(self) -> None:
        """Parse one op of each kind."""
        cigar = PlotCigar.from_str("16=|iAA|1T|1d")
        assert cigar == PlotCigar([Match(16), Ins("AA"), Sub(1, "T"), Del(1)])

    def test_empty(self) -> None:
        """An empty string is an empty script."""
        cigar = PlotCigar.from_str("")
        assert len(cigar) == 0
        assert str(cigar) == ""

    @pytest.mark.parametrize(
        "text",
        [
            "16=|iAA|80=|1T|1=",
            "50=|3d|10=|1C|1G|iGGT",
            "1C|1=|1G|1=|1G|6=|1T|9=",
            "iACGTN",
            "120d",
            "3N|2=",
        ],
    )
    def test_round_trip(self, text: str) -> None:
        """Parsing then formatting gives back the same text."""
        assert str(PlotCigar.from_str(text)) == text

    @pytest.mark.parametrize(
        "token", ["", "=", "d", "0=", "i", "12", "3dd", "1TT", "T1", "01="]
    )
    def test_invalid_token(self, token: str) -> None:
        """Malformed tokens raise ValueError."""
        with pytest.raises(ValueError, match="Invalid PlotCigar token"):
            parse_edit_op(token)

    def test_empty_token_in_string(self) -> None:
        """Doubled separators are rejected."""
        with pytest.raises(ValueError):
            PlotCigar.from_str("16=||1d")

    def test_lengths(self) -> None:
        """Reference and read lengths follow the op kinds."""
        cigar = PlotCigar.from_str("16=|iAA|80=|1T|1=|3d")
        assert cigar.ref_length == 16 + 80 + 1 + 1 + 3
        assert cigar.read_length == 16 + 2 + 80 + 1 + 1
        assert cigar.n_mismatches == 1

    def test_indexing_and_iteration(self) -> None:
        """PlotCigar behaves like a sequence of ops."""
        cigar = PlotCigar.from_str("2=|1A")
        assert cigar[0] == Match(2)
        assert list(cigar) == [Match(2), Sub(1, "A")]


# =============================================================================
# Base Matching Tests
# =============================================================================


class TestMatchBases:
    """Tests for match_bases."""

    def test_single_substitution(self) -> None:
        """AAGCCA against AAGCTA has one C substitution."""
        assert match_bases("AAGCCA", "AAGCTA") == [Match(4), Sub(1, "C"), Match(1)]

    def test_same_base_run_merges(self) -> None:
        """Adjacent substitutions to the same base form one run."""
        assert match_bases("ACCA", "AGGA") == [Match(1), Sub(2, "C"), Match(1)]

    def test_different_bases_split(self) -> None:
        """Adjacent substitutions to different bases stay separate."""
        assert match_bases("CG", "AA") == [Sub(1, "C"), Sub(1, "G")]

    def test_all_match(self) -> None:
        assert match_bases("ACGT", "ACGT") == [Match(4)]

    def test_empty(self) -> None:
        assert match_bases("", "") == []

    def test_length_mismatch(self) -> None:
        """Sequences of different length cannot be compared."""
        with pytest.raises(ValueError, match="different length"):
            match_bases("ACG", "AC")


# =============================================================================
# CIGAR Diff Tests
# =============================================================================


class TestDiffCigar:
    """Tests for diff_cigar."""

    def test_match(self) -> None:
        """A single M with one mismatch."""
        cigar = diff_cigar([(CIGAR_M, 10)], "AAGCCATATA", "AAGCTATATA")
        assert cigar == PlotCigar([Match(4), Sub(1, "C"), Match(5)])

    def test_six_base_match(self) -> None:
        cigar = diff_cigar([(CIGAR_M, 6)], "AAGCCA", "AAGCTA")
        assert str(cigar) == "4=|1C|1="

    def test_insertion(self) -> None:
        """Inserted bases are taken from the read only."""
        cigar = diff_cigar(
            [(CIGAR_M, 2), (CIGAR_I, 1), (CIGAR_M, 2)], "AAAGC", "AAGC"
        )
        assert cigar == PlotCigar([Match(2), Ins("A"), Match(2)])

    def test_deletion(self) -> None:
        """Deleted bases advance the reference only."""
        cigar = diff_cigar(
            [(CIGAR_M, 2), (CIGAR_D, 2), (CIGAR_M, 2)], "AAGC", "AAAAGC"
        )
        assert cigar == PlotCigar([Match(2), Del(2), Match(2)])

    def test_soft_clip_compared_like_match(self) -> None:
        """Soft-clipped bases are compared against the reference."""
        cigar = diff_cigar([(CIGAR_S, 2), (CIGAR_M, 4)], "TTAAGC", "CTAAGC")
        assert str(cigar) == "1T|1=|4="

    def test_trailing_soft_clip(self) -> None:
        cigar = diff_cigar([(CIGAR_M, 3), (CIGAR_S, 2)], "ACGGG", "ACGTT")
        assert str(cigar) == "3=|2G"

    def test_explicit_match_and_mismatch_ops(self) -> None:
        """= and X are compared like M."""
        cigar = diff_cigar([(CIGAR_EQ, 2), (CIGAR_X, 1)], "AAC", "AAG")
        assert str(cigar) == "2=|1C"

    def test_case_insensitive(self) -> None:
        """Soft-masked reference bases match upper-case read bases."""
        cigar = diff_cigar([(CIGAR_M, 4)], "ACGT", "acgt")
        assert str(cigar) == "4="

    def test_reference_skip_becomes_deletion(self, caplog) -> None:
        """N advances the reference and is reported."""
        with caplog.at_level(logging.WARNING, logger="alignoth.core.cigar"):
            cigar = diff_cigar(
                [(CIGAR_M, 2), (CIGAR_N, 3), (CIGAR_M, 2)],
                "AAGC",
                "AATTTGC",
                read_name="spliced",
            )
        assert str(cigar) == "2=|3d|2="
        assert "spliced" in caplog.text
        assert "'N'" in caplog.text

    def test_hard_clip_skipped(self, caplog) -> None:
        """Hard clips consume nothing and are reported."""
        with caplog.at_level(logging.WARNING, logger="alignoth.core.cigar"):
            cigar = diff_cigar([(CIGAR_H, 3), (CIGAR_M, 4)], "AAGC", "AAGC")
        assert str(cigar) == "4="
        assert "'H'" in caplog.text

    def test_zero_length_ops_ignored(self) -> None:
        cigar = diff_cigar([(CIGAR_M, 2), (CIGAR_D, 0), (CIGAR_M, 2)], "AAGC", "AAGC")
        assert str(cigar) == "2=|2="

    def test_reference_too_short(self) -> None:
        """A reference window shorter than the CIGAR is an error."""
        with pytest.raises(ValueError, match="reference sequence too short"):
            diff_cigar([(CIGAR_M, 6)], "AAGCCA", "AAG")

    def test_read_too_short(self) -> None:
        with pytest.raises(ValueError, match="read sequence too short"):
            diff_cigar([(CIGAR_M, 2), (CIGAR_I, 4)], "AAG", "AA")

    def test_reconstructs_read_and_reference(self) -> None:
        """Replaying the script accounts for every read and reference base."""
        read = "TTAAGCGGAACTT"
        ref = "CTAAGCTTAACTT"
        tuples = [(CIGAR_S, 2), (CIGAR_M, 4), (CIGAR_I, 2), (CIGAR_D, 2), (CIGAR_M, 5)]
        cigar = diff_cigar(tuples, read, ref)
        assert cigar.read_length == len(read)
        assert cigar.ref_length == len(ref)


class TestCigarToStr:
    """Tests for cigar_to_str."""

    def test_formatting(self) -> None:
        tuples = [(CIGAR_S, 2), (CIGAR_M, 10), (CIGAR_I, 1), (CIGAR_D, 3), (CIGAR_EQ, 4)]
        assert cigar_to_str(tuples) == "2S10M1I3D4="
