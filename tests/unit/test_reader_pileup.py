"""Tests for the samtools mpileup reader."""
import io
import unittest
from unittest.mock import patch

import pytest

from PyMCorr.core.exceptions import PileupFormatError
from PyMCorr.interfaces.site import Allele
from PyMCorr.reader.pileup import PileupReader, decode_bases, parse_pileup_line
from tests.utils.site_factory import pileup_line


class TestDecodeBases:
    @pytest.mark.parametrize("bases, ref, expected", [
        ("..,,", 'a', "AAAA"),
        ("^].$,", 'C', "CC"),
        (".+2AG,", 'T', "TT"),
        (".-3acg,T", 'T', "TTT"),
        ("a+12ACGTACGTACGTc", 'G', "AC"),
        ("*>.<", 'G', "*>G<"),
        ("^+.", 'G', "G"),
    ])
    def test_decode(self, bases, ref, expected):
        assert decode_bases(bases, ref) == expected


class TestParsePileupLine(unittest.TestCase):
    """Test decoding of single mpileup lines."""

    def test_line_with_read_names(self):
        line = pileup_line("chr1", 99, 'a', ".,T", "I5+", ("r1", "r2", "r3"))
        site = parse_pileup_line(line)
        self.assertEqual(site.reference, "chr1")
        self.assertEqual(site.pos, 99)
        self.assertEqual(site.base, 'A')
        self.assertEqual(site.alleles, (
            Allele('A', 40, "r1"), Allele('A', 20, "r2"), Allele('T', 10, "r3")))

    def test_line_without_read_names(self):
        site = parse_pileup_line(pileup_line("chr1", 0, 'G', ".c", "II"))
        self.assertEqual(site.alleles, (Allele('G', 40), Allele('C', 40)))

    def test_read_names_from_last_column(self):
        line = "chr1\t5\tA\t2\t.,\tII\textra\tr1,r2\n"
        site = parse_pileup_line(line)
        self.assertEqual([a.read_id for a in site.alleles], ["r1", "r2"])

    def test_zero_depth_line(self):
        site = parse_pileup_line("chr2\t10\tN\t0\t*\t*\n")
        self.assertEqual(site.pos, 9)
        self.assertEqual(site.alleles, ())

    def test_base_quality_filter(self):
        line = pileup_line("chr1", 0, 'A', "..", "I+", ("r1", "r2"))
        site = parse_pileup_line(line, min_base_quality=20)
        self.assertEqual([a.read_id for a in site.alleles], ["r1"])

    def test_quality_length_mismatch(self):
        with self.assertRaisesRegex(PileupFormatError, "line 7"):
            parse_pileup_line("chr1\t1\tA\t3\t...\tII\n", lineno=7)

    def test_name_count_mismatch(self):
        with self.assertRaises(PileupFormatError):
            parse_pileup_line("chr1\t1\tA\t2\t..\tII\tr1\n")

    def test_truncated_line(self):
        with self.assertRaises(PileupFormatError):
            parse_pileup_line("chr1\t1\n")

    def test_invalid_position(self):
        with self.assertRaises(PileupFormatError):
            parse_pileup_line("chr1\tone\tA\t1\t.\tI\n")


class TestPileupReader:
    def test_reads_file_and_applies_reference_filter(self, tmp_path):
        path = tmp_path / "in.pileup"
        path.write_text(
            pileup_line("chr1", 0, 'A', "..", "II", ("r1", "r2")) +
            "\n" +
            pileup_line("chrM", 0, 'A', "..", "II", ("r1", "r2")) +
            pileup_line("chr2", 4, 'C', ",", "I", ("r3", ))
        )
        with PileupReader(path, chromfilter=[(False, ["chrM"])]) as reader:
            sites = list(reader)
        assert [(s.reference, s.pos) for s in sites] == [("chr1", 0), ("chr2", 4)]

    def test_reads_stdin(self):
        text = pileup_line("chr1", 2, 'A', ".", "I", ("r1", ))
        with patch("sys.stdin", io.StringIO(text)):
            with PileupReader('-') as reader:
                sites = list(reader)
        assert len(sites) == 1 and sites[0].pos == 2

    def test_error_reports_line_number(self, tmp_path):
        path = tmp_path / "bad.pileup"
        path.write_text(pileup_line("chr1", 0, 'A', ".", "I") + "chr1\t2\tA\t1\t..\tI\n")
        with PileupReader(path) as reader:
            with pytest.raises(PileupFormatError, match="line 2"):
                list(reader)

    def test_iterating_unopened_reader_raises(self, tmp_path):
        with pytest.raises(ValueError):
            list(PileupReader(tmp_path / "x.pileup"))
