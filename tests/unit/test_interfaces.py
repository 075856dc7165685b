"""Tests for site models and configuration."""
import argparse
import logging
import unittest
from pathlib import Path

import pytest

from PyMCorr.interfaces.config import InputFormat, PositionType, PyMCorrConfig
from PyMCorr.interfaces.site import Allele, Site


class TestAllele(unittest.TestCase):
    def test_valid_bases(self):
        for base in "ACGT":
            self.assertTrue(Allele(base).is_valid)
        for base in "N*><a":
            self.assertFalse(Allele(base).is_valid)


class TestSite(unittest.TestCase):
    """Test Site derived copies."""

    def test_collapse_mates_agreeing(self):
        site = Site("chr1", 3, 'A', (
            Allele('A', 20, "R1"), Allele('C', 30, "R2"), Allele('A', 35, "R1")))
        collapsed = site.collapse_mates()
        self.assertEqual(collapsed.alleles, (Allele('A', 35, "R1"), Allele('C', 30, "R2")))
        self.assertEqual(collapsed.depth, 2)
        self.assertEqual(site.depth, 3)

    def test_collapse_mates_disagreeing(self):
        site = Site("chr1", 3, 'A', (Allele('A', 20, "R1"), Allele('G', 30, "R1")))
        collapsed = site.collapse_mates()
        self.assertEqual(collapsed.alleles, (Allele('N', 30, "R1"), ))
        self.assertFalse(collapsed.alleles[0].is_valid)

    def test_collapse_without_mates_returns_same_site(self):
        site = Site("chr1", 3, 'A', (Allele('A', 20, "R1"), Allele('A', 20), Allele('A', 20)))
        self.assertIs(site.collapse_mates(), site)

    def test_filter_quality(self):
        site = Site("chr1", 0, 'A', (Allele('A', 10, "R1"), Allele('C', 30, "R2")))
        self.assertEqual(site.filter_quality(20).alleles, (Allele('C', 30, "R2"), ))
        self.assertIs(site.filter_quality(0), site)


class TestInputFormat:
    @pytest.mark.parametrize("fmt, path, expected", [
        (InputFormat.AUTO, "a.bam", InputFormat.BAM),
        (InputFormat.AUTO, "a.BAM", InputFormat.BAM),
        (InputFormat.AUTO, "a.pileup", InputFormat.PILEUP),
        (InputFormat.AUTO, "-", InputFormat.PILEUP),
        (InputFormat.PILEUP, "a.bam", InputFormat.PILEUP),
        (InputFormat.BAM, "a.txt", InputFormat.BAM),
    ])
    def test_resolve(self, fmt, path, expected):
        assert fmt.resolve(Path(path)) is expected


class TestPyMCorrConfig:
    def test_defaults(self):
        config = PyMCorrConfig()
        assert config.max_lag == 300
        assert config.min_coverage == 2
        assert config.min_chunk_samples == 10
        assert not config.multiprocess
        assert not config.filter_positions

    @pytest.mark.parametrize("kwargs", [
        {"max_lag": 0},
        {"chunk_size": 0},
        {"nproc": 0},
        {"min_coverage": -1},
        {"region_start": 10, "region_end": 10},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            PyMCorrConfig(**kwargs)

    def test_from_args(self):
        args = argparse.Namespace(
            max_lag=50, min_coverage=3, min_chunk_samples=5, chunk_size=1000,
            process=2, batch_size=8, queue_size=4, region_start=100, region_end=900,
            min_mapq=10, min_base_quality=20, position_type="fourfold", codon_table=4,
            format="bam", reference=Path("ref.fa"), gff=Path("ann.gff"),
            chromfilter=[(True, ["chr1"])], log_level=logging.DEBUG
        )
        config = PyMCorrConfig.from_args(args)
        assert config.max_lag == 50
        assert config.nproc == 2 and config.multiprocess
        assert config.job_batch_size == 8
        assert config.position_type is PositionType.FOURFOLD
        assert config.input_format is InputFormat.BAM
        assert config.annotation_path == Path("ann.gff")
        assert config.filter_positions
        assert config.debug
