"""Integration tests of the pymcorr-pi command line."""
import math

import pytest

from PyMCorr.output.table import TableIO
from PyMCorr.pi import main
from tests.utils.site_factory import make_site, sites_to_pileup


@pytest.fixture
def pileup(tmp_path):
    path = tmp_path / "sample.pileup"
    path.write_text(sites_to_pileup([
        make_site(0, {"R1": 'A', "R2": 'A', "R3": 'A'}, quality=30),
        make_site(4, {"R1": 'A', "R2": 'C'}, quality=30),
        make_site(9, {"R1": 'G', "R2": 'T', "R3": 'T', "R4": 'T'}, quality=30),
        make_site(20, {"R1": 'G'}, quality=5),
    ]))
    return path


def read_table(path):
    with TableIO(path) as tab:
        return tab.read()


def test_pi_table(pileup, tmp_path):
    main([str(pileup), "-o", str(tmp_path)])

    table = read_table(tmp_path / "sample_pi.tab")
    assert table["pos"] == ["0", "4", "9", "20"]
    assert [float(v) for v in table["pi"][:3]] == pytest.approx([0.0, 1.0, 0.5])
    assert math.isnan(float(table["pi"][3]))


def test_base_quality_and_region(pileup, tmp_path):
    main([str(pileup), "-o", str(tmp_path), "-n", "filtered", "-Q", "20",
          "--region-start", "1", "--region-end", "20"])

    table = read_table(tmp_path / "filtered_pi.tab")
    assert table["pos"] == ["4", "9"]
    assert table["depth"] == ["2", "4"]


def test_malformed_input_is_skipped(pileup, tmp_path):
    malformed = tmp_path / "malformed.pileup"
    malformed.write_text("chr1\t2\tA\t2\t..\tI\tR1,R2\n")

    main([str(malformed), str(pileup), "-o", str(tmp_path)])
    assert (tmp_path / "sample_pi.tab").exists()


def test_invalid_region(pileup):
    with pytest.raises(SystemExit):
        main([str(pileup), "--region-start", "10", "--region-end", "5"])
