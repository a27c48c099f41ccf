"""
Pytest configuration and fixtures for meta-genome synchronization tests.
"""

import sys
import tempfile
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from mgsync.project import Chromosome, Genome, MultiGenomeProject
from mgsync.variants import VariantRecord


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ============================================================================
# Project Fixtures
# ============================================================================

@pytest.fixture
def project():
    """Two diploid genomes on one 1000 bp chromosome."""
    return MultiGenomeProject(
        "ref",
        [Chromosome("chr1", 1000)],
        [Genome("A", ploidy=2), Genome("B", ploidy=2)],
    )


@pytest.fixture
def two_chromosome_project():
    """Two genomes, two chromosomes, one of unknown length."""
    return MultiGenomeProject(
        "ref",
        [Chromosome("chr1", 1000), Chromosome("chr2")],
        [Genome("A", ploidy=2), Genome("B", ploidy=1)],
    )


@pytest.fixture
def make_record():
    """Factory fixture for records with genotypes of samples A and B."""
    def _make(position, reference, alternatives, a="0/0", b="0/0", chromosome="chr1", svlens=None):
        return VariantRecord.from_alleles(
            chromosome, position, reference, alternatives,
            genotypes={"A": a, "B": b}, svlens=svlens,
        )
    return _make


# ============================================================================
# VCF Fixtures
# ============================================================================

@pytest.fixture
def sample_vcf_content():
    """Small VCF with an insertion, a deletion, a SNP and a symbolic deletion."""
    return """\
##fileformat=VCFv4.2
##contig=<ID=chr1,length=1000>
##contig=<ID=chrUn,length=500>
##INFO=<ID=SVLEN,Number=.,Type=Integer,Description="Length of structural variant">
##ALT=<ID=DEL,Description="Deletion">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
#CHROM	POS	ID	REF	ALT	QUAL	FILTER	INFO	FORMAT	A	B
chr1	100	.	A	ATTT	50	PASS	.	GT	0|1	0/0
chr1	150	.	C	G	50	PASS	.	GT	1/1	0/1
chr1	200	.	GACGT	G	50	PASS	.	GT	1/1	./.
chr1	500	.	T	<DEL>	50	PASS	SVLEN=-20	GT	0/0	0/1
chrUn	10	.	A	AT	50	PASS	.	GT	1/1	1/1
"""


@pytest.fixture
def sample_vcf_file(temp_dir, sample_vcf_content):
    """Create a temporary VCF file."""
    vcf_path = temp_dir / "calls.vcf"
    vcf_path.write_text(sample_vcf_content)
    return vcf_path


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Provide a sample configuration dictionary."""
    return {
        "project": {
            "reference": "hg19",
            "output_dir": "/tmp/mgsync_test",
        },
        "resources": {
            "workers": 4,
        },
        "chromosomes": {
            "chr1": 1000,
            "chr2": 800,
        },
        "genomes": [
            {"name": "NA12878", "sample": "NA12878", "ploidy": 2, "vcf": "/data/trio.vcf.gz"},
            {"name": "NA12891", "ploidy": 2, "vcf": "/data/trio.vcf.gz"},
            "chrM_only",
        ],
    }
