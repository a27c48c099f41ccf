"""
Tests for project-wide synchronization.
"""

import sys
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from mgsync.collector import OffsetCollector
from mgsync.errors import SynchronizationError
from mgsync.offsets import Offset, OffsetList, SynchronizedOffsetList
from mgsync.synchronizer import synchronize_project


def table(project, genome, allele, chromosome="chr1"):
    return project.genome(genome).allele(allele).synchronized[chromosome]


# ============================================================================
# Tests: Synchronization
# ============================================================================

class TestSynchronizeProject:
    """Tables installed for every genome, allele and chromosome."""

    def test_single_insertion(self, project, make_record):
        OffsetCollector(project).scan([make_record(100, "A", ["ATTT"], a="1/0")])
        report = synchronize_project(project, max_workers=2)

        assert report.ok
        # 2 genomes x 2 alleles x 1 chromosome, plus the reference
        assert report.succeeded == 5
        assert len(table(project, "A", 0)) == 0
        assert table(project, "A", 1) == SynchronizedOffsetList([(101, 3)])
        assert table(project, "B", 0) == SynchronizedOffsetList([(101, 3)])
        assert table(project, "ref", 0) == SynchronizedOffsetList([(101, 3)])

    def test_meta_chromosome_length(self, project, make_record):
        OffsetCollector(project).scan([
            make_record(100, "A", ["ATTT"], a="1/0"),
            make_record(200, "G", ["GTT"], b="1/1"),
        ])
        synchronize_project(project)
        assert project.meta_chromosome_length("chr1") == 1000 + 3 + 2

    def test_every_chromosome_gets_a_table(self, two_chromosome_project, make_record):
        project = two_chromosome_project
        OffsetCollector(project).scan([make_record(100, "A", ["AT"], a="1/1", b="1")])
        report = synchronize_project(project)

        assert report.ok
        # A: 2 alleles, B: 1 allele, 2 chromosomes each, plus the reference
        assert report.succeeded == 3 * 2 + 2
        assert len(table(project, "B", 0, "chr2")) == 0

    def test_raw_lists_released(self, project, make_record):
        OffsetCollector(project).scan([make_record(200, "GA", ["G"], a="1/1")])
        synchronize_project(project)
        assert "chr1" not in project.genome("A").allele(0).offsets

    def test_keep_raw(self, project, make_record):
        OffsetCollector(project).scan([make_record(200, "GA", ["G"], a="1/1")])
        synchronize_project(project, keep_raw=True)
        assert list(project.genome("A").allele(0).offsets["chr1"]) == [Offset(200, -1)]


# ============================================================================
# Tests: Failure Isolation
# ============================================================================

class TestFailureIsolation:
    """A failing merge only affects its own table."""

    @pytest.fixture
    def broken_project(self, project):
        project.reference_offsets.add("chr1", Offset(100, 3))
        # Wider than the aggregate: breaks the merge of A allele 0 only
        project.genome("A").allele(0).offsets["chr1"] = OffsetList([(100, 5)])
        return project

    def test_failure_recorded(self, broken_project):
        report = synchronize_project(broken_project)

        assert not report.ok
        assert report.failed_genomes == ["A"]
        assert len(report.failures) == 1
        failure = report.failures[0]
        assert (failure.genome, failure.allele, failure.chromosome) == ("A", 0, "chr1")

    def test_other_tasks_complete(self, broken_project):
        synchronize_project(broken_project)
        allele = broken_project.genome("A").allele(0)
        assert "chr1" in allele.failed
        assert "chr1" not in allele.synchronized
        assert table(broken_project, "A", 1) == SynchronizedOffsetList([(101, 3)])
        assert table(broken_project, "B", 0) == SynchronizedOffsetList([(101, 3)])
        assert table(broken_project, "ref", 0) == SynchronizedOffsetList([(101, 3)])

    def test_raise_on_failure(self, broken_project):
        report = synchronize_project(broken_project)
        with pytest.raises(SynchronizationError, match="A\\[0\\] chr1"):
            report.raise_on_failure()

    def test_resynchronize_after_fix(self, broken_project):
        synchronize_project(broken_project, keep_raw=True)
        broken_project.genome("A").allele(0).offsets["chr1"] = OffsetList([(100, 3)])
        report = synchronize_project(broken_project)
        assert report.ok
        assert "chr1" not in broken_project.genome("A").allele(0).failed


# ============================================================================
# Tests: Collection Failures
# ============================================================================

class TestCollectionErrors:
    """Genomes whose source failed to scan are reported, the rest synchronize."""

    def test_failed_genome_marked(self, project, make_record):
        OffsetCollector(project).scan([make_record(100, "A", ["ATTT"], a="1/0")])
        report = synchronize_project(project, collection_errors={"B": "b.vcf: bad genotype"})

        assert not report.ok
        assert report.failed_genomes == ["B"]
        assert {(f.allele, f.chromosome) for f in report.failures} == {(0, "chr1"), (1, "chr1")}
        assert all(f.error == "collection failed: b.vcf: bad genotype" for f in report.failures)
        for allele in project.genome("B").alleles:
            assert allele.failed == {"chr1"}
            assert allele.synchronized == {}

    def test_other_genomes_synchronized(self, project, make_record):
        OffsetCollector(project).scan([make_record(100, "A", ["ATTT"], a="1/0")])
        report = synchronize_project(project, collection_errors={"B": "b.vcf: bad genotype"})

        # A: 2 alleles, plus the reference
        assert report.succeeded == 3
        assert len(table(project, "A", 0)) == 0
        assert table(project, "A", 1) == SynchronizedOffsetList([(101, 3)])
        assert table(project, "ref", 0) == SynchronizedOffsetList([(101, 3)])

    def test_every_chromosome_failed(self, two_chromosome_project):
        report = synchronize_project(two_chromosome_project, collection_errors={"A": "a.vcf"})
        assert len(report.failures) == 2 * 2
        assert report.failed_genomes == ["A"]
