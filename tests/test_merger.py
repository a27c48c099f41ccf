"""
Tests for the offset merger.

Reference and allele lists are on the reference axis; the resulting tables
are checked both literally and through translation.
"""

import sys
from pathlib import Path

import pytest

# Add scripts directory to path for imports
scripts_dir = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(scripts_dir))

from mgsync.collector import OffsetCollector
from mgsync.errors import MergeInvariantError
from mgsync.merger import check_ascending, merge_offsets
from mgsync.offsets import Offset, OffsetList, SynchronizedOffsetList
from mgsync.synchronizer import synchronize_project
from mgsync.translator import NOT_PRESENT, to_genome_position, to_meta_genome_position


def merge(reference, allele):
    return merge_offsets(OffsetList(reference), OffsetList(allele))


# ============================================================================
# Tests: Basic Cases
# ============================================================================

class TestBasicMerge:
    """Single-offset merges."""

    def test_no_variants(self):
        table = merge([], [])
        assert len(table) == 0
        assert to_meta_genome_position(table, 500) == 500

    def test_own_insertion_only(self):
        """The genome's own insertion is on both axes: nothing to skip."""
        table = merge([], [(100, 3)])
        assert len(table) == 0
        assert to_meta_genome_position(table, 101) == 101

    def test_insertion_in_other_genome(self):
        table = merge([(100, 3)], [])
        assert table == SynchronizedOffsetList([(101, 3)])
        assert to_meta_genome_position(table, 99) == 99
        assert to_meta_genome_position(table, 100) == 100
        assert to_meta_genome_position(table, 101) == 104

    def test_same_insertion_as_widest(self):
        assert len(merge([(100, 3)], [(100, 3)])) == 0

    def test_narrower_insertion(self):
        table = merge([(100, 5)], [(100, 3)])
        assert table == SynchronizedOffsetList([(104, 2)])
        assert to_meta_genome_position(table, 103) == 103
        # Genome base 101 is its own inserted base; genome base 104 (reference 101) lands 5 + 1 after 100
        assert to_meta_genome_position(table, 104) - to_meta_genome_position(table, 100) == 5 + 1

    def test_own_deletion(self):
        table = merge([], [(200, -4)])
        assert table == SynchronizedOffsetList([(201, 4)])
        assert to_meta_genome_position(table, 200) == 200
        assert to_meta_genome_position(table, 201) == 205
        assert to_meta_genome_position(table, 205) == 209

    def test_own_deletion_reverse(self):
        table = merge([], [(200, -4)])
        for meta in (201, 202, 203, 204):
            assert to_genome_position(table, meta) is NOT_PRESENT
        assert to_genome_position(table, 205) == 201

    def test_reference_genome_table(self):
        """The reference merges its aggregate against an empty list."""
        table = merge([(100, 3), (200, 2)], [])
        assert table == SynchronizedOffsetList([(101, 3), (201, 5)])


# ============================================================================
# Tests: Combined Cases
# ============================================================================

class TestCombinedMerge:
    """Interleaved insertions and deletions."""

    def test_deletion_before_insertion(self):
        table = merge([(100, 3)], [(50, -5)])
        assert table == SynchronizedOffsetList([(51, 5), (96, 8)])
        # Genome base 95 is reference base 100
        assert to_meta_genome_position(table, 95) == 100

    def test_own_insertion_moves_later_boundary(self):
        table = merge([(50, 2), (100, 3)], [(50, 2)])
        assert table == SynchronizedOffsetList([(103, 3)])
        # Reference base 100 sits at meta 102 on the reference axis
        reference = merge([(50, 2), (100, 3)], [])
        assert to_meta_genome_position(reference, 100) == to_meta_genome_position(table, 102)

    def test_deletion_at_insertion_locus(self):
        table = merge([(100, 3)], [(100, -2)])
        assert table == SynchronizedOffsetList([(101, 5)])

    def test_insertion_inside_deleted_span(self):
        """Insertions on deleted bases widen the deletion boundary."""
        table = merge([(105, 3)], [(100, -10)])
        assert table == SynchronizedOffsetList([(101, 13)])
        reference = merge([(105, 3)], [])
        # Genome base 101 is reference base 111
        assert to_meta_genome_position(table, 101) == to_meta_genome_position(reference, 111)

    def test_agreement_with_reference_table(self):
        """Reference bases kept by the genome land on the same meta position."""
        aggregate = [(100, 4), (300, 2), (600, 6)]
        allele = [(100, 4), (200, -10), (600, 1)]
        table = merge(aggregate, allele)
        reference = merge(aggregate, [])
        assert table == SynchronizedOffsetList([(205, 10), (295, 12), (596, 17)])
        # (genome position, reference position) pairs of undeleted bases
        pairs = [(50, 50), (154, 150), (204, 200), (205, 211), (294, 300),
                 (295, 301), (594, 600), (596, 601), (700, 705)]
        for genome_pos, ref_pos in pairs:
            assert (to_meta_genome_position(table, genome_pos)
                    == to_meta_genome_position(reference, ref_pos))

    def test_inputs_not_modified(self):
        reference = OffsetList([(100, 5)])
        allele = OffsetList([(100, 3)])
        merge_offsets(reference, allele)
        assert reference == OffsetList([(100, 5)])
        assert allele == OffsetList([(100, 3)])


# ============================================================================
# Tests: Overlapping Deletions
# ============================================================================

class TestOverlappingOffsets:
    """Offsets anchored inside the allele's own deleted span are absorbed."""

    def test_contained_deletion(self):
        assert merge([], [(200, -4), (202, -2)]) == SynchronizedOffsetList([(201, 4)])

    def test_deletion_extending_span(self):
        table = merge([], [(200, -4), (203, -4)])
        # Reference bases 201-207 are gone
        assert table == SynchronizedOffsetList([(201, 7)])
        assert to_meta_genome_position(table, 201) == 208

    def test_insertion_inside_span_skipped(self):
        assert merge([], [(100, -10), (105, 2)]) == SynchronizedOffsetList([(101, 10)])

    def test_same_locus_inside_span(self):
        """An aggregate insertion and an allele deletion both inside the span."""
        table = merge([(105, 3)], [(100, -10), (105, -8)])
        assert table == SynchronizedOffsetList([(101, 16)])
        reference = merge([(105, 3)], [])
        # Genome base 101 is reference base 114
        assert to_meta_genome_position(table, 101) == to_meta_genome_position(reference, 114)

    def test_same_insertion_inside_span(self):
        assert merge([(105, 3)], [(100, -10), (105, 2)]) == SynchronizedOffsetList([(101, 13)])

    def test_overlap_warns(self, caplog):
        with caplog.at_level("WARNING", logger="mgsync.merger"):
            merge([], [(200, -4), (203, -4)])
        assert "overlaps a deletion" in caplog.text

    def test_collected_overlap_synchronizes(self, project, make_record):
        OffsetCollector(project).scan([
            make_record(200, "GACGT", ["G"], a="0/1"),
            make_record(202, "CGT", ["C"], a="0/1"),
        ])
        report = synchronize_project(project)
        assert report.ok
        table = project.genome("A").allele(1).synchronized["chr1"]
        assert table == SynchronizedOffsetList([(201, 4)])
        assert to_genome_position(table, 205) == 201


# ============================================================================
# Tests: Invariant Violations
# ============================================================================

class TestMergeInvariants:
    """Inputs that break the list invariants fail fast."""

    def test_allele_wider_than_aggregate(self):
        with pytest.raises(MergeInvariantError):
            merge([(100, 3)], [(100, 5)])

    def test_unsorted_reference(self):
        with pytest.raises(MergeInvariantError):
            merge_offsets([Offset(200, 3), Offset(100, 3)], OffsetList())

    def test_check_ascending_duplicates(self):
        with pytest.raises(MergeInvariantError):
            check_ascending([Offset(100, 3), Offset(100, 2)], "Allele")
