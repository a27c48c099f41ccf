"""
Coordinate Translation between Genome and Meta-genome Axes

Every genome allele owns one SynchronizedOffsetList per chromosome. A
boundary (position, shift) says: from genome `position` onwards, the
meta-genome coordinate is the genome coordinate plus `shift`.

Conversion Formulas:
    genome -> meta:   meta = p + shift(b)         b = last boundary with b.position <= p
    meta -> genome:   p = meta - shift(b)         b = last boundary with b.target <= meta

Before the first boundary both directions are the identity. Between the
target of one boundary and the next boundary, the meta-genome holds bases the
genome does not have (another genome's insertion, or this genome's deletion);
those meta positions translate to NOT_PRESENT.
"""

import bisect
from typing import Optional, Sequence

import numpy as np

from .errors import SynchronizationError
from .offsets import SynchronizedOffsetList
from .project import MultiGenomeProject

# Result of a reverse lookup that falls on meta-genome bases absent from the genome
NOT_PRESENT = None


def to_meta_genome_position(table: SynchronizedOffsetList, position: int) -> int:
    """
    Translate a genome position with one translation table.

    Examples:
        >>> table = SynchronizedOffsetList([(101, 3)])
        >>> to_meta_genome_position(table, 100), to_meta_genome_position(table, 101)
        (100, 104)
    """
    index = bisect.bisect_right(table.positions, position) - 1
    if index < 0:
        return position
    if position == table.positions[index]:
        return table.positions[index] + table.shifts[index]
    return table.positions[index] + table.shifts[index] + (position - table.positions[index])


def to_genome_position(table: SynchronizedOffsetList, meta_position: int) -> Optional[int]:
    """
    Translate a meta-genome position with one translation table.

    Returns:
        The genome position, or NOT_PRESENT if the meta-genome base does not
        exist in this genome

    Examples:
        >>> table = SynchronizedOffsetList([(101, 3)])
        >>> to_genome_position(table, 104)
        101
        >>> to_genome_position(table, 102) is NOT_PRESENT
        True
    """
    if not table.positions:
        return meta_position
    targets = table.targets
    index = bisect.bisect_right(targets, meta_position)
    shift = table.shifts[index - 1] if index > 0 else 0
    position = meta_position - shift
    # The next boundary starts after the gap of missing meta-genome bases
    if index < len(table.positions) and position >= table.positions[index]:
        return NOT_PRESENT
    return position


def to_meta_genome_positions(table: SynchronizedOffsetList, positions: Sequence[int]) -> np.ndarray:
    """Vectorised genome -> meta-genome translation of many positions."""
    positions = np.asarray(positions, dtype=np.int64)
    if not table.positions:
        return positions.copy()
    boundaries = np.asarray(table.positions, dtype=np.int64)
    shifts = np.concatenate(([0], np.asarray(table.shifts, dtype=np.int64)))
    index = np.searchsorted(boundaries, positions, side="right")
    return positions + shifts[index]


def to_genome_positions(table: SynchronizedOffsetList, meta_positions: Sequence[int]) -> np.ndarray:
    """
    Vectorised meta-genome -> genome translation.

    Returns:
        Float array; NOT_PRESENT positions are NaN
    """
    meta_positions = np.asarray(meta_positions, dtype=np.int64)
    if not table.positions:
        return meta_positions.astype(float)
    boundaries = np.asarray(table.positions, dtype=np.int64)
    targets = np.asarray(table.targets, dtype=np.int64)
    shifts = np.concatenate(([0], np.asarray(table.shifts, dtype=np.int64)))
    index = np.searchsorted(targets, meta_positions, side="right")
    positions = (meta_positions - shifts[index]).astype(float)
    next_boundary = np.append(boundaries, np.iinfo(np.int64).max)[index]
    positions[positions >= next_boundary] = np.nan
    return positions


class CoordinateTranslator:
    """
    Genome <-> meta-genome translation for every genome of a project.

    Positions outside 1..length of a chromosome with a known length are
    returned unchanged so that callers can always draw something.

    Examples:
        >>> translator = CoordinateTranslator(project)
        >>> translator.to_meta_genome("NA12878", "chr1", 1000)
        1003
        >>> translator.to_genome("NA12878", "chr1", 1003)
        1000
    """

    def __init__(self, project: MultiGenomeProject):
        self.project = project

    def table(self, genome: str, chromosome: str, allele: int = 0) -> SynchronizedOffsetList:
        """
        Translation table of a genome allele on a chromosome.

        Raises:
            KeyError: Unknown genome or chromosome
            SynchronizationError: The table failed to synchronize
        """
        self.project.chromosome(chromosome)
        genome_allele = self.project.genome(genome).allele(allele)
        if chromosome in genome_allele.failed:
            raise SynchronizationError(
                f"{genome} allele {allele} on {chromosome} is not synchronized"
            )
        # No table: nothing shifts on this chromosome
        return genome_allele.synchronized.get(chromosome, SynchronizedOffsetList())

    def _out_of_range(self, chromosome: str, position: int) -> bool:
        # No genome is longer than the meta-genome chromosome
        if self.project.chromosome(chromosome).length == 0:
            return position < 1
        return position < 1 or position > self.project.meta_chromosome_length(chromosome)

    def to_meta_genome(self, genome: str, chromosome: str, position: int, allele: int = 0) -> int:
        """Meta-genome position of a genome position."""
        table = self.table(genome, chromosome, allele)
        if self._out_of_range(chromosome, position):
            return position
        return to_meta_genome_position(table, position)

    def to_genome(self, genome: str, chromosome: str, meta_position: int, allele: int = 0) -> Optional[int]:
        """Genome position of a meta-genome position, or NOT_PRESENT."""
        table = self.table(genome, chromosome, allele)
        if self._out_of_range(chromosome, meta_position):
            return meta_position
        return to_genome_position(table, meta_position)
