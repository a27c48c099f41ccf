"""
Error types raised by the synchronization engine.

Data errors (a bad genotype, inconsistent record arrays) derive from
ValueError so callers that already catch ValueError for parsing problems keep
working. Consistency errors signal a bug upstream of the merge and must never
be silenced: a wrong translation table is worse than no table.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for all synchronization errors."""


class MalformedRecordError(SyncError, ValueError):
    """A variant record or genotype that cannot be applied.

    Attributes:
        source: Name of the record stream (usually the VCF path), if known
        chromosome: Chromosome of the offending record, if known
        position: Reference position of the offending record, if known
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        chromosome: Optional[str] = None,
        position: Optional[int] = None
    ):
        self.source = source
        self.chromosome = chromosome
        self.position = position
        super().__init__(message)

    def __str__(self) -> str:
        message = super().__str__()
        where = []
        if self.source:
            where.append(self.source)
        if self.chromosome is not None and self.position is not None:
            where.append(f"{self.chromosome}:{self.position}")
        if where:
            return f"{message} ({', '.join(where)})"
        return message


class OffsetOrderError(SyncError):
    """An offset was appended out of position order."""


class MergeInvariantError(SyncError):
    """The merge observed input that breaks the offset list invariants."""


class SynchronizationError(SyncError):
    """A genome/allele/chromosome could not be placed on the meta-genome axis."""
