"""
Meta-genome Synchronization - Core Library

Places several genomes of the same species on one shared coordinate axis:
- Offset collection from variant records (VCF via pysam)
- Merging of per-allele offsets with the reference insertion aggregate
- Parallel synchronization of every genome allele
- Genome <-> meta-genome coordinate translation
"""

from .errors import (
    SyncError,
    MalformedRecordError,
    OffsetOrderError,
    MergeInvariantError,
    SynchronizationError,
)

from .offsets import (
    Offset,
    OffsetList,
    ReferenceOffsetList,
    SynchronizedOffset,
    SynchronizedOffsetList,
)

from .variants import (
    REFERENCE,
    NO_CALL,
    VariantType,
    VariantRecord,
    parse_genotype,
)

from .project import (
    Chromosome,
    Genome,
    MultiGenomeProject,
    project_from_config,
)

from .collector import OffsetCollector
from .merger import merge_offsets
from .synchronizer import SynchronizationReport, synchronize_project

from .translator import (
    NOT_PRESENT,
    CoordinateTranslator,
    to_genome_position,
    to_meta_genome_position,
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "SyncError",
    "MalformedRecordError",
    "OffsetOrderError",
    "MergeInvariantError",
    "SynchronizationError",
    # Offsets
    "Offset",
    "OffsetList",
    "ReferenceOffsetList",
    "SynchronizedOffset",
    "SynchronizedOffsetList",
    # Variants
    "REFERENCE",
    "NO_CALL",
    "VariantType",
    "VariantRecord",
    "parse_genotype",
    # Project
    "Chromosome",
    "Genome",
    "MultiGenomeProject",
    "project_from_config",
    # Synchronization
    "OffsetCollector",
    "merge_offsets",
    "SynchronizationReport",
    "synchronize_project",
    # Translation
    "NOT_PRESENT",
    "CoordinateTranslator",
    "to_genome_position",
    "to_meta_genome_position",
]
