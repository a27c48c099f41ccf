"""
Tabular exports of a synchronized project.

Each table is a pandas DataFrame so the batch script can write it as TSV and
downstream notebooks can load it back with pd.read_csv(sep="\\t").
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .offsets import OffsetList, SynchronizedOffsetList
from .project import MultiGenomeProject
from .statistics import (
    FileStatistics,
    SampleStatistics,
    file_statistics_to_dataframe,
    sample_statistics_to_dataframe,
)
from .translator import CoordinateTranslator

logger = logging.getLogger(__name__)

TABLE_COLUMNS = ["genome", "allele", "chromosome", "position", "shift", "target"]


def offsets_to_dataframe(offsets: OffsetList) -> pd.DataFrame:
    """Raw offsets as a (position, value) table."""
    return pd.DataFrame(list(offsets), columns=["position", "value"])


def table_to_dataframe(table: SynchronizedOffsetList) -> pd.DataFrame:
    """Boundaries of one translation table with their meta-genome targets."""
    df = pd.DataFrame({"position": table.positions, "shift": table.shifts})
    df["target"] = df["position"] + df["shift"]
    return df


def synchronized_tables_to_dataframe(
    project: MultiGenomeProject,
    include_reference: bool = True
) -> pd.DataFrame:
    """
    All translation tables of a project in long format.

    Args:
        project: Synchronized project
        include_reference: Also list the reference genome's table

    Returns:
        DataFrame with columns genome, allele, chromosome, position, shift,
        target; failed tables are absent
    """
    genomes = list(project.genomes.values())
    if include_reference:
        genomes = [project.reference_genome] + genomes

    frames = []
    for genome in genomes:
        for allele in genome.alleles:
            for chromosome in project.chromosome_names:
                table = allele.synchronized.get(chromosome)
                if table is None or len(table) == 0:
                    continue
                df = table_to_dataframe(table)
                df.insert(0, "chromosome", chromosome)
                df.insert(0, "allele", allele.index)
                df.insert(0, "genome", genome.name)
                frames.append(df)

    if not frames:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.concat(frames, ignore_index=True)[TABLE_COLUMNS]


def failures_to_dataframe(project: MultiGenomeProject) -> pd.DataFrame:
    """One row per (genome, allele, chromosome) that failed to synchronize."""
    rows = [
        {"genome": genome.name, "allele": allele.index, "chromosome": chromosome}
        for genome, allele in project.iter_alleles()
        for chromosome in sorted(allele.failed)
    ]
    return pd.DataFrame(rows, columns=["genome", "allele", "chromosome"])


def meta_chromosomes_to_dataframe(project: MultiGenomeProject) -> pd.DataFrame:
    """Reference and meta-genome length of every chromosome."""
    rows = [
        {
            "chromosome": c.name,
            "reference_length": c.length,
            "meta_length": project.meta_chromosome_length(c.name),
            "insertion_loci": len(project.reference_offsets.get(c.name)),
        }
        for c in project.chromosomes
    ]
    return pd.DataFrame(rows)


def translate_positions(
    project: MultiGenomeProject,
    chromosome: str,
    positions: Sequence[int],
    genomes: Optional[Sequence[str]] = None,
    allele: int = 0
) -> pd.DataFrame:
    """
    Meta-genome position of the same genome positions in several genomes.

    Examples:
        >>> translate_positions(project, "chr1", [100, 101])
           position  NA12878  NA12891
        0       100      100      100
        1       101      104      101
    """
    translator = CoordinateTranslator(project)
    names = list(genomes) if genomes is not None else project.genome_names
    df = pd.DataFrame({"position": list(positions)})
    for name in names:
        df[name] = [translator.to_meta_genome(name, chromosome, p, allele) for p in positions]
    return df


def write_reports(
    project: MultiGenomeProject,
    output_dir: Union[str, Path],
    file_statistics: Optional[Dict[str, FileStatistics]] = None,
    sample_statistics: Optional[Dict[str, SampleStatistics]] = None
) -> List[Path]:
    """
    Write every report of a synchronized project as TSV.

    Returns:
        Paths of the written files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "synchronized_offsets.tsv": synchronized_tables_to_dataframe(project),
        "meta_chromosomes.tsv": meta_chromosomes_to_dataframe(project),
        "failures.tsv": failures_to_dataframe(project),
    }
    if file_statistics:
        tables["file_statistics.tsv"] = file_statistics_to_dataframe(file_statistics)
    if sample_statistics:
        tables["sample_statistics.tsv"] = sample_statistics_to_dataframe(sample_statistics)

    written = []
    for filename, df in tables.items():
        path = output_dir / filename
        df.to_csv(path, sep="\t", index=False)
        logger.info(f"Wrote {len(df)} rows to {path}")
        written.append(path)
    return written
