"""
VCF record source backed by pysam.

Converts pysam.VariantRecord objects into VariantRecord and feeds them to an
OffsetCollector. Text parsing itself is left to htslib.
"""

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

import pysam

from .collector import OffsetCollector
from .errors import MalformedRecordError
from .project import Genome, MultiGenomeProject
from .variants import VariantRecord, is_structural_variant

logger = logging.getLogger(__name__)


def format_genotype(alleles: Sequence[Optional[int]], phased: bool = False) -> str:
    """
    Render a pysam GT tuple as a genotype string.

    Examples:
        >>> format_genotype((0, 1), phased=True)
        '0|1'
        >>> format_genotype((None, None))
        './.'
    """
    if not alleles:
        return "."
    separator = "|" if phased else "/"
    return separator.join("." if a is None else str(a) for a in alleles)


def _svlens(rec, alternatives: Sequence[str]) -> Optional[List[Optional[int]]]:
    if not any(is_structural_variant(alt) for alt in alternatives):
        return None
    if "SVLEN" not in rec.header.info:
        return None
    value = rec.info.get("SVLEN")
    if value is None:
        return None
    if not isinstance(value, (tuple, list)):
        value = [value]
    return list(value)


def record_from_pysam(rec, samples: Sequence[str]) -> VariantRecord:
    """
    Convert one pysam record.

    Args:
        rec: pysam.VariantRecord
        samples: Sample columns whose genotypes are copied

    Returns:
        VariantRecord with one genotype string per sample
    """
    alternatives = tuple(rec.alts or ())
    genotypes = {}
    for sample in samples:
        call = rec.samples[sample]
        genotypes[sample] = format_genotype(call.get("GT") or (), phased=call.phased)

    return VariantRecord.from_alleles(
        chromosome=str(rec.chrom),
        position=int(rec.pos),
        reference=rec.ref or "",
        alternatives=alternatives,
        genotypes=genotypes,
        svlens=_svlens(rec, alternatives),
        quality=rec.qual,
    )


def iter_vcf_records(
    vcf_path: Union[str, Path],
    samples: Optional[Sequence[str]] = None
) -> Iterator[VariantRecord]:
    """
    Iterate a VCF/BCF file as VariantRecord objects.

    Args:
        vcf_path: Path to VCF (.vcf, .vcf.gz or .bcf)
        samples: Sample columns to keep (default: all samples of the file)
    """
    with pysam.VariantFile(str(vcf_path)) as vf:
        names = list(samples) if samples is not None else list(vf.header.samples)
        for rec in vf:
            yield record_from_pysam(rec, names)


def scan_vcf(
    project: MultiGenomeProject,
    vcf_path: Union[str, Path],
    samples: Optional[Sequence[str]] = None,
    genomes: Optional[Sequence[Genome]] = None
) -> OffsetCollector:
    """
    Collect offsets from one VCF file for the project genomes it supplies.

    Args:
        project: Project receiving the offsets
        vcf_path: VCF file to scan sequentially
        samples: Restrict to genomes with these sample columns
        genomes: Genomes read from this file (default: the genomes configured
            with this file as their `vcf`; when none is, every project genome
            whose sample is in the file header)

    Returns:
        The collector, holding the file and sample statistics

    Raises:
        MalformedRecordError: If a genome's sample column is missing from the
            header, or a record cannot be applied; the scan of this file stops
            at that record
    """
    vcf_path = str(vcf_path)
    with pysam.VariantFile(vcf_path) as vf:
        header_samples = list(vf.header.samples)

    if genomes is None:
        genomes = project.genomes_for_vcf(vcf_path) or project.genomes_for_samples(header_samples)
    genomes = list(genomes)
    if samples is not None:
        wanted = set(samples)
        genomes = [g for g in genomes if g.sample in wanted]

    missing = [g.name for g in genomes if g.sample not in header_samples]
    if missing:
        raise MalformedRecordError(
            f"Sample column missing from header for genome(s) {', '.join(missing)}",
            source=vcf_path,
        )
    if not genomes:
        logger.warning(f"{vcf_path}: no project genome found in the file header")

    collector = OffsetCollector(project, source=vcf_path, genomes=genomes)
    columns = list(dict.fromkeys(g.sample for g in genomes))
    collector.scan(iter_vcf_records(vcf_path, columns))
    return collector
