"""
Synchronization Orchestrator

Places every genome allele of a project on the meta-genome axis:

    for genome in project:
        for allele in genome:
            for chromosome in project:
                table = merge_offsets(reference_aggregate[chromosome],
                                      allele.offsets[chromosome])

then does the same for the reference genome against an empty allele list, so
its coordinates are shifted by every insertion exactly once.

Each (genome, allele, chromosome) merge only reads the reference aggregate of
its chromosome and its own raw list, so the merges run on a thread pool. The
reference aggregate must be complete before this step starts.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from .errors import SynchronizationError
from .merger import merge_offsets
from .offsets import OffsetList
from .project import Allele, MultiGenomeProject

logger = logging.getLogger(__name__)


@dataclass
class TaskFailure:
    """A merge that could not be completed."""
    genome: str
    allele: int
    chromosome: str
    error: str


@dataclass
class SynchronizationReport:
    """Outcome of one synchronize_project call."""
    succeeded: int = 0
    failures: List[TaskFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_genomes(self) -> List[str]:
        return sorted({f.genome for f in self.failures})

    def raise_on_failure(self) -> None:
        """Raise SynchronizationError if any task failed."""
        if self.failures:
            details = "; ".join(
                f"{f.genome}[{f.allele}] {f.chromosome}: {f.error}" for f in self.failures
            )
            raise SynchronizationError(f"{len(self.failures)} task(s) failed: {details}")


def synchronize_project(
    project: MultiGenomeProject,
    max_workers: Optional[int] = None,
    keep_raw: bool = False,
    collection_errors: Optional[Dict[str, str]] = None
) -> SynchronizationReport:
    """
    Synchronize every genome allele, then the reference genome.

    Args:
        project: Project whose collection phase is complete
        max_workers: Thread pool size (None: executor default)
        keep_raw: Keep raw offset lists after their table is installed
        collection_errors: Genome name -> error for genomes whose record
            source failed to scan; their tables are marked failed without
            merging. Insertions they contributed before the failure stay in
            the reference aggregate.

    Returns:
        SynchronizationReport listing failed tasks; failures are isolated to
        their (genome, allele, chromosome) and do not stop other tasks
    """
    chromosomes = project.chromosome_names
    reference_lists: Dict[str, OffsetList] = {
        name: project.reference_offsets.get(name) for name in chromosomes
    }
    report = SynchronizationReport()
    collection_errors = collection_errors or {}

    logger.info(
        f"Synchronizing {len(project.genomes)} genome(s) over "
        f"{len(chromosomes)} chromosome(s)"
    )

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_task = {}
        for genome, allele in project.iter_alleles():
            if genome.name in collection_errors:
                _fail_collection(report, allele, genome.name, chromosomes,
                                 collection_errors[genome.name], keep_raw)
                continue
            for chromosome in chromosomes:
                raw = allele.offsets.get(chromosome, OffsetList())
                future = executor.submit(merge_offsets, reference_lists[chromosome], raw)
                future_to_task[future] = (genome.name, allele, chromosome)

        for future in as_completed(future_to_task):
            genome_name, allele, chromosome = future_to_task[future]
            try:
                table = future.result()
            except Exception as e:
                _record_failure(report, allele, genome_name, chromosome, e)
                continue
            _install(allele, chromosome, table, keep_raw)
            report.succeeded += 1

    _synchronize_reference(project, reference_lists, report)

    if report.ok:
        logger.info(f"Synchronization complete: {report.succeeded} table(s)")
    else:
        logger.warning(
            f"Synchronization finished with {len(report.failures)} failure(s) "
            f"in genome(s) {', '.join(report.failed_genomes)}"
        )
    return report


def _synchronize_reference(
    project: MultiGenomeProject,
    reference_lists: Dict[str, OffsetList],
    report: SynchronizationReport
) -> None:
    allele = project.reference_genome.alleles[0]
    for chromosome, reference in reference_lists.items():
        try:
            table = merge_offsets(reference, OffsetList())
        except Exception as e:
            _record_failure(report, allele, project.reference_name, chromosome, e)
            continue
        _install(allele, chromosome, table, keep_raw=True)
        report.succeeded += 1


def _fail_collection(
    report: SynchronizationReport,
    allele: Allele,
    genome_name: str,
    chromosomes: List[str],
    error: str,
    keep_raw: bool
) -> None:
    for chromosome in chromosomes:
        _record_failure(report, allele, genome_name, chromosome, f"collection failed: {error}")
    if not keep_raw:
        allele.offsets.clear()


def _install(allele: Allele, chromosome: str, table, keep_raw: bool) -> None:
    allele.synchronized[chromosome] = table
    allele.failed.discard(chromosome)
    if not keep_raw:
        allele.offsets.pop(chromosome, None)


def _record_failure(
    report: SynchronizationReport,
    allele: Allele,
    genome_name: str,
    chromosome: str,
    error: Union[Exception, str]
) -> None:
    logger.error(f"Synchronization of {genome_name} allele {allele.index} on {chromosome} failed: {error}")
    allele.failed.add(chromosome)
    allele.synchronized.pop(chromosome, None)
    report.failures.append(TaskFailure(genome_name, allele.index, chromosome, str(error)))
