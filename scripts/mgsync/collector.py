"""
Offset Collector

Turns a stream of parsed variant records into raw offset lists:

- every non-SNP alternative carried by a genome copy is appended to that
  genome/allele/chromosome OffsetList;
- every insertion is also added to the reference aggregate, because an
  insertion in one genome takes space on the shared axis that all other
  genomes must skip. Deletions stay private to the genome that carries them.

Records of one source must arrive in position order per chromosome; an
offset appended out of order is a data error and stops the scan.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .errors import MalformedRecordError, OffsetOrderError
from .offsets import Offset
from .project import Genome, MultiGenomeProject
from .statistics import FileStatistics, SampleStatistics
from .variants import VariantRecord, VariantType

logger = logging.getLogger(__name__)


class OffsetCollector:
    """
    Collects offsets for the genomes of one record source.

    Args:
        project: Project receiving the offsets
        samples: Sample columns present in the source; None means every
            project genome is expected in every record
        source: Name used in error messages and statistics (e.g. VCF path)
        genomes: Genomes this source supplies; takes precedence over
            `samples`. Use it when several files reuse a sample name.

    Examples:
        >>> collector = OffsetCollector(project, samples=["NA12878"])
        >>> collector.scan(records)
        >>> project.genome("NA12878").allele(0).offset_list("chr1")
    """

    def __init__(
        self,
        project: MultiGenomeProject,
        samples: Optional[Iterable[str]] = None,
        source: str = "<records>",
        genomes: Optional[Iterable[Genome]] = None
    ):
        self.project = project
        self.source = source
        self.genomes: List[Genome]
        if genomes is not None:
            self.genomes = [project.genome(g.name) for g in genomes]
        elif samples is None:
            self.genomes = list(project.genomes.values())
        else:
            self.genomes = project.genomes_for_samples(samples)
        self.skipped_records = 0
        self._chromosomes = set(project.chromosome_names)
        self.file_statistics = FileStatistics()
        self.sample_statistics: Dict[str, SampleStatistics] = {
            g.name: SampleStatistics() for g in self.genomes
        }

    def observe(self, record: VariantRecord, genome_name: str) -> None:
        """
        Apply one record to one genome.

        Raises:
            MalformedRecordError: If the genotype cannot be parsed or has
                more copies than the genome has alleles
            KeyError: If the genome is not part of the project
        """
        genome = self.project.genome(genome_name)
        self._apply(record, genome)

    def _apply(self, record: VariantRecord, genome: Genome) -> tuple:
        codes = record.genotype(genome.sample)
        if len(codes) > genome.ploidy:
            raise MalformedRecordError(
                f"Genotype of {genome.name} has {len(codes)} copies, "
                f"ploidy is {genome.ploidy}",
                source=self.source,
                chromosome=record.chromosome,
                position=record.position,
            )

        for copy, code in enumerate(codes):
            if code < 0:  # REFERENCE or NO_CALL
                continue
            variant_type = record.types[code]
            length = record.lengths[code]
            if variant_type == VariantType.SNP or length == 0:
                continue

            offset = Offset(record.position, length)
            offsets = genome.allele(copy).offset_list(record.chromosome)
            try:
                offsets.append(offset)
            except OffsetOrderError as e:
                raise MalformedRecordError(
                    f"Genome {genome.name} allele {copy}: {e}",
                    source=self.source,
                    chromosome=record.chromosome,
                    position=record.position,
                ) from e

            if variant_type == VariantType.INSERTION:
                self.project.reference_offsets.add(record.chromosome, offset)

        return codes

    def observe_record(self, record: VariantRecord) -> None:
        """Apply one record to every genome of the source and count it."""
        if record.chromosome not in self._chromosomes:
            self.skipped_records += 1
            return
        self.file_statistics.add_record(record.types, record.alternatives)
        for genome in self.genomes:
            codes = self._apply(record, genome)
            stats = self.sample_statistics[genome.name]
            for code in codes:
                if code >= 0:
                    stats.add(record.types[code], record.alternatives[code])
            stats.add_genotype(record.types, codes)

    def scan(self, records: Iterable[VariantRecord]) -> int:
        """
        Feed an ordered record stream to the collector.

        Returns:
            Number of records processed

        Raises:
            MalformedRecordError: On the first record that cannot be applied;
                the scan stops there
        """
        count = 0
        for record in records:
            try:
                self.observe_record(record)
            except MalformedRecordError as e:
                if e.source is None:
                    e.source = self.source
                if e.chromosome is None:
                    e.chromosome, e.position = record.chromosome, record.position
                logger.error(f"Scan of {self.source} aborted: {e}")
                raise
            count += 1

        logger.info(
            f"Scanned {count} records from {self.source} "
            f"({len(self.genomes)} genome(s))"
        )
        if self.skipped_records:
            logger.warning(
                f"{self.source}: {self.skipped_records} record(s) on chromosomes "
                f"outside the project were skipped"
            )
        return count
