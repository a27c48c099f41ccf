"""
Project context: genomes, alleles, chromosomes and the reference genome.

Everything the collector, the synchronizer and the translator need to know
about a multi-genome project is reachable from one MultiGenomeProject handle,
built from the YAML configuration or directly in tests.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .config import get_nested
from .offsets import OffsetList, ReferenceOffsetList, SynchronizedOffsetList


@dataclass(frozen=True)
class Chromosome:
    """A reference chromosome; length 0 means unknown."""
    name: str
    length: int = 0


@dataclass
class Allele:
    """One chromosome copy of a genome.

    Attributes:
        index: Copy number within the genome (0-based)
        offsets: Raw offsets per chromosome, on the reference axis
        synchronized: Translation tables per chromosome, set by the synchronizer
        failed: Chromosomes whose synchronization failed
    """
    index: int
    offsets: Dict[str, OffsetList] = field(default_factory=dict)
    synchronized: Dict[str, SynchronizedOffsetList] = field(default_factory=dict)
    failed: Set[str] = field(default_factory=set)

    def offset_list(self, chromosome: str) -> OffsetList:
        """Raw offset list of a chromosome, created on first use."""
        if chromosome not in self.offsets:
            self.offsets[chromosome] = OffsetList()
        return self.offsets[chromosome]


@dataclass
class Genome:
    """A genome of the project.

    Attributes:
        name: Project-level genome name
        sample: Sample column holding its genotypes in the VCF
        ploidy: Number of alleles
        vcf: Record source supplying this genome, if configured
    """
    name: str
    sample: str = ""
    ploidy: int = 2
    vcf: Optional[str] = None
    alleles: List[Allele] = field(default_factory=list)

    def __post_init__(self):
        if not self.sample:
            self.sample = self.name
        if self.ploidy < 1:
            raise ValueError(f"Genome {self.name}: ploidy must be >= 1, got {self.ploidy}")
        if not self.alleles:
            self.alleles = [Allele(i) for i in range(self.ploidy)]

    def allele(self, index: int) -> Allele:
        if index < 0 or index >= len(self.alleles):
            raise IndexError(
                f"Genome {self.name} has {len(self.alleles)} allele(s), got index {index}"
            )
        return self.alleles[index]


class MultiGenomeProject:
    """
    Handle on every genome of a project and the reference.

    The reference genome is a one-allele genome. Its raw offsets are the
    reference aggregate (insertions from every genome), and it is placed on
    the meta-genome axis like any other genome.

    Examples:
        >>> project = MultiGenomeProject("ref", [Chromosome("chr1", 1000)],
        ...                              [Genome("A", ploidy=2)])
        >>> project.genome_names
        ['A']
    """

    def __init__(
        self,
        reference_name: str,
        chromosomes: Iterable[Chromosome],
        genomes: Iterable[Genome] = ()
    ):
        self.reference_name = reference_name
        self.chromosomes: List[Chromosome] = list(chromosomes)
        self._chromosomes: Dict[str, Chromosome] = {c.name: c for c in self.chromosomes}
        if len(self._chromosomes) != len(self.chromosomes):
            raise ValueError("Duplicate chromosome names in project")

        self.genomes: Dict[str, Genome] = {}
        for genome in genomes:
            self.add_genome(genome)

        self.reference_offsets = ReferenceOffsetList(self.chromosome_names)
        self.reference_genome = Genome(reference_name, ploidy=1)

    def add_genome(self, genome: Genome) -> None:
        if genome.name == self.reference_name:
            raise ValueError(f"Genome name '{genome.name}' is the reference name")
        if genome.name in self.genomes:
            raise ValueError(f"Duplicate genome '{genome.name}'")
        self.genomes[genome.name] = genome

    @property
    def genome_names(self) -> List[str]:
        return list(self.genomes)

    @property
    def chromosome_names(self) -> List[str]:
        return [c.name for c in self.chromosomes]

    def chromosome(self, name: str) -> Chromosome:
        try:
            return self._chromosomes[name]
        except KeyError:
            raise KeyError(f"Unknown chromosome '{name}'") from None

    def genome(self, name: str) -> Genome:
        """Look up a genome; the reference name returns the reference genome."""
        if name == self.reference_name:
            return self.reference_genome
        try:
            return self.genomes[name]
        except KeyError:
            raise KeyError(f"Unknown genome '{name}'") from None

    def genomes_for_samples(self, samples: Iterable[str]) -> List[Genome]:
        """Project genomes whose sample column appears in a record source."""
        present = set(samples)
        return [g for g in self.genomes.values() if g.sample in present]

    def genomes_for_vcf(self, vcf_path: str) -> List[Genome]:
        """Project genomes configured to be read from a VCF file."""
        target = Path(vcf_path).resolve()
        return [g for g in self.genomes.values() if g.vcf and Path(g.vcf).resolve() == target]

    def iter_alleles(self) -> Iterator[Tuple[Genome, Allele]]:
        for genome in self.genomes.values():
            for allele in genome.alleles:
                yield genome, allele

    def meta_chromosome_length(self, name: str) -> int:
        """
        Length of a chromosome on the meta-genome axis.

        The reference length plus every insertion of the reference aggregate.
        Only meaningful once the reference genome is synchronized.
        """
        chromosome = self.chromosome(name)
        table = self.reference_genome.alleles[0].synchronized.get(name)
        if table is None:
            return chromosome.length
        return chromosome.length + table.total_shift


def project_from_config(config: Dict[str, Any]) -> MultiGenomeProject:
    """
    Build a project from a loaded configuration dictionary.

    Expected layout:
        project:
          reference: hg19
        chromosomes:
          chr1: 249250621
        genomes:
          - name: NA12878
            sample: NA12878
            ploidy: 2
            vcf: /path/to/calls.vcf.gz

    Raises:
        ValueError: If a required section is missing or malformed
    """
    reference = get_nested(config, "project.reference")
    if not reference:
        raise ValueError("Missing project.reference")

    chromosome_section = config.get("chromosomes") or {}
    if isinstance(chromosome_section, dict):
        chromosomes = [Chromosome(str(n), int(l or 0)) for n, l in chromosome_section.items()]
    else:
        chromosomes = [
            Chromosome(str(c["name"]), int(c.get("length", 0))) if isinstance(c, dict)
            else Chromosome(str(c))
            for c in chromosome_section
        ]
    if not chromosomes:
        raise ValueError("No chromosomes configured")

    genomes = []
    for entry in config.get("genomes") or []:
        if isinstance(entry, str):
            entry = {"name": entry}
        if "name" not in entry:
            raise ValueError(f"Genome entry without a name: {entry}")
        genomes.append(Genome(
            name=str(entry["name"]),
            sample=str(entry.get("sample", "") or ""),
            ploidy=int(entry.get("ploidy", 2)),
            vcf=entry.get("vcf"),
        ))

    return MultiGenomeProject(str(reference), chromosomes, genomes)
