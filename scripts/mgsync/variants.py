"""
Variant Records and Genotype Calls

The synchronization engine consumes already-parsed variant records. A record
describes one reference position: its alternatives, the length change each
alternative introduces, the alternative types, and one genotype string per
sample.

Alternative lengths:
    len(alt) - len(ref)      for sequence alleles (A -> ATG is +2)
    SVLEN                    for symbolic alleles (<DEL>, <INS>, ...)

Genotype strings:
    "0/1", "1|1", "./.", "2" ...  one allele code per chromosome copy
    "0"  -> REFERENCE
    "."  -> NO_CALL
    "n"  -> alternative index n - 1
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .errors import MalformedRecordError

# Allele codes that do not refer to an alternative
REFERENCE: int = -1
NO_CALL: int = -2


class VariantType(Enum):
    """Closed set of variant kinds the merge distinguishes."""

    SNP = "SNP"
    INSERTION = "INS"
    DELETION = "DEL"
    OTHER = "OTHER"

    @classmethod
    def from_length(cls, length: Optional[int]) -> "VariantType":
        """
        Classify an alternative by its length change.

        Examples:
            >>> VariantType.from_length(3)
            <VariantType.INSERTION: 'INS'>
            >>> VariantType.from_length(0)
            <VariantType.SNP: 'SNP'>
        """
        if length is None:
            return cls.OTHER
        if length > 0:
            return cls.INSERTION
        if length < 0:
            return cls.DELETION
        return cls.SNP


def is_structural_variant(alternative: str) -> bool:
    """Check if an ALT allele is coded symbolically (e.g. <DEL>)."""
    return alternative.startswith("<")


def get_allele_index(token: str) -> int:
    """
    Convert one genotype token into an allele code.

    Args:
        token: One genotype field, e.g. "0", "1" or "."

    Returns:
        REFERENCE, NO_CALL, or the 0-based alternative index

    Raises:
        MalformedRecordError: If the token is not ".", "0" or a positive integer

    Examples:
        >>> get_allele_index("0")
        -1
        >>> get_allele_index("2")
        1
    """
    if token == ".":
        return NO_CALL
    if not token.isdigit():
        raise MalformedRecordError(f"Invalid allele token '{token}'")
    index = int(token)
    if index == 0:
        return REFERENCE
    return index - 1


def parse_genotype(genotype: str) -> Tuple[int, ...]:
    """
    Split a genotype string into one allele code per copy.

    Args:
        genotype: GT value, phased ("|") or unphased ("/")

    Returns:
        Tuple of allele codes

    Raises:
        MalformedRecordError: If the string is empty or a token is invalid

    Examples:
        >>> parse_genotype("0|1")
        (-1, 0)
        >>> parse_genotype("./.")
        (-2, -2)
    """
    genotype = genotype.strip()
    if not genotype:
        raise MalformedRecordError("Empty genotype")
    # Keep only the GT part of a FORMAT value such as "0/1:35:12"
    genotype = genotype.split(":", 1)[0]
    tokens = genotype.replace("|", "/").split("/")
    try:
        return tuple(get_allele_index(t) for t in tokens)
    except MalformedRecordError as e:
        raise MalformedRecordError(f"Invalid genotype '{genotype}': {e}") from e


@dataclass
class VariantRecord:
    """One parsed variant line.

    Attributes:
        chromosome: Chromosome name
        position: Reference position (VCF POS, 1-based)
        reference: REF allele
        alternatives: ALT alleles
        lengths: Length change of every alternative
        types: VariantType of every alternative
        genotypes: Sample name -> genotype string
        quality: QUAL value, if present
    """

    chromosome: str
    position: int
    reference: str
    alternatives: Tuple[str, ...]
    lengths: Tuple[int, ...]
    types: Tuple[VariantType, ...]
    genotypes: Dict[str, str] = field(default_factory=dict)
    quality: Optional[float] = None

    def __post_init__(self):
        self.alternatives = tuple(self.alternatives)
        self.lengths = tuple(self.lengths)
        self.types = tuple(self.types)
        if not (len(self.alternatives) == len(self.lengths) == len(self.types)):
            raise MalformedRecordError(
                f"Inconsistent record: {len(self.alternatives)} alternatives, "
                f"{len(self.lengths)} lengths, {len(self.types)} types",
                chromosome=self.chromosome,
                position=self.position,
            )

    @classmethod
    def from_alleles(
        cls,
        chromosome: str,
        position: int,
        reference: str,
        alternatives: Sequence[str],
        genotypes: Optional[Dict[str, str]] = None,
        svlens: Optional[Sequence[Optional[int]]] = None,
        quality: Optional[float] = None
    ) -> "VariantRecord":
        """
        Build a record, deriving lengths and types from the alleles.

        Symbolic alternatives take their length from `svlens` (the SVLEN INFO
        values, one per alternative). A symbolic alternative without a length
        is classified as OTHER and contributes no offset.

        Examples:
            >>> rec = VariantRecord.from_alleles("chr1", 100, "A", ["ATG", "C"])
            >>> rec.lengths
            (2, 0)
            >>> [t.name for t in rec.types]
            ['INSERTION', 'SNP']
        """
        lengths = []
        types = []
        for i, alt in enumerate(alternatives):
            if is_structural_variant(alt):
                svlen = svlens[i] if svlens is not None and i < len(svlens) else None
                length = None if svlen is None else int(svlen)
                # <DEL> with a positive SVLEN (VCF 4.0 style)
                if length is not None and alt.upper().startswith("<DEL") and length > 0:
                    length = -length
            elif alt in ("*", "."):
                length = None
            else:
                length = len(alt) - len(reference)
            types.append(VariantType.from_length(length))
            lengths.append(length if length is not None else 0)

        return cls(
            chromosome=chromosome,
            position=position,
            reference=reference,
            alternatives=tuple(alternatives),
            lengths=tuple(lengths),
            types=tuple(types),
            genotypes=dict(genotypes or {}),
            quality=quality,
        )

    def genotype(self, sample: str) -> Tuple[int, ...]:
        """
        Allele codes of a sample, validated against the alternatives.

        Raises:
            MalformedRecordError: If the sample is missing, the genotype does
                not parse, or an index points past the alternatives
        """
        if sample not in self.genotypes:
            raise MalformedRecordError(
                f"No genotype for sample '{sample}'",
                chromosome=self.chromosome,
                position=self.position,
            )
        try:
            codes = parse_genotype(self.genotypes[sample])
        except MalformedRecordError as e:
            raise MalformedRecordError(
                f"{e} for sample '{sample}'",
                chromosome=self.chromosome,
                position=self.position,
            ) from e
        for code in codes:
            if code >= len(self.alternatives):
                raise MalformedRecordError(
                    f"Allele index {code + 1} for sample '{sample}' exceeds "
                    f"{len(self.alternatives)} alternative(s)",
                    chromosome=self.chromosome,
                    position=self.position,
                )
        return codes
