"""
Variant statistics gathered while scanning records.

File-level counts describe every alternative of every record; sample-level
counts describe what each genome actually carries, split by zygosity:

- homozygote:   two identical alternative codes (1/1)
- heterozygote: two different codes, at least one alternative (0/1, 1/2)
- hemizygote:   a single copy (1)
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, Sequence

import pandas as pd

from .variants import VariantType, is_structural_variant


@dataclass
class VariantCounts:
    """Counts by variant type; structural (symbolic) indels are 'long'."""
    snps: int = 0
    short_insertions: int = 0
    long_insertions: int = 0
    short_deletions: int = 0
    long_deletions: int = 0

    def add(self, variant_type: VariantType, alternative: str) -> None:
        structural = is_structural_variant(alternative)
        if variant_type == VariantType.SNP:
            self.snps += 1
        elif variant_type == VariantType.INSERTION:
            if structural:
                self.long_insertions += 1
            else:
                self.short_insertions += 1
        elif variant_type == VariantType.DELETION:
            if structural:
                self.long_deletions += 1
            else:
                self.short_deletions += 1

    @property
    def insertions(self) -> int:
        return self.short_insertions + self.long_insertions

    @property
    def deletions(self) -> int:
        return self.short_deletions + self.long_deletions


@dataclass
class FileStatistics(VariantCounts):
    """Counts for one record stream."""
    records: int = 0

    def add_record(self, types: Sequence[VariantType], alternatives: Sequence[str]) -> None:
        self.records += 1
        for variant_type, alternative in zip(types, alternatives):
            self.add(variant_type, alternative)


@dataclass
class ZygosityCounts:
    snps: int = 0
    insertions: int = 0
    deletions: int = 0

    def add(self, variant_type: VariantType) -> None:
        if variant_type == VariantType.SNP:
            self.snps += 1
        elif variant_type == VariantType.INSERTION:
            self.insertions += 1
        elif variant_type == VariantType.DELETION:
            self.deletions += 1


@dataclass
class SampleStatistics(VariantCounts):
    """Counts for one sample, including zygosity of its calls."""
    homozygote: ZygosityCounts = field(default_factory=ZygosityCounts)
    heterozygote: ZygosityCounts = field(default_factory=ZygosityCounts)
    hemizygote: ZygosityCounts = field(default_factory=ZygosityCounts)

    def add_genotype(self, types: Sequence[VariantType], codes: Sequence[int]) -> None:
        """Update zygosity counts for one genotype call."""
        if not codes:
            return
        if len(codes) == 1:
            # Hemizygous reference/no-call copies carry no variant
            if codes[0] < 0:
                return
            target = self.hemizygote
        elif is_homozygote(codes[0], codes[1]):
            target = self.homozygote
        elif is_heterozygote(codes[0], codes[1]):
            target = self.heterozygote
        else:
            return
        for code in sorted({c for c in codes if c >= 0}):
            target.add(types[code])


def is_homozygote(first: int, second: int) -> bool:
    """Two identical alternative codes."""
    return first == second and first >= 0


def is_heterozygote(first: int, second: int) -> bool:
    """Two different codes, at least one of them an alternative."""
    return first != second and (first >= 0 or second >= 0)


def file_statistics_to_dataframe(stats: Dict[str, FileStatistics]) -> pd.DataFrame:
    """One row per record stream."""
    rows = []
    for source, s in stats.items():
        row = {"source": source}
        row.update(asdict(s))
        rows.append(row)
    return pd.DataFrame(rows, columns=[
        "source", "records", "snps", "short_insertions", "long_insertions",
        "short_deletions", "long_deletions",
    ])


def sample_statistics_to_dataframe(stats: Dict[str, SampleStatistics]) -> pd.DataFrame:
    """One row per sample, zygosity counts flattened into columns."""
    rows = []
    for sample, s in stats.items():
        row = {
            "sample": sample,
            "snps": s.snps,
            "short_insertions": s.short_insertions,
            "long_insertions": s.long_insertions,
            "short_deletions": s.short_deletions,
            "long_deletions": s.long_deletions,
        }
        for name in ("homozygote", "heterozygote", "hemizygote"):
            counts = getattr(s, name)
            row[f"{name}_snps"] = counts.snps
            row[f"{name}_insertions"] = counts.insertions
            row[f"{name}_deletions"] = counts.deletions
        rows.append(row)
    return pd.DataFrame(rows)
