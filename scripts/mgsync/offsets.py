"""
Offset containers for multi-genome synchronization

Three list types carry the state of the synchronization:

- OffsetList: raw offsets of one genome allele on one chromosome, expressed on
  the reference axis. Built append-only while variant records are scanned.
- ReferenceOffsetList: the reference aggregate. For every chromosome it holds
  each insertion locus seen in any genome once, with the widest insertion
  length observed there.
- SynchronizedOffsetList: the merge output. Each boundary is expressed on the
  genome's own axis and carries the cumulative shift to the meta-genome axis.

Offset values:
    value > 0   insertion of `value` bases after `position`
    value < 0   deletion of `|value|` reference bases after `position`

Boundary arithmetic:
    target = position + shift
    meta_position(p) = p + shift(floor boundary of p)
"""

import threading
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional

from .errors import OffsetOrderError


class Offset(NamedTuple):
    """A shift of `value` bases starting after reference `position`."""
    position: int
    value: int


class SynchronizedOffset(NamedTuple):
    """A boundary on a genome axis and its cumulative meta-genome shift."""
    position: int
    shift: int

    @property
    def target(self) -> int:
        """Meta-genome position of the boundary."""
        return self.position + self.shift


class OffsetList:
    """
    Append-only list of offsets sorted by reference position.

    Positions must be strictly increasing; appending a position equal to or
    lower than the last one raises OffsetOrderError.

    Examples:
        >>> offsets = OffsetList([(100, 3)])
        >>> offsets.append(Offset(200, -4))
        >>> [o.value for o in offsets]
        [3, -4]
    """

    def __init__(self, offsets: Optional[Iterable] = None):
        self._offsets: List[Offset] = []
        for offset in offsets or ():
            self.append(Offset(*offset))

    def append(self, offset: Offset) -> None:
        if self._offsets and offset.position <= self._offsets[-1].position:
            raise OffsetOrderError(
                f"Offset at position {offset.position} appended after "
                f"position {self._offsets[-1].position}"
            )
        self._offsets.append(offset)

    @property
    def positions(self) -> List[int]:
        return [o.position for o in self._offsets]

    def __getitem__(self, index: int) -> Offset:
        return self._offsets[index]

    def __len__(self) -> int:
        return len(self._offsets)

    def __iter__(self) -> Iterator[Offset]:
        return iter(self._offsets)

    def __eq__(self, other) -> bool:
        if isinstance(other, OffsetList):
            return self._offsets == other._offsets
        return NotImplemented

    def __repr__(self) -> str:
        return f"OffsetList({self._offsets!r})"


class ReferenceOffsetList:
    """
    Union of insertions from every genome, per chromosome.

    Files may be scanned concurrently, so additions take a per-chromosome
    lock. Loci are kept once with the widest insertion length; reading a
    chromosome returns an OffsetList sorted by position.

    Examples:
        >>> ref = ReferenceOffsetList(["chr1"])
        >>> ref.add("chr1", Offset(100, 3))
        >>> ref.add("chr1", Offset(100, 5))
        >>> list(ref.get("chr1"))
        [Offset(position=100, value=5)]
    """

    def __init__(self, chromosomes: Iterable[str] = ()):
        self._insertions: Dict[str, Dict[int, int]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        for chromosome in chromosomes:
            self._register(chromosome)

    def _register(self, chromosome: str) -> threading.Lock:
        with self._registry_lock:
            if chromosome not in self._locks:
                self._locks[chromosome] = threading.Lock()
                self._insertions[chromosome] = {}
            return self._locks[chromosome]

    def add(self, chromosome: str, offset: Offset) -> None:
        """Record an insertion, keeping the widest length at a locus."""
        if offset.value <= 0:
            raise OffsetOrderError(
                f"Only insertions belong to the reference aggregate, got {offset}"
            )
        lock = self._locks.get(chromosome) or self._register(chromosome)
        with lock:
            loci = self._insertions[chromosome]
            loci[offset.position] = max(loci.get(offset.position, 0), offset.value)

    def get(self, chromosome: str) -> OffsetList:
        loci = self._insertions.get(chromosome, {})
        return OffsetList(Offset(p, loci[p]) for p in sorted(loci))

    @property
    def chromosomes(self) -> List[str]:
        return list(self._insertions)

    def __len__(self) -> int:
        return sum(len(loci) for loci in self._insertions.values())


class SynchronizedOffsetList:
    """
    Translation table of one genome allele on one chromosome.

    Stored as two parallel lists so lookups can bisect on either axis.
    Positions strictly increase and shifts never decrease.
    """

    def __init__(self, boundaries: Optional[Iterable] = None):
        self.positions: List[int] = []
        self.shifts: List[int] = []
        for boundary in boundaries or ():
            self.append(SynchronizedOffset(*boundary))

    def append(self, boundary: SynchronizedOffset) -> None:
        if self.positions and boundary.position <= self.positions[-1]:
            raise OffsetOrderError(
                f"Boundary at {boundary.position} emitted after {self.positions[-1]}"
            )
        if self.shifts and boundary.shift < self.shifts[-1]:
            raise OffsetOrderError(
                f"Boundary shift decreased from {self.shifts[-1]} to {boundary.shift}"
            )
        self.positions.append(boundary.position)
        self.shifts.append(boundary.shift)

    def widen_last(self, extra: int) -> None:
        """Add `extra` meta-genome bases to the last boundary's shift."""
        if not self.shifts:
            raise OffsetOrderError("Cannot widen an empty boundary list")
        self.shifts[-1] += extra

    @property
    def targets(self) -> List[int]:
        return [p + s for p, s in zip(self.positions, self.shifts)]

    @property
    def total_shift(self) -> int:
        """Shift applied after the last boundary (0 if there is none)."""
        return self.shifts[-1] if self.shifts else 0

    def last(self) -> Optional[SynchronizedOffset]:
        if not self.positions:
            return None
        return SynchronizedOffset(self.positions[-1], self.shifts[-1])

    def __getitem__(self, index: int) -> SynchronizedOffset:
        return SynchronizedOffset(self.positions[index], self.shifts[index])

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[SynchronizedOffset]:
        for position, shift in zip(self.positions, self.shifts):
            yield SynchronizedOffset(position, shift)

    def __eq__(self, other) -> bool:
        if isinstance(other, SynchronizedOffsetList):
            return self.positions == other.positions and self.shifts == other.shifts
        return NotImplemented

    def __repr__(self) -> str:
        return f"SynchronizedOffsetList({list(self)!r})"
