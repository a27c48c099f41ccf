"""
Offset Merger

Reconciles the raw offsets of one genome allele with the reference aggregate
of the same chromosome and produces the allele's translation table.

Mathematical Background:
------------------------
The meta-genome axis holds every reference base plus, at each insertion
locus, as many slots as the widest insertion observed there in any genome.
A genome lacks meta-genome bases in three situations:

    another genome inserted at a locus where this genome did not
        -> the genome lacks the whole insertion width
    this genome inserted fewer bases than the widest insertion at a locus
        -> it lacks (widest - own) bases
    this genome deleted reference bases
        -> it lacks the deleted bases

Every such situation closes a boundary. Walking both lists in position order,
with `last_ref` the reference base right after the previous boundary and
`previous` the genome position of that boundary, the genome position of a
reference locus P is:

    g(P) = P - last_ref + previous + pending

where `pending` counts this genome's own inserted bases since the previous
boundary (they exist in the genome and in the meta-genome, so they shift
nothing but move later boundaries). The boundary is anchored on the base
after the variant:

    boundary = g(P) + extra + 1

`extra` is the genome's own insertion at P when a wider insertion exists
there, so the boundary lands after the bases the genome does have.
"""

import logging
from typing import Optional

from .errors import MergeInvariantError
from .offsets import Offset, OffsetList, SynchronizedOffset, SynchronizedOffsetList

logger = logging.getLogger(__name__)


def check_ascending(offsets: OffsetList, label: str) -> None:
    """
    Fail fast on a list that breaks the strictly-ascending invariant.

    Raises:
        MergeInvariantError: If two offsets are out of order or duplicated
    """
    previous: Optional[Offset] = None
    for offset in offsets:
        if previous is not None and offset.position <= previous.position:
            raise MergeInvariantError(
                f"{label} offsets not ascending: {previous} followed by {offset}"
            )
        previous = offset


class _Sweep:
    """Working state of one merge; local to a single merge_offsets call."""

    def __init__(self):
        self.result = SynchronizedOffsetList()
        self.last_ref = 0
        self.pending = 0

    def genome_position(self, reference_position: int) -> int:
        last = self.result.last()
        previous = last.position if last is not None else 0
        return reference_position - self.last_ref + previous + self.pending

    def in_deleted_span(self, reference_position: int) -> bool:
        return reference_position < self.last_ref

    def close(self, reference_position: int, extra: int, added_shift: int, next_ref: int) -> None:
        """Emit a boundary and restart the pending run after it."""
        if added_shift <= 0:
            raise MergeInvariantError(
                f"Boundary at reference position {reference_position} "
                f"adds no shift ({added_shift})"
            )
        position = self.genome_position(reference_position) + extra + 1
        self.result.append(SynchronizedOffset(position, self.result.total_shift + added_shift))
        self.last_ref = next_ref
        self.pending = 0


def merge_offsets(reference: OffsetList, allele: OffsetList) -> SynchronizedOffsetList:
    """
    Build the translation table of one allele on one chromosome.

    Args:
        reference: Reference aggregate (widest insertion per locus), ascending
        allele: Raw offsets of the allele, ascending

    Returns:
        A new SynchronizedOffsetList; neither input is modified

    Raises:
        MergeInvariantError: If an input is not ascending, or an allele
            insertion is wider than the aggregate at the same locus

    Allele offsets anchored inside a span the allele already deleted (two
    overlapping unphased deletions on one copy) are folded into that span:
    a deletion extends it, an insertion is dropped.

    Examples:
        >>> table = merge_offsets(OffsetList([(100, 3)]), OffsetList())
        >>> list(table)
        [SynchronizedOffset(position=101, shift=3)]
        >>> list(merge_offsets(OffsetList([(100, 3)]), OffsetList([(100, 3)])))
        []
    """
    check_ascending(reference, "Reference")
    check_ascending(allele, "Allele")

    sweep = _Sweep()
    ref_index = 0
    allele_index = 0

    while True:
        ref = reference[ref_index] if ref_index < len(reference) else None
        own = allele[allele_index] if allele_index < len(allele) else None

        if ref is None and own is None:
            break

        if ref is not None and own is not None and ref.position == own.position:
            _merge_same_locus(sweep, ref, own)
            ref_index += 1
            allele_index += 1
        elif ref is None or (own is not None and own.position < ref.position):
            _merge_allele_offset(sweep, own)
            allele_index += 1
        else:
            _merge_reference_offset(sweep, ref)
            ref_index += 1

    return sweep.result


def _absorb_overlap(sweep: _Sweep, own: Offset) -> None:
    """Fold an allele offset anchored inside the allele's own deleted span."""
    if own.value > 0:
        logger.warning(
            f"Insertion {own} falls inside a deletion ending before reference "
            f"position {sweep.last_ref}; skipped"
        )
        return
    end = own.position - own.value + 1
    if end > sweep.last_ref:
        # Only the part past the current span removes more bases
        sweep.result.widen_last(end - sweep.last_ref)
        sweep.last_ref = end
    logger.warning(
        f"Deletion {own} overlaps a deletion of the same allele; "
        f"merged span now ends before reference position {sweep.last_ref}"
    )


def _merge_same_locus(sweep: _Sweep, ref: Offset, own: Offset) -> None:
    if own.value > ref.value:
        raise MergeInvariantError(
            f"Allele insertion {own} is wider than the reference aggregate {ref}"
        )
    if sweep.in_deleted_span(own.position):
        _merge_reference_offset(sweep, ref)
        _absorb_overlap(sweep, own)
        return

    if own.value < 0:
        # Deletion anchored where another genome inserted: both are missing
        sweep.close(own.position, 0, ref.value - own.value, own.position - own.value + 1)
    elif ref.value > own.value:
        # A wider insertion exists: skip the slots this genome does not fill
        sweep.close(own.position, own.value, ref.value - own.value, own.position + 1)
    else:
        sweep.pending += own.value


def _merge_allele_offset(sweep: _Sweep, own: Offset) -> None:
    if sweep.in_deleted_span(own.position):
        _absorb_overlap(sweep, own)
        return
    if own.value < 0:
        sweep.close(own.position, 0, -own.value, own.position - own.value + 1)
    elif own.value > 0:
        # Not in the aggregate; only reachable when the lists come from
        # different sources. The bases exist on both axes, nothing to skip.
        sweep.pending += own.value


def _merge_reference_offset(sweep: _Sweep, ref: Offset) -> None:
    if sweep.in_deleted_span(ref.position):
        # Insertion anchored on bases this genome deleted; the bases after the
        # deletion move right by the insertion width as well.
        logger.debug(f"Insertion {ref} inside a deleted span widens the previous boundary")
        sweep.result.widen_last(ref.value)
        return
    sweep.close(ref.position, 0, ref.value, ref.position + 1)
