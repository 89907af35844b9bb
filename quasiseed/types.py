"""Core data types shared across quasiseed modules."""

import itertools
from dataclasses import dataclass, field
from typing import Optional

# Genotype IDs are handed out in creation order for the life of the process
_genotype_ids = itertools.count()


def next_genotype_id() -> int:
    return next(_genotype_ids)


@dataclass(frozen=True, eq=False)
class Read:
    """An aligned sequencing read.

    Reads compare by identity, not by sequence: two reads carrying the same
    text are still two reads.

    Attributes:
        seq: Aligned sequence; '-' and ' ' mark alignment gaps
        name: Identifier from the input file, if any
    """
    seq: str
    name: Optional[str] = None


@dataclass(frozen=True, eq=False)
class Genotype:
    """A reconstructed haplotype candidate.

    Attributes:
        seq: Haplotype sequence (may contain ambiguity codes and gaps)
        freq: Relative abundance in [0, 1]; NaN until assigned by EM refinement
        id: Reporting identifier, assigned at creation
    """
    seq: str
    freq: float = float('nan')
    id: int = field(default_factory=next_genotype_id)
