"""Run configuration for seed selection and result reporting."""

import random
from dataclasses import dataclass
from typing import Callable, Optional

from .output import mask_ambiguous, strip_gaps

CLEANERS = {
    'gaps': strip_gaps,
    'ambiguous': mask_ambiguous,
}


@dataclass
class SeedConfig:
    """Configuration for farthest-first seed selection.

    Attributes:
        k: Maximum number of seeds (upper bound on population size)
        threshold: Minimum Hamming distance between a new seed and existing seeds
        random_seed: Seed for choosing the first read (None = nondeterministic)
    """
    k: int = 10
    threshold: int = 1
    random_seed: Optional[int] = None

    @classmethod
    def from_args(cls, args) -> 'SeedConfig':
        """Create config from command-line arguments."""
        return cls(
            k=getattr(args, 'k', 10),
            threshold=getattr(args, 'threshold', 1),
            random_seed=getattr(args, 'seed', None),
        )

    def make_rng(self) -> random.Random:
        return random.Random(self.random_seed)


@dataclass
class ReportConfig:
    """Configuration for writing result files.

    Attributes:
        num_reads: Corrected read count to expand haplotypes to (None = number of input reads)
        clean: Name of the sequence cleaner for the *_cleaned outputs ('gaps' or 'ambiguous')
    """
    num_reads: Optional[int] = None
    clean: str = 'gaps'

    @classmethod
    def from_args(cls, args) -> 'ReportConfig':
        """Create config from command-line arguments."""
        return cls(
            num_reads=getattr(args, 'num_reads', None),
            clean=getattr(args, 'clean', 'gaps'),
        )

    def cleaner(self) -> Callable[[str], str]:
        if self.clean not in CLEANERS:
            raise ValueError(f"Unknown cleaner: {self.clean}")
        return CLEANERS[self.clean]
