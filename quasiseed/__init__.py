"""
Quasiseed: seed selection and result reporting for viral quasispecies reconstruction.

Picks a maximally diverse subset of aligned reads to seed EM haplotype
clustering, and writes reconstructed haplotypes, corrected reads and
per-read cluster membership as FASTA.
"""

__version__ = "0.1.0"

from .core import main as quasiseed_main
from .report import main as report_main

__all__ = ["quasiseed_main", "report_main", "__version__"]
