"""Loading aligned reads, refined haplotypes and posterior matrices."""

import logging
import math
import re
from typing import List, Tuple

import numpy as np
from Bio import SeqIO

from .errors import InvalidInputError
from .types import Genotype, Read

HAPLOTYPE_HEADER = re.compile(r"^haplotype(\d+)_freq_([-+0-9.eE]+)$")


def sequence_format(path: str) -> str:
    """Guess the Bio.SeqIO format from a file extension (FASTQ unless it looks like FASTA)."""
    if path.endswith((".fasta", ".fa", ".fas", ".fna")):
        return "fasta"
    return "fastq"


def load_reads(path: str) -> List[Read]:
    """Load aligned reads; all must have the same length.

    Raises:
        InvalidInputError: if read lengths differ
    """
    reads = [Read(seq=str(record.seq), name=record.id)
             for record in SeqIO.parse(path, sequence_format(path))]
    logging.info(f"Loaded {len(reads)} reads from {path}")

    if reads:
        length = len(reads[0].seq)
        for r in reads:
            if len(r.seq) != length:
                raise InvalidInputError(
                    f"Read {r.name} has length {len(r.seq)}, expected {length}; "
                    f"reads must be aligned to a common frame"
                )
    return reads


def parse_haplotype_header(header: str) -> Tuple[int, float]:
    """
    Parse a haplotype FASTA header.

    Header format: >haplotype<ID>_freq_<frequency>

    Returns:
        Tuple of (genotype ID, frequency)
    """
    parts = header.lstrip('>').split()
    name = parts[0] if parts else ''
    match = HAPLOTYPE_HEADER.match(name)
    if not match:
        raise InvalidInputError(f"Cannot parse haplotype header: {header}")
    try:
        freq = float(match.group(2))
    except ValueError:
        raise InvalidInputError(f"Bad frequency in haplotype header: {header}") from None
    if not math.isfinite(freq):
        raise InvalidInputError(f"Non-finite frequency in haplotype header: {header}")
    return int(match.group(1)), freq


def load_haplotypes(path: str) -> List[Genotype]:
    """Load refined haplotypes, keeping the IDs and frequencies from their headers."""
    genotypes = []
    for record in SeqIO.parse(path, "fasta"):
        genotype_id, freq = parse_haplotype_header(record.id)
        genotypes.append(Genotype(seq=str(record.seq), freq=freq, id=genotype_id))
    logging.info(f"Loaded {len(genotypes)} haplotypes from {path}")
    return genotypes


def load_posteriors(path: str, n_genotypes: int, n_reads: int) -> np.ndarray:
    """Load a posterior matrix with one row per haplotype and one column per read.

    Raises:
        InvalidInputError: if the matrix shape does not match
    """
    pqrs = np.loadtxt(path, ndmin=2)
    if pqrs.shape != (n_genotypes, n_reads):
        raise InvalidInputError(
            f"Posterior matrix in {path} has shape {pqrs.shape}, "
            f"expected ({n_genotypes}, {n_reads})"
        )
    return pqrs
