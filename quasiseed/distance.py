"""Hamming distance over aligned sequences.

Gap ('-') and space (' ') symbols are wildcards: a position where either
sequence holds one never counts as a mismatch.
"""

from typing import Sequence

import numpy as np

from .errors import InvalidInputError
from .types import Read

WILDCARDS = frozenset('- ')
_WILDCARD_CODES = np.frombuffer(''.join(sorted(WILDCARDS)).encode('ascii'), dtype=np.uint8)


def hamming_distance(s: str, t: str) -> int:
    """Count mismatched positions between two equal-length sequences.

    Raises:
        InvalidInputError: if the sequences differ in length
    """
    if len(s) != len(t):
        raise InvalidInputError(
            f"Hamming distance: sequences have mismatched length ({len(s)} vs {len(t)})"
        )
    return sum(1 for a, b in zip(s, t)
               if a != b and a not in WILDCARDS and b not in WILDCARDS)


def read_distance(r1: Read, r2: Read) -> int:
    """Hamming distance between two reads; 0 without comparing when they are the same read."""
    if r1 is r2:
        return 0
    return hamming_distance(r1.seq, r2.seq)


def encode_sequences(seqs: Sequence[str], length: int) -> np.ndarray:
    """Pack equal-length sequences into a (len(seqs), length) uint8 matrix.

    Raises:
        InvalidInputError: if any sequence is not exactly `length` symbols long
    """
    matrix = np.empty((len(seqs), length), dtype=np.uint8)
    for i, seq in enumerate(seqs):
        if len(seq) != length:
            raise InvalidInputError(
                f"Hamming distance: sequences have mismatched length ({len(seq)} vs {length})"
            )
        matrix[i] = np.frombuffer(seq.encode('ascii'), dtype=np.uint8)
    return matrix


def hamming_distances(seq: str, matrix: np.ndarray) -> np.ndarray:
    """Hamming distance from `seq` to every row of an encoded matrix.

    Same wildcard rule as hamming_distance(); row order is preserved.
    """
    if matrix.shape[1] != len(seq):
        raise InvalidInputError(
            f"Hamming distance: sequences have mismatched length ({len(seq)} vs {matrix.shape[1]})"
        )
    query = np.frombuffer(seq.encode('ascii'), dtype=np.uint8)
    mismatch = matrix != query
    mismatch &= ~np.isin(matrix, _WILDCARD_CODES)
    mismatch &= ~np.isin(query, _WILDCARD_CODES)
    return mismatch.sum(axis=1)
