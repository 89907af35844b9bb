"""Seed selection for EM haplotype clustering.

Seeds are picked by greedy farthest-first traversal over Hamming distance,
a 2-approximation to the metric k-center problem. A minimum distance
threshold doubles as a population size estimate: traversal stops once the
farthest remaining read is closer than the threshold to some seed, so `k`
only acts as an upper bound.
"""

import logging
import random
from typing import Iterable, List, NamedTuple, Optional

import numpy as np
from tqdm import tqdm

from .distance import encode_sequences, hamming_distances
from .errors import InvalidInputError
from .types import Genotype, Read


class SeedSelection(NamedTuple):
    """Outcome of one farthest-first traversal."""
    seeds: List[Read]  # In selection order, first (random) seed at index 0
    max_distance: int  # Distance of the last candidate examined (0 if none)
    stop_reason: str  # 'k_reached', 'exhausted' or 'threshold'


def genotype_from_read(read: Read) -> Genotype:
    """Wrap a seed read into a new haplotype candidate with a fresh ID."""
    return Genotype(seq=read.seq)


def farthest_first_traversal(reads: Iterable[Read], k: int, threshold: float,
                             rng: Optional[random.Random] = None) -> SeedSelection:
    """Run the greedy farthest-first traversal.

    The first seed is drawn uniformly at random from `reads`. Only that exact
    read is removed from the candidate pool; other reads with the same
    sequence remain as candidates at distance 0.

    Args:
        reads: Aligned reads, all of the same length
        k: Maximum number of seeds
        threshold: Minimum distance a candidate needs to become a seed
        rng: Source of randomness for the first pick (default: unseeded Random)

    Returns:
        SeedSelection with the chosen reads

    Raises:
        InvalidInputError: if `reads` is empty or lengths differ
    """
    read_list = list(reads)
    if not read_list:
        raise InvalidInputError("Cannot select seeds from an empty read collection")
    if rng is None:
        rng = random.Random()

    first = read_list[rng.randrange(len(read_list))]
    seeds = [first]

    # Distance map: candidates[i] is at distances[i] from its nearest seed.
    # Rows keep input order so argmax (first maximum) breaks ties by position.
    candidates = [r for r in read_list if r is not first]
    matrix = encode_sequences([r.seq for r in candidates], len(first.seq))
    distances = hamming_distances(first.seq, matrix)

    max_distance = 0
    stop_reason = 'k_reached'
    with tqdm(total=max(k, 1), initial=1, desc="Selecting seeds", unit="seed", disable=None) as pbar:
        while len(seeds) < k:
            if not candidates:
                stop_reason = 'exhausted'
                break

            best = int(np.argmax(distances))
            max_distance = int(distances[best])
            if max_distance < threshold:
                stop_reason = 'threshold'
                break

            chosen = candidates.pop(best)
            seeds.append(chosen)
            matrix = np.delete(matrix, best, axis=0)
            distances = np.delete(distances, best)
            distances = np.minimum(distances, hamming_distances(chosen.seq, matrix))
            pbar.update(1)

    if stop_reason == 'k_reached':
        logging.info(f"Final max HD: {max_distance}")
    elif stop_reason == 'exhausted':
        logging.info(f"Ran out of candidate reads after {len(seeds)} seeds")
    else:
        logging.info(f"Farthest remaining read is {max_distance} from the seeds "
                     f"(threshold {threshold}); stopping at {len(seeds)} seeds")

    return SeedSelection(seeds=seeds, max_distance=max_distance, stop_reason=stop_reason)


def find_seeds(reads: Iterable[Read], k: int, threshold: float,
               rng: Optional[random.Random] = None) -> List[Genotype]:
    """Select up to `k` mutually distant reads and return them as genotypes.

    See farthest_first_traversal() for the selection rule.
    """
    selection = farthest_first_traversal(reads, k, threshold, rng=rng)
    return [genotype_from_read(r) for r in selection.seeds]
