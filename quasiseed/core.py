#!/usr/bin/env python3

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from typing import List

try:
    from quasiseed import __version__
except ImportError:
    # Fallback for when running as a script directly (e.g., in tests)
    __version__ = "dev"

from quasiseed.config import SeedConfig
from quasiseed.errors import QuasiseedError
from quasiseed.inputs import load_reads
from quasiseed.output import output_seeds
from quasiseed.seeds import SeedSelection, farthest_first_traversal, genotype_from_read
from quasiseed.types import Genotype

SEEDS_FILE = "seeds.fa"


def write_metadata(output_dir: str, config: SeedConfig, input_file: str,
                   num_reads: int, selection: SeedSelection, genotypes: List[Genotype]) -> None:
    """Write run metadata to JSON file for use by downstream tools."""
    metadata = {
        "version": __version__,
        "timestamp": datetime.now().isoformat(),
        "parameters": {
            "k": config.k,
            "threshold": config.threshold,
            "random_seed": config.random_seed,
        },
        "input_file": input_file,
        "num_reads": num_reads,
        "num_seeds": len(genotypes),
        "seed_ids": [g.id for g in genotypes],
        "seed_read_names": [r.name for r in selection.seeds],
        "max_distance": selection.max_distance,
        "stop_reason": selection.stop_reason,
    }

    metadata_file = os.path.join(output_dir, "seeds-metadata.json")
    with open(metadata_file, 'w') as f:
        json.dump(metadata, f, indent=2)

    logging.debug(f"Wrote run metadata to {metadata_file}")


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Select maximally diverse seed reads (farthest-first traversal) "
                    "for EM haplotype reconstruction"
    )
    parser.add_argument("input_file", help="Aligned reads (FASTA or FASTQ, equal length)")
    parser.add_argument("-k", type=int, default=10,
                        help="Maximum number of seeds (default: 10)")
    parser.add_argument("--threshold", type=int, default=1,
                        help="Minimum Hamming distance from a new seed to all previous seeds; "
                             "selection stops when no read is this far (default: 1)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for choosing the first seed read (default: random)")
    parser.add_argument("-O", "--output-dir", default="seeds",
                        help="Output directory (default: seeds)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--version", action="version",
                        version=f"Quasiseed {__version__}",
                        help="Show program's version number and exit")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)

    # Setup standard logging
    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format=log_format
    )

    config = SeedConfig.from_args(args)
    logging.info(f"Seed selection: k={config.k}, threshold={config.threshold}, "
                 f"random_seed={config.random_seed}")

    try:
        reads = load_reads(args.input_file)
        if len(reads) == 0:
            logging.warning("No reads found in input file. Nothing to select.")
            sys.exit(0)

        selection = farthest_first_traversal(reads, config.k, config.threshold, rng=config.make_rng())
    except QuasiseedError as e:
        logging.error(str(e))
        sys.exit(1)

    genotypes = [genotype_from_read(r) for r in selection.seeds]
    logging.info(f"Selected {len(genotypes)} seeds from {len(reads)} reads ({selection.stop_reason})")

    os.makedirs(args.output_dir, exist_ok=True)
    seeds_file = os.path.join(args.output_dir, SEEDS_FILE)
    with open(seeds_file, 'w') as out:
        output_seeds(out, genotypes)
    logging.info(f"Wrote seeds to {seeds_file}")

    write_metadata(args.output_dir, config, os.path.abspath(args.input_file),
                   len(reads), selection, genotypes)


if __name__ == "__main__":
    main()
