#!/usr/bin/env python3
"""
Result reporting for quasiseed.

Takes the haplotypes, frequencies and posterior matrix produced by EM
refinement together with the aligned reads, and writes the standard set of
result files: haplotypes, corrected reads (each haplotype repeated according
to its frequency), their gap-free variants, and the input reads annotated
with per-haplotype cluster posteriors.
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

try:
    from quasiseed import __version__
except ImportError:
    __version__ = "dev"

from quasiseed.config import CLEANERS, ReportConfig
from quasiseed.errors import QuasiseedError
from quasiseed.inputs import load_haplotypes, load_posteriors, load_reads
from quasiseed.output import output_result, setup_output_dir, write_results


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Write reconstructed haplotypes, corrected reads and read clustering as FASTA"
    )
    parser.add_argument("haplotypes", help="Refined haplotypes FASTA (>haplotype<ID>_freq_<freq> headers)")
    parser.add_argument("reads", help="Aligned reads (FASTA or FASTQ) in posterior matrix column order")
    parser.add_argument("posteriors",
                        help="Posterior matrix: one whitespace separated row per haplotype, "
                             "one column per read")
    parser.add_argument("-n", "--num-reads", type=int, default=None,
                        help="Number of corrected reads to generate (default: number of input reads)")
    parser.add_argument("--clean", choices=sorted(CLEANERS), default="gaps",
                        help="Sequence cleaning for the *_cleaned outputs: remove gaps, "
                             "or mask ambiguous bases with N (default: gaps)")
    parser.add_argument("--collapsed", default=None, metavar="FILE",
                        help="Also write one record per distinct haplotype sequence to FILE")
    parser.add_argument("-O", "--output-dir", default="results",
                        help="Output directory (default: results)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--version", action="version",
                        version=f"Quasiseed {__version__}",
                        help="Show program's version number and exit")
    return parser.parse_args(argv)


def main(argv=None):
    """Main function to process command line arguments and write the result files."""
    args = parse_arguments(argv)

    log_format = '%(asctime)s - %(levelname)s - %(message)s'
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format=log_format
    )

    config = ReportConfig.from_args(args)

    try:
        genotypes = load_haplotypes(args.haplotypes)
        reads = load_reads(args.reads)
        pqrs = load_posteriors(args.posteriors, len(genotypes), len(reads))
    except QuasiseedError as e:
        logging.error(str(e))
        sys.exit(1)

    n = config.num_reads if config.num_reads is not None else len(reads)
    logging.info(f"Expanding {len(genotypes)} haplotypes to {n} corrected reads")

    sinks = setup_output_dir(args.output_dir)
    if sinks is None:
        sys.exit(1)

    write_results(sinks, genotypes, reads, pqrs, n, clean=config.cleaner())

    if args.collapsed:
        with open(args.collapsed, 'w') as out:
            count = output_result(out, genotypes)
        logging.info(f"Wrote {count} distinct haplotype sequences to {args.collapsed}")

    metadata = {
        "version": __version__,
        "timestamp": datetime.now().isoformat(),
        "parameters": {
            "num_reads": n,
            "clean": config.clean,
        },
        "haplotypes_file": os.path.abspath(args.haplotypes),
        "reads_file": os.path.abspath(args.reads),
        "posteriors_file": os.path.abspath(args.posteriors),
        "num_haplotypes": len(genotypes),
        "num_input_reads": len(reads),
    }
    metadata_file = os.path.join(args.output_dir, "report-metadata.json")
    with open(metadata_file, 'w') as f:
        json.dump(metadata, f, indent=2)

    logging.info(f"Results written to {args.output_dir}")


if __name__ == "__main__":
    main()
