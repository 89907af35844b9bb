"""FASTA output of reconstructed haplotypes, corrected reads and read clustering.

Every writer funnels its records through write_fasta(), which emits the
two-line FASTA layout (header line, unwrapped sequence line) and always
closes the output handle.
"""

import logging
import os
import re
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence, TextIO, Tuple

from Bio import SeqIO
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from .errors import ResourceCreationError
from .types import Genotype, Read

HAPLOTYPES_FILE = "haplotypes.fa"
HAPLOTYPES_CLEANED_FILE = "haplotypes_cleaned.fa"
READS_FILE = "reads.fa"
READS_CLEANED_FILE = "reads_cleaned.fa"
READS_CLUSTERED_FILE = "reads_clustered.fa"

_AMBIGUOUS = re.compile(r'[^ACGT\-]')


class OutputSinks(NamedTuple):
    """Open handles for the five result files of a run."""
    haplotypes: TextIO
    haplotypes_cleaned: TextIO
    reads: TextIO
    reads_cleaned: TextIO
    reads_clustered: TextIO


def identity(seq: str) -> str:
    return seq


def strip_gaps(seq: str) -> str:
    """Remove alignment gaps ('-') and spaces."""
    return seq.replace(" ", "").replace("-", "")


def mask_ambiguous(seq: str) -> str:
    """Replace every symbol other than A, C, G, T and '-' with N."""
    return _AMBIGUOUS.sub('N', seq.upper())


def write_fasta(out: TextIO, records: Iterable[Tuple[str, str]]) -> int:
    """Write (header, sequence) pairs as two-line FASTA and close `out`.

    Returns:
        Number of records written
    """
    try:
        seq_records = (SeqRecord(Seq(seq), id=header, description="")
                       for header, seq in records)
        return SeqIO.write(seq_records, out, "fasta-2line")
    finally:
        out.close()


def output_result(out: TextIO, genotypes: Iterable[Genotype]) -> int:
    """Write one record per distinct haplotype sequence.

    When several genotypes share a sequence the last one seen supplies the
    frequency; the record keeps the position of the first.
    """
    by_seq = {}
    for g in genotypes:
        by_seq[g.seq] = g
    return write_fasta(out, ((f"read_freq={g.freq:.10f}", seq) for seq, g in by_seq.items()))


def output_expanded_reads(out: TextIO, genotypes: Iterable[Genotype], n: int,
                          clean: Callable[[str], str] = identity) -> int:
    """Write corrected reads: each haplotype repeated floor(freq * n) times.

    Haplotypes are emitted in order of descending frequency and the reads are
    numbered consecutively from 0 across all of them.
    """
    ordered = sorted(genotypes, key=lambda g: -g.freq)
    expanded = []
    for g in ordered:
        count = int(g.freq * n)
        cleaned_seq = clean(g.seq)
        expanded.extend([(cleaned_seq, g.freq)] * count)

    return write_fasta(out, ((f"read{i}_freq_{freq:.10f}", seq)
                             for i, (seq, freq) in enumerate(expanded)))


def output_haplotypes(out: TextIO, genotypes: Iterable[Genotype],
                      clean: Callable[[str], str] = identity) -> int:
    """Write haplotypes in order of descending frequency, labelled by genotype ID."""
    ordered = sorted(genotypes, key=lambda g: -g.freq)
    return write_fasta(out, ((f"haplotype{g.id}_freq_{g.freq:.10f}", clean(g.seq))
                             for g in ordered))


def clustering_string(genotypes: Sequence[Genotype], pqrs, read_index: int) -> str:
    """Header suffix with the posterior of every haplotype for one read."""
    return "".join(f"_h{g.id}={pqrs[gi][read_index]:.5f}"
                   for gi, g in enumerate(genotypes))


def output_clustered_fasta(out: TextIO, genotypes: Iterable[Genotype],
                           reads: Iterable[Read], pqrs) -> int:
    """Write input reads, ungapped, annotated with their cluster posteriors.

    Args:
        out: Output handle (closed on return)
        genotypes: Haplotypes in the row order of `pqrs`
        reads: Reads in the column order of `pqrs`
        pqrs: Posterior matrix indexed [genotype][read]
    """
    genotype_list = list(genotypes)
    return write_fasta(out, ((f"read{ri}{clustering_string(genotype_list, pqrs, ri)}", strip_gaps(r.seq))
                             for ri, r in enumerate(reads)))


def output_seeds(out: TextIO, genotypes: Iterable[Genotype]) -> int:
    """Write seed haplotypes before EM refinement (no frequencies yet)."""
    return write_fasta(out, ((f"seed{g.id}", g.seq) for g in genotypes))


def open_sink(path: str) -> TextIO:
    """Open one output file for writing.

    Raises:
        ResourceCreationError: if the file cannot be created
    """
    try:
        return open(path, 'w')
    except OSError as e:
        raise ResourceCreationError(path) from e


def setup_output_dir(output_dir: str) -> Optional[OutputSinks]:
    """Create the output directory and open the five result files in it.

    Returns None if the directory or any file cannot be created. Files opened
    before the one that failed are closed again (they stay on disk, empty).
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        logging.error(f"Cannot create output directory! ({output_dir}: {e})")
        return None

    base = os.path.abspath(output_dir)
    names = [HAPLOTYPES_FILE, READS_FILE, HAPLOTYPES_CLEANED_FILE,
             READS_CLEANED_FILE, READS_CLUSTERED_FILE]
    opened = {}
    for name in names:
        try:
            opened[name] = open_sink(os.path.join(base, name))
        except ResourceCreationError as e:
            logging.error(str(e))
            for sink in opened.values():
                sink.close()
            return None

    return OutputSinks(
        haplotypes=opened[HAPLOTYPES_FILE],
        haplotypes_cleaned=opened[HAPLOTYPES_CLEANED_FILE],
        reads=opened[READS_FILE],
        reads_cleaned=opened[READS_CLEANED_FILE],
        reads_clustered=opened[READS_CLUSTERED_FILE],
    )


def write_results(sinks: OutputSinks, genotypes: Sequence[Genotype], reads: Sequence[Read],
                  pqrs, n: int, clean: Callable[[str], str] = strip_gaps) -> None:
    """Write all five result files of a run; every sink is closed afterwards."""
    try:
        count = output_haplotypes(sinks.haplotypes, genotypes)
        output_haplotypes(sinks.haplotypes_cleaned, genotypes, clean=clean)
        logging.info(f"Wrote {count} haplotypes")

        count = output_expanded_reads(sinks.reads, genotypes, n)
        output_expanded_reads(sinks.reads_cleaned, genotypes, n, clean=clean)
        logging.info(f"Wrote {count} corrected reads")

        count = output_clustered_fasta(sinks.reads_clustered, genotypes, reads, pqrs)
        logging.info(f"Wrote {count} clustered reads")
    finally:
        # Already closed by the writers unless one of them raised
        for sink in sinks:
            sink.close()
