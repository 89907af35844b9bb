"""Tests for FASTA result writers and output directory setup."""

import io
import os

import numpy as np
import pytest
from Bio import SeqIO

from quasiseed import output
from quasiseed.errors import ResourceCreationError
from quasiseed.output import (
    OutputSinks,
    mask_ambiguous,
    open_sink,
    output_clustered_fasta,
    output_expanded_reads,
    output_haplotypes,
    output_result,
    output_seeds,
    setup_output_dir,
    strip_gaps,
    write_fasta,
    write_results,
)
from quasiseed.types import Genotype, Read


class RecordingStream(io.StringIO):
    """StringIO that keeps its text after close()."""

    def close(self):
        if not self.closed:
            self.final_text = self.getvalue()
        super().close()


class FailingStream(RecordingStream):

    def write(self, s):
        raise OSError("disk full")


def headers_and_seqs(text):
    lines = text.splitlines()
    assert len(lines) % 2 == 0
    return [(lines[i], lines[i + 1]) for i in range(0, len(lines), 2)]


class TestWriteFasta:

    def test_two_line_records(self):
        out = RecordingStream()
        count = write_fasta(out, [("first", "ACGT"), ("second", "GG")])
        assert count == 2
        assert out.final_text == ">first\nACGT\n>second\nGG\n"

    def test_long_sequences_are_not_wrapped(self):
        out = RecordingStream()
        write_fasta(out, [("long", "A" * 200)])
        assert out.final_text == ">long\n" + "A" * 200 + "\n"

    def test_closes_output(self):
        out = RecordingStream()
        write_fasta(out, [])
        assert out.closed

    def test_closes_output_when_writing_fails(self):
        out = FailingStream()
        with pytest.raises(OSError):
            write_fasta(out, [("x", "ACGT")])
        assert out.closed


class TestOutputResult:

    def test_last_duplicate_wins(self):
        out = RecordingStream()
        genotypes = [Genotype("AAA", freq=0.3, id=1), Genotype("AAA", freq=0.7, id=2)]
        output_result(out, genotypes)
        assert headers_and_seqs(out.final_text) == [(">read_freq=0.7000000000", "AAA")]

    def test_one_record_per_distinct_sequence(self):
        out = RecordingStream()
        genotypes = [Genotype("AAA", freq=0.25, id=1), Genotype("CCC", freq=0.5, id=2),
                     Genotype("AAA", freq=0.25, id=3)]
        output_result(out, genotypes)
        records = headers_and_seqs(out.final_text)
        assert sorted(seq for _, seq in records) == ["AAA", "CCC"]
        assert (">read_freq=0.5000000000", "CCC") in records


class TestOutputExpandedReads:

    def test_multiplicity_expansion(self):
        out = RecordingStream()
        genotypes = [Genotype("AA", freq=0.6, id=1), Genotype("TT", freq=0.4, id=2)]
        count = output_expanded_reads(out, genotypes, 10)

        records = headers_and_seqs(out.final_text)
        assert count == 10
        assert [seq for _, seq in records] == ["AA"] * 6 + ["TT"] * 4
        assert records[0][0] == ">read0_freq_0.6000000000"
        assert records[5][0] == ">read5_freq_0.6000000000"
        assert records[6][0] == ">read6_freq_0.4000000000"
        assert records[9][0] == ">read9_freq_0.4000000000"

    def test_sorted_by_descending_frequency(self):
        out = RecordingStream()
        genotypes = [Genotype("TT", freq=0.2, id=1), Genotype("AA", freq=0.8, id=2)]
        output_expanded_reads(out, genotypes, 5)
        seqs = [seq for _, seq in headers_and_seqs(out.final_text)]
        assert seqs == ["AA"] * 4 + ["TT"]

    def test_multiplicity_is_floored(self):
        out = RecordingStream()
        genotypes = [Genotype("AA", freq=0.55, id=1), Genotype("TT", freq=0.45, id=2)]
        count = output_expanded_reads(out, genotypes, 3)
        # floor(1.65) = 1, floor(1.35) = 1
        assert count == 2

    def test_clean_applied_to_sequences(self):
        out = RecordingStream()
        output_expanded_reads(out, [Genotype("A-C-", freq=1.0, id=1)], 2, clean=strip_gaps)
        assert [seq for _, seq in headers_and_seqs(out.final_text)] == ["AC", "AC"]


class TestOutputHaplotypes:

    def test_headers_use_genotype_ids(self):
        out = RecordingStream()
        genotypes = [Genotype("CCCC", freq=0.25, id=7), Genotype("GGGG", freq=0.75, id=3)]
        output_haplotypes(out, genotypes)
        assert headers_and_seqs(out.final_text) == [
            (">haplotype3_freq_0.7500000000", "GGGG"),
            (">haplotype7_freq_0.2500000000", "CCCC"),
        ]

    def test_equal_frequencies_keep_input_order(self):
        out = RecordingStream()
        genotypes = [Genotype("CCCC", freq=0.5, id=9), Genotype("GGGG", freq=0.5, id=2)]
        output_haplotypes(out, genotypes)
        assert [h for h, _ in headers_and_seqs(out.final_text)] == [
            ">haplotype9_freq_0.5000000000", ">haplotype2_freq_0.5000000000"]

    def test_clean(self):
        out = RecordingStream()
        output_haplotypes(out, [Genotype("AC-RT", freq=1.0, id=1)], clean=mask_ambiguous)
        assert headers_and_seqs(out.final_text)[0][1] == "AC-NT"


class TestOutputClusteredFasta:

    def test_posterior_headers(self):
        out = RecordingStream()
        genotypes = [Genotype("AAAA", freq=0.5, id=4), Genotype("TTTT", freq=0.5, id=8)]
        reads = [Read("AA-A"), Read("T TT")]
        pqrs = [[0.9, 0.1], [0.2, 0.8]]
        output_clustered_fasta(out, genotypes, reads, pqrs)

        assert headers_and_seqs(out.final_text) == [
            (">read0_h4=0.90000_h8=0.20000", "AAA"),
            (">read1_h4=0.10000_h8=0.80000", "TTT"),
        ]

    def test_numpy_posteriors(self):
        out = RecordingStream()
        genotypes = [Genotype("AC", freq=1.0, id=0)]
        reads = [Read("AC"), Read("AG"), Read("-C")]
        pqrs = np.array([[1.0, 0.123456, 0.5]])
        output_clustered_fasta(out, genotypes, reads, pqrs)
        assert [h for h, _ in headers_and_seqs(out.final_text)] == [
            ">read0_h0=1.00000", ">read1_h0=0.12346", ">read2_h0=0.50000"]

    def test_no_genotypes(self):
        out = RecordingStream()
        output_clustered_fasta(out, [], [Read("AC")], np.zeros((0, 1)))
        assert out.final_text == ">read0\nAC\n"


def test_output_seeds():
    out = RecordingStream()
    output_seeds(out, [Genotype("ACGT", id=5), Genotype("TTTT", id=6)])
    assert out.final_text == ">seed5\nACGT\n>seed6\nTTTT\n"


def test_cleaners():
    assert strip_gaps("A- C-G T") == "ACGT"
    assert mask_ambiguous("acgtRYKM-") == "ACGTNNNN-"


class TestSetupOutputDir:

    def test_creates_directory_and_files(self, tmp_path):
        output_dir = tmp_path / "out"
        sinks = setup_output_dir(str(output_dir))
        assert isinstance(sinks, OutputSinks)
        try:
            assert sorted(os.listdir(output_dir)) == [
                "haplotypes.fa", "haplotypes_cleaned.fa", "reads.fa",
                "reads_cleaned.fa", "reads_clustered.fa"]
            assert os.path.basename(sinks.haplotypes.name) == "haplotypes.fa"
            assert os.path.basename(sinks.haplotypes_cleaned.name) == "haplotypes_cleaned.fa"
            assert os.path.basename(sinks.reads.name) == "reads.fa"
            assert os.path.basename(sinks.reads_cleaned.name) == "reads_cleaned.fa"
            assert os.path.basename(sinks.reads_clustered.name) == "reads_clustered.fa"
        finally:
            for sink in sinks:
                sink.close()

    def test_existing_directory(self, tmp_path):
        sinks = setup_output_dir(str(tmp_path))
        assert sinks is not None
        for sink in sinks:
            sink.close()

    def test_directory_cannot_be_created(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        assert setup_output_dir(str(blocker / "out")) is None

    def test_file_cannot_be_created(self, tmp_path, monkeypatch):
        opened = []

        def recording_open_sink(path):
            sink = open_sink(path)
            opened.append(sink)
            return sink

        monkeypatch.setattr(output, "open_sink", recording_open_sink)
        # A directory in the way of reads_cleaned.fa
        (tmp_path / "reads_cleaned.fa").mkdir()
        assert setup_output_dir(str(tmp_path)) is None
        # Files opened before the failure are closed but stay on disk
        assert len(opened) == 3
        assert all(sink.closed for sink in opened)
        assert (tmp_path / "haplotypes.fa").exists()
        assert (tmp_path / "reads.fa").exists()
        assert (tmp_path / "haplotypes_cleaned.fa").exists()
        assert not (tmp_path / "reads_clustered.fa").exists()

    def test_open_sink_raises_with_path(self, tmp_path):
        path = str(tmp_path / "missing" / "file.fa")
        with pytest.raises(ResourceCreationError) as excinfo:
            open_sink(path)
        assert excinfo.value.path == path
        assert path in str(excinfo.value)


def test_write_results(tmp_path):
    sinks = setup_output_dir(str(tmp_path))
    genotypes = [Genotype("AC-T", freq=0.75, id=1), Genotype("GG-T", freq=0.25, id=2)]
    reads = [Read("AC-T"), Read("GGAT")]
    pqrs = np.array([[0.99, 0.05], [0.01, 0.95]])

    write_results(sinks, genotypes, reads, pqrs, 4)

    assert all(sink.closed for sink in sinks)
    haplotypes = list(SeqIO.parse(str(tmp_path / "haplotypes.fa"), "fasta"))
    assert [(r.id, str(r.seq)) for r in haplotypes] == [
        ("haplotype1_freq_0.7500000000", "AC-T"), ("haplotype2_freq_0.2500000000", "GG-T")]
    cleaned = list(SeqIO.parse(str(tmp_path / "haplotypes_cleaned.fa"), "fasta"))
    assert [str(r.seq) for r in cleaned] == ["ACT", "GGT"]
    corrected = list(SeqIO.parse(str(tmp_path / "reads.fa"), "fasta"))
    assert [str(r.seq) for r in corrected] == ["AC-T"] * 3 + ["GG-T"]
    corrected_cleaned = list(SeqIO.parse(str(tmp_path / "reads_cleaned.fa"), "fasta"))
    assert [str(r.seq) for r in corrected_cleaned] == ["ACT"] * 3 + ["GGT"]
    clustered = list(SeqIO.parse(str(tmp_path / "reads_clustered.fa"), "fasta"))
    assert [r.id for r in clustered] == ["read0_h1=0.99000_h2=0.01000", "read1_h1=0.05000_h2=0.95000"]
    assert [str(r.seq) for r in clustered] == ["ACT", "GGAT"]


def test_write_results_closes_all_sinks_when_a_writer_fails():
    sinks = OutputSinks(
        haplotypes=RecordingStream(),
        haplotypes_cleaned=RecordingStream(),
        reads=FailingStream(),
        reads_cleaned=RecordingStream(),
        reads_clustered=RecordingStream(),
    )
    genotypes = [Genotype("ACGT", freq=1.0, id=1)]

    with pytest.raises(OSError):
        write_results(sinks, genotypes, [Read("ACGT")], [[1.0]], 2)

    assert all(sink.closed for sink in sinks)
    # Writers after the failing one never ran
    assert sinks.haplotypes.final_text.startswith(">haplotype1_freq_")
    assert sinks.reads_cleaned.final_text == ""
