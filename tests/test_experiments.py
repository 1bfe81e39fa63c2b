import csv

import pytest

import experiments as exp
from huffman import HuffmanTree


@pytest.mark.parametrize("pipeline", exp.PIPELINES)
def test_run_one(pipeline):
    _, data = exp.generate_dataset("english_like", 2048, seed=1)
    row = exp.run_one(data, pipeline)
    assert row.correctness_ok == 1
    assert row.pipeline == pipeline
    assert row.file_size_bytes == 2048
    assert 0 < row.compression_ratio < 1
    assert row.header_bytes < row.compressed_bytes
    assert row.entropy_bits_per_symbol <= row.avg_code_bits_per_symbol < row.entropy_bits_per_symbol + 1


def test_pipelines_write_identical_output():
    _, data = exp.generate_dataset("zipf64", 1024, seed=9)
    rows = [exp.run_one(data, p) for p in exp.PIPELINES]
    assert len({r.compressed_bytes for r in rows}) == 1


def test_single_symbol_and_empty_data():
    assert exp.run_one(exp.gen_single_symbol(100), "tree_walk").correctness_ok == 1
    row = exp.run_one(b"", "code_table")
    assert row.correctness_ok == 1
    assert row.compressed_bytes == 0


def test_unknown_pipeline():
    with pytest.raises(ValueError):
        exp.run_one(b"abc", "bogus")


def test_generate_dataset_fallback():
    name, data = exp.generate_dataset("nope", 64, seed=0)
    assert name == "nope_fallback_uniform256"
    assert len(data) == 64


def test_average_code_bits_textbook():
    freqs = [0] * 256
    for ch, count in zip("abcdef", (5, 9, 12, 13, 16, 45)):
        freqs[ord(ch)] = count
    assert exp.average_code_bits(HuffmanTree.build(freqs), freqs) == pytest.approx(2.24)


def test_main_writes_csv_and_charts(tmp_path, capsys):
    outdir = tmp_path / "results"
    assert exp.main([
        "--outdir", str(outdir), "--runs", "2",
        "--exp1_size_kb", "1", "--exp1_generators", "zipf64,single_symbol",
        "--exp2_min_kb", "1", "--exp2_max_kb", "2", "--exp2_generators", "repetitive90",
        "--exp3_size_kb", "1",
    ]) == 0

    with (outdir / "metrics.csv").open(newline="") as f:
        rows = list(csv.DictReader(f))
    # exp1: 2 datasets, exp2: 2 sizes, exp3: 6 datasets; 2 runs x 2 pipelines each
    assert len(rows) == (2 + 2 + 6) * 2 * 2
    assert all(r["correctness_ok"] == "1" for r in rows)

    with (outdir / "summary.csv").open(newline="") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == (2 + 2 + 6) * 2
    assert all(r["n_runs"] == "2" for r in summary)

    assert (outdir / "exp1_code_length_vs_entropy.png").exists()
    assert (outdir / "exp2_encode_time_repetitive90.png").exists()
    assert (outdir / "exp3_total_time.png").exists()
    assert "Correctness rate across all runs: 1.000" in capsys.readouterr().out
