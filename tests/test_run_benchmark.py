from unittest import mock

import numpy as np
import pytest

import run_benchmark
from dataset import dataset_paths, write_vectors
from errors import DatasetIOError, IndexCreationError, SchemaError
from params import IndexConfig


def _run(backend, paths, **kwargs):
    kwargs.setdefault("dimension", 2)
    kwargs.setdefault("k", 3)
    kwargs.setdefault("table", "t1")
    kwargs.setdefault("progress", False)
    kwargs.setdefault("index_config", IndexConfig(ef_search=10))
    return run_benchmark.run_benchmark(backend, paths, **kwargs)


def test_end_to_end_recall(backend, toy_dataset, capsys):
    metric = _run(backend, dataset_paths(toy_dataset, "toy"))

    assert metric.total_queries == 3
    assert metric.hits_at_1 == 3
    out = capsys.readouterr().out
    assert out.index("Compute recalls") < out.index("R@1 = 1.0000")
    assert "R@100 = 1.0000" in out


def test_statement_order(backend, toy_dataset):
    _run(backend, dataset_paths(toy_dataset, "toy"))

    kinds = [s.split()[0] for s in backend.statements]
    assert kinds[:3] == ["CREATE", "CREATE", "SET"]
    assert kinds[3:8] == ["INSERT"] * 5
    assert kinds[8:] == ["SELECT"] * 3


def test_index_after_load(backend, toy_dataset):
    _run(backend, dataset_paths(toy_dataset, "toy"), index_after_load=True)
    kinds = [s.split()[0] for s in backend.statements]
    assert kinds[0] == "CREATE"
    assert kinds[1:6] == ["INSERT"] * 5
    assert kinds[6:8] == ["CREATE", "SET"]


def test_failed_queries_are_scored_as_misses(backend, toy_dataset, capsys):
    backend.fail_when = lambda s: s.startswith("SELECT") and "[9.800000" in s
    metric = _run(backend, dataset_paths(toy_dataset, "toy"))

    assert metric.total_queries == 3
    assert metric.hits_at_100 == 2
    assert "1 of 3 queries failed" in capsys.readouterr().out


def test_failed_inserts_degrade_recall(backend, toy_dataset):
    backend.fail_when = lambda s: s.startswith("INSERT") and s.endswith(", 3)")
    metric = _run(backend, dataset_paths(toy_dataset, "toy"))
    assert metric.hits_at_100 == 2


def test_max_queries(backend, toy_dataset):
    metric = _run(backend, dataset_paths(toy_dataset, "toy"), max_queries=2, max_base=4)
    assert metric.total_queries == 2
    assert len(backend.inserts()) == 4


def test_schema_failure_aborts_before_inserts(backend, toy_dataset):
    backend.fail_when = lambda s: s.startswith("CREATE TABLE")
    with pytest.raises(SchemaError):
        _run(backend, dataset_paths(toy_dataset, "toy"))
    assert backend.inserts() == []


def test_index_failure_aborts(backend, toy_dataset):
    backend.fail_when = lambda s: s.startswith("CREATE INDEX")
    with pytest.raises(IndexCreationError):
        _run(backend, dataset_paths(toy_dataset, "toy"))
    assert backend.selects() == []


def test_dimension_mismatch_aborts(backend, toy_dataset):
    with pytest.raises(DatasetIOError, match="dimension should be 128"):
        _run(backend, dataset_paths(toy_dataset, "toy"), dimension=128)


def test_query_dimension_mismatch_aborts(backend, toy_dataset):
    write_vectors(toy_dataset / "toy_query.fvecs", np.zeros((3, 4), dtype=np.float32))
    with pytest.raises(DatasetIOError):
        _run(backend, dataset_paths(toy_dataset, "toy"))
    assert backend.selects() == []


def test_main_reports_fatal_errors(backend, toy_dataset, capsys):
    fake = backend
    fake.fail_when = lambda s: s.startswith("CREATE TABLE")
    fake.close = mock.Mock()
    with mock.patch.object(run_benchmark, "ensure_connection", return_value=fake):
        status = run_benchmark.main(
            ["--dataset-dir", str(toy_dataset), "--name", "toy", "--dimension", "2", "--no-progress"]
        )

    assert status == 1
    assert "[Error] Failed to create table" in capsys.readouterr().err
    fake.close.assert_called_once()


def test_main_runs_benchmark(backend, toy_dataset, capsys):
    fake = backend
    fake.close = mock.Mock()
    with mock.patch.object(run_benchmark, "ensure_connection", return_value=fake) as connect:
        status = run_benchmark.main(
            [
                "--dataset-dir", str(toy_dataset),
                "--name", "toy",
                "--dimension", "2",
                "-k", "3",
                "--m", "8",
                "--ef-construction", "32",
                "--ef-search", "40",
                "--no-progress",
            ]
        )

    assert status == 0
    assert connect.call_args[0][0]["host"] == "localhost"
    assert "CREATE EXTENSION IF NOT EXISTS vector" in fake.statements
    assert any("WITH (m = 8, ef_construction = 32)" in s for s in fake.statements)
    assert "SET hnsw.ef_search = 40" in fake.statements
    out = capsys.readouterr().out
    assert "R@1 = 1.0000" in out
    assert "[Complete]" in out


def test_main_rejects_unknown_metric(capsys):
    assert run_benchmark.main(["--metric", "hamming"]) == 2
    assert "Unsupported metric" in capsys.readouterr().err


@pytest.mark.parametrize(
    "kwargs",
    [{"log_every": 0}, {"log_every": -5}, {"max_base": -1}, {"max_queries": -1}],
)
def test_out_of_range_options_rejected_before_any_statement(backend, toy_dataset, kwargs):
    with pytest.raises(ValueError):
        _run(backend, dataset_paths(toy_dataset, "toy"), **kwargs)
    assert backend.statements == []


@pytest.mark.parametrize(
    "argv,message",
    [
        (["--log-every", "0"], "log_every must be at least 1"),
        (["--max-base", "-1"], "max_base must not be negative"),
        (["--max-queries", "-2"], "max_queries must not be negative"),
    ],
)
def test_main_reports_out_of_range_options(argv, message, capsys):
    with mock.patch.object(run_benchmark, "ensure_connection") as connect:
        assert run_benchmark.main(argv) == 2
    connect.assert_not_called()
    assert f"[Error] {message}" in capsys.readouterr().err


def test_main_prints_total_time(backend, toy_dataset, capsys):
    backend.close = mock.Mock()
    with mock.patch.object(run_benchmark, "ensure_connection", return_value=backend):
        status = run_benchmark.main(
            ["--dataset-dir", str(toy_dataset), "--name", "toy", "--dimension", "2", "-k", "3", "--no-progress"]
        )

    assert status == 0
    last = capsys.readouterr().out.strip().splitlines()[-1]
    assert last.startswith("[Complete] Benchmark finished in ")
    assert last.endswith("s")
