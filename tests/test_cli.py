"""Tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from civicmerge.cli.app import app

runner = CliRunner()


@pytest.fixture
def problems_file(tmp_path):
    rows = [
        {
            "id": "a",
            "title": "Garbage pile near market",
            "latitude": 12.9716,
            "longitude": 77.5946,
            "created_at": "2024-05-01T12:00:00Z",
            "votes_count": 2,
        },
        {
            "id": "b",
            "title": "Garbage pile near market",
            "latitude": 12.9717,
            "longitude": 77.5947,
            "created_at": "2024-05-01T13:00:00Z",
            "votes_count": 9,
        },
        {
            "id": "c",
            "title": "Broken bench in park",
            "latitude": 13.1,
            "longitude": 77.7,
            "created_at": "2024-05-02T09:00:00Z",
            "votes_count": 0,
        },
    ]
    path = tmp_path / "problems.json"
    path.write_text(json.dumps(rows))
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("APPLY_MERGES", "MERGE_SPATIAL_EPS_METERS", "MERGE_SIMILARITY_THRESHOLD", "MERGE_MIN_SAMPLES"):
        monkeypatch.delenv(name, raising=False)


def test_run_from_file_writes_report(tmp_path, problems_file):
    output = tmp_path / "report.json"

    result = runner.invoke(
        app,
        [
            "run",
            "--config", str(tmp_path / "missing.yaml"),
            "--input", str(problems_file),
            "--provider", "mock",
            "--output", str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    report = json.loads(output.read_text())
    duplicate = report["clusters"][0]
    assert duplicate["cluster"]["member_ids"] == ["a", "b"]
    assert duplicate["plan"]["master_id"] == "b"
    assert duplicate["applied"] is False
    assert report["stats"]["duplicate_clusters"] == 1
    assert report["params"]["apply_merges"] is False


def test_run_threshold_option(tmp_path, problems_file):
    output = tmp_path / "report.json"

    result = runner.invoke(
        app,
        [
            "run",
            "-c", str(tmp_path / "missing.yaml"),
            "-i", str(problems_file),
            "--provider", "mock",
            "--eps", "1",
            "-o", str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    report = json.loads(output.read_text())
    assert report["params"]["spatial_eps_meters"] == 1.0
    assert report["stats"]["duplicate_clusters"] == 0


def test_run_uses_config_file(tmp_path, problems_file):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("embedding:\n  provider: mock\nclustering:\n  similarity_threshold: 0.99\n")
    output = tmp_path / "report.json"

    result = runner.invoke(
        app, ["run", "-c", str(config_path), "-i", str(problems_file), "-o", str(output)]
    )

    assert result.exit_code == 0, result.output
    assert json.loads(output.read_text())["params"]["similarity_threshold"] == 0.99


def test_run_without_config_or_input_fails(tmp_path):
    result = runner.invoke(app, ["run", "-c", str(tmp_path / "missing.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_run_with_invalid_input_fails(tmp_path):
    path = tmp_path / "problems.json"
    path.write_text(json.dumps([{"id": "a", "latitude": 500}]))

    result = runner.invoke(
        app, ["run", "-c", str(tmp_path / "missing.yaml"), "-i", str(path), "--provider", "mock"]
    )

    assert result.exit_code == 1
    assert "Run failed" in result.output


def test_run_without_openai_key_fails(tmp_path, problems_file, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    result = runner.invoke(
        app, ["run", "-c", str(tmp_path / "missing.yaml"), "-i", str(problems_file)]
    )

    assert result.exit_code == 1
    assert "OpenAI API key" in result.output


def test_graph_command(tmp_path, problems_file):
    output = tmp_path / "graph.json"

    result = runner.invoke(
        app,
        [
            "graph",
            "-c", str(tmp_path / "missing.yaml"),
            "-i", str(problems_file),
            "--provider", "mock",
            "-o", str(output),
        ],
    )

    assert result.exit_code == 0, result.output
    graph = json.loads(output.read_text())
    assert [n["id"] for n in graph["nodes"]] == ["b", "a", "c"]
    assert [(e["source"], e["target"]) for e in graph["edges"]] == [("b", "a")]


def test_init_writes_config(tmp_path):
    config_path = tmp_path / "config.yaml"

    result = runner.invoke(
        app,
        ["init", "-c", str(config_path), "--no-init-db", "--embedding-provider", "ollama"],
    )

    assert result.exit_code == 0, result.output
    text = config_path.read_text()
    assert "provider: ollama" in text
    assert "nomic-embed-text" in text
    assert "CIVICMERGE_DB_PASSWORD" in text


def test_init_refuses_to_overwrite(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("{}\n")

    result = runner.invoke(app, ["init", "-c", str(config_path), "--no-init-db"])

    assert result.exit_code == 1
    assert config_path.read_text() == "{}\n"


def test_embedding_failure_message(tmp_path, problems_file, monkeypatch):
    from civicmerge.cli import common

    from .helpers import FakeEmbeddingProvider

    monkeypatch.setattr(
        common,
        "get_embedding_provider",
        lambda config: FakeEmbeddingProvider(fail_on="Broken bench in park"),
    )

    result = runner.invoke(
        app, ["run", "-c", str(tmp_path / "missing.yaml"), "-i", str(problems_file)]
    )

    assert result.exit_code == 1
    assert result.output.count("Embedding stage failed") == 1
