"""Tests for configuration loading and environment overrides."""

import pytest

from civicmerge.config import ClusteringConfig, Config, ConfigModel, load_config, save_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "MERGE_SPATIAL_EPS_METERS",
        "MERGE_SIMILARITY_THRESHOLD",
        "MERGE_MIN_SAMPLES",
        "APPLY_MERGES",
        "MERGE_RUN_BY",
        "OPENAI_API_KEY",
        "CIVICMERGE_DB_PASSWORD",
    ):
        monkeypatch.delenv(name, raising=False)


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


def test_defaults():
    config = ConfigModel()

    assert config.clustering.spatial_eps_meters == 500.0
    assert config.clustering.similarity_threshold == 0.8
    assert config.clustering.min_samples == 2
    assert config.merge.apply_merges is False
    assert config.merge.merged_by == "merge-function"
    assert config.embedding.concurrency_limit == 5


def test_load_yaml(tmp_path):
    path = write(
        tmp_path,
        "clustering:\n  spatial_eps_meters: 250\n  min_samples: 3\n"
        "embedding:\n  provider: Ollama\n",
    )

    config = load_config(path)

    assert config.clustering.spatial_eps_meters == 250
    assert config.clustering.min_samples == 3
    assert config.clustering.similarity_threshold == 0.8
    assert config.embedding.provider == "ollama"


def test_empty_file_uses_defaults(tmp_path):
    assert load_config(write(tmp_path, "")) == ConfigModel()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_config(write(tmp_path, "clustering: [unclosed"))


def test_invalid_values(tmp_path):
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(write(tmp_path, "clustering:\n  similarity_threshold: 1.5\n"))


def test_unknown_provider_rejected():
    with pytest.raises(ValueError):
        ConfigModel(embedding={"provider": "word2vec"})


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    original = ConfigModel(clustering=ClusteringConfig(spatial_eps_meters=42))

    save_config(original, path)

    assert load_config(path) == original


def test_clustering_env_overrides(monkeypatch):
    monkeypatch.setenv("MERGE_SPATIAL_EPS_METERS", "120")
    monkeypatch.setenv("MERGE_SIMILARITY_THRESHOLD", "0.9")
    monkeypatch.setenv("MERGE_MIN_SAMPLES", "")

    clustering = Config(config=ConfigModel()).get_clustering_config()

    assert clustering.spatial_eps_meters == 120
    assert clustering.similarity_threshold == 0.9
    assert clustering.min_samples == 2


def test_invalid_env_override(monkeypatch):
    monkeypatch.setenv("MERGE_MIN_SAMPLES", "zero")

    with pytest.raises(ValueError, match="Invalid clustering override"):
        Config(config=ConfigModel()).get_clustering_config()


@pytest.mark.parametrize(
    "value, expected",
    [("true", True), ("TRUE", True), ("false", False), ("yes", False)],
)
def test_apply_merges_env(monkeypatch, value, expected):
    monkeypatch.setenv("APPLY_MERGES", value)

    merge = Config(config=ConfigModel(merge={"apply_merges": not expected})).get_merge_config()

    assert merge.apply_merges is expected


def test_merged_by_env(monkeypatch):
    monkeypatch.setenv("MERGE_RUN_BY", "cron")

    assert Config(config=ConfigModel()).get_merge_config().merged_by == "cron"


def test_api_key_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    assert Config(config=ConfigModel()).get_embedding_config()["api_key"] == "sk-test"


def test_explicit_api_key_wins(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    config = Config(config=ConfigModel(embedding={"api_key": "sk-file"}))

    assert config.get_embedding_config()["api_key"] == "sk-file"


def test_db_password_from_env(monkeypatch):
    monkeypatch.setenv("CIVICMERGE_DB_PASSWORD", "secret")
    config = Config(config=ConfigModel(postgres={"password_env": "CIVICMERGE_DB_PASSWORD"}))

    assert config.get_db_config()["password"] == "secret"


def test_config_loads_lazily(tmp_path):
    config = Config(tmp_path / "missing.yaml")

    with pytest.raises(FileNotFoundError):
        config.config


def test_save_leaves_out_secrets(tmp_path):
    path = tmp_path / "config.yaml"
    config = ConfigModel(postgres={"password": "hunter2"}, embedding={"api_key": "sk-inline"})

    save_config(config, path)

    text = path.read_text()
    assert "hunter2" not in text
    assert "sk-inline" not in text
    assert load_config(path).postgres.password is None


def test_non_mapping_rejected(tmp_path):
    with pytest.raises(ValueError, match="expected a mapping"):
        load_config(write(tmp_path, "- just\n- a list\n"))
