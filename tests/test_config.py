from pathlib import Path

from journal_insight.config import AppConfig


def test_from_yaml_resolves_relative_paths(tmp_path, monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-from-env")
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "paths:\n"
        "  sqlite_path: data/journal.db\n"
        "retrieval:\n"
        "  default_limit: 3\n"
        "generation:\n"
        "  provider: google\n"
        "  model: gemini-2.5-flash\n",
        encoding="utf-8",
    )

    config = AppConfig.from_yaml(str(config_file))
    assert Path(config.paths.sqlite_path) == (tmp_path / "data" / "journal.db").resolve()
    assert Path(config.paths.chroma_dir) == (tmp_path / "data" / "chroma").resolve()
    assert config.retrieval.default_limit == 3
    assert config.retrieval.similarity_threshold == 0.7
    assert config.generation.provider == "google"
    assert config.deepseek_api_key is None
    assert config.google_api_key == "gemini-from-env"


def test_empty_yaml_gives_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("DEEPSEEK_API_KEY", raising=False)
    config_file = tmp_path / "config.yaml"
    config_file.write_text("", encoding="utf-8")

    config = AppConfig.from_yaml(str(config_file))
    assert config.embeddings.model_name == "hash-384-v1"
    assert config.embeddings.backend == "sqlite"
    assert config.retrieval.history_window == 30
    assert config.generation.temperature == 0.7
    assert config.capture.facial_interval == 3.0
    assert config.capture.silence_timeout == 2.0
    assert config.logging.level == "INFO"


def test_explicit_key_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("DEEPSEEK_API_KEY", "from-env")
    config = AppConfig.from_dict({"deepseek_api_key": "from-file"}, base_dir=tmp_path)
    assert config.deepseek_api_key == "from-file"


def test_absolute_paths_are_kept(tmp_path):
    target = tmp_path / "elsewhere" / "db.sqlite"
    config = AppConfig.from_dict({"paths": {"sqlite_path": str(target)}}, base_dir=Path("/unused"))
    assert config.paths.sqlite_path == str(target)
