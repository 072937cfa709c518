"""Configuration loading for the journal insight engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def _resolve_path(raw_path: str, base_dir: Path) -> str:
    path = Path(raw_path).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    return str(path)


@dataclass
class PathsConfig:
    """Filesystem locations used by the pipeline."""

    sqlite_path: str = "data/journal.db"
    chroma_dir: str = "data/chroma"


@dataclass
class EmbeddingConfig:
    """Encoder and embedding index settings."""

    model_name: str = "hash-384-v1"
    backend: str = "sqlite"
    collection_name: str = "journal_embeddings"


@dataclass
class RetrievalConfig:
    """Similar-entry search and history window defaults."""

    default_limit: int = 5
    similarity_threshold: float = 0.7
    history_window: int = 30


@dataclass
class GenerationConfig:
    """Generative-text backend settings."""

    enabled: bool = True
    provider: str = "deepseek"
    model: str = "deepseek-chat"
    base_url: str = "https://api.deepseek.com/v1"
    temperature: float = 0.7
    insight_max_tokens: int = 500
    max_tokens: int = 800
    timeout: float = 30.0


@dataclass
class CaptureConfig:
    """Device capture timings, in seconds."""

    facial_interval: float = 3.0
    transcription_max_wait: float = 30.0
    silence_timeout: float = 2.0


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class AppConfig:
    """Top-level app configuration."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    embeddings: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    deepseek_api_key: Optional[str] = None
    google_api_key: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base_dir: Optional[Path] = None) -> "AppConfig":
        """Build config from a dictionary."""
        base = Path.cwd() if base_dir is None else base_dir

        paths_data = data.get("paths", {})
        paths = PathsConfig(
            sqlite_path=_resolve_path(paths_data.get("sqlite_path", "data/journal.db"), base),
            chroma_dir=_resolve_path(paths_data.get("chroma_dir", "data/chroma"), base),
        )

        return cls(
            paths=paths,
            embeddings=EmbeddingConfig(**data.get("embeddings", {})),
            retrieval=RetrievalConfig(**data.get("retrieval", {})),
            generation=GenerationConfig(**data.get("generation", {})),
            capture=CaptureConfig(**data.get("capture", {})),
            logging=LoggingConfig(**data.get("logging", {})),
            deepseek_api_key=data.get("deepseek_api_key") or os.getenv("DEEPSEEK_API_KEY"),
            google_api_key=data.get("google_api_key") or os.getenv("GEMINI_API_KEY"),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "AppConfig":
        """Load config from YAML."""
        config_path = Path(path).resolve()
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        return cls.from_dict(data, base_dir=config_path.parent)
