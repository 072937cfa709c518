"""Text-to-vector encoders and vector similarity utilities."""

from __future__ import annotations

import logging
from typing import Sequence, Union

import numpy as np

from .config import EmbeddingConfig
from .errors import DimensionMismatch, ValidationError
from .schemas import EMBEDDING_DIMENSIONS


logger = logging.getLogger(__name__)

HASH_MODEL_VERSION = "hash-384-v1"

VectorLike = Union[np.ndarray, Sequence[float]]

_LCG_MULTIPLIER = 9301
_LCG_INCREMENT = 49297
_LCG_MODULUS = 233280


def _as_vector(value: VectorLike) -> np.ndarray:
    return np.asarray(value, dtype=np.float64).reshape(-1)


def text_hash(text: str) -> int:
    """Order-sensitive 32-bit polynomial hash over UTF-16 code units."""
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code = int.from_bytes(data[i : i + 2], "little")
        h = (h * 31 + code) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def normalize(vector: VectorLike) -> np.ndarray:
    vec = _as_vector(vector)
    norm = float(np.linalg.norm(vec))
    if norm == 0.0:
        return vec
    return vec / norm


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """Cosine of the angle between two vectors; 0.0 if either is zero."""
    left = _as_vector(a)
    right = _as_vector(b)
    if left.shape[0] != right.shape[0]:
        raise DimensionMismatch(left.shape[0], right.shape[0])
    denom = float(np.linalg.norm(left) * np.linalg.norm(right))
    if denom == 0.0:
        return 0.0
    sim = float(np.dot(left, right) / denom)
    if np.isnan(sim):
        return 0.0
    return max(-1.0, min(1.0, sim))


class HashEmbeddingCodec:
    """Deterministic, dependency-free 384-d text encoder."""

    model_version = HASH_MODEL_VERSION
    dimensions = EMBEDDING_DIMENSIONS

    def encode(self, text: str) -> np.ndarray:
        if not text:
            return np.zeros(self.dimensions, dtype=np.float64)
        h = text_hash(text)
        seeds = (h + np.arange(self.dimensions, dtype=np.int64)) * _LCG_MULTIPLIER + _LCG_INCREMENT
        raw = (seeds % _LCG_MODULUS).astype(np.float64) / _LCG_MODULUS - 0.5
        return normalize(raw)


class SentenceTransformerCodec:
    """Encoder backed by a local sentence-transformers model."""

    dimensions = EMBEDDING_DIMENSIONS

    def __init__(self, model_name: str):
        from sentence_transformers import SentenceTransformer

        self.model = SentenceTransformer(model_name)
        self.model_version = model_name
        dims = self.model.get_sentence_embedding_dimension()
        if dims != self.dimensions:
            raise ValidationError(
                f"Embedding model {model_name} produces {dims} dimensions, expected {self.dimensions}"
            )

    def encode(self, text: str) -> np.ndarray:
        if not text:
            return np.zeros(self.dimensions, dtype=np.float64)
        vec = self.model.encode([text], normalize_embeddings=True)[0]
        return _as_vector(vec)


def build_codec(config: EmbeddingConfig):
    if config.model_name == HASH_MODEL_VERSION:
        return HashEmbeddingCodec()
    logger.info("Loading sentence-transformers model %s", config.model_name)
    return SentenceTransformerCodec(config.model_name)
