"""Embedding service interface and the local hash-based generator.

``HashEmbeddingService`` is a placeholder, not a language model: it derives a
deterministic unit vector from character-hash statistics of the text. Two
texts score as similar when their hashes happen to line up, which has nothing
to do with meaning. It exists so the knowledge base works without any
embedding infrastructure, and keeps vectors compatible with documents indexed
by earlier deployments.
"""

import math
from abc import ABC, abstractmethod

from knowledge_agent.config import EmbeddingSettings, get_settings
from knowledge_agent.embeddings.models import EmbeddingResult


_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.
        """
        ...

    def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, preserving order."""
        return [self.embed(text) for text in texts]

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...


def utf16_code_units(text: str) -> list[int]:
    """Return the UTF-16 code units of ``text``.

    Characters outside the Basic Multilingual Plane become surrogate pairs.
    """
    units: list[int] = []
    for char in text:
        code = ord(char)
        if code > 0xFFFF:
            code -= 0x10000
            units.append(0xD800 + (code >> 10))
            units.append(0xDC00 + (code & 0x3FF))
        else:
            units.append(code)
    return units


def rolling_hash(units: list[int]) -> int:
    """32-bit polynomial hash (``h * 31 + unit``), absolute value of the signed result."""
    value = 0
    for unit in units:
        value = (value * 31 + unit) & _INT32_MASK
    if value & _INT32_SIGN:
        value -= 1 << 32
    return abs(value)


def hash_seeds(text: str) -> list[int]:
    """Derive the five integer seeds for an already-normalized text."""
    units = utf16_code_units(text)
    middle = len(units) // 2
    letters = sum(1 for char in text if "a" <= char <= "z")
    return [
        rolling_hash(units),
        rolling_hash(units[:middle]),
        rolling_hash(units[middle:]),
        len(units),
        letters,
    ]


class HashEmbeddingService(EmbeddingService):
    """Deterministic, infrastructure-free embedding generator.

    Identical text after lowercasing and trimming always yields the same
    vector. Every vector is L2-normalized.
    """

    def __init__(self, settings: EmbeddingSettings | None = None) -> None:
        """Initialize the generator.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
        """
        self._settings = settings or get_settings().embedding

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions."""
        return self._settings.dimension

    def embed(self, text: str) -> EmbeddingResult:
        """Generate the embedding for ``text``."""
        vector = self.vectorize(text)
        return EmbeddingResult(
            text=text,
            embedding=vector,
            model=self.model_name,
            dimensions=len(vector),
        )

    def vectorize(self, text: str) -> list[float]:
        """Compute the raw unit vector for ``text``."""
        normalized = text.lower().strip()
        seeds = hash_seeds(normalized)

        vector: list[float] = []
        for i in range(self.dimensions):
            angle = (seeds[i % len(seeds)] + i * 0.1) * math.pi
            vector.append(math.sin(angle) * math.cos(angle * 0.5))

        norm = math.sqrt(sum(value * value for value in vector)) or 1.0
        return [value / norm for value in vector]
