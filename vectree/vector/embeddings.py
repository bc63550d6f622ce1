"""
Embedding source and query rewriting used to drive the tree from text.
These wrap external models; the tree itself only sees vectors.
"""

from abc import ABC, abstractmethod
import hashlib
from typing import Optional

import numpy as np
import ollama

from ..core.errors import EmbeddingError


class IEmbeddingProvider(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector for given text."""
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        pass


class DeterministicHashEmbedding(IEmbeddingProvider):
    """Deterministic hash-based embedding provider for testing purposes.

    The text's SHA-256 digest seeds a random generator, so the same text
    always maps to the same unit vector without loading a model.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def embed_text(self, text: str) -> list[float]:
        """Generate deterministic embedding vector using hash function."""
        digest = hashlib.sha256(text.encode('utf-8')).digest()
        rng = np.random.default_rng(int.from_bytes(digest[:8], 'big'))

        vector = rng.uniform(-1.0, 1.0, self.dimension)
        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm
        return vector.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        return self.dimension


class SentenceTransformerEmbedding(IEmbeddingProvider):
    """Sentence transformers embedding provider using pre-trained models.

    Uses the all-mpnet-base-v2 model by default. The model is loaded on
    first use.
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None
        self._dimension = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name)
        return self._model

    def embed_text(self, text: str) -> list[float]:
        """Generate embedding vector using sentence transformers."""
        embedding = self.model.encode(text, convert_to_tensor=False)
        return embedding.tolist()

    def get_dimension(self) -> int:
        """Get the dimension of the embedding vectors."""
        if self._dimension is None:
            self._dimension = self.model.get_sentence_embedding_dimension()
        return self._dimension


class IQueryRewriter(ABC):
    """Turns raw user text into a better search query."""

    @abstractmethod
    def rewrite(self, text: str) -> str:
        pass


class PassthroughRewriter(IQueryRewriter):
    def rewrite(self, text: str) -> str:
        return text


class OllamaQueryRewriter(IQueryRewriter):
    """Asks a local Ollama model to rewrite text as a search query."""

    SYSTEM_PROMPT = (
        "Rewrite the following into a good search query to search the "
        "reference documents. Reply with the query only."
    )

    def __init__(self, model_name: str = "llama3"):
        self.model_name = model_name

    def rewrite(self, text: str) -> str:
        response = ollama.chat(
            model=self.model_name,
            messages=[
                {'role': 'system', 'content': self.SYSTEM_PROMPT},
                {'role': 'user', 'content': text}
            ]
        )
        content = response.get('message', {}).get('content', '').strip()
        if not content:
            raise EmbeddingError("Query rewrite returned no text")
        return content


def get_search_embedding(text: str, provider: IEmbeddingProvider,
                         rewriter: Optional[IQueryRewriter] = None) -> np.ndarray:
    """Optionally rewrite text, then embed it.

    Raises:
        EmbeddingError: if rewriting or embedding fails, or no vector is produced
    """
    query = text
    if rewriter is not None:
        try:
            query = rewriter.rewrite(text)
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"Query rewrite failed: {e}") from e

    try:
        embedding = provider.embed_text(query)
    except Exception as e:
        raise EmbeddingError(f"Embedding request failed: {e}") from e

    if embedding is None or len(embedding) == 0:
        raise EmbeddingError("No search embeddings were found")

    return np.asarray(embedding, dtype=np.float64)
