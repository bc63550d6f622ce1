"""
Tests for the embedding source and query rewriting adapters.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from vectree.core.errors import EmbeddingError
from vectree.vector.embeddings import (
    IEmbeddingProvider,
    DeterministicHashEmbedding,
    SentenceTransformerEmbedding,
    PassthroughRewriter,
    OllamaQueryRewriter,
    get_search_embedding
)


def test_embedding_interface():
    """Test that the hash provider implements the interface correctly."""
    embedder = DeterministicHashEmbedding(dimension=384)

    assert isinstance(embedder, IEmbeddingProvider)
    assert embedder.get_dimension() == 384


def test_deterministic_embedding():
    """Test that the same input always produces the same output."""
    embedder1 = DeterministicHashEmbedding(dimension=64)
    embedder2 = DeterministicHashEmbedding(dimension=64)

    vector1 = embedder1.embed_text("Hello, world!")
    vector2 = embedder2.embed_text("Hello, world!")

    assert vector1 == vector2
    assert len(vector1) == 64


def test_hash_embedding_is_unit_length_and_dense():
    vector = np.array(DeterministicHashEmbedding(dimension=128).embed_text("dense"))

    assert np.linalg.norm(vector) == pytest.approx(1.0)
    assert np.count_nonzero(vector) == 128


def test_different_inputs_produce_different_vectors():
    embedder = DeterministicHashEmbedding(dimension=32)
    assert embedder.embed_text("Hello, world!") != embedder.embed_text("Goodbye, world!")


def test_embedding_edge_cases():
    embedder = DeterministicHashEmbedding(dimension=16)
    assert len(embedder.embed_text("")) == 16
    assert len(embedder.embed_text("A" * 1000)) == 16
    assert len(embedder.embed_text("Hello\n\t\rWorld!@#$%^&*()")) == 16


def test_sentence_transformer_uses_model():
    """The model is only asked to encode; no download happens in tests."""
    embedder = SentenceTransformerEmbedding("test-model")
    model = MagicMock()
    model.encode.return_value = np.array([0.1, 0.2, 0.3])
    model.get_sentence_embedding_dimension.return_value = 3
    embedder._model = model

    assert embedder.embed_text("hello") == pytest.approx([0.1, 0.2, 0.3])
    assert embedder.get_dimension() == 3
    model.encode.assert_called_once_with("hello", convert_to_tensor=False)


def test_sentence_transformer_loads_lazily():
    embedder = SentenceTransformerEmbedding("test-model")
    assert embedder._model is None

    with patch("sentence_transformers.SentenceTransformer") as model_class:
        model = embedder.model
        model_class.assert_called_once_with("test-model")
        assert embedder.model is model


def test_passthrough_rewriter():
    assert PassthroughRewriter().rewrite("query text") == "query text"


def test_ollama_rewriter():
    with patch("vectree.vector.embeddings.ollama.chat") as chat:
        chat.return_value = {'message': {'content': '  tree search api  '}}
        rewriter = OllamaQueryRewriter("test-model")

        assert rewriter.rewrite("how do I search the tree?") == "tree search api"

        kwargs = chat.call_args.kwargs
        assert kwargs['model'] == "test-model"
        assert kwargs['messages'][0]['role'] == 'system'
        assert kwargs['messages'][1] == {'role': 'user', 'content': "how do I search the tree?"}


def test_ollama_rewriter_empty_reply():
    with patch("vectree.vector.embeddings.ollama.chat") as chat:
        chat.return_value = {'message': {'content': ''}}
        with pytest.raises(EmbeddingError):
            OllamaQueryRewriter().rewrite("anything")


def test_get_search_embedding_rewrites_then_embeds():
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_text.return_value = [1.0, 0.0]
    rewriter = MagicMock()
    rewriter.rewrite.return_value = "refined"

    vector = get_search_embedding("raw", provider, rewriter)

    rewriter.rewrite.assert_called_once_with("raw")
    provider.embed_text.assert_called_once_with("refined")
    assert isinstance(vector, np.ndarray)
    assert vector.tolist() == [1.0, 0.0]


def test_get_search_embedding_without_rewriter():
    vector = get_search_embedding("text", DeterministicHashEmbedding(dimension=8))
    assert vector.shape == (8,)


def test_provider_failure_is_labeled():
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_text.side_effect = ConnectionError("model offline")

    with pytest.raises(EmbeddingError) as exc_info:
        get_search_embedding("text", provider)
    assert "model offline" in exc_info.value.msg


def test_empty_embedding_is_error():
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_text.return_value = []

    with pytest.raises(EmbeddingError) as exc_info:
        get_search_embedding("text", provider)
    assert exc_info.value.msg == "No search embeddings were found"


def test_rewriter_failure_is_labeled():
    rewriter = MagicMock()
    rewriter.rewrite.side_effect = RuntimeError("rewrite down")

    with pytest.raises(EmbeddingError) as exc_info:
        get_search_embedding("text", DeterministicHashEmbedding(dimension=8), rewriter)
    assert "rewrite down" in exc_info.value.msg
