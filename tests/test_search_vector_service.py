"""벡터 인덱스 어댑터 테스트"""

import time
from types import SimpleNamespace
from unittest.mock import MagicMock

from pinecone.exceptions import PineconeException
import pytest
from qdrant_client.http.exceptions import ResponseHandlingException

from infra.config import Settings
from modules.search.errors import VectorProviderError
from modules.search.provider_registry import ProviderState
from modules.search.search_vector_service import (
    PineconeVectorIndex,
    QdrantVectorIndex,
    create_vector_index,
)


class TestQdrantVectorIndex:

    async def test_top_k_maps_points(self):
        client = MagicMock()
        client.query_points.return_value = SimpleNamespace(points=[
            SimpleNamespace(id=7, score=0.8, payload={"type": "verse"}),
            SimpleNamespace(id="abc", score=None, payload=None),
        ])
        index = QdrantVectorIndex("thelordwill", client_factory=lambda: client)

        matches = await index.top_k([0.1, 0.2], 4)

        client.query_points.assert_called_once_with(
            collection_name="thelordwill", query=[0.1, 0.2], limit=4, with_payload=True
        )
        assert [(m.id, m.score, m.metadata) for m in matches] == [
            ("7", 0.8, {"type": "verse"}),
            ("abc", 0.0, {}),
        ]

    async def test_sdk_error_maps_to_provider_error(self):
        client = MagicMock()
        client.query_points.side_effect = ConnectionError("refused")
        index = QdrantVectorIndex("thelordwill", client_factory=lambda: client)

        with pytest.raises(VectorProviderError) as exc_info:
            await index.top_k([0.1], 2)

        assert exc_info.value.provider == "qdrant"

    async def test_response_handling_error_maps_to_provider_error(self):
        client = MagicMock()
        client.query_points.side_effect = ResponseHandlingException(ConnectionError("reset"))
        index = QdrantVectorIndex("thelordwill", client_factory=lambda: client)

        with pytest.raises(VectorProviderError):
            await index.top_k([0.1], 2)

    async def test_programming_error_propagates(self):
        """Given 응답 처리 중 AttributeError When top_k Then VectorProviderError로 바꾸지 않고 전파"""
        client = MagicMock()
        client.query_points.return_value = None
        index = QdrantVectorIndex("thelordwill", client_factory=lambda: client)

        with pytest.raises(AttributeError):
            await index.top_k([0.1], 2)

    async def test_timeout_maps_to_provider_error(self):
        client = MagicMock()
        client.query_points.side_effect = lambda **kwargs: time.sleep(0.3)
        index = QdrantVectorIndex("thelordwill", client_factory=lambda: client, timeout_seconds=0.01)

        with pytest.raises(VectorProviderError) as exc_info:
            await index.top_k([0.1], 2)

        assert "timed out" in exc_info.value.reason


class TestPineconeVectorIndex:

    async def test_top_k_queries_namespace(self):
        pinecone_index = MagicMock()
        pinecone_index.query.return_value = SimpleNamespace(matches=[
            SimpleNamespace(id="p1", score=0.66, metadata={"type": "place"}),
        ])
        index = PineconeVectorIndex(namespace="content", index_factory=lambda: pinecone_index)

        matches = await index.top_k([0.5], 3)

        pinecone_index.query.assert_called_once_with(
            vector=[0.5], top_k=3, namespace="content", include_metadata=True, include_values=False
        )
        assert matches[0].id == "p1"
        assert matches[0].score == 0.66

    async def test_missing_api_key_is_not_retryable(self):
        def missing_key():
            raise ValueError("PINECONE_API_KEY not configured")

        index = PineconeVectorIndex(index_factory=missing_key)

        with pytest.raises(VectorProviderError) as exc_info:
            await index.top_k([0.5], 3)

        assert exc_info.value.retryable is False
        assert "PINECONE_API_KEY" in exc_info.value.reason

    async def test_service_error_maps_to_provider_error(self):
        pinecone_index = MagicMock()
        pinecone_index.query.side_effect = PineconeException("service unavailable")
        index = PineconeVectorIndex(index_factory=lambda: pinecone_index)

        with pytest.raises(VectorProviderError) as exc_info:
            await index.top_k([0.5], 3)

        assert exc_info.value.provider == "pinecone"
        assert exc_info.value.retryable is True

    async def test_type_error_propagates(self):
        pinecone_index = MagicMock()
        pinecone_index.query.side_effect = TypeError("unexpected keyword argument")
        index = PineconeVectorIndex(index_factory=lambda: pinecone_index)

        with pytest.raises(TypeError):
            await index.top_k([0.5], 3)


class TestCreateVectorIndex:

    def test_factory_by_provider(self):
        settings = Settings(qdrant_collection_name="content", pinecone_namespace="ns")

        assert isinstance(create_vector_index(ProviderState.configured("qdrant"), settings), QdrantVectorIndex)
        pinecone = create_vector_index(ProviderState.configured("pinecone"), settings)
        assert isinstance(pinecone, PineconeVectorIndex)
        assert pinecone.namespace == "ns"
        assert create_vector_index(ProviderState.unconfigured(), settings) is None
